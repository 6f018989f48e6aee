"""Mapping sessions and the cycle guard.

A session lives for one top-level ``map``/``map_into``/``map_list`` call. Its
cycle guard is the only state shared by the concurrent element tasks of that
call.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any

from graphmapper.config.settings import MapperConfig


class CycleGuard:
    """Identity map from source objects to the targets produced for them.

    Keys are ``(id(source), target type)``. The source object is stored next to
    its target so its identity cannot be recycled while the session lives.
    Every operation runs in one critical section.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: dict[tuple[int, type], tuple[Any, Any]] = {}

    def lookup(self, source: Any, target_type: type) -> Any | None:
        """Target already produced for this source identity, or None."""
        with self._lock:
            entry = self._entries.get((id(source), target_type))
        return None if entry is None else entry[1]

    def claim(self, source: Any, target: Any, target_type: type | None = None) -> Any:
        """Register ``target`` for ``source`` unless another target got there first.

        Args:
            source: Source object (must not be None).
            target: Freshly created or caller-supplied target.
            target_type: Key type. Defaults to ``type(target)``.

        Returns:
            The target now registered for the source: ``target`` itself, or the
            one registered earlier by another branch of the session.
        """
        key = (id(source), target_type or type(target))
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                return entry[1]
            self._entries[key] = (source, target)
            return target

    def __contains__(self, source: object) -> bool:
        with self._lock:
            return any(key[0] == id(source) for key in self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


@dataclass
class MappingSession:
    """State scoped to one top-level mapping call."""

    config: MapperConfig
    guard: CycleGuard = field(default_factory=CycleGuard)
    objects_mapped: int = 0
    """Composite objects mapped during the session, for diagnostics."""
