"""Resolver models: field pairs and the per-mapping match ledger."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto

from graphmapper.core.descriptor.models import FieldDescriptor, MapField


class RuleOwner(Enum):
    """Which side's declarations produced a pair."""

    SOURCE = auto()
    TARGET = auto()


@dataclass(frozen=True, slots=True)
class FieldPair:
    """A readable source field matched with a writable target field."""

    source: FieldDescriptor
    target: FieldDescriptor
    owner: RuleOwner

    @property
    def rule(self) -> MapField | None:
        """Rule of the side that owns the match."""
        owning = self.source if self.owner is RuleOwner.SOURCE else self.target
        return owning.rule

    @property
    def binary(self) -> bool:
        """True when either side asks for base64 text encoding."""
        return self.source.binary or self.target.binary


@dataclass(slots=True)
class MatchLedger:
    """Records, once per field, whether an eligible field found a counterpart.

    A field that matched for one source object stays matched when a later
    flattened source object has no counterpart for it.
    """

    _matched: dict[tuple[type, str], bool] = field(default_factory=dict)

    def record(self, owner: type, field_name: str, matched: bool) -> None:
        key = (owner, field_name)
        self._matched[key] = self._matched.get(key, False) or matched

    def unmatched(self) -> list[str]:
        """Names of eligible fields that never matched, in recording order."""
        return [name for (_, name), matched in self._matched.items() if not matched]

    def __len__(self) -> int:
        return len(self._matched)
