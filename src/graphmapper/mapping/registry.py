"""Extension registry: custom mutators, constructors and from-object expansions.

Entries are keyed by exact runtime types. Sync and async callables are both
accepted; awaitable results are awaited.

Usage:
    registry = ExtensionRegistry()
    registry.add_custom_map(Order, OrderDto, lambda src, dst: setattr(dst, "total", src.total()))
    registry.add_constructor(Order, OrderDto, lambda src: OrderDto(id=src.id))
    registry.add_from_objects(Order, lambda src: [src, src.customer])
"""

from __future__ import annotations

import inspect
import warnings
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from graphmapper.mapping.errors import ConstructionError


@dataclass(frozen=True, slots=True)
class Extension:
    """A registered user callable."""

    fn: Callable[..., Any]
    is_async: bool = False

    @classmethod
    def wrap(cls, fn: Callable[..., Any]) -> Extension:
        return cls(fn=fn, is_async=inspect.iscoroutinefunction(fn))

    async def __call__(self, *args: Any) -> Any:
        result = self.fn(*args)
        if self.is_async or inspect.isawaitable(result):
            return await result
        return result


def has_parameterless_constructor(cls: type) -> bool:
    """Check if ``cls()`` can be called without arguments.

    Abstract classes never qualify. Classes whose signature cannot be
    inspected (some builtins) are assumed to qualify.
    """
    if inspect.isabstract(cls):
        return False
    try:
        signature = inspect.signature(cls)
    except (TypeError, ValueError):
        return True
    for param in signature.parameters.values():
        if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
            continue
        if param.default is param.empty:
            return False
    return True


class ExtensionRegistry:
    """Per-mapper table of user extensions keyed by (source type, target type).

    Re-registering a key warns and keeps the last registration.
    """

    def __init__(self) -> None:
        self._custom_maps: dict[tuple[type, type], Extension] = {}
        self._constructors: dict[tuple[type, type], Extension] = {}
        self._from_objects: dict[type, Extension] = {}

    def add_custom_map(
        self, source_type: type, target_type: type, fn: Callable[[Any, Any], Any]
    ) -> None:
        """Register ``fn(source, target)``, run after field assignment."""
        self._store(self._custom_maps, (source_type, target_type), fn, "custom map")

    def add_constructor(
        self, source_type: type, target_type: type, fn: Callable[[Any], Any]
    ) -> None:
        """Register ``fn(source) -> target`` replacing parameterless construction."""
        self._store(self._constructors, (source_type, target_type), fn, "constructor")

    def add_from_objects(
        self, source_type: type, fn: Callable[[Any], Sequence[Any] | None]
    ) -> None:
        """Register ``fn(source) -> objects`` listing the objects to merge fields from."""
        self._store(self._from_objects, source_type, fn, "from-objects expansion")

    def _store(
        self, table: dict[Any, Extension], key: Any, fn: Callable[..., Any], kind: str
    ) -> None:
        if not callable(fn):
            raise TypeError(f"{kind} for {key!r} must be callable, got {type(fn).__name__}")
        if key in table:
            warnings.warn(
                f"A {kind} is already registered for {_key_name(key)}. "
                f"Only the last one will be kept.",
                stacklevel=4,
            )
        table[key] = Extension.wrap(fn)

    def custom_map(self, source_type: type, target_type: type) -> Extension | None:
        return self._custom_maps.get((source_type, target_type))

    def constructor(self, source_type: type, target_type: type) -> Extension | None:
        return self._constructors.get((source_type, target_type))

    def from_objects(self, source_type: type) -> Extension | None:
        return self._from_objects.get(source_type)

    async def expand(self, source: Any) -> list[Any]:
        """Objects to merge fields from for one source object.

        Returns:
            ``[source]`` when no expansion is registered, the source is None or
            the expansion returned None; otherwise the expansion's objects.
        """
        if source is None or not self._from_objects:
            return [source]
        extension = self.from_objects(type(source))
        if extension is None:
            return [source]
        objects = await extension(source)
        return [source] if objects is None else list(objects)

    async def construct(self, target_type: type, source: Any) -> Any:
        """Create a target instance for a source, via registration or ``target_type()``.

        Raises:
            ConstructionError: If no constructor is registered for the pair and the
                target type cannot be called without arguments.
        """
        if source is not None and self._constructors:
            extension = self.constructor(type(source), target_type)
            if extension is not None:
                return await extension(source)
        if not has_parameterless_constructor(target_type):
            raise ConstructionError(target_type, type(source) if source is not None else None)
        return target_type()

    async def apply_custom_map(self, source: Any, target: Any) -> None:
        """Run the custom mutator registered for (type(source), type(target)), if any."""
        if source is None or target is None or not self._custom_maps:
            return
        extension = self.custom_map(type(source), type(target))
        if extension is not None:
            await extension(source, target)

    def __len__(self) -> int:
        return len(self._custom_maps) + len(self._constructors) + len(self._from_objects)


def _key_name(key: Any) -> str:
    if isinstance(key, tuple):
        return " -> ".join(t.__qualname__ for t in key)
    return key.__qualname__
