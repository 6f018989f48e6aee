"""Field accessors: how the engine reads and writes a described field.

``ReflectiveAccessor`` resolves the attribute on every call. ``CompiledAccessor``
prebuilds its getter once per (type, field) and is cached by the descriptor
cache; it pays off when the same fields are mapped many times.
"""

from __future__ import annotations

import operator
from collections.abc import Callable
from typing import Any, Protocol


class FieldAccessor(Protocol):
    """Reads and writes one field on instances of one type."""

    def get(self, obj: Any) -> Any: ...

    def set(self, obj: Any, value: Any) -> None: ...


class ReflectiveAccessor:
    """Plain ``getattr``/``setattr`` access. Missing attributes read as None."""

    __slots__ = ("name",)

    def __init__(self, name: str) -> None:
        self.name = name

    def get(self, obj: Any) -> Any:
        return getattr(obj, self.name, None)

    def set(self, obj: Any, value: Any) -> None:
        setattr(obj, self.name, value)


class CompiledAccessor:
    """Prebuilt getter/setter pair for one field."""

    __slots__ = ("name", "_getter", "_setter")

    def __init__(self, name: str) -> None:
        self.name = name
        self._getter = operator.attrgetter(name)
        self._setter = _bind_setter(name)

    def get(self, obj: Any) -> Any:
        try:
            return self._getter(obj)
        except AttributeError:
            return None

    def set(self, obj: Any, value: Any) -> None:
        self._setter(obj, value)


def _bind_setter(name: str) -> Callable[[Any, Any], None]:
    def setter(obj: Any, value: Any) -> None:
        setattr(obj, name, value)

    return setter
