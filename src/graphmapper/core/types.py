"""Type hint classification used by the descriptor cache and value converter.

All helpers take resolved type hints (``Annotated`` metadata already stripped)
and are pure: no caching, no mutation.
"""

from __future__ import annotations

import collections.abc
import datetime
import decimal
import enum
import fractions
import pathlib
import types
import uuid
from typing import Any, Union, get_args, get_origin

NoneType = type(None)

SCALAR_TYPES: tuple[type, ...] = (
    bool,
    int,
    float,
    complex,
    str,
    bytes,
    bytearray,
    memoryview,
    decimal.Decimal,
    fractions.Fraction,
    datetime.date,
    datetime.time,
    datetime.timedelta,
    uuid.UUID,
    pathlib.PurePath,
)
"""Leaf value types. Never recursed into, never materialized from null."""

CONTAINER_TYPES: tuple[type, ...] = (list, tuple, set, frozenset, dict)

_COLLECTION_ORIGINS: tuple[type, ...] = (
    list,
    tuple,
    set,
    frozenset,
    collections.abc.Sequence,
    collections.abc.MutableSequence,
    collections.abc.Collection,
    collections.abc.Iterable,
    collections.abc.Set,
    collections.abc.MutableSet,
)

# int is acceptable where float/complex is expected (numeric tower)
_NUMERIC_WIDENING: dict[type, tuple[type, ...]] = {
    float: (int,),
    complex: (int, float),
}


def is_union(hint: Any) -> bool:
    """Check if hint is a ``typing.Union`` or a PEP 604 ``X | Y`` union."""
    return get_origin(hint) in (Union, types.UnionType)


def unwrap_optional(hint: Any) -> tuple[Any, bool]:
    """Strip a single ``None`` member from a two-member union.

    Args:
        hint: Type hint to inspect.

    Returns:
        Tuple of (inner hint, True) for ``T | None``, otherwise (hint, False).
    """
    if not is_union(hint):
        return hint, False
    args = get_args(hint)
    inner = [a for a in args if a is not NoneType]
    if len(inner) == 1 and len(args) == 2:
        return inner[0], True
    return hint, False


def is_text(hint: Any) -> bool:
    """Check if hint is ``str`` or ``str | None``."""
    inner, _ = unwrap_optional(hint)
    return inner is str


def is_binary(hint: Any) -> bool:
    inner, _ = unwrap_optional(hint)
    return inner in (bytes, bytearray)


def as_enum(hint: Any) -> type[enum.Enum] | None:
    """Return hint itself when it is an Enum class, else None."""
    if isinstance(hint, type) and issubclass(hint, enum.Enum):
        return hint
    return None


def enum_value_type(enum_cls: type[enum.Enum]) -> type | None:
    """Underlying value type of an enum.

    ``IntEnum``/``IntFlag`` are int-backed and ``StrEnum`` is str-backed. Plain
    enums are backed by the type shared by all member values, or None when the
    members mix value types.
    """
    if issubclass(enum_cls, int):
        return int
    if issubclass(enum_cls, str):
        return str
    value_types = {type(member.value) for member in enum_cls}
    if len(value_types) == 1:
        return value_types.pop()
    return None


def enum_matches(enum_cls: type[enum.Enum], hint: Any) -> bool:
    """Check if an enum can be parsed from (or flattened to) values of ``hint``."""
    value_type = enum_value_type(enum_cls)
    return value_type is not None and value_type is hint


def collection_item_type(hint: Any) -> Any | None:
    """Element hint of a parameterized collection, or None.

    Bare collections (``list``) and text/bytes are not collections here:
    only parameterized element types can drive element conversion.
    """
    inner, _ = unwrap_optional(hint)
    origin = get_origin(inner)
    if origin is None or not isinstance(origin, type):
        return None
    if not issubclass(origin, _COLLECTION_ORIGINS) or issubclass(origin, (str, bytes)):
        return None
    if issubclass(origin, collections.abc.Mapping):
        return None
    args = get_args(inner)
    if not args:
        return None
    return args[0]


def accepts_list(hint: Any) -> bool:
    """Check if a new ``list`` can be stored under the declared collection hint."""
    inner, _ = unwrap_optional(hint)
    origin = get_origin(inner) or inner
    return isinstance(origin, type) and issubclass(list, origin)


def is_scalar(hint: Any) -> bool:
    inner, _ = unwrap_optional(hint)
    if not isinstance(inner, type):
        return False
    return issubclass(inner, SCALAR_TYPES) or as_enum(inner) is not None


def composite_type(hint: Any) -> type | None:
    """Return the class a composite hint denotes (optional unwrapped), or None.

    Composite classes are the ones the engine maps field by field: anything
    that is not a scalar, an enum, a builtin container or ``object`` itself.
    """
    inner, _ = unwrap_optional(hint)
    if not isinstance(inner, type) or get_args(inner):
        return None
    if inner is object or inner is Any or is_scalar(inner):
        return None
    if issubclass(inner, CONTAINER_TYPES):
        return None
    return inner


def is_assignable(target: Any, source: Any) -> bool:
    """Check if values typed as ``source`` can be stored under ``target`` as-is.

    Args:
        target: Declared hint of the receiving field.
        source: Declared (or runtime) hint of the value.

    Returns:
        True for equal hints, ``Any`` targets, subclasses, numeric widening
        and union membership.
    """
    if target is Any or target == source:
        return True
    if source is Any:
        return False
    if is_union(source):
        return all(is_assignable(target, arg) for arg in get_args(source))
    if is_union(target):
        return any(is_assignable(arg, source) for arg in get_args(target))
    if isinstance(target, type) and not get_args(target):
        src = get_origin(source) or source
        if not isinstance(src, type):
            return False
        if issubclass(src, target):
            return True
        return src in _NUMERIC_WIDENING.get(target, ())
    return False


def full_name(cls: type) -> str:
    """Fully qualified name of a class (module and qualname)."""
    return f"{cls.__module__}.{cls.__qualname__}"
