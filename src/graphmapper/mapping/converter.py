"""Value conversion between paired fields.

For each field pair the first matching rule wins:

1. the target hint accepts the source hint: assign as-is
2. either side is marked ``binary``: bytes <-> base64 text
3. the target is text: ``str(value)`` (enum members by name)
4. the target is a parameterized collection: list mapping
5. the target is an enum parseable from the source: parse by name, then value
6. the source is an enum backed by the target type: assign ``.value``
7. the source is ``Optional[target]``: assign when present
8. the target is ``Optional[Enum]`` parseable from the source: as 5
9. the target is a composite class: recursive mapping

Anything else leaves the target field untouched.
"""

from __future__ import annotations

import base64
import binascii
import enum
from typing import TYPE_CHECKING, Any, Protocol

from graphmapper.config.logging import get_logger
from graphmapper.core.descriptor import FieldAccessor, FieldDescriptor, get_cache
from graphmapper.core.resolver import FieldPair
from graphmapper.core.types import (
    NoneType,
    as_enum,
    collection_item_type,
    composite_type,
    enum_matches,
    enum_value_type,
    is_assignable,
    is_binary,
    is_text,
    unwrap_optional,
)

if TYPE_CHECKING:
    from graphmapper.mapping.lists import ListMapper
    from graphmapper.mapping.session import MappingSession

logger = get_logger(__name__)


class _Unset:
    """Marker for a conversion that produced nothing."""

    def __repr__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()


class MapObject(Protocol):
    """Engine entry used for nested objects and collection items."""

    async def __call__(
        self,
        session: MappingSession,
        target_type: type,
        source: Any,
        existing: Any = None,
    ) -> Any: ...


def parse_enum(enum_cls: type[enum.Enum], value: Any, ignore_case: bool = True) -> Any:
    """Parse a value into a member of ``enum_cls``.

    Text is tried as a member name first (case-insensitive when ``ignore_case``),
    then as a member value; numeric text also matches int-backed members.
    Members of other enums are matched by name.

    Returns:
        The member, or ``UNSET`` when the value names no member.
    """
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, enum.Enum):
        value = value.name
    if isinstance(value, str):
        member = enum_cls.__members__.get(value)
        if member is None and ignore_case:
            folded = value.casefold()
            member = next(
                (m for name, m in enum_cls.__members__.items() if name.casefold() == folded),
                None,
            )
        if member is not None:
            return member
        if enum_value_type(enum_cls) is int:
            try:
                value = int(value.strip())
            except ValueError:
                return UNSET
    try:
        return enum_cls(value)
    except (ValueError, TypeError):
        return UNSET


def _enum_source(value: Any, hint: Any) -> type[enum.Enum] | None:
    if isinstance(value, enum.Enum):
        return type(value)
    return as_enum(unwrap_optional(hint)[0])


def _parses_into(enum_cls: type[enum.Enum], value: Any, source_hint: Any) -> bool:
    inner, _ = unwrap_optional(source_hint)
    return (
        isinstance(value, (str, enum.Enum))
        or inner is str
        or as_enum(inner) is not None
        or enum_matches(enum_cls, inner)
    )


class ValueConverter:
    """Assigns a source field's value to its paired target field.

    Nested objects re-enter the engine through ``map_object``; collections go
    through the ``ListMapper`` bound to this converter.

    Args:
        map_object: Engine entry for composite values.
    """

    def __init__(self, map_object: MapObject) -> None:
        self._map_object = map_object
        self.lists: ListMapper | None = None

    def accessor(
        self, session: MappingSession, owner: type, field: FieldDescriptor
    ) -> FieldAccessor:
        return get_cache().accessor(owner, field, session.config.use_compiled_accessors)

    async def assign(
        self, session: MappingSession, pair: FieldPair, source: Any, target: Any
    ) -> None:
        """Convert the paired source value and store it on ``target``.

        Args:
            session: Current mapping session.
            pair: Matched fields.
            source: Object owning the source field.
            target: Object owning the target field.
        """
        config = session.config
        value = self.accessor(session, type(source), pair.source).get(source)
        setter = self.accessor(session, type(target), pair.target)
        source_hint = pair.source.hint
        if source_hint is Any:
            source_hint = NoneType if value is None else type(value)
        target_hint = pair.target.hint

        converted = self.convert_direct(value, source_hint, target_hint, binary=pair.binary)
        if converted is not UNSET:
            setter.set(target, converted)
            return

        if collection_item_type(target_hint) is not None:
            if config.ignore_collections or self.lists is None:
                return
            await self.lists.map_field(session, pair, value, target, setter)
            return

        converted = self.convert_coerced(value, source_hint, target_hint, config.ignore_enum_case)
        if converted is not UNSET:
            setter.set(target, converted)
            return

        target_cls = composite_type(target_hint)
        if target_cls is not None and (value is None or composite_type(type(value)) is not None):
            existing = setter.get(target)
            result = await self._map_object(session, target_cls, value, existing)
            if result is not existing:
                setter.set(target, result)
            return

        logger.debug(
            "No conversion from %s.%s to %s.%s",
            type(source).__qualname__,
            pair.source.name,
            type(target).__qualname__,
            pair.target.name,
            extra={"source_hint": repr(source_hint), "target_hint": repr(target_hint)},
        )

    def convert(
        self,
        value: Any,
        source_hint: Any,
        target_hint: Any,
        ignore_enum_case: bool = True,
    ) -> Any:
        """Convert a scalar value without touching collections or composites.

        Used for collection elements.

        Returns:
            The converted value, or ``UNSET`` when no rule applies.
        """
        if source_hint is Any:
            source_hint = NoneType if value is None else type(value)
        converted = self.convert_direct(value, source_hint, target_hint)
        if converted is not UNSET:
            return converted
        return self.convert_coerced(value, source_hint, target_hint, ignore_enum_case)

    def convert_direct(
        self, value: Any, source_hint: Any, target_hint: Any, binary: bool = False
    ) -> Any:
        """Rules 1 to 3: assignable values, base64 binary fields and text targets."""
        if is_assignable(target_hint, source_hint):
            return value
        if binary:
            converted = _convert_binary(value, target_hint)
            if converted is not UNSET or value is None:
                return converted
        if is_text(target_hint):
            if value is None:
                return None
            if isinstance(value, enum.Enum):
                return value.name
            return str(value)
        return UNSET

    def convert_coerced(
        self, value: Any, source_hint: Any, target_hint: Any, ignore_enum_case: bool = True
    ) -> Any:
        """Rules 5 to 8: enums and optional unwrapping."""
        target_enum = as_enum(target_hint)
        if target_enum is not None and _parses_into(target_enum, value, source_hint):
            return UNSET if value is None else parse_enum(target_enum, value, ignore_enum_case)

        target_inner, target_optional = unwrap_optional(target_hint)
        source_inner, source_optional = unwrap_optional(source_hint)

        source_enum = _enum_source(value, source_hint)
        if source_enum is not None and enum_value_type(source_enum) is target_inner:
            return value.value if isinstance(value, enum.Enum) else UNSET

        if source_optional and is_assignable(target_hint, source_inner):
            return UNSET if value is None else value

        target_enum = as_enum(target_inner) if target_optional else None
        if target_enum is not None and _parses_into(target_enum, value, source_hint):
            return UNSET if value is None else parse_enum(target_enum, value, ignore_enum_case)
        return UNSET


def _convert_binary(value: Any, target_hint: Any) -> Any:
    if value is None:
        return UNSET
    if isinstance(value, (bytes, bytearray, memoryview)) and is_text(target_hint):
        return base64.b64encode(bytes(value)).decode("ascii")
    if isinstance(value, str) and is_binary(target_hint):
        try:
            decoded = base64.b64decode(value, validate=True)
        except binascii.Error:
            logger.debug("Invalid base64 text, value left unmapped")
            return UNSET
        inner, _ = unwrap_optional(target_hint)
        return bytearray(decoded) if inner is bytearray else decoded
    return UNSET
