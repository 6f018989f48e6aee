"""Collection mapping with key-matched merge and concurrent element fan-out.

Usage:
    @dataclass
    class OrderDto:
        lines: Annotated[list[LineDto], MapListItem("sku")] = field(default_factory=list)

Mapping an order onto an existing ``OrderDto`` merges each source line into
the target line with the same ``sku`` and appends the others in source order.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeVar

from graphmapper.config.logging import get_logger
from graphmapper.core.descriptor import FieldAccessor, FieldDescriptor, TypeDescriptor, describe
from graphmapper.core.resolver import FieldPair
from graphmapper.core.types import accepts_list, collection_item_type, composite_type
from graphmapper.mapping.converter import UNSET, MapObject, ValueConverter
from graphmapper.mapping.errors import UnsupportedCollectionError

if TYPE_CHECKING:
    from graphmapper.mapping.session import MappingSession

T = TypeVar("T")

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ItemKeys:
    """Positionally corresponding key fields of source and target items."""

    source: tuple[str, ...]
    target: tuple[str, ...]

    def key_values(self, item: Any, names: tuple[str, ...]) -> tuple[Any, ...]:
        return tuple(getattr(item, name, None) for name in names)

    def find(self, source_item: Any, candidates: list[Any]) -> Any | None:
        """First candidate whose key values all equal the source item's."""
        wanted = self.key_values(source_item, self.source)
        for candidate in candidates:
            if self.key_values(candidate, self.target) == wanted:
                return candidate
        return None


def resolve_keys(
    pair: FieldPair, source_items: TypeDescriptor, target_items: TypeDescriptor
) -> ItemKeys | None:
    """Build the key correspondence for a collection pair.

    Keys declared on the source field win over keys declared on the target
    field. Each key's counterpart is named by that key field's own rename rule.

    Args:
        pair: Collection field pair.
        source_items: Descriptor of the source element type.
        target_items: Descriptor of the target element type.

    Returns:
        The key correspondence, or None when neither side declares keys.

    Raises:
        KeyError: If a declared key or its counterpart does not exist.
    """
    if pair.source.list_keys:
        own, other = source_items, target_items
        keys = pair.source.list_keys
    elif pair.target.list_keys:
        own, other = target_items, source_items
        keys = pair.target.list_keys
    else:
        return None

    own_names: list[str] = []
    other_names: list[str] = []
    for key in keys:
        key_field = _require(own, key)
        own_names.append(key_field.name)
        other_names.append(_require(other, key_field.effective_name).name)

    if own is source_items:
        return ItemKeys(source=tuple(own_names), target=tuple(other_names))
    return ItemKeys(source=tuple(other_names), target=tuple(own_names))


async def fan_out(
    fn: Callable[[Any], Awaitable[T]], items: Iterable[Any], max_concurrent: int | None = None
) -> list[T]:
    """Run ``fn`` over ``items`` as concurrent tasks and collect results in order.

    When one task fails, the others are cancelled and awaited before the error
    propagates. No task of a failed call keeps writing to its targets.

    Args:
        fn: Coroutine function applied to each item.
        items: Items to map.
        max_concurrent: Upper bound on tasks running at once. None = unlimited.
    """
    semaphore = asyncio.Semaphore(max_concurrent) if max_concurrent is not None else None

    async def run(item: Any) -> T:
        if semaphore is None:
            return await fn(item)
        async with semaphore:
            return await fn(item)

    tasks = [asyncio.ensure_future(run(item)) for item in items]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


def _require(descriptor: TypeDescriptor, name: str) -> FieldDescriptor:
    found = descriptor.get(name)
    if found is None:
        raise KeyError(f"List key '{name}' is not a field of {descriptor.full_name}")
    return found


class ListMapper:
    """Maps one collection field onto another.

    Args:
        map_object: Engine entry for composite elements.
        converter: Converter used for scalar elements. The list mapper binds
            itself to it.
    """

    def __init__(self, map_object: MapObject, converter: ValueConverter) -> None:
        self._map_object = map_object
        self._converter = converter
        converter.lists = self

    async def map_field(
        self,
        session: MappingSession,
        pair: FieldPair,
        value: Any,
        target: Any,
        setter: FieldAccessor,
    ) -> None:
        """Map the source collection ``value`` into ``target``'s collection field."""
        config = session.config
        target_hint = pair.target.hint
        collection = setter.get(target)

        if value is None:
            if config.materialize_empty_list_from_null_source and collection is None:
                if accepts_list(target_hint):
                    setter.set(target, [])
            return
        if isinstance(value, (str, bytes, bytearray, Mapping)) or not isinstance(value, Iterable):
            logger.debug("Source of %s is not a collection", pair.target.name)
            return

        created = collection is None
        if created:
            if not accepts_list(target_hint):
                logger.debug(
                    "Cannot create a collection for %s.%s",
                    type(target).__qualname__,
                    pair.target.name,
                    extra={"target_hint": repr(target_hint)},
                )
                return
            collection = []

        items = list(value)
        new_items = await self.map_items(session, pair, items, collection)
        if new_items:
            append = getattr(collection, "append", None)
            if append is None:
                raise UnsupportedCollectionError(
                    f"Collection {type(collection).__qualname__} of "
                    f"{type(target).__qualname__}.{pair.target.name} has no append method"
                )
            for item in new_items:
                append(item)
        if created:
            setter.set(target, collection)

    async def map_items(
        self,
        session: MappingSession,
        pair: FieldPair,
        items: list[Any],
        collection: Any,
    ) -> list[Any]:
        """Map source elements, merging key matches into ``collection``.

        Returns:
            New target elements in source order. Merged elements and elements
            that mapped to nothing are not included.
        """
        config = session.config
        target_item_hint = collection_item_type(pair.target.hint)
        source_item_hint = collection_item_type(pair.source.hint) or Any
        item_cls = composite_type(target_item_hint)

        if item_cls is None:
            convert = self._converter.convert
            results = [
                convert(item, source_item_hint, target_item_hint, config.ignore_enum_case)
                for item in items
            ]
            return [r for r in results if r is not UNSET]

        keys: ItemKeys | None = None
        source_cls = composite_type(source_item_hint)
        if source_cls is None:
            source_cls = next((type(i) for i in items if composite_type(type(i)) is not None), None)
        if source_cls is not None:
            keys = resolve_keys(pair, describe(source_cls), describe(item_cls))
        existing = list(collection) if keys is not None else []

        async def map_one(item: Any) -> Any:
            if item is not None and composite_type(type(item)) is None:
                return None
            match = keys.find(item, existing) if keys is not None and item is not None else None
            if match is not None:
                await self._map_object(session, item_cls, item, match)
                return None
            return await self._map_object(session, item_cls, item)

        logger.debug(
            "Mapping %d items into %s",
            len(items),
            pair.target.name,
            extra={"keyed": keys is not None, "parallel": config.parallel_lists},
        )
        if not config.parallel_lists:
            results = [await map_one(item) for item in items]
        else:
            results = await fan_out(map_one, items, config.max_concurrent)
        return [r for r in results if r is not None]
