"""Public mapper: session lifecycle, object mapping and sync entry points.

Usage:
    mapper = Mapper(MapperConfig(throw_on_unmatched_field=True))
    mapper.register_custom_map(Order, OrderDto, lambda src, dst: setattr(dst, "total", src.total()))

    dto = mapper.map(OrderDto, order)
    mapper.map_into(existing_dto, order)
    dtos = mapper.map_list(OrderDto, orders)

    # From async code
    dto = await mapper.map_async(OrderDto, order)
"""

from __future__ import annotations

import threading
from collections.abc import Awaitable, Callable, Iterable, Iterator, Sequence
from contextlib import contextmanager
from typing import Any, TypeVar

from graphmapper.config.logging import get_logger
from graphmapper.config.settings import MapperConfig
from graphmapper.core.descriptor import describe
from graphmapper.core.resolver import MatchLedger, resolve_pairs
from graphmapper.mapping.converter import ValueConverter
from graphmapper.mapping.errors import ReentrancyError, UnmatchedFieldError
from graphmapper.mapping.lists import ListMapper, fan_out
from graphmapper.mapping.null_graph import NullGraphMaterializer
from graphmapper.mapping.registry import ExtensionRegistry
from graphmapper.mapping.session import MappingSession
from graphmapper.mapping.sync_runner import run_sync

T = TypeVar("T")

logger = get_logger(__name__)


class Mapper:
    """Maps source object graphs onto target types.

    One mapper runs one top-level call at a time; a second concurrent call
    raises ReentrancyError. Use one mapper per concurrent caller. Mappers share
    only the process-wide descriptor cache.

    Args:
        config: Mapping behavior. Defaults to ``MapperConfig()``, which also
            reads ``GRAPHMAPPER_*`` environment variables.
    """

    def __init__(self, config: MapperConfig | None = None) -> None:
        self._config = config or MapperConfig()
        self._registry = ExtensionRegistry()
        self._converter = ValueConverter(self._map_object)
        self._lists = ListMapper(self._map_object, self._converter)
        self._null_graph = NullGraphMaterializer(self._registry)
        self._busy = threading.Lock()

    @property
    def config(self) -> MapperConfig:
        return self._config

    @property
    def registry(self) -> ExtensionRegistry:
        return self._registry

    def register_custom_map(
        self, source_type: type, target_type: type, fn: Callable[[Any, Any], Any]
    ) -> Mapper:
        """Run ``fn(source, target)`` after the fields of each such pair are assigned."""
        self._registry.add_custom_map(source_type, target_type, fn)
        return self

    def register_constructor(
        self, source_type: type, target_type: type, fn: Callable[[Any], Any]
    ) -> Mapper:
        """Create targets of ``target_type`` from ``source_type`` objects with ``fn(source)``."""
        self._registry.add_constructor(source_type, target_type, fn)
        return self

    def register_from_objects(
        self,
        source_type: type,
        fn: Callable[[Any], Sequence[Any] | Awaitable[Sequence[Any]] | None],
    ) -> Mapper:
        """Merge fields from ``fn(source)`` instead of the source alone (flattening)."""
        self._registry.add_from_objects(source_type, fn)
        return self

    # Sync API

    def map(self, target_type: type[T], source: Any) -> T | None:
        """Map ``source`` onto a new ``target_type`` instance.

        Returns:
            The target, or None for a None source unless null materialization
            is enabled.

        Raises:
            ReentrancyError: If another call is running on this mapper.
            ConstructionError: If a target cannot be created.
            UnmatchedFieldError: If configured and eligible fields did not match.
        """
        return run_sync(self.map_async(target_type, source))

    def map_into(self, target: T, source: Any) -> T | None:
        """Map ``source`` onto an existing ``target`` and return it.

        A None source returns None (the target is left as is) unless null
        materialization is enabled, in which case ``target`` itself is marked.
        """
        return run_sync(self.map_into_async(target, source))

    def map_list(self, target_type: type[T], sources: Iterable[Any] | None) -> list[T | None]:
        """Map each source onto a new ``target_type`` instance, preserving order.

        All items share one session, so an object reachable from several items
        is mapped once.
        """
        return run_sync(self.map_list_async(target_type, sources))

    # Async API

    async def map_async(self, target_type: type[T], source: Any) -> T | None:
        with self._single_flight():
            session = self._start_session(target_type)
            result = await self._map_object(session, target_type, source)
            self._end_session(session)
            return result

    async def map_into_async(self, target: T, source: Any) -> T | None:
        with self._single_flight():
            session = self._start_session(type(target))
            result = await self._map_object(session, type(target), source, target)
            self._end_session(session)
            return result

    async def map_list_async(
        self, target_type: type[T], sources: Iterable[Any] | None
    ) -> list[T | None]:
        with self._single_flight():
            if sources is None:
                return []
            session = self._start_session(target_type)
            items = list(sources)
            if self._config.parallel_lists:
                results = await fan_out(
                    lambda item: self._map_object(session, target_type, item),
                    items,
                    self._config.max_concurrent,
                )
            else:
                results = [await self._map_object(session, target_type, item) for item in items]
            self._end_session(session)
            return results

    @contextmanager
    def _single_flight(self) -> Iterator[None]:
        if not self._busy.acquire(blocking=False):
            raise ReentrancyError(
                "Mapper is already running a mapping call. "
                "Use a separate Mapper for concurrent or nested top-level calls."
            )
        try:
            yield
        finally:
            self._busy.release()

    def _start_session(self, target_type: type) -> MappingSession:
        logger.debug("Mapping session started", extra={"target_type": target_type.__qualname__})
        return MappingSession(config=self._config)

    def _end_session(self, session: MappingSession) -> None:
        logger.debug(
            "Mapping session finished",
            extra={"objects_mapped": session.objects_mapped, "identities": len(session.guard)},
        )

    # Engine

    async def _map_object(
        self,
        session: MappingSession,
        target_type: type,
        source: Any,
        existing: Any = None,
    ) -> Any:
        """Map one source object onto a target of ``target_type``.

        Args:
            session: Current mapping session.
            target_type: Type of the target.
            source: Object to map from. May be None.
            existing: Target to merge into instead of constructing one.

        Returns:
            The target registered for ``source`` in this session.
        """
        from_objects = await self._registry.expand(source)
        if all(obj is None for obj in from_objects):
            return await self._null_graph.materialize(session, target_type, existing)

        guard = session.guard
        found = guard.lookup(source, target_type)
        if found is not None:
            return found
        target = existing
        if target is None:
            target = await self._registry.construct(target_type, source)
        claimed = guard.claim(source, target, target_type)
        if claimed is not target:
            return claimed
        session.objects_mapped += 1

        target_desc = describe(type(target))
        ledger = MatchLedger()
        for obj in from_objects:
            if obj is None:
                continue
            for pair in resolve_pairs(describe(type(obj)), target_desc, ledger):
                await self._converter.assign(session, pair, obj, target)
            await self._registry.apply_custom_map(obj, target)

        if session.config.throw_on_unmatched_field:
            unmatched = ledger.unmatched()
            if unmatched:
                raise UnmatchedFieldError(type(source), target_type, unmatched)
        return target
