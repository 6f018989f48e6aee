"""Null-graph materialization: placeholder targets for absent sources.

With ``materialize_from_null_source`` enabled, mapping ``None`` produces a
default-constructed target flagged ``is_null = True`` (when it has that field)
whose composite fields are filled the same way, down to ``max_null_depth``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from graphmapper.config.logging import get_logger
from graphmapper.core.descriptor import FieldDescriptor, NullMarked, TypeDescriptor, describe
from graphmapper.core.resolver import passes_policy
from graphmapper.core.types import composite_type
from graphmapper.mapping.registry import ExtensionRegistry, has_parameterless_constructor

if TYPE_CHECKING:
    from graphmapper.mapping.session import MappingSession

logger = get_logger(__name__)


def _eligible(field: FieldDescriptor, owner: TypeDescriptor) -> bool:
    if not field.writable or field.excluded:
        return False
    if not owner.is_annotated:
        return True
    return field.rule is not None or passes_policy(field, owner)


class NullGraphMaterializer:
    """Builds placeholder object graphs for absent sources.

    Args:
        registry: Registry used to construct the root target.
    """

    def __init__(self, registry: ExtensionRegistry) -> None:
        self._registry = registry

    async def materialize(
        self, session: MappingSession, target_type: type, existing: Any = None
    ) -> Any:
        """Produce the target for an absent source.

        Args:
            session: Current mapping session.
            target_type: Type of the target to produce.
            existing: Target supplied by the caller, reused when given.

        Returns:
            None when materialization is disabled, otherwise the placeholder.

        Raises:
            ConstructionError: If ``existing`` is None and ``target_type`` cannot
                be called without arguments.
        """
        config = session.config
        if not config.materialize_from_null_source:
            return None
        target = existing
        if target is None:
            target = await self._registry.construct(target_type, None)
        self.fill(target, config.max_null_depth)
        return target

    def fill(self, obj: Any, max_depth: int, depth: int = 0) -> None:
        """Flag ``obj`` as null and fill its composite fields, ``max_depth`` levels deep.

        Existing nested values are reused. Fields whose type cannot be called
        without arguments stay unset.
        """
        if isinstance(obj, NullMarked):
            obj.is_null = True
        if depth >= max_depth:
            return
        owner = describe(type(obj))
        for field in owner:
            if not _eligible(field, owner):
                continue
            cls = composite_type(field.hint)
            if cls is None:
                continue
            value = getattr(obj, field.name, None)
            if value is None:
                if not has_parameterless_constructor(cls):
                    logger.debug(
                        "Null graph stops at %s.%s",
                        owner.full_name,
                        field.name,
                        extra={"field_type": cls.__qualname__},
                    )
                    continue
                value = cls()
                setattr(obj, field.name, value)
            self.fill(value, max_depth, depth + 1)
