"""Descriptor functionality: rule models, declaration decorators and the type cache."""

from graphmapper.core.descriptor.accessors import (
    CompiledAccessor,
    FieldAccessor,
    ReflectiveAccessor,
)
from graphmapper.core.descriptor.core import (
    DescriptorCache,
    build_descriptor,
    clear_cache,
    configure_type,
    describe,
    get_cache,
    map_class,
    map_field,
)
from graphmapper.core.descriptor.models import (
    ClassPolicy,
    FieldDescriptor,
    FieldRule,
    MapAllPolicy,
    MapField,
    MapListItem,
    NullMarked,
    TypeDescriptor,
    TypeOverride,
)

__all__ = [
    # Models
    "MapAllPolicy",
    "MapField",
    "FieldRule",
    "MapListItem",
    "ClassPolicy",
    "FieldDescriptor",
    "TypeDescriptor",
    "TypeOverride",
    "NullMarked",
    # Accessors
    "FieldAccessor",
    "ReflectiveAccessor",
    "CompiledAccessor",
    # Core
    "DescriptorCache",
    "build_descriptor",
    "describe",
    "clear_cache",
    "configure_type",
    "get_cache",
    "map_class",
    "map_field",
]
