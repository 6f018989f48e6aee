"""Mapping engine: stateful services built on the core descriptors.

Architecture Note:
    mapping/ holds everything scoped to a mapping call (sessions, the cycle
    guard, the extension registry). Reflection and field matching live in core/.
"""

from graphmapper.mapping.converter import UNSET, ValueConverter, parse_enum
from graphmapper.mapping.errors import (
    ConstructionError,
    MappingError,
    ReentrancyError,
    UnmatchedFieldError,
    UnsupportedCollectionError,
)
from graphmapper.mapping.lists import ItemKeys, ListMapper, fan_out, resolve_keys
from graphmapper.mapping.mapper import Mapper
from graphmapper.mapping.null_graph import NullGraphMaterializer
from graphmapper.mapping.registry import (
    Extension,
    ExtensionRegistry,
    has_parameterless_constructor,
)
from graphmapper.mapping.session import CycleGuard, MappingSession
from graphmapper.mapping.sync_runner import SyncRunner, run_sync

__all__ = [
    # Mapper
    "Mapper",
    # Errors
    "MappingError",
    "ConstructionError",
    "UnmatchedFieldError",
    "UnsupportedCollectionError",
    "ReentrancyError",
    # Session
    "MappingSession",
    "CycleGuard",
    # Conversion
    "ValueConverter",
    "UNSET",
    "parse_enum",
    "ListMapper",
    "ItemKeys",
    "resolve_keys",
    "fan_out",
    "NullGraphMaterializer",
    # Extensions
    "Extension",
    "ExtensionRegistry",
    "has_parameterless_constructor",
    # Sync
    "SyncRunner",
    "run_sync",
]
