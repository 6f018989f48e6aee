"""Core functionalities: stateless type reflection and field matching.

Architecture Note:
    core/ contains pure, stateless building blocks. The only shared state is
    the read-mostly descriptor cache. For per-call state, see mapping/.
"""

from graphmapper.core.descriptor import (
    ClassPolicy,
    DescriptorCache,
    FieldDescriptor,
    FieldRule,
    MapAllPolicy,
    MapField,
    MapListItem,
    NullMarked,
    TypeDescriptor,
    clear_cache,
    configure_type,
    describe,
    get_cache,
    map_class,
    map_field,
)
from graphmapper.core.resolver import FieldPair, MatchLedger, RuleOwner, resolve_pairs
from graphmapper.core.utilities import (
    copy_values,
    default_string_values,
    default_string_values_if_null,
)

__all__ = [
    # Descriptors
    "MapAllPolicy",
    "MapField",
    "FieldRule",
    "MapListItem",
    "ClassPolicy",
    "FieldDescriptor",
    "TypeDescriptor",
    "NullMarked",
    "DescriptorCache",
    "describe",
    "clear_cache",
    "configure_type",
    "get_cache",
    "map_class",
    "map_field",
    # Resolver
    "FieldPair",
    "MatchLedger",
    "RuleOwner",
    "resolve_pairs",
    # Utilities
    "copy_values",
    "default_string_values",
    "default_string_values_if_null",
]
