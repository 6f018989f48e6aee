"""graphmapper: declarative object-graph mapping.

Usage:
    from dataclasses import dataclass
    from typing import Annotated
    from graphmapper import Mapper, MapField, map_class

    @dataclass
    class Customer:
        id: int = 0
        name: str = ""

    @map_class
    @dataclass
    class CustomerDto:
        id: str | None = None
        display_name: Annotated[str | None, MapField(name="name")] = None

    dto = Mapper().map(CustomerDto, Customer(id=7, name="Ada"))
    assert dto.id == "7" and dto.display_name == "Ada"
"""

__version__ = "0.1.0"

# Configuration
from graphmapper.config import MapperConfig, get_logger, setup_logging

# Declarations and utilities
from graphmapper.core import (
    FieldRule,
    MapAllPolicy,
    MapField,
    MapListItem,
    NullMarked,
    clear_cache,
    configure_type,
    copy_values,
    default_string_values,
    default_string_values_if_null,
    describe,
    map_class,
    map_field,
)

# Mapping
from graphmapper.mapping import (
    ConstructionError,
    Mapper,
    MappingError,
    ReentrancyError,
    UnmatchedFieldError,
    UnsupportedCollectionError,
)

__all__ = [
    # Version
    "__version__",
    # Mapper
    "Mapper",
    "MapperConfig",
    # Declarations
    "MapField",
    "FieldRule",
    "MapListItem",
    "MapAllPolicy",
    "NullMarked",
    "map_class",
    "map_field",
    "configure_type",
    "describe",
    "clear_cache",
    # Utilities
    "copy_values",
    "default_string_values",
    "default_string_values_if_null",
    # Errors
    "MappingError",
    "ConstructionError",
    "UnmatchedFieldError",
    "UnsupportedCollectionError",
    "ReentrancyError",
    # Logging
    "get_logger",
    "setup_logging",
]
