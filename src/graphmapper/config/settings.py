"""Mapper configuration using Pydantic Settings.

Usage:
    from graphmapper.config import MapperConfig

    # Load from environment variables (GRAPHMAPPER_*)
    config = MapperConfig()

    # Or override with explicit values
    config = MapperConfig(materialize_from_null_source=True, max_null_depth=5)
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class MapperConfig(BaseSettings):  # type: ignore[misc]
    """Configuration for a Mapper instance.

    Attributes:
        materialize_from_null_source: Build an "empty but marked" target graph
            when every source object is None, instead of returning None.
        max_null_depth: How many nested levels the null graph materializer
            builds below the first null target.
        materialize_empty_list_from_null_source: A None source collection
            still creates an empty target list.
        throw_on_unmatched_field: Raise UnmatchedFieldError when an eligible
            field finds no counterpart.
        ignore_enum_case: Match enum member names case-insensitively when
            parsing text into an enum.
        ignore_collections: Skip collection fields entirely.
        use_compiled_accessors: Read/write fields through cached prebuilt
            accessors. Performance knob only, no behavior change.
        parallel_lists: Convert collection elements as concurrent tasks.
        max_concurrent: Max concurrent element tasks per collection. None = unlimited.

    Environment Variables:
        GRAPHMAPPER_MATERIALIZE_FROM_NULL_SOURCE
        GRAPHMAPPER_MAX_NULL_DEPTH
        GRAPHMAPPER_MATERIALIZE_EMPTY_LIST_FROM_NULL_SOURCE
        GRAPHMAPPER_THROW_ON_UNMATCHED_FIELD
        GRAPHMAPPER_IGNORE_ENUM_CASE
        GRAPHMAPPER_IGNORE_COLLECTIONS
        GRAPHMAPPER_USE_COMPILED_ACCESSORS
        GRAPHMAPPER_PARALLEL_LISTS
        GRAPHMAPPER_MAX_CONCURRENT
    """

    model_config = SettingsConfigDict(
        env_prefix="GRAPHMAPPER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    materialize_from_null_source: bool = False
    max_null_depth: int = Field(default=10, ge=0)
    materialize_empty_list_from_null_source: bool = True
    throw_on_unmatched_field: bool = False
    ignore_enum_case: bool = True
    ignore_collections: bool = False
    use_compiled_accessors: bool = False
    parallel_lists: bool = True
    max_concurrent: int | None = Field(default=None, ge=1)
