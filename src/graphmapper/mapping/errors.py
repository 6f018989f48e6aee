"""Mapping errors.

Only construction failures, unsupported collections, reentrant use and (when
opted into) unmatched fields are errors. Type-shape mismatches between paired
fields are skipped silently.
"""

from __future__ import annotations


class MappingError(Exception):
    """Base class for errors raised by the mapping engine."""

    pass


class ConstructionError(MappingError):
    """Raised when a target type has no parameterless constructor and none is registered."""

    def __init__(self, target_type: type, source_type: type | None = None) -> None:
        self.target_type = target_type
        self.source_type = source_type
        origin = f" from {source_type.__qualname__}" if source_type is not None else ""
        super().__init__(
            f"Cannot construct {target_type.__qualname__}{origin}: it has no parameterless "
            f"constructor and no constructor is registered for this type pair"
        )


class UnmatchedFieldError(MappingError):
    """Raised when eligible fields found no counterpart (``throw_on_unmatched_field``)."""

    def __init__(self, source_type: type, target_type: type, fields: list[str]) -> None:
        self.source_type = source_type
        self.target_type = target_type
        self.fields = fields
        super().__init__(
            f"The following fields were not mapped from type '{source_type.__qualname__}' "
            f"to type '{target_type.__qualname__}': {', '.join(fields)}"
        )


class UnsupportedCollectionError(MappingError):
    """Raised when a target collection exposes no ``append`` operation."""

    pass


class ReentrancyError(MappingError):
    """Raised when a Mapper receives a top-level call while another one is running."""

    pass
