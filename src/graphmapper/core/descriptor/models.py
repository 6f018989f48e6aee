"""Descriptor models: field rules, class policies and cached type metadata.

Field rules are declared through ``typing.Annotated`` metadata or
``map_field()``; class policies through the ``@map_class`` decorator.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Protocol, runtime_checkable


class MapAllPolicy(Enum):
    """Blanket inclusion policy for the fields of a class."""

    ALL = auto()  # Every field of the whole hierarchy
    DECLARED_ONLY = auto()  # Only fields declared on the class itself
    INHERITED_ONLY = auto()  # Only fields declared on base classes
    NONE = auto()  # Nothing, only fields with an explicit rule


@dataclass(frozen=True, slots=True)
class MapField:
    """Per-field mapping rule.

    Usage:
        @dataclass
        class CustomerDto:
            customer_name: Annotated[str | None, MapField(name="name")] = None
            secret: Annotated[str | None, MapField(exclude=True)] = None
            avatar: Annotated[str | None, MapField(binary=True)] = None

    Attributes:
        name: Alternate name of the counterpart field.
        type_filter: Fully qualified name the other side's runtime type must
            have for this rule to apply (case-insensitive). Used when several
            flattened source types share field names.
        exclude: Never map this field, whatever the class policy says.
        binary: Value travels as base64 text on one side and bytes on the other.
    """

    name: str | None = None
    type_filter: str | None = None
    exclude: bool = False
    binary: bool = False


FieldRule = MapField


@dataclass(frozen=True, slots=True, init=False)
class MapListItem:
    """Key properties that identify matching items of two collections.

    Usage:
        lines: Annotated[list[LineDto], MapListItem("sku", "warehouse")] = ...
    """

    keys: tuple[str, ...]

    def __init__(self, *keys: str) -> None:
        if not keys:
            raise ValueError("MapListItem requires at least one key property")
        object.__setattr__(self, "keys", keys)


@dataclass(frozen=True, slots=True)
class ClassPolicy:
    """Class-level policy recorded by ``@map_class``."""

    kind: MapAllPolicy = MapAllPolicy.ALL
    allowed_bases: tuple[type, ...] | None = None
    """Base classes whose fields qualify under INHERITED_ONLY. None = any base."""


@dataclass(frozen=True, slots=True)
class FieldDescriptor:
    """Metadata about one mappable field of a type."""

    name: str
    hint: Any
    readable: bool
    writable: bool
    declaring_type: type
    rule: MapField | None = None
    list_keys: tuple[str, ...] = ()

    @property
    def effective_name(self) -> str:
        """Name used to find the counterpart: the rule's alternate name, else own name."""
        if self.rule is not None and self.rule.name:
            return self.rule.name
        return self.name

    @property
    def excluded(self) -> bool:
        return self.rule is not None and self.rule.exclude

    @property
    def binary(self) -> bool:
        return self.rule is not None and self.rule.binary


@dataclass(frozen=True, slots=True)
class TypeDescriptor:
    """Cached, immutable description of a mappable type."""

    type: type
    full_name: str
    fields: tuple[FieldDescriptor, ...] = ()
    policy: ClassPolicy | None = None
    _by_name: dict[str, FieldDescriptor] = field(
        default_factory=dict, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        self._by_name.update({f.name: f for f in self.fields})

    def __iter__(self) -> Iterator[FieldDescriptor]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    @property
    def is_annotated(self) -> bool:
        """True when the type declares a class policy or at least one field rule."""
        return self.policy is not None or any(f.rule is not None for f in self.fields)

    def get(self, name: str) -> FieldDescriptor | None:
        return self._by_name.get(name)

    def find(self, name: str) -> FieldDescriptor | None:
        """Find a field by own name, falling back to its effective (renamed) name."""
        found = self._by_name.get(name)
        if found is not None:
            return found
        for f in self.fields:
            if f.effective_name == name:
                return f
        return None


@runtime_checkable
class NullMarked(Protocol):
    """Targets that can record they were materialized without a real source."""

    is_null: bool


@dataclass(frozen=True, slots=True)
class TypeOverride:
    """Declarations registered for a class through ``configure_type``."""

    policy: ClassPolicy | None = None
    rules: dict[str, MapField] = field(default_factory=dict)
    list_keys: dict[str, tuple[str, ...]] = field(default_factory=dict)
