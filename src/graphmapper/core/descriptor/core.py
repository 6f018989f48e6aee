"""Type descriptor cache and the declaration API.

Usage:
    @map_class
    @dataclass
    class OrderDto:
        id: int = 0
        customer: Annotated[str | None, MapField(name="customer_name")] = None
        internal_note: Annotated[str | None, MapField(exclude=True)] = None

    descriptor = describe(OrderDto)   # reflected once, cached process-wide
    clear_cache()                     # test isolation / hot reload only

    # Types you cannot decorate
    configure_type(ThirdPartyOrder, policy=MapAllPolicy.ALL,
                   rules={"ref": MapField(name="id")})
"""

from __future__ import annotations

import dataclasses
import inspect
import warnings
from collections.abc import Callable, Iterable, Mapping
from typing import Annotated, Any, ClassVar, get_args, get_origin, get_type_hints, overload

from graphmapper.config.logging import get_logger
from graphmapper.core.descriptor.accessors import (
    CompiledAccessor,
    FieldAccessor,
    ReflectiveAccessor,
)
from graphmapper.core.descriptor.models import (
    ClassPolicy,
    FieldDescriptor,
    MapAllPolicy,
    MapField,
    MapListItem,
    TypeDescriptor,
    TypeOverride,
)
from graphmapper.core.types import full_name

logger = get_logger(__name__)

POLICY_ATTR = "__map_policy__"
RULE_METADATA_KEY = "graphmapper.rule"
KEYS_METADATA_KEY = "graphmapper.keys"


def _is_pydantic(cls: type) -> bool:
    """Check if class is a Pydantic model without importing pydantic."""
    for base in cls.__mro__:
        if base.__module__.startswith("pydantic") and base.__name__ == "BaseModel":
            return True
    return False


def _is_frozen(cls: type) -> bool:
    if dataclasses.is_dataclass(cls):
        return bool(cls.__dataclass_params__.frozen)  # type: ignore[attr-defined]
    if _is_pydantic(cls):
        return bool(cls.model_config.get("frozen", False))  # type: ignore[attr-defined]
    return False


def _resolve_hints(target: Any, owner: type) -> dict[str, Any]:
    """Resolve annotations, retrying with the owner in scope for self references."""
    try:
        return get_type_hints(target, include_extras=True)
    except NameError:
        pass
    try:
        return get_type_hints(target, localns={owner.__name__: owner}, include_extras=True)
    except (NameError, TypeError) as e:
        warnings.warn(
            f"Could not resolve annotations of {owner.__qualname__} ({e}). "
            f"Its fields will be treated as untyped.",
            stacklevel=4,
        )
        return {}


def _pydantic_hints(cls: type) -> dict[str, Any]:
    """Field hints of a Pydantic model, rebuilt from its field info.

    ``BaseModel`` itself carries annotations that only resolve under
    TYPE_CHECKING, so ``get_type_hints`` cannot be used on models.
    """
    hints: dict[str, Any] = {}
    for name, info in cls.model_fields.items():  # type: ignore[attr-defined]
        hint = Any if info.annotation is None else info.annotation
        hints[name] = Annotated[hint, *info.metadata] if info.metadata else hint
    return hints


def _split_annotated(hint: Any) -> tuple[Any, tuple[Any, ...]]:
    if get_origin(hint) is Annotated:
        args = get_args(hint)
        return args[0], tuple(hint.__metadata__)
    return hint, ()


def _rule_from(metadata: Iterable[Any]) -> tuple[MapField | None, tuple[str, ...]]:
    rule: MapField | None = None
    keys: tuple[str, ...] = ()
    for item in metadata:
        if isinstance(item, MapField) and rule is None:
            rule = item
        elif isinstance(item, MapListItem) and not keys:
            keys = item.keys
    return rule, keys


def _dataclass_metadata(cls: type) -> dict[str, Mapping[str, Any]]:
    if not dataclasses.is_dataclass(cls):
        return {}
    return {f.name: f.metadata for f in dataclasses.fields(cls)}


def _is_skipped_hint(hint: Any) -> bool:
    return get_origin(hint) is ClassVar or hint is ClassVar or isinstance(hint, dataclasses.InitVar)


def _is_public(name: str, pydantic: bool) -> bool:
    if name.startswith("_"):
        return False
    return not (pydantic and name.startswith("model_"))


def build_descriptor(cls: type, override: TypeOverride | None = None) -> TypeDescriptor:
    """Reflect a class into a TypeDescriptor.

    Fields come from class annotations across the MRO (base classes first),
    followed by public properties. A field's declaring type is the most
    derived class that annotates (or defines) it.

    Args:
        cls: Class to reflect.
        override: Declarations registered through ``configure_type``; they take
            precedence over decorators and annotation metadata.

    Returns:
        Immutable descriptor.
    """
    override = override or TypeOverride()
    pydantic = _is_pydantic(cls)
    frozen = _is_frozen(cls)
    hints = _pydantic_hints(cls) if pydantic else _resolve_hints(cls, cls)
    dc_metadata = _dataclass_metadata(cls)
    model_fields: Mapping[str, Any] = getattr(cls, "model_fields", {}) if pydantic else {}

    declared: dict[str, type] = {}
    for klass in reversed(cls.__mro__):
        if klass is object:
            continue
        for name in inspect.get_annotations(klass):
            declared[name] = klass

    fields: list[FieldDescriptor] = []
    for name, declaring in declared.items():
        if not _is_public(name, pydantic):
            continue
        if pydantic and name not in model_fields:
            continue
        raw = hints.get(name, Any)
        if _is_skipped_hint(raw):
            continue
        hint, metadata = _split_annotated(raw)
        rule, keys = _rule_from(metadata)
        meta = dc_metadata.get(name, {})
        rule = override.rules.get(name) or meta.get(RULE_METADATA_KEY) or rule
        keys = override.list_keys.get(name) or meta.get(KEYS_METADATA_KEY) or keys
        fields.append(
            FieldDescriptor(
                name=name,
                hint=hint,
                readable=True,
                writable=not frozen,
                declaring_type=declaring,
                rule=rule,
                list_keys=tuple(keys),
            )
        )

    fields.extend(_property_fields(cls, set(declared), override, pydantic))

    policy = override.policy or vars(cls).get(POLICY_ATTR)
    return TypeDescriptor(type=cls, full_name=full_name(cls), fields=tuple(fields), policy=policy)


def _property_fields(
    cls: type, taken: set[str], override: TypeOverride, pydantic: bool
) -> list[FieldDescriptor]:
    found: dict[str, tuple[type, property]] = {}
    for klass in reversed(cls.__mro__):
        if klass is object:
            continue
        for name, attr in vars(klass).items():
            if isinstance(attr, property) and _is_public(name, pydantic) and name not in taken:
                found[name] = (klass, attr)

    result: list[FieldDescriptor] = []
    for name, (declaring, prop) in found.items():
        raw = Any
        if prop.fget is not None:
            raw = _resolve_hints(prop.fget, cls).get("return", Any)
        hint, metadata = _split_annotated(raw)
        rule, keys = _rule_from(metadata)
        result.append(
            FieldDescriptor(
                name=name,
                hint=hint,
                readable=prop.fget is not None,
                writable=prop.fset is not None,
                declaring_type=declaring,
                rule=override.rules.get(name) or rule,
                list_keys=tuple(override.list_keys.get(name) or keys),
            )
        )
    return result


class DescriptorCache:
    """Process-wide, read-mostly registry of type descriptors.

    Descriptors are built lazily on first use and never change afterwards
    until ``clear()``. Concurrent first uses may both reflect the type; the
    first stored result wins and both results are equivalent.
    """

    def __init__(self) -> None:
        self._descriptors: dict[type, TypeDescriptor] = {}
        self._accessors: dict[tuple[type, str], CompiledAccessor] = {}
        self._overrides: dict[type, TypeOverride] = {}

    def describe(self, cls: type) -> TypeDescriptor:
        """Get the descriptor of a class, reflecting it on first use."""
        found = self._descriptors.get(cls)
        if found is not None:
            return found
        built = build_descriptor(cls, self._overrides.get(cls))
        logger.debug(
            "Described %s",
            built.full_name,
            extra={"field_count": len(built), "annotated": built.is_annotated},
        )
        return self._descriptors.setdefault(cls, built)

    def accessor(self, owner: type, field: FieldDescriptor, compiled: bool) -> FieldAccessor:
        """Get the accessor for a field of ``owner``.

        Args:
            owner: Runtime type of the instances the accessor will be used on.
            field: Field to access.
            compiled: Use a cached prebuilt accessor instead of plain reflection.
        """
        if not compiled:
            return ReflectiveAccessor(field.name)
        key = (owner, field.name)
        found = self._accessors.get(key)
        if found is None:
            found = self._accessors.setdefault(key, CompiledAccessor(field.name))
        return found

    def configure(
        self,
        cls: type,
        *,
        policy: MapAllPolicy | None = None,
        allowed_bases: tuple[type, ...] | None = None,
        rules: Mapping[str, MapField] | None = None,
        list_keys: Mapping[str, Iterable[str]] | None = None,
    ) -> TypeOverride:
        """Register declarations for a class that cannot carry them itself.

        Raises:
            ValueError: If allowed_bases is given for a policy other than INHERITED_ONLY.
        """
        class_policy = _make_policy(policy, allowed_bases) if policy is not None else None
        override = TypeOverride(
            policy=class_policy,
            rules=dict(rules or {}),
            list_keys={name: tuple(keys) for name, keys in (list_keys or {}).items()},
        )
        self._overrides[cls] = override
        if self._descriptors.pop(cls, None) is not None:
            warnings.warn(
                f"configure_type() called for {cls.__qualname__} after it was already "
                f"described. The cached descriptor was replaced.",
                stacklevel=3,
            )
        return override

    def is_described(self, cls: type) -> bool:
        return cls in self._descriptors

    def clear(self) -> None:
        """Drop every cached descriptor and compiled accessor. Overrides are kept."""
        self._descriptors.clear()
        self._accessors.clear()
        logger.debug("Descriptor cache cleared")


# Module-level cache instance
_cache = DescriptorCache()


def get_cache() -> DescriptorCache:
    """Access the process-wide descriptor cache."""
    return _cache


def describe(cls: type) -> TypeDescriptor:
    """Describe a class using the process-wide cache."""
    return _cache.describe(cls)


def clear_cache() -> None:
    """Invalidate all cached descriptors and compiled accessors."""
    _cache.clear()


def configure_type(
    cls: type,
    *,
    policy: MapAllPolicy | None = None,
    allowed_bases: tuple[type, ...] | None = None,
    rules: Mapping[str, MapField] | None = None,
    list_keys: Mapping[str, Iterable[str]] | None = None,
) -> TypeOverride:
    """Declare mapping rules for a class from the outside (see ``DescriptorCache.configure``)."""
    return _cache.configure(
        cls, policy=policy, allowed_bases=allowed_bases, rules=rules, list_keys=list_keys
    )


def _make_policy(policy: MapAllPolicy, allowed_bases: tuple[type, ...] | None) -> ClassPolicy:
    if allowed_bases is not None and policy is not MapAllPolicy.INHERITED_ONLY:
        raise ValueError("allowed_bases only applies to MapAllPolicy.INHERITED_ONLY")
    return ClassPolicy(kind=policy, allowed_bases=allowed_bases)


@overload
def map_class(cls: type) -> type: ...


@overload
def map_class(
    cls: None = None,
    *,
    policy: MapAllPolicy = MapAllPolicy.ALL,
    allowed_bases: tuple[type, ...] | None = None,
) -> Callable[[type], type]: ...


def map_class(
    cls: type | None = None,
    *,
    policy: MapAllPolicy = MapAllPolicy.ALL,
    allowed_bases: tuple[type, ...] | None = None,
) -> type | Callable[[type], type]:
    """Declare a class-level mapping policy.

    Supports three forms:
        @map_class                                      # all fields
        @map_class()                                    # same
        @map_class(policy=MapAllPolicy.INHERITED_ONLY,
                   allowed_bases=(AuditFields,))        # restricted

    The policy applies to the decorated class only, not to its subclasses.

    Raises:
        ValueError: If allowed_bases is combined with a policy other than INHERITED_ONLY.
    """
    class_policy = _make_policy(policy, allowed_bases)

    def decorator(c: type) -> type:
        setattr(c, POLICY_ATTR, class_policy)
        return c

    if cls is None:
        return decorator
    return decorator(cls)


def map_field(
    *,
    name: str | None = None,
    type_filter: str | None = None,
    exclude: bool = False,
    binary: bool = False,
    keys: Iterable[str] = (),
    **field_kwargs: Any,
) -> Any:
    """``dataclasses.field`` carrying a mapping rule in its metadata.

    Usage:
        @dataclass
        class InvoiceDto:
            total: str = map_field(name="amount", default="")
            lines: list[LineDto] = map_field(keys=("sku",), default_factory=list)

    A call with only ``keys`` declares a list key rule without a field rule.
    """
    metadata = dict(field_kwargs.pop("metadata", None) or {})
    keys = tuple(keys)
    has_rule_args = name is not None or type_filter is not None or exclude or binary
    if has_rule_args or not keys:
        metadata[RULE_METADATA_KEY] = MapField(
            name=name, type_filter=type_filter, exclude=exclude, binary=binary
        )
    if keys:
        metadata[KEYS_METADATA_KEY] = keys
    return dataclasses.field(metadata=metadata, **field_kwargs)
