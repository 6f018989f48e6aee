"""Tests for type descriptors and mapping declarations.

Critical Invariants:
- A described type is reflected once and cached until clear_cache()
- Rules come from Annotated metadata, map_field() or configure_type()
- Class policies are not inherited
"""

from dataclasses import dataclass, field
from typing import Annotated, ClassVar

import pytest
from pydantic import BaseModel, ConfigDict

from graphmapper import (
    MapAllPolicy,
    MapField,
    MapListItem,
    clear_cache,
    configure_type,
    describe,
    map_class,
    map_field,
)
from graphmapper.core.descriptor import ClassPolicy, get_cache


@dataclass
class Audit:
    created_by: str = ""


@map_class(policy=MapAllPolicy.INHERITED_ONLY, allowed_bases=(Audit,))
@dataclass
class Invoice(Audit):
    number: Annotated[str, MapField(name="invoice_no")] = ""
    secret: str = map_field(exclude=True, default="")
    lines: list[int] = map_field(keys=("sku",), default_factory=list)
    tags: Annotated[list[str], MapListItem("name")] = field(default_factory=list)
    _hidden: int = 0
    registry: ClassVar[dict] = {}


@dataclass
class SubInvoice(Invoice):
    extra: int = 0


@dataclass(frozen=True)
class Frozen:
    value: int = 0


class Account:
    owner: str

    def __init__(self) -> None:
        self.owner = ""
        self._balance = 0

    @property
    def balance(self) -> int:
        return self._balance

    @balance.setter
    def balance(self, value: int) -> None:
        self._balance = value

    @property
    def summary(self) -> str:
        return f"{self.owner}: {self._balance}"


class Profile(BaseModel):
    name: str = ""
    age: Annotated[int, MapField(name="years")] = 0


class FrozenProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = ""


class ThirdParty:
    ref: int = 0
    note: str = ""


def test_describe_is_cached():
    first = describe(Invoice)
    assert describe(Invoice) is first
    assert get_cache().is_described(Invoice)

    clear_cache()
    assert not get_cache().is_described(Invoice)
    assert describe(Invoice) is not first


def test_fields_in_base_first_order_without_private_or_classvars():
    names = [f.name for f in describe(Invoice)]
    assert names == ["created_by", "number", "secret", "lines", "tags"]


def test_rules_from_annotated_and_map_field():
    desc = describe(Invoice)

    assert desc.get("number").effective_name == "invoice_no"
    assert desc.get("secret").excluded
    assert desc.get("lines").rule is None
    assert desc.get("lines").list_keys == ("sku",)
    assert desc.get("tags").list_keys == ("name",)
    assert desc.get("created_by").declaring_type is Audit
    assert desc.get("number").declaring_type is Invoice


def test_find_falls_back_to_effective_name():
    desc = describe(Invoice)
    assert desc.find("number").name == "number"
    assert desc.find("invoice_no").name == "number"
    assert desc.find("missing") is None


def test_class_policy_recorded_and_not_inherited():
    policy = describe(Invoice).policy
    assert policy == ClassPolicy(kind=MapAllPolicy.INHERITED_ONLY, allowed_bases=(Audit,))
    assert describe(Invoice).is_annotated

    sub = describe(SubInvoice)
    assert sub.policy is None
    # Field rules are still inherited through the annotations
    assert sub.is_annotated
    assert sub.get("extra").declaring_type is SubInvoice


def test_bare_map_class_means_all():
    @map_class
    @dataclass
    class Plain:
        x: int = 0

    assert describe(Plain).policy.kind is MapAllPolicy.ALL


def test_allowed_bases_requires_inherited_only():
    with pytest.raises(ValueError, match="INHERITED_ONLY"):
        map_class(policy=MapAllPolicy.ALL, allowed_bases=(Audit,))


def test_map_list_item_requires_keys():
    with pytest.raises(ValueError):
        MapListItem()


def test_frozen_dataclass_is_read_only():
    desc = describe(Frozen)
    assert desc.get("value").readable
    assert not desc.get("value").writable


def test_plain_class_annotations_and_properties():
    desc = describe(Account)
    assert [f.name for f in desc] == ["owner", "balance", "summary"]
    assert desc.get("balance").writable
    assert desc.get("balance").hint is int
    assert desc.get("summary").readable
    assert not desc.get("summary").writable
    assert not desc.is_annotated


def test_pydantic_models():
    desc = describe(Profile)
    assert [f.name for f in desc] == ["name", "age"]
    assert desc.get("age").effective_name == "years"
    assert all(f.writable for f in desc)

    assert not describe(FrozenProfile).get("name").writable


def test_configure_type_overrides_and_survives_clear():
    configure_type(
        ThirdParty,
        policy=MapAllPolicy.NONE,
        rules={"ref": MapField(name="id")},
    )
    desc = describe(ThirdParty)
    assert desc.policy.kind is MapAllPolicy.NONE
    assert desc.get("ref").effective_name == "id"

    clear_cache()
    assert describe(ThirdParty).get("ref").effective_name == "id"


def test_configure_type_after_describe_warns_and_replaces():
    @dataclass
    class Late:
        value: int = 0

    describe(Late)
    with pytest.warns(UserWarning, match="already described"):
        configure_type(Late, rules={"value": MapField(name="amount")})

    assert describe(Late).get("value").effective_name == "amount"


def test_compiled_accessors_are_cached_per_field():
    cache = get_cache()
    desc = describe(Account)
    balance = desc.get("balance")

    accessor = cache.accessor(Account, balance, compiled=True)
    assert cache.accessor(Account, balance, compiled=True) is accessor

    account = Account()
    accessor.set(account, 42)
    assert accessor.get(account) == 42
    assert cache.accessor(Account, balance, compiled=False).get(account) == 42
