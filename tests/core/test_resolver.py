"""Tests for field pairing between source and target types.

Critical Invariants:
- Plain types on both sides map every target field by name
- Exclusion always wins over class policies and on either side
- INHERITED_ONLY with an allow-list keeps only fields of the listed bases
- Type filters compare fully qualified names case-insensitively
- A field matched once stays matched for later flattened sources
"""

from dataclasses import dataclass
from typing import Annotated

from graphmapper import MapAllPolicy, MapField, describe, map_class
from graphmapper.core.resolver import (
    MatchLedger,
    RuleOwner,
    is_candidate,
    passes_policy,
    resolve_pairs,
    type_filter_applies,
)


@dataclass
class Person:
    name: str = ""
    age: int = 0
    email: str = ""


@dataclass
class PersonView:
    name: str = ""
    age: int = 0
    phone: str = ""


@dataclass
class RenamingSource:
    full_name: Annotated[str, MapField(name="name")] = ""
    age: int = 0


@map_class
@dataclass
class ExcludingTarget:
    name: str = ""
    age: Annotated[int, MapField(exclude=True)] = 0


@dataclass
class Base:
    created: str = ""


@map_class(policy=MapAllPolicy.DECLARED_ONLY)
@dataclass
class DeclaredOnly(Base):
    name: str = ""


@map_class(policy=MapAllPolicy.INHERITED_ONLY)
@dataclass
class InheritedOnly(Base):
    name: str = ""


@dataclass
class Stamp:
    stamped: str = ""


@map_class(policy=MapAllPolicy.INHERITED_ONLY, allowed_bases=(Base,))
@dataclass
class AllowListed(Base, Stamp):
    name: str = ""


@dataclass
class Record:
    created: str = ""
    stamped: str = ""
    name: str = ""


@map_class(policy=MapAllPolicy.NONE)
@dataclass
class NoneButRule:
    name: str = ""
    age: Annotated[int, MapField()] = 0


@dataclass
class Filtered:
    name: Annotated[str, MapField(type_filter=f"{__name__.upper()}.PERSON")] = ""


def names(pairs):
    return [(p.source.name, p.target.name) for p in pairs]


def test_plain_types_map_by_name():
    ledger = MatchLedger()
    pairs = resolve_pairs(describe(Person), describe(PersonView), ledger)

    assert names(pairs) == [("name", "name"), ("age", "age")]
    assert all(p.owner is RuleOwner.TARGET for p in pairs)
    assert ledger.unmatched() == ["phone"]


def test_source_rename_rule():
    pairs = resolve_pairs(describe(RenamingSource), describe(PersonView))
    assert ("full_name", "name") in names(pairs)
    renamed = next(p for p in pairs if p.target.name == "name")
    assert renamed.owner is RuleOwner.SOURCE
    assert renamed.rule.name == "name"


def test_target_exclusion_blocks_both_passes():
    pairs = resolve_pairs(describe(Person), describe(ExcludingTarget))
    assert names(pairs) == [("name", "name")]


def test_declared_only_policy():
    desc = describe(DeclaredOnly)
    assert passes_policy(desc.get("name"), desc)
    assert not passes_policy(desc.get("created"), desc)


def test_inherited_only_policy():
    desc = describe(InheritedOnly)
    assert passes_policy(desc.get("created"), desc)
    assert not passes_policy(desc.get("name"), desc)


def test_inherited_only_allow_list():
    desc = describe(AllowListed)
    assert passes_policy(desc.get("created"), desc)
    assert not passes_policy(desc.get("stamped"), desc)
    assert not passes_policy(desc.get("name"), desc)


def test_inherited_only_allow_list_when_mapping(mapper):
    target = mapper.map(AllowListed, Record(created="today", stamped="x", name="n"))
    assert (target.created, target.stamped, target.name) == ("today", "", "")


def test_policy_none_keeps_rule_fields_only():
    desc = describe(NoneButRule)
    assert not is_candidate(desc.get("name"), desc, Person)
    assert is_candidate(desc.get("age"), desc, Person)


def test_type_filter_is_case_insensitive():
    field = describe(Filtered).get("name")
    assert type_filter_applies(field, Person)
    assert not type_filter_applies(field, PersonView)

    assert names(resolve_pairs(describe(Person), describe(Filtered))) == [("name", "name")]
    assert resolve_pairs(describe(PersonView), describe(Filtered)) == []


def test_ledger_keeps_matches_sticky():
    ledger = MatchLedger()
    ledger.record(PersonView, "phone", True)
    ledger.record(PersonView, "phone", False)
    ledger.record(PersonView, "name", False)

    assert ledger.unmatched() == ["name"]
    assert len(ledger) == 2


def test_duplicate_pairs_are_dropped():
    @map_class
    @dataclass
    class AnnotatedSource:
        name: str = ""

    @map_class
    @dataclass
    class AnnotatedTarget:
        name: str = ""

    pairs = resolve_pairs(describe(AnnotatedSource), describe(AnnotatedTarget))
    assert names(pairs) == [("name", "name")]
    assert pairs[0].owner is RuleOwner.SOURCE
