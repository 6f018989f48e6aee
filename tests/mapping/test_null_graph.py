"""Tests for null-graph materialization.

Critical Invariants:
- Disabled materialization maps None to None without constructing anything
- The placeholder graph is exactly max_null_depth levels deep below its root
- Every placeholder that can record it is flagged is_null
"""

from dataclasses import dataclass

import pytest

from graphmapper import ConstructionError, NullMarked


@dataclass
class Node:
    is_null: bool = False
    name: str | None = None
    child: "Node | None" = None
    tags: list[str] | None = None


class NeedsArgs:
    def __init__(self, value: int) -> None:
        self.value = value


@dataclass
class Holder:
    is_null: bool = False
    node: Node | None = None
    fixed: NeedsArgs | None = None
    count: int = 0


@dataclass
class Wrapper:
    holder: Holder | None = None


@dataclass
class HolderSource:
    count: int = 0


@dataclass
class WrapperSource:
    holder: HolderSource | None = None


def depth_below(node: Node) -> int:
    depth = 0
    while node.child is not None:
        assert node.is_null
        node = node.child
        depth += 1
    assert node.is_null
    return depth


def test_disabled_returns_none(mapper):
    assert mapper.map(Node, None) is None


def test_default_depth_is_ten(make_mapper):
    node = make_mapper(materialize_from_null_source=True).map(Node, None)
    assert isinstance(node, NullMarked)
    assert depth_below(node) == 10


@pytest.mark.parametrize("max_depth", [0, 1, 5])
def test_depth_is_bounded(make_mapper, max_depth):
    mapper = make_mapper(materialize_from_null_source=True, max_null_depth=max_depth)
    assert depth_below(mapper.map(Node, None)) == max_depth


def test_scalars_and_collections_are_not_materialized(make_mapper):
    node = make_mapper(materialize_from_null_source=True, max_null_depth=1).map(Node, None)
    assert node.name is None
    assert node.tags is None


def test_types_without_parameterless_constructor_stay_unset(make_mapper):
    holder = make_mapper(materialize_from_null_source=True).map(Holder, None)
    assert holder.is_null
    assert holder.node.is_null
    assert holder.fixed is None
    assert holder.count == 0


def test_root_without_parameterless_constructor_raises(make_mapper):
    with pytest.raises(ConstructionError):
        make_mapper(materialize_from_null_source=True).map(NeedsArgs, None)


def test_existing_nested_values_are_reused(make_mapper):
    mapper = make_mapper(materialize_from_null_source=True, max_null_depth=2)
    existing = Node(name="kept")
    target = Holder(node=existing)

    assert mapper.map_into(target, None) is target
    assert target.is_null
    assert target.node is existing
    assert existing.is_null
    assert existing.name == "kept"
    assert existing.child.is_null


def test_null_nested_source_field(make_mapper, mapper):
    wrapper = make_mapper(materialize_from_null_source=True).map(Wrapper, WrapperSource())
    assert wrapper.holder.is_null

    assert mapper.map(Wrapper, WrapperSource()).holder is None
