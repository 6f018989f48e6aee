"""Tests for shallow copy and text defaulting helpers."""

from dataclasses import dataclass, field

from graphmapper import copy_values, default_string_values, default_string_values_if_null


@dataclass
class Tag:
    label: str = ""


@dataclass
class Entity:
    name: str | None = None
    count: int = 0
    ratio: float = 0.0
    tags: list[Tag] = field(default_factory=list)
    owner: Tag | None = None


@dataclass
class Snapshot:
    name: str | None = None
    count: float = 0.0
    ratio: int = 0
    tags: list[Tag] = field(default_factory=list)
    owner: Tag | None = None
    note: str | None = None


def test_copy_values_copies_assignable_fields_by_reference():
    owner = Tag("root")
    entity = Entity(name="box", count=3, ratio=0.5, tags=[Tag("a")], owner=owner)
    snapshot = Snapshot()

    copy_values(entity, snapshot)

    assert snapshot.name == "box"
    assert snapshot.count == 3  # int widens to float
    assert snapshot.ratio == 0  # float does not narrow to int
    assert snapshot.tags is entity.tags
    assert snapshot.owner is owner
    assert snapshot.note is None


def test_copy_values_ignores_none_arguments():
    snapshot = Snapshot(name="kept")
    copy_values(None, snapshot)
    copy_values(Entity(), None)
    assert snapshot.name == "kept"


def test_default_string_values_overwrites_all_text_fields():
    snapshot = Snapshot(name="x")
    default_string_values(snapshot)
    assert snapshot.name == ""
    assert snapshot.note == ""
    assert snapshot.count == 0.0


def test_default_string_values_if_null_keeps_present_text():
    snapshot = Snapshot(name="x")
    default_string_values_if_null(snapshot, "n/a")
    assert snapshot.name == "x"
    assert snapshot.note == "n/a"
