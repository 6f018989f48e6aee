"""Shallow value helpers that need descriptors but no mapping session.

Usage:
    copy_values(entity, snapshot)          # same-name, assignable fields only
    default_string_values(form)            # every text field -> ""
    default_string_values_if_null(form, "n/a")
"""

from __future__ import annotations

from typing import Any

from graphmapper.core.descriptor import describe
from graphmapper.core.types import is_assignable, is_text


def copy_values(source: Any, target: Any) -> None:
    """Copy name-matched fields whose types are assignable. No recursion, no conversion.

    Nested objects and collections are copied by reference. Either argument
    being None is a no-op.

    Args:
        source: Object to read from.
        target: Object to write to.
    """
    if source is None or target is None:
        return
    source_desc = describe(type(source))
    for target_field in describe(type(target)):
        source_field = source_desc.get(target_field.name)
        if source_field is None or not source_field.readable or not target_field.writable:
            continue
        if is_assignable(target_field.hint, source_field.hint):
            setattr(target, target_field.name, getattr(source, source_field.name, None))


def default_string_values(obj: Any, default: str = "") -> None:
    """Set every writable text field of ``obj`` to ``default``."""
    _default_text_fields(obj, default, only_null=False)


def default_string_values_if_null(obj: Any, default: str = "") -> None:
    """Set writable text fields of ``obj`` that are currently None to ``default``."""
    _default_text_fields(obj, default, only_null=True)


def _default_text_fields(obj: Any, default: str, only_null: bool) -> None:
    if obj is None:
        return
    for field in describe(type(obj)):
        if not field.writable or not is_text(field.hint):
            continue
        if only_null and getattr(obj, field.name, None) is not None:
            continue
        setattr(obj, field.name, default)
