"""
Helpers for reading and writing values deep inside nested dicts.

Submitted form values and widget state are both addressed by a list of keys
(the "parents" of an element), e.g. ``["field_items", 3, "subform", "title"]``.
"""
from __future__ import annotations

from typing import Any, Sequence

_MISSING = object()


def get_nested_value(data: dict, parents: Sequence, default: Any = None) -> Any:
    """
    Return the value at ``parents`` inside ``data``, or ``default``.

    Integer keys also match their string form, since submitted form input is
    keyed by strings while slot keys are ints.
    """
    current: Any = data
    for key in parents:
        if not isinstance(current, dict):
            return default
        value = current.get(key, _MISSING)
        if value is _MISSING and isinstance(key, int):
            value = current.get(str(key), _MISSING)
        if value is _MISSING:
            return default
        current = value
    return current


def set_nested_value(data: dict, parents: Sequence, value: Any) -> None:
    """
    Set ``value`` at ``parents`` inside ``data``, creating dicts as needed.
    """
    if not parents:
        raise ValueError("Cannot set a nested value without parents.")
    current = data
    for key in parents[:-1]:
        child = current.get(key)
        if not isinstance(child, dict):
            child = current[key] = {}
        current = child
    current[parents[-1]] = value
