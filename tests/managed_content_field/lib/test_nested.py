"""
Tests of the nested value helpers
"""
from __future__ import annotations

import pytest

from managed_content_field.lib.nested import get_nested_value, set_nested_value


def test_get_nested_value() -> None:
    data = {"items": {"3": {"subform": {"title": "Hello"}}, 4: {"_weight": 1}}}

    # Integer keys match submitted string keys.
    assert get_nested_value(data, ["items", 3, "subform", "title"]) == "Hello"
    assert get_nested_value(data, ["items", 4, "_weight"]) == 1
    assert get_nested_value(data, ["items", 5], default="none") == "none"
    assert get_nested_value(data, ["items", 3, "subform", "title", "x"]) is None
    assert get_nested_value(data, []) is data


def test_set_nested_value() -> None:
    data: dict = {"items": "replaced"}
    set_nested_value(data, ["items", 0, "subform", "entity_id"], 12)
    assert data == {"items": {0: {"subform": {"entity_id": 12}}}}

    with pytest.raises(ValueError):
        set_nested_value(data, [], 1)
