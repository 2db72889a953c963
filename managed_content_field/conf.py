"""
Access to the ``MANAGED_CONTENT`` Django setting.

Example::

    MANAGED_CONTENT = {
        "STRICT_ACTIONS": False,
        "DEFAULT_LANGCODE": "en",
        "WIDGET": {"edit_mode": "closed"},
        "WORKFLOWS": {
            "editorial": {
                "label": "Editorial",
                "bundles": ["article"],
                "initial_state": "draft",
                "states": {
                    "draft": {"label": "Draft", "published": False, "default_revision": False},
                    "published": {"label": "Published", "published": True, "default_revision": True},
                },
            },
        },
    }
"""
from __future__ import annotations

from typing import Any

from django.conf import settings

DEFAULTS: dict[str, Any] = {
    "STRICT_ACTIONS": False,
    "DEFAULT_LANGCODE": "en",
    "WIDGET": {},
    "WORKFLOWS": {},
}


def get_setting(name: str) -> Any:
    """
    Return one ``MANAGED_CONTENT`` value, falling back to ``DEFAULTS``.
    """
    configured = getattr(settings, "MANAGED_CONTENT", {}) or {}
    if name in configured:
        return configured[name]
    return DEFAULTS[name]
