"""
Exceptions raised by the managed content field engine.
"""
from __future__ import annotations

from managed_content_field.apps.entities.exceptions import ManagedContentError


class RefusedAction(ManagedContentError):
    """
    An entity action (revise, clone or remove) is not allowed on an entity.
    """

    def __init__(self, action: str, message: str = ""):
        super().__init__(message or f"The {action} action was refused.")
        self.action = action


class InvalidState(RefusedAction):
    """
    A moderated entity is in a state the action cannot start from.
    """
