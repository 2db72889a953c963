"""
Per-user access checks on managed entities.
"""
from __future__ import annotations

from enum import StrEnum

from .data import ContentEntity


class Operation(StrEnum):
    VIEW = "view"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class EntityAccess:
    """
    Access checks for one user, backed by the ``mcf_entities.*_content`` rules.

    ``user=None`` stands for the system itself (imports, rule actions, shell
    usage) and is allowed everything.
    """

    def __init__(self, user=None):
        self.user = user

    def check(self, entity: ContentEntity, operation: Operation | str) -> bool:
        if self.user is None:
            return True
        return self.user.has_perm(f"mcf_entities.{Operation(operation)}_content", entity)

    def create_access(self, bundle_key: str) -> bool:
        if self.user is None:
            return True
        return self.user.has_perm("mcf_entities.create_content", bundle_key)
