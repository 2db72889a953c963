"""
The collaborators a managed content field works with.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from functools import cached_property

from managed_content_field.apps.entities.access import EntityAccess
from managed_content_field.apps.entities.moderation import ModerationInformation, get_moderation_information
from managed_content_field.apps.entities.storage import EntityStorage
from managed_content_field.apps.entities.translation import ContentTranslationManager
from managed_content_field.conf import get_setting

from .actions import EntityActionResolver


@dataclass
class ManagedContentContext:
    """
    Storage, moderation, access and translation services for one request.

    ``moderation`` is None when no moderation workflow is configured.
    ``strict_actions`` makes refused actions abort the host save instead of
    clearing the reference.
    """
    storage: EntityStorage
    moderation: ModerationInformation | None = None
    access: EntityAccess = field(default_factory=EntityAccess)
    translation: ContentTranslationManager = field(default_factory=ContentTranslationManager)
    strict_actions: bool = False

    @classmethod
    def from_settings(cls, user=None) -> ManagedContentContext:
        """
        Build the default context from ``settings.MANAGED_CONTENT``.
        """
        moderation = get_moderation_information()
        return cls(
            storage=EntityStorage(moderation),
            moderation=moderation,
            access=EntityAccess(user),
            strict_actions=bool(get_setting("STRICT_ACTIONS")),
        )

    @cached_property
    def resolver(self) -> EntityActionResolver:
        return EntityActionResolver(self.storage, self.moderation)
