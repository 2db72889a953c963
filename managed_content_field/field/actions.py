"""
Entity actions replayed when a host with managed content is saved.

* ``revise`` turns published content into a new working revision.
* ``clone`` duplicates content (including its nested components).
* ``remove`` detaches content, deleting it when nothing else uses it.

These run at commit time, after form validation has already checked most of
the preconditions. The checks are repeated here because content may have
changed between validation and save.
"""
from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import Callable

from managed_content_field.apps.entities.data import ContentEntity, FieldType
from managed_content_field.apps.entities.moderation import ModerationInformation
from managed_content_field.apps.entities.storage import EntityStorage

from .data import SaveAction
from .exceptions import InvalidState, RefusedAction

logger = getLogger(__name__)

__all__ = [
    "ActionContext",
    "ActionResult",
    "EntityActionResolver",
]


@dataclass(frozen=True)
class ActionContext:
    """
    Where the action happens: which host and field own the reference.

    ``langcode`` is the language the host is being edited in.
    """
    host_id: int | None
    field_name: str
    langcode: str | None = None


@dataclass(frozen=True)
class ActionResult:
    """
    Outcome of an action.

    ``entity`` is the entity the reference should point to afterwards (None
    when the reference must be cleared). ``error`` is set when the action was
    refused.
    """
    entity: ContentEntity | None
    error: RefusedAction | None = None

    @property
    def refused(self) -> bool:
        return self.error is not None


class EntityActionResolver:
    """
    Applies revise, clone and remove to managed entities.
    """

    def __init__(self, storage: EntityStorage, moderation: ModerationInformation | None = None):
        self.storage = storage
        self.moderation = moderation
        self._handlers: dict[SaveAction, Callable[[ContentEntity, ActionContext], ContentEntity | None]] = {
            SaveAction.REVISE: self.revise,
            SaveAction.CLONE: self.clone,
            SaveAction.REMOVE: self.remove,
        }

    def resolve(self, action: SaveAction | str, entity: ContentEntity | None, context: ActionContext) -> ActionResult:
        """
        Run ``action`` on ``entity``. Refusals are returned, never raised.
        """
        handler = self._handlers[SaveAction(action)]
        if entity is None:
            return ActionResult(None)
        try:
            result = handler(entity, context)
        except RefusedAction as exc:
            logger.warning(
                f"Refused to {action} {entity!r} referenced from "
                f"{context.field_name} on host {context.host_id}: {exc}"
            )
            return ActionResult(None, error=exc)
        logger.info(f"Applied {action} to {entity!r} referenced from {context.field_name} on host {context.host_id}")
        return ActionResult(result)

    # Moderation helpers

    def _workflow_type(self, entity: ContentEntity):
        if self.moderation is None:
            return None
        workflow = self.moderation.get_workflow_for_entity(entity)
        return workflow.get_type_plugin() if workflow else None

    def _initial_state_id(self, entity: ContentEntity, type_plugin) -> str:
        """
        Initial state for a fresh revision of ``entity``.

        A throwaway entity of the same bundle is used so the answer depends
        only on the bundle and not on where ``entity`` currently is.
        """
        dummy = self.storage.create(entity.bundle.key, {"title": "Dummy"}, langcode=entity.default_langcode)
        return type_plugin.get_initial_state(dummy).id

    def is_first_time_moderation(self, entity: ContentEntity) -> bool:
        """
        True when the entity has no moderation history yet.

        That is the case for content saved before its bundle became moderated:
        neither the entity nor its latest revision carries a state.
        """
        latest = self.storage.load_latest_revision(entity.id)
        return not (entity.moderation_state and latest is not None and latest.moderation_state)

    def can_revise(self, entity: ContentEntity) -> bool:
        """
        Content can be revised when nothing is pending on top of the live revision.
        """
        if entity.is_new:
            return False
        latest = self.storage.load_latest_revision(entity.id)
        return latest is not None and latest.was_default_revision

    # Actions

    def revise(self, entity: ContentEntity, context: ActionContext) -> ContentEntity:
        type_plugin = self._workflow_type(entity)
        if type_plugin is not None:
            if entity.is_new or self.is_first_time_moderation(entity):
                raise RefusedAction(SaveAction.REVISE, f"{entity!r} has no moderation history to revise from.")
            latest = self.storage.load_latest_revision(entity.id)
            if context.langcode and latest.has_translation(context.langcode):
                latest = latest.get_translation(context.langcode)
            if not type_plugin.has_state(latest.moderation_state):
                raise InvalidState(
                    SaveAction.REVISE,
                    f"Unknown moderation state '{latest.moderation_state}' on {latest!r}.",
                )
            if not type_plugin.get_state(latest.moderation_state).is_published_state():
                raise InvalidState(
                    SaveAction.REVISE,
                    f"{latest!r} is in unpublished state '{latest.moderation_state}'.",
                )
            entity.moderation_state = self._initial_state_id(entity, type_plugin)
        elif not entity.published:
            raise RefusedAction(SaveAction.REVISE, f"{entity!r} is not published.")

        entity.set_new_revision(True)
        return self.storage.save(entity)

    def clone(self, entity: ContentEntity, context: ActionContext) -> ContentEntity:
        duplicate = entity.create_duplicate()
        for spec in duplicate.bundle.fields:
            if spec.type != FieldType.NESTED:
                continue
            items = duplicate.get(spec.name) or []
            duplicate.set(spec.name, [
                self.storage.duplicate_nested(item.get("target_revision_id"))
                for item in items
            ])

        type_plugin = self._workflow_type(duplicate)
        if type_plugin is not None:
            duplicate.moderation_state = self._initial_state_id(duplicate, type_plugin)
        return self.storage.save(duplicate)

    def remove(self, entity: ContentEntity, context: ActionContext) -> None:
        if entity.is_new:
            return None
        other_hosts = self.storage.count_references(entity.id, context.field_name, exclude_host_id=context.host_id)
        if other_hosts > 0:
            # Still used elsewhere: drop the pending revisions on top of the
            # live one, keep the content itself.
            for revision_id in self.storage.revision_ids(entity.id):
                revision = self.storage.load_revision(revision_id)
                if revision.was_default_revision:
                    break
                self.storage.delete_revision(revision_id)
        else:
            self.storage.delete(entity)
        return None
