"""
Entity storage: loads and saves ``ContentEntity`` handles.

This is the storage collaborator the field engine is given. It wraps the
functions in ``api.py`` and is the only place that decides which revision
becomes the default one when a moderated entity is saved.
"""
from __future__ import annotations

from datetime import datetime, timezone
from logging import getLogger

from django.core.exceptions import ObjectDoesNotExist
from django.db.transaction import atomic

from managed_content_field.conf import get_setting

from . import api
from .data import ContentEntity, EntityRecord
from .models import ManagedEntityRevision
from .moderation import ModerationInformation

logger = getLogger(__name__)


class EntityStorage:
    """
    Load, save and delete managed entities and their revisions.
    """

    def __init__(self, moderation: ModerationInformation | None = None):
        self.moderation = moderation

    # Loading

    def create(
        self,
        bundle_key: str,
        values: dict | None = None,
        *,
        langcode: str | None = None,
        created_by_id: int | None = None,
    ) -> ContentEntity:
        """
        Make a new, unsaved entity of ``bundle_key``.
        """
        return ContentEntity.create(
            api.get_bundle_definition(bundle_key),
            values,
            langcode=langcode or get_setting("DEFAULT_LANGCODE"),
            created_by_id=created_by_id,
        )

    def bundle_labels(self) -> dict[str, str]:
        """
        Label of every bundle, by key.
        """
        return {bundle.key: bundle.label for bundle in api.get_bundles()}

    def load(self, entity_id: int | None) -> ContentEntity | None:
        """
        Load the default revision of an entity, or None.
        """
        if entity_id is None:
            return None
        try:
            entity_row = api.get_entity(entity_id)
        except ObjectDoesNotExist:
            return None
        if entity_row.default_revision_id is None:
            return None
        return self.load_revision(entity_row.default_revision_id)

    def load_revision(self, revision_id: int | None) -> ContentEntity | None:
        if revision_id is None:
            return None
        try:
            revision = api.get_revision(revision_id)
        except ObjectDoesNotExist:
            return None
        return self._to_entity(revision)

    def latest_revision_id(self, entity_id: int) -> int | None:
        return api.get_latest_revision_id(entity_id)

    def load_latest_revision(self, entity_id: int) -> ContentEntity | None:
        return self.load_revision(self.latest_revision_id(entity_id))

    def revision_ids(self, entity_id: int) -> list[int]:
        """
        Revision ids of an entity, newest first.
        """
        return api.get_revision_ids(entity_id)

    def _to_entity(self, revision: ManagedEntityRevision) -> ContentEntity:
        entity_row = revision.entity
        values = {entity_row.langcode: dict(revision.data)}
        sources: dict[str, str | None] = {}
        for langcode, translation in revision.translations.items():
            values[langcode] = dict(translation.get("values", {}))
            sources[langcode] = translation.get("source")
        return ContentEntity(EntityRecord(
            bundle=api.get_bundle_definition(entity_row.bundle.key),
            default_langcode=entity_row.langcode,
            values=values,
            sources=sources,
            id=entity_row.id,
            revision_id=revision.id,
            moderation_state=revision.moderation_state,
            published=revision.published,
            is_default_revision=entity_row.default_revision_id == revision.id,
            was_default_revision=revision.was_default_revision,
            created_by_id=entity_row.created_by_id,
        ))

    # Saving

    def save(
        self,
        entity: ContentEntity,
        *,
        saved_at: datetime | None = None,
        saved_by_id: int | None = None,
    ) -> ContentEntity:
        """
        Persist ``entity`` and update its ids in place.

        * A new entity gets its first revision, which is the default one.
        * An entity marked with ``set_new_revision()`` gets a new revision.
        * Otherwise its current revision is rewritten.

        For moderated entities, ``published`` follows the moderation state,
        and a new revision only becomes the default one when its state is a
        default revision state or the current default is not published.
        """
        saved_at = saved_at or datetime.now(tz=timezone.utc)
        record = entity._record  # pylint: disable=protected-access
        make_default = True

        with atomic():
            state = self._apply_moderation(entity)
            data = dict(record.values.get(record.default_langcode, {}))
            translations = {
                langcode: {"values": values, "source": record.sources.get(langcode)}
                for langcode, values in record.values.items()
                if langcode != record.default_langcode
            }

            if entity.is_new:
                entity_row = api.create_entity(
                    record.bundle.key,
                    langcode=record.default_langcode,
                    created=saved_at,
                    created_by=record.created_by_id or saved_by_id,
                )
                record.id = entity_row.id
                record.created_by_id = entity_row.created_by_id
            elif not record.new_revision:
                api.update_revision(
                    record.revision_id,
                    data=data,
                    translations=translations,
                    moderation_state=record.moderation_state,
                    published=record.published,
                )
                record.new_revision = False
                return entity
            elif state is not None and not state.is_default_revision_state():
                make_default = not self._is_default_revision_published(record.id)

            revision = api.create_revision(
                record.id,
                data=data,
                translations=translations,
                moderation_state=record.moderation_state,
                published=record.published,
                was_default_revision=make_default,
                created=saved_at,
                created_by=saved_by_id,
            )
            if make_default:
                api.set_default_revision(record.id, revision.id)

        record.revision_id = revision.id
        record.is_default_revision = make_default
        record.was_default_revision = make_default
        record.new_revision = False
        logger.debug(f"Saved {entity!r} (default={make_default})")
        return entity

    def _apply_moderation(self, entity: ContentEntity):
        """
        Sync ``published`` with the moderation state and return that state.
        """
        if self.moderation is None:
            return None
        workflow = self.moderation.get_workflow_for_entity(entity)
        if workflow is None:
            return None
        type_plugin = workflow.get_type_plugin()
        if not type_plugin.has_state(entity.moderation_state):
            entity.moderation_state = type_plugin.get_initial_state(entity).id
        state = type_plugin.get_state(entity.moderation_state)
        entity.published = state.is_published_state()
        return state

    def _is_default_revision_published(self, entity_id: int) -> bool:
        default = self.load(entity_id)
        return default is not None and default.published

    # Deleting

    def delete(self, entity: ContentEntity) -> None:
        if entity.is_new:
            return
        api.delete_entity(entity.id)
        logger.info(f"Deleted managed entity {entity.bundle.key}:{entity.id}")

    def delete_revision(self, revision_id: int) -> None:
        api.delete_revision(revision_id)

    # References

    def count_references(self, entity_id: int, field_name: str, exclude_host_id: int | None = None) -> int:
        return api.count_references(entity_id, field_name, exclude_host_id=exclude_host_id)

    def referencing_host_ids(self, entity_id: int, field_name: str) -> list[int]:
        return api.get_referencing_host_ids(entity_id, field_name)

    def load_field_targets(self, host_id: int, field_name: str) -> list[int | None]:
        return api.get_field_target_ids(host_id, field_name)

    def save_field_targets(self, host_id: int, field_name: str, target_ids: list[int]) -> None:
        api.set_field_target_ids(host_id, field_name, target_ids)

    # Nested components

    def load_nested_revision(self, revision_id: int | None) -> dict | None:
        """
        Data of a nested component revision, or None if it doesn't load.
        """
        if revision_id is None:
            return None
        revision = api.get_nested_revision(revision_id)
        return None if revision is None else dict(revision.data)

    def duplicate_nested(self, revision_id: int | None) -> dict:
        """
        Duplicate a nested component by revision.

        Returns a ``{"target_id", "target_revision_id"}`` pair, both None when
        the source revision does not load.
        """
        if revision_id is None or api.get_nested_revision(revision_id) is None:
            return {"target_id": None, "target_revision_id": None}
        duplicate = api.duplicate_nested_revision(revision_id)
        return {"target_id": duplicate.component_id, "target_revision_id": duplicate.id}
