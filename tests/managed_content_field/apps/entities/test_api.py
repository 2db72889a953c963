"""
Tests of the entities app's python API
"""
from __future__ import annotations

from datetime import datetime, timezone

import pytest
from django.core.exceptions import ValidationError

from managed_content_field.apps.entities import api as entities_api
from managed_content_field.apps.entities.data import FieldType
from managed_content_field.apps.entities.models import FieldItem, ManagedEntityRevision
from managed_content_field.lib.test_utils import TestCase


class BundleTestCase(TestCase):
    """
    Test creating and reading ContentBundles
    """
    def test_title_added(self) -> None:
        """
        Every bundle has a required title, even when it's not listed.
        """
        bundle = entities_api.create_bundle(
            "page",
            "Page",
            fields=[{"name": "body", "type": "text", "translatable": True}],
        )
        assert [spec["name"] for spec in bundle.fields] == ["title", "body"]

        definition = entities_api.get_bundle_definition("page")
        assert definition.label == "Page"
        assert definition.get_field("title").required
        assert definition.get_field("body").type == FieldType.TEXT
        assert definition.get_field("body").label == "Body"

    def test_duplicated_field_names(self) -> None:
        with pytest.raises(ValidationError):
            entities_api.create_bundle(
                "page",
                "Page",
                fields=[{"name": "body"}, {"name": "body", "type": "text"}],
            )

    def test_unsupported_field_type(self) -> None:
        with pytest.raises(ValidationError):
            entities_api.create_bundle("page", "Page", fields=[{"name": "when", "type": "date"}])

    def test_form_modes(self) -> None:
        """
        Form modes pick the fields of the inline sub-form.
        """
        entities_api.create_bundle(
            "event",
            "Event",
            fields=[
                {"name": "location"},
                {"name": "seats", "type": "integer"},
                {"name": "parts", "type": "nested"},
            ],
            form_modes={"compact": ["title", "seats"]},
        )
        definition = entities_api.get_bundle_definition("event")

        compact = [spec.name for spec in definition.form_mode_fields("compact")]
        assert compact == ["title", "seats"]

        # No "default" mode: every non nested field, also for unknown modes.
        everything = [spec.name for spec in definition.form_mode_fields("missing")]
        assert everything == ["title", "location", "seats"]

    def test_get_bundles(self) -> None:
        entities_api.create_bundle("page", "Page")
        entities_api.create_bundle("article", "Article")
        assert [bundle.key for bundle in entities_api.get_bundles()] == ["article", "page"]


class RevisionTestCase(TestCase):
    """
    Test entities and their revisions
    """
    now: datetime

    @classmethod
    def setUpTestData(cls) -> None:
        entities_api.create_bundle("page", "Page")
        cls.now = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)

    def test_revisions(self) -> None:
        entity = entities_api.create_entity("page", langcode="en", created=self.now)
        assert entity.default_revision_id is None

        first = entities_api.create_revision(entity.id, data={"title": "One"}, created=self.now)
        entities_api.set_default_revision(entity.id, first.id)
        second = entities_api.create_revision(entity.id, data={"title": "Two"}, created=self.now)

        assert entities_api.get_latest_revision_id(entity.id) == second.id
        assert entities_api.get_revision_ids(entity.id) == [second.id, first.id]
        assert entities_api.get_entity(entity.id).default_revision_id == first.id

        first.refresh_from_db()
        assert first.was_default_revision
        assert second.title == "Two"

    def test_update_revision(self) -> None:
        entity = entities_api.create_entity("page", langcode="en")
        revision = entities_api.create_revision(entity.id, data={"title": "Draft"})
        entities_api.update_revision(
            revision.id,
            data={"title": "Final"},
            translations={"fr": {"values": {"title": "Finale"}, "source": "en"}},
            moderation_state="published",
            published=True,
        )
        revision.refresh_from_db()
        assert revision.title == "Final"
        assert revision.translations["fr"]["values"]["title"] == "Finale"
        assert revision.published

    def test_invalid_langcode(self) -> None:
        with pytest.raises(ValidationError):
            entities_api.create_entity("page", langcode="EN")

    def test_delete_revision(self) -> None:
        """
        Only revisions that aren't the default one can be deleted.
        """
        entity = entities_api.create_entity("page", langcode="en")
        live = entities_api.create_revision(entity.id, data={"title": "Live"})
        entities_api.set_default_revision(entity.id, live.id)
        draft = entities_api.create_revision(entity.id, data={"title": "Draft"})

        with pytest.raises(ValidationError):
            entities_api.delete_revision(live.id)

        entities_api.delete_revision(draft.id)
        assert entities_api.get_revision_ids(entity.id) == [live.id]

    def test_delete_entity(self) -> None:
        entity = entities_api.create_entity("page", langcode="en")
        entities_api.create_revision(entity.id, data={"title": "Gone"})
        entities_api.delete_entity(entity.id)
        assert not ManagedEntityRevision.objects.filter(entity_id=entity.id).exists()


class ReferenceTestCase(TestCase):
    """
    Test the stored values of managed content fields
    """
    def setUp(self) -> None:
        super().setUp()
        entities_api.create_bundle("page", "Page")
        self.host_a = entities_api.create_entity("page", langcode="en")
        self.host_b = entities_api.create_entity("page", langcode="en")
        self.target = entities_api.create_entity("page", langcode="en")
        self.other = entities_api.create_entity("page", langcode="en")

    def test_field_targets(self) -> None:
        entities_api.set_field_target_ids(self.host_a.id, "items", [self.target.id, self.other.id])
        assert entities_api.get_field_target_ids(self.host_a.id, "items") == [self.target.id, self.other.id]

        # Replacing the value renumbers the deltas.
        items = entities_api.set_field_target_ids(self.host_a.id, "items", [self.other.id])
        assert [(item.delta, item.target_id) for item in items] == [(0, self.other.id)]

    def test_deleted_target_leaves_empty_item(self) -> None:
        entities_api.set_field_target_ids(self.host_a.id, "items", [self.target.id, self.other.id])
        entities_api.delete_entity(self.target.id)
        assert entities_api.get_field_target_ids(self.host_a.id, "items") == [None, self.other.id]
        assert FieldItem.objects.filter(host=self.host_a).count() == 2

    def test_count_references(self) -> None:
        entities_api.set_field_target_ids(self.host_a.id, "items", [self.target.id, self.target.id])
        entities_api.set_field_target_ids(self.host_b.id, "items", [self.target.id])
        entities_api.set_field_target_ids(self.host_b.id, "related", [self.other.id])

        assert entities_api.count_references(self.target.id, "items") == 2
        assert entities_api.count_references(self.target.id, "items", exclude_host_id=self.host_a.id) == 1
        assert entities_api.count_references(self.target.id, "related") == 0
        assert entities_api.count_references(self.other.id, "related") == 1

    def test_referencing_host_ids(self) -> None:
        entities_api.set_field_target_ids(self.host_a.id, "items", [self.target.id])
        entities_api.set_field_target_ids(self.host_b.id, "items", [self.target.id])
        # Same creation time: newest id first.
        assert entities_api.get_referencing_host_ids(self.target.id, "items") == [self.host_b.id, self.host_a.id]


class NestedComponentTestCase(TestCase):
    """
    Test nested components
    """
    def test_duplicate(self) -> None:
        source = entities_api.create_nested_component("paragraph", {"text": "Hello"})
        duplicate = entities_api.duplicate_nested_revision(source.id)

        assert duplicate.component_id != source.component_id
        assert duplicate.id != source.id
        assert duplicate.component.kind == "paragraph"
        assert duplicate.data == {"text": "Hello"}

    def test_missing_revision(self) -> None:
        assert entities_api.get_nested_revision(12345) is None
