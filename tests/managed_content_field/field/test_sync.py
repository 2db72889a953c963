"""
Tests of copying values between hosts and their managed content
"""
from __future__ import annotations

from datetime import datetime, timezone

import ddt  # type: ignore[import]

from managed_content_field.apps.entities import api as entities_api
from managed_content_field.apps.entities.data import TITLE_FIELD, BundleDefinition, ContentEntity, FieldSpec, FieldType
from managed_content_field.apps.entities.storage import EntityStorage
from managed_content_field.field import sync
from managed_content_field.field.context import ManagedContentContext
from managed_content_field.field.data import FieldDefinition
from managed_content_field.field.item import ManagedContentItemList
from managed_content_field.lib.test_utils import TestCase

CARD = BundleDefinition(
    key="card",
    label="Card",
    fields=(
        TITLE_FIELD,
        FieldSpec("region", FieldType.STRING, "Region"),
        FieldSpec("seats", FieldType.INTEGER, "Seats"),
        FieldSpec("parts", FieldType.NESTED, "Parts"),
    ),
)


def make_card(**values) -> ContentEntity:
    return ContentEntity.create(CARD, values, langcode="en")


@ddt.ddt
class FieldPathTestCase(TestCase):
    """
    Reading and writing values by colon separated path
    """
    def setUp(self) -> None:
        super().setUp()
        self.card = make_card(
            title="Card",
            seats=4,
            parts=[
                {"target_id": 1, "target_revision_id": 10},
                {"target_id": 2, "target_revision_id": 20},
            ],
        )

    @ddt.data(
        ("title", "Card"),
        ("seats", 4),
        ("parts:1:target_revision_id", 20),
        ("parts:target_id", 1),
        ("parts:5:target_id", None),
        ("region", None),
        ("unknown", None),
        ("title:0", None),
    )
    @ddt.unpack
    def test_get_field_value(self, path, expected) -> None:
        assert sync.get_field_value(self.card, path) == expected

    def test_set_plain_value(self) -> None:
        assert sync.set_field_value(self.card, "region", "North")
        assert self.card.get("region") == "North"

        # Without force only empty values are replaced.
        assert not sync.set_field_value(self.card, "region", "South", force=False)
        assert self.card.get("region") == "North"
        assert sync.set_content_value(self.card, "region", "South")
        assert self.card.get("region") == "South"

    def test_set_nested_value(self) -> None:
        assert sync.set_field_value(self.card, "parts:0:target_revision_id", 11)
        assert self.card.get("parts")[0] == {"target_id": 1, "target_revision_id": 11}

        assert not sync.set_field_value(self.card, "parts:1:target_id", 3, force=False)
        assert not sync.set_field_value(self.card, "parts:7:target_id", 3)
        assert self.card.get("parts")[1] == {"target_id": 2, "target_revision_id": 20}

    def test_unsupported_assignment(self) -> None:
        """
        Rejected values are skipped and leave the entity as it was.
        """
        assert not sync.set_field_value(self.card, "seats", "many")
        assert self.card.get("seats") == 4

        empty = make_card(title="Empty", parts=[])
        # An entry with only a target id is not a valid nested reference.
        assert not sync.set_field_value(empty, "parts:target_id", 5)
        assert empty.get("parts") == []

    def test_unknown_field(self) -> None:
        assert not sync.set_field_value(self.card, "unknown", "x")
        assert not sync.set_field_value(self.card, "unknown:0", "x")


class PushFieldValueTestCase(TestCase):
    """
    Pushing a host value into each managed item
    """
    def setUp(self) -> None:
        super().setUp()
        self.context = ManagedContentContext(storage=EntityStorage())
        self.host = make_card(title="Host", region="West")
        self.items = ManagedContentItemList(self.context, FieldDefinition("items"), self.host)

    def test_push(self) -> None:
        self.items.append_item(make_card(title="A"))
        self.items.append_item(make_card(title="B", region="East"))
        self.items.append_item({"entity": None})

        assert sync.push_field_value(self.items, "region", "region") == 2
        assert [item.entity.get("region") for item in self.items.items[:2]] == ["West", "West"]
        assert [item.is_modified() for item in self.items] == [True, True, False]

    def test_push_without_force(self) -> None:
        self.items.append_item(make_card(title="A"))
        self.items.append_item(make_card(title="B", region="East"))

        assert sync.push_field_value(self.items, "region", "region", force=False) == 1
        assert [item.entity.get("region") for item in self.items] == ["West", "East"]
        assert [item.is_modified() for item in self.items] == [True, False]

    def test_push_empty_value(self) -> None:
        self.items.append_item(make_card(title="A"))
        assert sync.push_field_value(self.items, "seats", "seats") == 0
        assert not self.items[0].is_modified()


class PullFieldValueTestCase(TestCase):
    """
    Pulling a value from the newest host referencing an item
    """
    @classmethod
    def setUpTestData(cls) -> None:
        entities_api.create_bundle("landing", "Landing page", fields=[{"name": "region"}])
        entities_api.create_bundle("page", "Page", fields=[{"name": "region"}])

    def setUp(self) -> None:
        super().setUp()
        self.context = ManagedContentContext.from_settings()
        self.storage = self.context.storage

    def save_host(self, region: str, day: int, target_ids: list[int]) -> ContentEntity:
        host = self.storage.create("landing", {"title": f"Landing {day}", "region": region})
        self.storage.save(host, saved_at=datetime(2024, 1, day, tzinfo=timezone.utc))
        self.storage.save_field_targets(host.id, "items", target_ids)
        return host

    def test_pull_from_newest_host(self) -> None:
        page = self.storage.save(self.storage.create("page", {"title": "Shared"}))
        self.save_host("North", 1, [page.id])
        self.save_host("South", 2, [page.id])

        assert sync.pull_field_value(self.context, page, "items", "region", "region")
        assert page.get("region") == "South"
        # The pulled value is not saved.
        assert self.storage.load(page.id).get("region") is None

    def test_nothing_to_pull(self) -> None:
        page = self.storage.save(self.storage.create("page", {"title": "Alone"}))
        assert not sync.pull_field_value(self.context, page, "items", "region", "region")

        self.save_host("North", 1, [page.id])
        # Other fields don't count.
        assert not sync.pull_field_value(self.context, page, "related", "region", "region")
        # Neither do new entities.
        new_page = self.storage.create("page", {"title": "New"})
        assert not sync.pull_field_value(self.context, new_page, "items", "region", "region")
