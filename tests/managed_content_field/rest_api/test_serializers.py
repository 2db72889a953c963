"""
Tests of the JSON description of a rendered widget
"""
from __future__ import annotations

from django.contrib.auth import get_user_model

from managed_content_field.apps.entities import api as entities_api
from managed_content_field.field.context import ManagedContentContext
from managed_content_field.field.data import FieldDefinition, ItemMode, ItemType
from managed_content_field.field.forms import FormState
from managed_content_field.field.item import ManagedContentItemList
from managed_content_field.field.state import SlotState, WidgetState, WidgetStateStore
from managed_content_field.field.widget import ManagedContentWidget
from managed_content_field.lib.test_utils import TestCase
from managed_content_field.rest_api.v1.serializers import WidgetElementSerializer

User = get_user_model()

PAGES = FieldDefinition("items", label="Items", target_bundles=("page",))


class WidgetElementSerializerTestCase(TestCase):
    """
    Serializing a rendered widget for client-side renderers
    """
    @classmethod
    def setUpTestData(cls) -> None:
        entities_api.create_bundle("page", "Page")
        entities_api.create_bundle("landing", "Landing page")
        cls.staff = User.objects.create(username="staff", email="staff@example.com", is_staff=True)
        cls.learner = User.objects.create(username="learner", email="learner@example.com")

    def render(self, user, titles=("First", "Second"), form_state=None) -> dict:
        context = ManagedContentContext.from_settings(user)
        storage = context.storage
        items = ManagedContentItemList(context, PAGES, storage.create("landing", {"title": "Home"}))
        for title in titles:
            items.append_item(storage.save(storage.create("page", {"title": title})))
        element = ManagedContentWidget(PAGES, context).form(items, [], form_state or FormState())
        return WidgetElementSerializer(element).data

    def test_serialize(self) -> None:
        data = self.render(self.staff)

        assert data["field_name"] == "items"
        assert data["label"] == "Items"
        assert data["cardinality"] == -1
        assert data["items_count"] == 2
        assert data["ajax_wrapper_id"] == "items-add-more-wrapper"
        assert data["add_message"] is None
        assert list(data["header_actions"]) == ["collapse_all"]
        assert list(data["add_actions"]) == ["add_more_button_page", "revise", "clone"]

        slot = data["slots"][0]
        assert slot["key"] == 0
        assert slot["item_type"] == "item"
        assert slot["mode"] == "edit"
        assert slot["subform"] == "edit_entity"
        assert slot["entity_label"] == "First"
        assert slot["entity"]["bundle"] == "page"
        assert slot["entity"]["language"] == "en"
        assert not slot["entity"]["is_new"]
        assert slot["access_flags"] == {"create": False, "update": True, "delete": True, "can_edit": True}
        assert slot["path"] == ["items", 0]

        collapse = slot["actions"]["collapse_button"]
        assert collapse["name"] == "items_0_collapse"
        assert collapse["handler"] == "item_action"
        assert collapse["content_mode"] == "closed"
        assert collapse["key"] == 0
        assert collapse["limit_validation_errors"] == [["items", 0]]
        assert list(slot["dropdown_actions"]) == ["remove_button"]

    def test_inaccessible_buttons_are_left_out(self) -> None:
        data = self.render(self.learner)

        slot = data["slots"][0]
        assert slot["actions"] == {}
        assert slot["dropdown_actions"] == {}
        assert slot["info_icons"] == {
            "edit_disabled": {
                "name": "lock",
                "message": "You are not allowed to edit or remove this Content.",
                "access": True,
            },
        }
        assert data["add_actions"] == {}
        assert data["add_message"] == "You did not add any Content types yet."

    def test_picker_without_content(self) -> None:
        form_state = FormState()
        widget_state = WidgetState(items_count=1, real_item_count=1, order=[0], next_key=1)
        widget_state.slots[0] = SlotState(item_type=ItemType.REVISE, mode=ItemMode.EDIT)
        WidgetStateStore.set([], "items", form_state, widget_state)

        data = self.render(self.staff, titles=(), form_state=form_state)

        slot = data["slots"][0]
        assert slot["item_type"] == "revise"
        assert slot["subform"] == "reference_picker"
        assert slot["type_label"] == "Revise"
        assert slot["entity"] is None
        assert slot["picker_value"] is None
