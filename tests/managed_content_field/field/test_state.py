"""
Tests of the widget state: slots, insertion and bulk mode changes
"""
from __future__ import annotations

from managed_content_field.apps.entities.data import BundleDefinition, ContentEntity
from managed_content_field.field.data import Autocollapse, ItemMode, ItemType
from managed_content_field.field.forms import FormState
from managed_content_field.field.state import WidgetState, WidgetStateStore
from managed_content_field.lib.test_utils import TestCase

PAGE = BundleDefinition(key="page", label="Page")


def make_state(count: int, **kwargs) -> WidgetState:
    entities = [ContentEntity.create(PAGE, {"title": f"Page {i}"}, langcode="en") for i in range(count)]
    return WidgetState.for_items(entities, **kwargs)


class WidgetStateTestCase(TestCase):
    """
    Slot bookkeeping of WidgetState
    """
    def test_for_items(self) -> None:
        state = make_state(2, autocollapse=Autocollapse.ALL, ajax_wrapper_id="items-add-more-wrapper")
        assert state.items_count == 2
        assert state.real_item_count == 2
        assert state.order == [0, 1]
        assert state.next_key == 2
        assert state.autocollapse_default == Autocollapse.ALL
        assert state.slot(1).entity.get("title") == "Page 1"
        assert state.slot(1).weight == 1
        # Modes are decided when the widget renders.
        assert state.slot(0).mode is None

    def test_insert_in_the_middle(self) -> None:
        """
        Inserting never renumbers the other slots, only their weights.
        """
        state = make_state(3)
        user_input = {"0": {"_weight": 0}, "1": {"_weight": 1}, "2": {"_weight": 2, "subform": {"title": "x"}}}

        key = state.insert_slot(1, user_input)

        assert key == 3
        assert state.order == [0, 3, 1, 2]
        assert state.items_count == 4
        assert state.real_item_count == 4
        assert [state.slot(k).weight for k in state.order] == [0, 1, 2, 3]
        assert state.slot(1).entity.get("title") == "Page 1"
        assert state.slot(3).entity is None
        assert state.position_of(1) == 2
        assert state.key_at(1) == 3

        assert user_input["1"]["_weight"] == 2
        assert user_input["2"] == {"_weight": 3, "subform": {"title": "x"}}
        assert user_input[3] == {"_weight": 1}

    def test_append(self) -> None:
        state = make_state(2)
        assert state.insert_slot() == 2
        assert state.insert_slot(10) == 3
        assert state.order == [0, 1, 2, 3]
        assert state.slot(3).weight == 3
        assert state.original_delta_map == {0: 0, 1: 1, 2: 2, 3: 3}

    def test_discard(self) -> None:
        state = make_state(3)
        state.discard_slot(1)
        assert state.order == [0, 2]
        assert state.items_count == 2
        assert 1 not in state.slots
        assert state.key_at(5) is None

    def test_autocollapse(self) -> None:
        state = make_state(3, autocollapse=Autocollapse.ALL)
        state.slot(0).mode = ItemMode.EDIT
        state.slot(1).mode = ItemMode.REMOVE
        state.slot(2).mode = ItemMode.EDIT

        state.autocollapse_slots()
        assert [state.slot(k).mode for k in state.order] == [ItemMode.CLOSED, ItemMode.REMOVE, ItemMode.CLOSED]

    def test_autocollapse_disabled(self) -> None:
        state = make_state(2)
        state.slot(0).mode = ItemMode.EDIT
        state.autocollapse_slots()
        assert state.slot(0).mode == ItemMode.EDIT

    def test_bulk_set_mode(self) -> None:
        """
        Edit all suspends autocollapse, collapse all brings it back.
        """
        state = make_state(3, autocollapse=Autocollapse.ALL)
        for key in state.order:
            state.slot(key).item_type = ItemType.ITEM
            state.slot(key).mode = ItemMode.CLOSED
        state.slot(2).mode = ItemMode.REMOVE

        state.bulk_set_mode(ItemMode.EDIT)
        assert [state.slot(k).mode for k in state.order] == [ItemMode.EDIT, ItemMode.EDIT, ItemMode.REMOVE]
        assert state.autocollapse == Autocollapse.NONE
        assert state.pending_bulk_action == ItemMode.EDIT

        state.bulk_set_mode(ItemMode.CLOSED, show_warning=True)
        assert state.slot(0).mode == ItemMode.CLOSED
        assert state.slot(0).show_warning
        assert not state.slot(2).show_warning
        assert state.autocollapse == Autocollapse.ALL

    def test_bulk_edit_skips_locked_slots(self) -> None:
        state = make_state(3)
        for key in state.order:
            state.slot(key).item_type = ItemType.ITEM
            state.slot(key).mode = ItemMode.CLOSED

        state.bulk_set_mode(ItemMode.EDIT, can_open=lambda slot: slot is not state.slot(1))
        assert [state.slot(k).mode for k in state.order] == [ItemMode.EDIT, ItemMode.CLOSED, ItemMode.EDIT]

        # Closing ignores the filter.
        state.bulk_set_mode(ItemMode.CLOSED, can_open=lambda slot: False)
        assert [state.slot(k).mode for k in state.order] == [ItemMode.CLOSED] * 3

    def test_bulk_set_mode_without_autocollapse(self) -> None:
        state = make_state(1)
        state.bulk_set_mode(ItemMode.CLOSED)
        assert state.autocollapse == Autocollapse.NONE


class WidgetStateStoreTestCase(TestCase):
    """
    Widget state lives in the form storage, per parents and field
    """
    def test_nested_forms(self) -> None:
        form_state = FormState()
        outer = make_state(1)
        inner = make_state(2)
        WidgetStateStore.set([], "items", form_state, outer)
        WidgetStateStore.set(["items", 0, "subform"], "items", form_state, inner)

        assert WidgetStateStore.get([], "items", form_state) is outer
        assert WidgetStateStore.get(["items", 0, "subform"], "items", form_state) is inner
        assert WidgetStateStore.get([], "related", form_state) is None
        assert form_state.storage["field_storage"]["#parents"]["#fields"]["items"] is outer
