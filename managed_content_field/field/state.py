"""
Per-form state of a managed content widget.

The state survives form rebuilds (it lives in the form storage) and records,
for every slot of the widget, which entity it holds and how it is displayed.

Slots are identified by a stable integer *key*. Keys of slots loaded from the
field value are their original deltas; keys of slots added later come from an
increasing counter. ``order`` maps display positions to keys, so inserting a
slot in the middle never renumbers the state or submitted values of the
others.
"""
from __future__ import annotations

from typing import Any, Callable, Sequence

from attrs import define, field

from managed_content_field.apps.entities.data import ContentEntity
from managed_content_field.lib.nested import get_nested_value, set_nested_value

from .data import Autocollapse, ItemMode, ItemType, PendingAction


@define
class SlotState:
    """
    State of one widget slot.
    """

    entity: ContentEntity | None = None
    item_type: ItemType | None = None
    # None until the widget first renders the slot with its default mode.
    mode: ItemMode | None = None
    show_warning: bool = False
    weight: int = 0
    # Form display used by the last render of an "item" slot.
    display: Any = None


@define
class WidgetState:
    """
    State of a whole widget.
    """

    items_count: int = 0
    real_item_count: int = 0
    slots: dict[int, SlotState] = field(factory=dict)
    order: list[int] = field(factory=list)
    next_key: int = 0
    autocollapse: Autocollapse = Autocollapse.NONE
    autocollapse_default: Autocollapse = Autocollapse.NONE
    pending_action: PendingAction | None = None
    # Slot the pending action applies to.
    pending_key: int | None = None
    selected_bundle: str | None = None
    pending_bulk_action: ItemMode | None = None
    ajax_wrapper_id: str = ""

    @classmethod
    def for_items(
        cls,
        entities: Sequence[ContentEntity | None],
        *,
        autocollapse: Autocollapse = Autocollapse.NONE,
        ajax_wrapper_id: str = "",
    ) -> WidgetState:
        """
        Initial state for a widget showing ``entities``.
        """
        state = cls(
            items_count=len(entities),
            real_item_count=len(entities),
            order=list(range(len(entities))),
            next_key=len(entities),
            autocollapse=autocollapse,
            autocollapse_default=autocollapse,
            ajax_wrapper_id=ajax_wrapper_id,
        )
        for key, entity in enumerate(entities):
            state.slots[key] = SlotState(entity=entity, weight=key)
        return state

    # Keys and positions

    def key_at(self, position: int) -> int | None:
        if 0 <= position < len(self.order):
            return self.order[position]
        return None

    def position_of(self, key: int) -> int | None:
        try:
            return self.order.index(key)
        except ValueError:
            return None

    @property
    def original_delta_map(self) -> dict[int, int]:
        """
        Display position to slot key.
        """
        return dict(enumerate(self.order))

    def slot(self, key: int) -> SlotState:
        if key not in self.slots:
            self.slots[key] = SlotState(weight=self.position_of(key) or 0)
        return self.slots[key]

    def iter_slots(self):
        """
        ``(key, slot)`` pairs in display order.
        """
        for key in self.order:
            yield key, self.slot(key)

    # Mutations

    def insert_slot(self, at: int | None = None, user_input: dict | None = None) -> int:
        """
        Make room for a new slot and return its key.

        Without a position (or with one past the visible slots) the slot is
        appended. Otherwise it is inserted at ``at`` and the submitted
        ``_weight`` of every slot in ``user_input`` is relabeled to its new
        position, so the next extraction sees the new order.
        """
        self.items_count += 1
        key = self.next_key
        self.next_key += 1

        if at is None or at >= self.real_item_count:
            self.order.append(key)
            self.slots[key] = SlotState(weight=len(self.order) - 1)
            return key

        self.real_item_count += 1
        at = max(at, 0)
        self.order.insert(at, key)
        self.slots[key] = SlotState(weight=at)
        for position, slot_key in enumerate(self.order):
            self.slots[slot_key].weight = position
            if user_input is not None:
                entry = get_nested_value(user_input, [slot_key])
                if not isinstance(entry, dict):
                    entry = {}
                    set_nested_value(user_input, [slot_key], entry)
                entry["_weight"] = position
        return key

    def discard_slot(self, key: int) -> None:
        """
        Forget a slot entirely. Used for never-saved slots that were removed.
        """
        if key in self.order:
            self.order.remove(key)
            self.items_count -= 1
        self.slots.pop(key, None)

    def autocollapse_slots(self) -> None:
        """
        Close every open slot, if autocollapse is enabled.
        """
        if self.real_item_count > 0 and self.autocollapse != Autocollapse.NONE:
            for _key, slot in self.iter_slots():
                if slot.mode == ItemMode.EDIT:
                    slot.mode = ItemMode.CLOSED

    def bulk_set_mode(
        self,
        mode: ItemMode,
        show_warning: bool = False,
        can_open: Callable[[SlotState], bool] | None = None,
    ) -> None:
        """
        Put every slot that isn't being removed in ``mode``.

        When opening, slots for which ``can_open`` returns False keep their
        mode. With autocollapse enabled by default, "edit all" suspends it and
        "collapse all" restores it.
        """
        for _key, slot in self.iter_slots():
            if slot.mode == ItemMode.REMOVE:
                continue
            if mode == ItemMode.EDIT and can_open is not None and not can_open(slot):
                continue
            slot.mode = mode
            if show_warning:
                slot.show_warning = True

        if self.autocollapse_default == Autocollapse.ALL:
            if mode == ItemMode.EDIT:
                self.autocollapse = Autocollapse.NONE
            elif mode == ItemMode.CLOSED:
                self.autocollapse = Autocollapse.ALL
        self.pending_bulk_action = mode


class WidgetStateStore:
    """
    Reads and writes WidgetState in the form storage.

    State is kept at ``["field_storage", "#parents", *parents, "#fields",
    field_name]`` so widgets of nested forms never collide.
    """

    @staticmethod
    def _path(parents: Sequence, field_name: str) -> list:
        return ["field_storage", "#parents", *parents, "#fields", field_name]

    @classmethod
    def get(cls, parents: Sequence, field_name: str, form_state) -> WidgetState | None:
        return form_state.get(cls._path(parents, field_name))

    @classmethod
    def set(cls, parents: Sequence, field_name: str, form_state, state: WidgetState) -> None:
        form_state.set(cls._path(parents, field_name), state)
