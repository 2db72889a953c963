"""
What the widget hands to a renderer: slots, buttons and info icons.

These are plain mutable objects so that receivers of ``WIDGET_ACTIONS_ALTER``
can change them before the form is rendered.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

from managed_content_field.apps.entities.data import ContentEntity

from .data import ItemMode, ItemType, SubformKind, SubmitHandler


def button_name(*parts: Any) -> str:
    """
    Machine name of a button, e.g. ``field_items_3_collapse``.

    Non alphanumeric characters (including dashes) become underscores.
    """
    raw = "_".join(str(part) for part in parts if part is not None and part != "")
    return re.sub(r"[^a-z0-9_]+", "_", raw.lower()).strip("_")


@dataclass
class ActionButton:
    """
    A submit button of the widget.

    ``content_mode`` is the mode the button puts its slot (or every slot) in.
    ``limit_validation_errors`` lists the element paths validated before the
    button's handler runs; an empty list validates nothing.
    """
    name: str
    label: str
    handler: SubmitHandler
    key: int | None = None
    content_mode: ItemMode | None = None
    show_warning: bool = False
    bundle: str | None = None
    position: int | None = None
    limit_validation_errors: list[list] | None = None
    ajax_wrapper_id: str = ""
    access: bool = True
    weight: int = 0
    parents: list = field(default_factory=list)
    field_name: str = ""


@dataclass
class InfoIcon:
    name: str
    message: str
    access: bool = True


@dataclass
class AccessFlags:
    create: bool = False
    update: bool = False
    delete: bool = False

    @property
    def can_edit(self) -> bool:
        return self.update or self.create


@dataclass
class SlotElement:
    """
    One rendered slot.

    ``access`` False means the slot is not shown at all. ``subform_access``
    False means the slot is shown but its sub-form is not.
    """
    key: int
    position: int
    item_type: ItemType | None
    mode: ItemMode
    subform: SubformKind
    entity: ContentEntity | None = None
    type_label: str = ""
    entity_label: str = ""
    moderation_label: str = ""
    access: bool = True
    subform_access: bool = True
    access_flags: AccessFlags = field(default_factory=AccessFlags)
    actions: dict[str, ActionButton] = field(default_factory=dict)
    dropdown_actions: dict[str, ActionButton] = field(default_factory=dict)
    info_icons: dict[str, InfoIcon] = field(default_factory=dict)
    form: Any = None
    picker_value: int | None = None
    weight: int = 0
    path: list = field(default_factory=list)

    def buttons(self) -> dict[str, ActionButton]:
        return {**self.actions, **self.dropdown_actions}


@dataclass
class WidgetElement:
    """
    The whole widget: slots in display order plus header and add actions.
    """
    field_name: str
    label: str
    description: str = ""
    required: bool = False
    cardinality: int = -1
    slots: list[SlotElement] = field(default_factory=list)
    header_actions: dict[str, ActionButton] = field(default_factory=dict)
    header_dropdown_actions: dict[str, ActionButton] = field(default_factory=dict)
    add_actions: dict[str, ActionButton] = field(default_factory=dict)
    add_message: str | None = None
    items_count: int = 0
    real_item_count: int = 0
    ajax_wrapper_id: str = ""
    is_translating: bool = False
    allow_reference_changes: bool = True
    path: list = field(default_factory=list)

    def slot(self, key: int) -> SlotElement | None:
        for slot in self.slots:
            if slot.key == key:
                return slot
        return None

    def find_button(self, name: str) -> ActionButton | None:
        """
        Any button of the widget by machine name.
        """
        buttons = {**self.header_actions, **self.header_dropdown_actions, **self.add_actions}
        for slot in self.slots:
            buttons.update(slot.buttons())
        for button in buttons.values():
            if button.name == name:
                return button
        return None
