"""
The managed content widget.

The widget renders a managed content field as a list of slots. Each slot holds
either an entity edited inline (``item``) or a picker for existing content that
will be revised or cloned when the host is saved. Slots are opened, collapsed,
removed and restored with per-slot buttons; the field header has "collapse
all" / "edit all" buttons and the footer has the "add" buttons.

Rendering (``form``) only reads the widget state and records what it decided.
Every button press goes through ``submit``, which validates the slots the
button is limited to and then dispatches to the button's handler. A final
submission of the host form goes through ``extract_form_values``.
"""
from __future__ import annotations

import re
from logging import getLogger
from typing import Any, Callable, Sequence

from django import forms
from django.core.exceptions import PermissionDenied

from managed_content_field.apps.entities.access import Operation
from managed_content_field.apps.entities.data import ContentEntity
from managed_content_field.conf import get_setting

from .context import ManagedContentContext
from .data import (
    Autocollapse,
    EditMode,
    FieldDefinition,
    ItemMode,
    ItemType,
    PendingAction,
    SubformKind,
    SubmitHandler,
)
from .display import ReferencePickerForm
from .elements import AccessFlags, ActionButton, InfoIcon, SlotElement, WidgetElement, button_name
from .extraction import FormValueExtractionMixin
from .forms import FormState
from .item import ManagedContentItemList
from .signals import WIDGET_ACTIONS_ALTER
from .state import SlotState, WidgetState, WidgetStateStore

logger = getLogger(__name__)

EDIT_MODE_OPTIONS = {
    EditMode.OPEN: "Open",
    EditMode.CLOSED: "Closed",
}

AUTOCOLLAPSE_OPTIONS = {
    Autocollapse.NONE: "None",
    Autocollapse.ALL: "All",
}

REFERENCE_LABELS = {
    ItemType.REVISE: "Revise",
    ItemType.CLONE: "Clone",
}


def html_id(*parts: Any) -> str:
    """
    Id of a markup wrapper, e.g. ``items-add-more-wrapper``.
    """
    return re.sub(r"[^a-z0-9-]+", "-", "-".join(str(part) for part in parts).lower()).strip("-")


def resolve_subform(item_type: ItemType | None, mode: ItemMode, entity: ContentEntity | None) -> SubformKind:
    """
    Which sub-form a slot shows.

    ``NONE`` means the slot is not shown at all. Removed content only gets a
    confirmation (with a restore button) when it exists in storage; removed
    pickers and removed new content are dropped.
    """
    if item_type is None:
        return SubformKind.NONE
    if mode == ItemMode.REMOVE:
        if item_type == ItemType.ITEM and entity is not None and not entity.is_new:
            return SubformKind.REMOVE_CONFIRMATION
        return SubformKind.NONE
    if mode == ItemMode.CLOSED:
        return SubformKind.COLLAPSED
    if item_type == ItemType.ITEM:
        return SubformKind.EDIT_ENTITY
    return SubformKind.REFERENCE_PICKER


class WidgetSettingsForm(forms.Form):
    """
    Settings of a managed content widget, as shown to site builders.
    """
    edit_mode = forms.ChoiceField(
        label="Edit mode",
        choices=list(EDIT_MODE_OPTIONS.items()),
        help_text="The mode the content is in by default.",
    )
    autocollapse = forms.ChoiceField(
        label="Autocollapse",
        choices=list(AUTOCOLLAPSE_OPTIONS.items()),
        help_text="When content is opened for editing, close others.",
    )
    form_display_mode = forms.CharField(
        label="Form display mode",
        max_length=255,
        help_text="The form display mode to use when rendering the content form.",
    )


class ManagedContentWidget(FormValueExtractionMixin):
    """
    Inline editor for one managed content field.

    One instance serves one request. ``is_translating`` is worked out from
    the host the first time the widget renders or extracts values.
    """

    def __init__(
        self,
        field_definition: FieldDefinition,
        context: ManagedContentContext,
        settings: dict | None = None,
    ):
        self.field_definition = field_definition
        self.context = context
        merged = {
            **self.default_settings(),
            **(get_setting("WIDGET") or {}),
            **(settings or {}),
        }
        # "preview" was the old name of the closed mode.
        if merged["edit_mode"] == "preview":
            merged["edit_mode"] = EditMode.CLOSED
        merged["edit_mode"] = EditMode(merged["edit_mode"])
        merged["autocollapse"] = Autocollapse(merged["autocollapse"])
        self.settings = merged
        self.is_translating: bool | None = None
        self._allowed_types: dict[str, str] | None = None
        self._accessible_options: dict[str, str] | None = None
        self._submit_handlers: dict[SubmitHandler, Callable] = {
            SubmitHandler.ADD_MORE: self.add_more_submit,
            SubmitHandler.ADD_REVISE: self.add_revise_submit,
            SubmitHandler.ADD_CLONE: self.add_clone_submit,
            SubmitHandler.ITEM_ACTION: self.action_item_submit,
            SubmitHandler.CHANGE_ALL_EDIT_MODE: self.change_all_edit_mode_submit,
        }

    def __repr__(self):
        return f"<{self.__class__.__name__} {self.field_definition.name}>"

    # Settings

    @staticmethod
    def default_settings() -> dict[str, Any]:
        return {
            "title": "Content",
            "edit_mode": EditMode.OPEN,
            "autocollapse": Autocollapse.NONE,
            "form_display_mode": "default",
        }

    def settings_form(self, data: dict | None = None) -> WidgetSettingsForm:
        return WidgetSettingsForm(data, initial={
            "edit_mode": self.settings["edit_mode"],
            "autocollapse": self.settings["autocollapse"],
            "form_display_mode": self.settings["form_display_mode"],
        })

    def settings_summary(self) -> list[str]:
        """
        One line per setting, e.g. ``["Edit mode: Open", ...]``.

        Autocollapse only matters (and is only listed) when content starts
        closed.
        """
        summary = [f"Edit mode: {EDIT_MODE_OPTIONS[self.settings['edit_mode']]}"]
        if self.settings["edit_mode"] == EditMode.CLOSED:
            summary.append(f"Autocollapse: {AUTOCOLLAPSE_OPTIONS[self.settings['autocollapse']]}")
        summary.append(f"Form display mode: {self.settings['form_display_mode']}")
        return summary

    @property
    def title(self) -> str:
        return self.settings["title"]

    @property
    def default_item_mode(self) -> ItemMode:
        return ItemMode.EDIT if self.settings["edit_mode"] == EditMode.OPEN else ItemMode.CLOSED

    # Paths

    def field_path(self, parents: Sequence = ()) -> list:
        return [*parents, self.field_definition.name]

    def slot_path(self, parents: Sequence, key: int) -> list:
        return [*parents, self.field_definition.name, key]

    # Bundles

    def get_allowed_types(self) -> dict[str, str]:
        """
        Labels of the bundles this field may reference, by key.
        """
        if self._allowed_types is None:
            target_bundles = self.field_definition.target_bundles
            self._allowed_types = {
                key: label
                for key, label in self.context.storage.bundle_labels().items()
                if not target_bundles or key in target_bundles
            }
        return self._allowed_types

    def get_accessible_options(self) -> dict[str, str]:
        """
        The allowed bundles the current user may create content of.
        """
        if self._accessible_options is None:
            self._accessible_options = {
                key: label
                for key, label in self.get_allowed_types().items()
                if self.context.access.create_access(key)
            }
        return self._accessible_options

    # Translation and access helpers

    def init_is_translating(self, form_state: FormState, host: ContentEntity | None) -> None:
        """
        Work out once whether the host is being translated.

        That is the case when a translation is being added, or when the form
        language is a translation of the host rather than its original.
        """
        if self.is_translating is not None:
            return
        self.is_translating = False
        if host is None or not self.context.translation.is_translatable(host.bundle.key):
            return
        if form_state.content_translation:
            self.is_translating = True
        langcode = form_state.langcode
        if langcode and host.has_translation(langcode) and langcode != host.default_langcode:
            self.is_translating = True

    def allow_reference_changes(self) -> bool:
        """
        Content can only be added or removed in the original language.
        """
        return not self.is_translating

    def remove_button_access(self, entity: ContentEntity) -> bool:
        if not self.context.access.check(entity, Operation.DELETE) and not entity.is_new:
            return False
        if not self.allow_reference_changes():
            return False
        # A required single-value field with one allowed bundle can't be emptied.
        field_definition = self.field_definition
        if field_definition.required and field_definition.cardinality == 1 and len(self.get_allowed_types()) == 1:
            return False
        return True

    def can_open_slot(self, slot: SlotState) -> bool:
        """
        Whether the user may put a slot in edit mode.

        Empty pickers can always be opened.
        """
        entity = slot.entity
        if entity is None:
            return True
        if slot.item_type == ItemType.ITEM:
            return self.can_edit_entity(entity)
        return self.context.access.check(entity, Operation.UPDATE)

    def button_allowed(self, button: ActionButton, widget_state: WidgetState) -> bool:
        """
        Whether the user may press ``button``.

        Slot buttons are checked again against the slot they act on, with the
        same rules used to render them.
        """
        if not button.access:
            return False
        if SubmitHandler(button.handler) != SubmitHandler.ITEM_ACTION:
            return True
        if button.key not in widget_state.order:
            return False
        slot = widget_state.slot(button.key)
        entity = slot.entity
        if entity is None:
            return True
        if slot.mode == ItemMode.REMOVE:
            return self.context.access.check(entity, Operation.UPDATE)
        if button.content_mode == ItemMode.REMOVE:
            return self.remove_button_access(entity)
        return self.can_open_slot(slot)

    def get_moderation_label(self, entity: ContentEntity) -> str:
        moderation = self.context.moderation
        if moderation is not None and moderation.is_moderated_entity(entity):
            return moderation.get_state_label(entity) or ""
        return "Published" if entity.published else "Unpublished"

    # Rendering

    def form(
        self,
        items: ManagedContentItemList,
        parents: Sequence,
        form_state: FormState,
        host: ContentEntity | None = None,
    ) -> WidgetElement:
        """
        Build the widget for ``items``.

        The first render creates the widget state from the field value; later
        renders (rebuilds after a button press) reuse it.
        """
        field_name = self.field_definition.name
        widget_state = WidgetStateStore.get(parents, field_name, form_state)
        if widget_state is None:
            widget_state = WidgetState.for_items(
                [item.entity for item in items],
                autocollapse=self.settings["autocollapse"],
            )
        widget_state.autocollapse_default = self.settings["autocollapse"]
        widget_state.ajax_wrapper_id = html_id(*parents, field_name, "add-more-wrapper")
        WidgetStateStore.set(parents, field_name, form_state, widget_state)

        self.init_is_translating(form_state, host if host is not None else items.host)

        element = WidgetElement(
            field_name=field_name,
            label=self.field_definition.get_label(),
            description=self.field_definition.description,
            required=self.field_definition.required,
            cardinality=self.field_definition.cardinality,
            ajax_wrapper_id=widget_state.ajax_wrapper_id,
            is_translating=bool(self.is_translating),
            allow_reference_changes=self.allow_reference_changes(),
            path=self.field_path(parents),
        )

        for key in list(widget_state.order):
            slot_element = self.form_element(widget_state, key, form_state, parents)
            if slot_element is not None:
                element.slots.append(slot_element)

        # Hidden slots don't count.
        widget_state.real_item_count = len(element.slots)
        element.items_count = widget_state.items_count
        element.real_item_count = widget_state.real_item_count

        self.build_header_actions(element, widget_state, parents)

        cardinality = self.field_definition.cardinality
        if (
            (self.field_definition.is_unlimited or widget_state.real_item_count < cardinality)
            and not form_state.programmed
            and self.allow_reference_changes()
        ):
            self.build_add_actions(element, parents)

        return element

    def form_element(
        self,
        widget_state: WidgetState,
        key: int,
        form_state: FormState,
        parents: Sequence = (),
    ) -> SlotElement | None:
        """
        Build one slot, or return None when the slot is hidden.

        A slot without a type takes the pending add action of the widget if
        it is the slot that action made room for.
        """
        slot = widget_state.slot(key)
        entity = slot.entity
        item_type = slot.item_type
        mode = slot.mode or self.default_item_mode

        if entity is not None and item_type is None:
            item_type = ItemType.ITEM

        if item_type is None and widget_state.pending_key == key:
            match widget_state.pending_action:
                case PendingAction.REVISE | PendingAction.CLONE:
                    item_type = ItemType(widget_state.pending_action)
                    mode = ItemMode.EDIT
                case PendingAction.CREATE if widget_state.selected_bundle:
                    item_type = ItemType.ITEM
                    mode = ItemMode.EDIT
                    entity = self.context.storage.create(
                        widget_state.selected_bundle,
                        langcode=form_state.langcode,
                        created_by_id=getattr(self.context.access.user, "id", None),
                    )
            widget_state.pending_action = None
            widget_state.pending_key = None
            widget_state.selected_bundle = None

        slot.entity = entity
        slot.item_type = item_type
        slot.mode = mode

        subform = resolve_subform(item_type, mode, entity)
        if subform == SubformKind.NONE:
            if mode == ItemMode.REMOVE:
                # Nothing stored to restore: forget the slot.
                widget_state.discard_slot(key)
                logger.debug(f"Discarded removed slot {key} of {self.field_definition.name}")
            return None

        path = self.slot_path(parents, key)
        element = SlotElement(
            key=key,
            position=widget_state.position_of(key),
            item_type=item_type,
            mode=mode,
            subform=subform,
            entity=entity,
            weight=self._submitted_weight(
                form_state.get_user_input(self.field_path(parents)) or {}, key, slot.weight,
            ),
            path=path,
        )

        if subform == SubformKind.REMOVE_CONFIRMATION:
            self.form_remove_entity(element, slot, widget_state, form_state)
        elif item_type == ItemType.ITEM:
            self.form_edit_entity(element, slot, widget_state, form_state)
        else:
            self.form_reference_entity(element, slot, widget_state, form_state)
        return element

    def form_edit_entity(
        self,
        element: SlotElement,
        slot: SlotState,
        widget_state: WidgetState,
        form_state: FormState,
    ) -> None:
        """
        Fill in a slot whose entity is edited inline.

        ``element.mode`` may differ from the stored slot mode here: a host
        translation opens every slot on first display, and slots with
        nothing translatable are kept closed while translating.
        """
        entity = slot.entity
        langcode = form_state.langcode or entity.language
        translation = self.context.translation

        if not self.is_translating:
            entity = self.switch_language(entity, langcode)
        else:
            if not form_state.is_rebuilding() and form_state.content_translation:
                element.mode = ItemMode.EDIT

            if not entity.has_translation(langcode):
                source = (form_state.content_translation or {}).get("source")
                source_langcode = source or entity.language
                if entity.has_translation(source_langcode):
                    entity = entity.get_translation(source_langcode)
                if translation.is_translatable(entity.bundle.key):
                    added = entity.add_translation(langcode)
                    translation.get_translation_metadata(added).set_source(entity.language)
            if translation.is_translatable(entity.bundle.key):
                entity = entity.get_translation(langcode)
        slot.entity = entity
        element.entity = entity

        display = self.get_form_display(entity)
        translating_force_close = False
        bundle_settings = translation.get_bundle_translation_settings(entity.bundle.key)
        if bundle_settings.untranslatable_fields_hide and self.is_translating:
            translating_force_close = not display.has_translatable_components()
            if translating_force_close:
                element.mode = ItemMode.CLOSED
        element.subform = resolve_subform(ItemType.ITEM, element.mode, entity)

        access = self.context.access
        delete_access = access.check(entity, Operation.DELETE) or entity.is_new
        update_access = access.check(entity, Operation.UPDATE)
        create_access = access.check(entity, Operation.CREATE) and entity.is_new
        element.access_flags = AccessFlags(create=create_access, update=update_access, delete=delete_access)
        can_edit = element.access_flags.can_edit

        element.type_label = entity.bundle.label
        widget_actions: dict[str, dict] = {"actions": {}, "dropdown_actions": {}}
        info: dict[str, InfoIcon] = {}

        if element.mode != ItemMode.REMOVE:
            widget_actions["dropdown_actions"]["remove_button"] = self.get_remove_button(
                element, widget_state, self.remove_button_access(entity),
            )

        if element.mode == ItemMode.EDIT:
            widget_actions["actions"]["collapse_button"] = self.get_collapse_button(
                element, widget_state, can_edit and not translating_force_close,
            )
        else:
            widget_actions["actions"]["edit_button"] = self.get_edit_button(
                element, widget_state, can_edit and not translating_force_close,
            )
            if slot.show_warning:
                info["changed"] = InfoIcon("changed", f"You have unsaved changes on this {self.title} item.")

        if not update_access and not create_access:
            widget_actions["actions"]["edit_disabled"] = InfoIcon(
                "lock", f"You are not allowed to edit or remove this {self.title}.",
            )

        if not update_access and delete_access and not create_access:
            info["edit"] = InfoIcon("edit-disabled", f"You are not allowed to edit this {self.title}.")
        elif not delete_access and update_access:
            info["remove"] = InfoIcon("delete-disabled", f"You are not allowed to remove this {self.title}.")

        self.get_delta_actions(element, slot, widget_state, form_state, widget_actions)

        can_view = access.check(entity, Operation.VIEW)
        element.entity_label = entity.label if (update_access or can_view) else ""
        if update_access or can_view:
            element.moderation_label = self.get_moderation_label(entity)

        if element.mode == ItemMode.EDIT and can_edit:
            element.form = display.build_form(entity, **self.subform_options(entity))

        element.info_icons.update(info)
        element.subform_access = can_edit
        slot.display = display

    def form_reference_entity(
        self,
        element: SlotElement,
        slot: SlotState,
        widget_state: WidgetState,
        form_state: FormState,
    ) -> None:
        """
        Fill in a "revise" or "clone" slot.
        """
        entity = slot.entity
        access = self.context.access
        element.type_label = REFERENCE_LABELS[element.item_type]
        widget_actions: dict[str, dict] = {"actions": {}, "dropdown_actions": {}}

        widget_actions["dropdown_actions"]["remove_button"] = self.get_remove_button(
            element, widget_state, self.remove_button_access(entity) if entity is not None else True,
        )
        can_update = access.check(entity, Operation.UPDATE) if entity is not None else True
        if element.mode == ItemMode.EDIT:
            widget_actions["actions"]["collapse_button"] = self.get_collapse_button(element, widget_state, can_update)
        else:
            widget_actions["actions"]["edit_button"] = self.get_edit_button(element, widget_state, can_update)

        if slot.show_warning:
            element.info_icons["changed"] = InfoIcon(
                "changed", f"You have unsaved changes on this {self.title} item.",
            )

        self.get_delta_actions(element, slot, widget_state, form_state, widget_actions)

        if entity is not None:
            visible = can_update or access.check(entity, Operation.VIEW)
            element.entity_label = entity.label if visible else ""
            if visible:
                element.moderation_label = self.get_moderation_label(entity)

        if element.mode == ItemMode.EDIT:
            element.picker_value = entity.id if entity is not None else None
            element.form = ReferencePickerForm(initial={"entity_id": element.picker_value})

    def form_remove_entity(
        self,
        element: SlotElement,
        slot: SlotState,
        widget_state: WidgetState,
        form_state: FormState,
    ) -> None:
        """
        Fill in a slot whose stored content will be removed on save.
        """
        entity = slot.entity
        access = self.context.access
        element.type_label = "Remove"
        widget_actions: dict[str, dict] = {"actions": {}, "dropdown_actions": {}}
        widget_actions["actions"]["restore_button"] = self.get_restore_button(
            element, widget_state, access.check(entity, Operation.UPDATE),
        )

        self.get_delta_actions(element, slot, widget_state, form_state, widget_actions)

        if access.check(entity, Operation.UPDATE) or access.check(entity, Operation.VIEW):
            element.entity_label = entity.label
        element.picker_value = entity.id

    def get_delta_actions(
        self,
        element: SlotElement,
        slot: SlotState,
        widget_state: WidgetState,
        form_state: FormState,
        widget_actions: dict[str, dict],
    ) -> None:
        """
        Let receivers of WIDGET_ACTIONS_ALTER change the slot buttons, then
        attach them to the slot.
        """
        WIDGET_ACTIONS_ALTER.send(
            sender=self.__class__,
            widget_actions=widget_actions,
            context={
                "widget": self,
                "widget_state": widget_state,
                "key": element.key,
                "slot": element,
                "form_state": form_state,
                "entity": slot.entity,
                "is_translating": bool(self.is_translating),
                "allow_reference_changes": self.allow_reference_changes(),
            },
        )
        for name, action in widget_actions["actions"].items():
            self._attach(element, element.actions, name, action)
        for name, action in widget_actions["dropdown_actions"].items():
            self._attach(element, element.dropdown_actions, name, action)

    @staticmethod
    def _attach(element: SlotElement, target: dict, name: str, action: Any) -> None:
        # Info icons may be placed among the actions (e.g. by receivers).
        if isinstance(action, InfoIcon):
            element.info_icons[name] = action
        else:
            target[name] = action

    # Buttons

    def _slot_button(
        self,
        element: SlotElement,
        widget_state: WidgetState,
        action: str,
        label: str,
        **kwargs,
    ) -> ActionButton:
        return ActionButton(
            name=button_name(*element.path, action),
            label=label,
            handler=SubmitHandler.ITEM_ACTION,
            key=element.key,
            ajax_wrapper_id=widget_state.ajax_wrapper_id,
            parents=element.path[:-2],
            field_name=self.field_definition.name,
            **kwargs,
        )

    def get_restore_button(self, element: SlotElement, widget_state: WidgetState, accessible: bool) -> ActionButton:
        # Removed content may be invalid, so nothing is validated.
        return self._slot_button(
            element, widget_state, "restore", "Restore",
            content_mode=ItemMode.CLOSED,
            limit_validation_errors=[],
            access=accessible,
            weight=501,
        )

    def get_remove_button(self, element: SlotElement, widget_state: WidgetState, accessible: bool) -> ActionButton:
        return self._slot_button(
            element, widget_state, "remove", "Remove",
            content_mode=ItemMode.REMOVE,
            show_warning=True,
            limit_validation_errors=[],
            access=accessible,
            weight=501,
        )

    def get_collapse_button(self, element: SlotElement, widget_state: WidgetState, accessible: bool) -> ActionButton:
        return self._slot_button(
            element, widget_state, "collapse", "Collapse",
            content_mode=ItemMode.CLOSED,
            show_warning=True,
            limit_validation_errors=[list(element.path)],
            access=accessible,
            weight=1,
        )

    def get_edit_button(self, element: SlotElement, widget_state: WidgetState, accessible: bool) -> ActionButton:
        return self._slot_button(
            element, widget_state, "edit", "Edit",
            content_mode=ItemMode.EDIT,
            limit_validation_errors=[list(element.path)],
            access=accessible,
            weight=1,
        )

    def build_header_actions(self, element: WidgetElement, widget_state: WidgetState, parents: Sequence = ()) -> None:
        """
        "Collapse all" and "Edit all", once there is more than one slot.

        Whichever matches the current mode of the first slot goes in the
        dropdown; the other is the visible button.
        """
        if widget_state.real_item_count <= 1:
            return
        field_path = self.field_path(parents)
        collapse_all = ActionButton(
            name=button_name(*field_path, "collapse_all"),
            label="Collapse all",
            handler=SubmitHandler.CHANGE_ALL_EDIT_MODE,
            content_mode=ItemMode.CLOSED,
            show_warning=True,
            limit_validation_errors=[[*field_path, "collapse_all"]],
            ajax_wrapper_id=widget_state.ajax_wrapper_id,
            weight=-1,
            parents=list(parents),
            field_name=self.field_definition.name,
        )
        edit_all = ActionButton(
            name=button_name(*field_path, "edit_all"),
            label="Edit all",
            handler=SubmitHandler.CHANGE_ALL_EDIT_MODE,
            content_mode=ItemMode.EDIT,
            limit_validation_errors=[],
            ajax_wrapper_id=widget_state.ajax_wrapper_id,
            parents=list(parents),
            field_name=self.field_definition.name,
        )

        first_key = widget_state.key_at(0)
        mode = widget_state.slot(first_key).mode if first_key is not None else None
        if (mode or self.default_item_mode) == ItemMode.CLOSED:
            element.header_actions["edit_all"] = edit_all
            element.header_dropdown_actions["collapse_all"] = collapse_all
        else:
            element.header_actions["collapse_all"] = collapse_all
            element.header_dropdown_actions["edit_all"] = edit_all

    def build_add_actions(self, element: WidgetElement, parents: Sequence = ()) -> None:
        """
        One "Add <bundle>" button per creatable bundle, plus revise and clone.

        Without any creatable bundle there are no buttons, only a message.
        """
        options = self.get_accessible_options()
        if not options:
            if not self.get_allowed_types():
                element.add_message = f"You are not allowed to add any of the {self.title} types."
            else:
                element.add_message = f"You did not add any {self.title} types yet."
            return

        field_path = self.field_path(parents)
        common = {
            "limit_validation_errors": [[*field_path, "add_more"]],
            "ajax_wrapper_id": element.ajax_wrapper_id,
            "parents": list(parents),
            "field_name": self.field_definition.name,
        }
        for bundle_key, label in options.items():
            element.add_actions[f"add_more_button_{bundle_key}"] = ActionButton(
                name=button_name(*field_path, bundle_key, "add_more"),
                label=f"Add {label}",
                handler=SubmitHandler.ADD_MORE,
                bundle=bundle_key,
                **common,
            )
        element.add_actions["revise"] = ActionButton(
            name=button_name(*field_path, "revise"),
            label="Revise Content",
            handler=SubmitHandler.ADD_REVISE,
            **common,
        )
        element.add_actions["clone"] = ActionButton(
            name=button_name(*field_path, "clone"),
            label="Clone Content",
            handler=SubmitHandler.ADD_CLONE,
            **common,
        )

    # Submitting

    def submit(self, form_state: FormState, parents: Sequence = ()) -> bool:
        """
        Handle the button that submitted the form.

        Every slot is validated first, so open sub-forms keep what was typed
        in them. Only errors inside the button's validation limits count; on
        errors the handler doesn't run and False is returned. Otherwise the
        widget state is updated and a rebuild requested.

        Raises PermissionDenied for a button the user may not press, such as
        one rendered without access.
        """
        button = form_state.triggering_element
        if button is None:
            raise ValueError("The form was not submitted by a widget button.")
        field_name = self.field_definition.name
        widget_state = WidgetStateStore.get(parents, field_name, form_state)
        if widget_state is None:
            raise ValueError(f"Widget {field_name} must be rendered before it is submitted.")
        if not self.button_allowed(button, widget_state):
            logger.warning(f"Refused {button.name} on {field_name} for user {self.context.access.user}")
            raise PermissionDenied(f"You are not allowed to use {button.label}.")

        for key in list(widget_state.order):
            self.element_validate(widget_state, key, form_state, parents)
        if form_state.has_errors():
            logger.debug(f"{button.name} on {field_name} stopped by errors: {form_state.errors}")
            return False

        self._submit_handlers[SubmitHandler(button.handler)](button, widget_state, form_state, parents)
        WidgetStateStore.set(parents, field_name, form_state, widget_state)
        form_state.set_rebuild()
        return True

    def _prepare_delta_position(
        self,
        button: ActionButton,
        widget_state: WidgetState,
        form_state: FormState,
        parents: Sequence,
    ) -> int | None:
        """
        Make room for the slot an add button creates, if the field has room.
        """
        cardinality = self.field_definition.cardinality
        if not self.field_definition.is_unlimited and widget_state.real_item_count >= cardinality:
            return None

        field_path = self.field_path(parents)
        position = form_state.get_user_input([*field_path, "add_more"])
        if isinstance(position, dict):
            position = position.get("position")
        if position is None:
            position = button.position
        try:
            at = int(position) if position not in (None, "") else None
        except (TypeError, ValueError):
            at = None

        user_input = form_state.get_user_input(field_path)
        if not isinstance(user_input, dict):
            user_input = {}
            form_state.set_user_input(field_path, user_input)
        return widget_state.insert_slot(at, user_input)

    def add_more_submit(self, button: ActionButton, widget_state: WidgetState, form_state: FormState, parents: Sequence) -> None:
        key = self._prepare_delta_position(button, widget_state, form_state, parents)
        if key is None:
            return
        widget_state.pending_action = PendingAction.CREATE
        widget_state.pending_key = key
        widget_state.selected_bundle = button.bundle
        widget_state.autocollapse_slots()

    def _add_action_submit(
        self,
        action: PendingAction,
        button: ActionButton,
        widget_state: WidgetState,
        form_state: FormState,
        parents: Sequence,
    ) -> None:
        key = self._prepare_delta_position(button, widget_state, form_state, parents)
        if key is None:
            return
        widget_state.pending_action = action
        widget_state.pending_key = key
        widget_state.autocollapse_slots()

    def add_revise_submit(self, button, widget_state, form_state, parents) -> None:
        self._add_action_submit(PendingAction.REVISE, button, widget_state, form_state, parents)

    def add_clone_submit(self, button, widget_state, form_state, parents) -> None:
        self._add_action_submit(PendingAction.CLONE, button, widget_state, form_state, parents)

    def action_item_submit(self, button: ActionButton, widget_state: WidgetState, form_state: FormState, parents: Sequence) -> None:
        """
        Put the button's slot in the button's mode.

        Opening a slot first closes the others when autocollapse is on.
        """
        new_mode = ItemMode(button.content_mode)
        if new_mode == ItemMode.EDIT:
            widget_state.autocollapse_slots()
        slot = widget_state.slot(button.key)
        slot.mode = new_mode
        if button.show_warning:
            self.refresh_warning(slot)

    def change_all_edit_mode_submit(
        self,
        button: ActionButton,
        widget_state: WidgetState,
        form_state: FormState,
        parents: Sequence,
    ) -> None:
        widget_state.bulk_set_mode(ItemMode(button.content_mode), can_open=self.can_open_slot)
        if button.show_warning:
            for _key, slot in widget_state.iter_slots():
                if slot.mode != ItemMode.REMOVE:
                    self.refresh_warning(slot)

    def refresh_warning(self, slot: SlotState) -> None:
        """
        Flag a slot whose content differs from what is stored.

        Pickers always count as changed: their action only runs on save.
        """
        entity = slot.entity
        if slot.item_type == ItemType.ITEM and entity is not None:
            slot.show_warning = entity.is_new or self.has_changed(entity)
        elif slot.item_type is not None:
            slot.show_warning = True
