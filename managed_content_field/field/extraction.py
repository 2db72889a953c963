"""
Turning a submitted widget back into field values.

The widget validates picker slots (loading the picked content), copies the
inline sub-form values into the entities it holds, and produces one value per
visible slot, in submitted order, for ``ManagedContentItemList.set_value``.
"""
from __future__ import annotations

from logging import getLogger
from typing import Any, Sequence

from managed_content_field.apps.entities.access import Operation
from managed_content_field.apps.entities.data import ContentEntity
from managed_content_field.apps.entities.exceptions import MissingEntity

from .data import ItemMode, ItemType, SaveAction
from .display import EntityFormDisplay
from .forms import FormState
from .item import ManagedContentItemList
from .state import SlotState, WidgetState, WidgetStateStore

logger = getLogger(__name__)

# User input key of the header buttons; never a slot.
HEADER_ACTIONS_KEY = "header_actions"


class FormValueExtractionMixin:
    """
    Validation and value extraction for ``ManagedContentWidget``.

    Relies on the widget's ``field_definition``, ``context``, ``settings``,
    ``is_translating`` and its path helpers.
    """

    def can_edit_entity(self, entity: ContentEntity) -> bool:
        """
        Update access, or create access for content that isn't saved yet.

        Sub-form input for content the user can't edit is ignored.
        """
        access = self.context.access
        if access.check(entity, Operation.UPDATE):
            return True
        return entity.is_new and access.check(entity, Operation.CREATE)

    # Validation

    def element_validate(
        self,
        widget_state: WidgetState,
        key: int,
        form_state: FormState,
        parents: Sequence = (),
    ) -> None:
        """
        Validate one slot.

        Picker slots without content load the latest revision of the picked
        id and check that the user may revise (or clone) it. Item slots being
        edited get their sub-form values copied into the entity, if the user
        may edit it.
        """
        slot = widget_state.slot(key)
        path = self.slot_path(parents, key)

        if slot.mode != ItemMode.EDIT or slot.item_type != ItemType.ITEM:
            if slot.item_type in (ItemType.REVISE, ItemType.CLONE) and slot.entity is None:
                self._validate_picked_entity(slot, path, form_state)
        elif slot.entity is not None and self.can_edit_entity(slot.entity):
            self._extract_subform(slot, path, form_state)

    def _validate_picked_entity(self, slot: SlotState, path: list, form_state: FormState) -> None:
        picker_path = [*path, "subform", "entity_id"]
        value = form_state.get_user_input(picker_path)
        if value in (None, ""):
            if slot.mode == ItemMode.EDIT:
                form_state.set_error(picker_path, "Content field is required.")
            return

        try:
            entity_id = int(value)
        except (TypeError, ValueError):
            entity_id = None
        entity = self.context.storage.load_latest_revision(entity_id) if entity_id else None
        if entity is None:
            error = MissingEntity(f"The referenced content ({value}) does not exist.")
            form_state.set_error(picker_path, error.message)
            return

        access = self.context.access
        if slot.item_type == ItemType.REVISE and not access.check(entity, Operation.UPDATE):
            form_state.set_error(picker_path, "You do not have access to revise the content.")
        elif slot.item_type == ItemType.REVISE and not self.context.resolver.can_revise(entity):
            form_state.set_error(picker_path, "The content is already being revised or created.")
        elif slot.item_type == ItemType.CLONE and not access.check(entity, Operation.CREATE):
            form_state.set_error(picker_path, "You do not have access to clone the content.")
        else:
            slot.entity = entity

    def _extract_subform(self, slot: SlotState, path: list, form_state: FormState):
        """
        Copy the submitted sub-form into the slot entity and report its errors.
        """
        subform_path = [*path, "subform"]
        data = form_state.get_user_input(subform_path)
        if not isinstance(data, dict):
            # The sub-form was not part of this submission.
            return None
        entity = slot.entity
        display = slot.display or self.get_form_display(entity)
        form = display.extract_form_values(entity, data, **self.subform_options(entity))
        for name, messages in form.errors.items():
            form_state.set_error([*subform_path, name], messages[0])
        return form

    def multiple_element_validate(self, widget_state: WidgetState, form_state: FormState, parents: Sequence = ()) -> None:
        if self.field_definition.required and widget_state.real_item_count < 1:
            form_state.set_error(
                self.field_path(parents),
                f"{self.field_definition.get_label()} field is required.",
            )

    # Values

    def is_submitted_slot(self, slot: SlotState) -> bool:
        """
        Whether a slot was rendered, and so has a value.
        """
        if slot.item_type is None:
            return False
        if slot.mode == ItemMode.REMOVE:
            return slot.item_type == ItemType.ITEM and slot.entity is not None and not slot.entity.is_new
        return True

    def massage_form_values(
        self,
        widget_state: WidgetState,
        form_state: FormState,
        parents: Sequence = (),
    ) -> list[dict[str, Any]]:
        """
        One field value per submitted slot, in submitted ``_weight`` order.
        """
        submitted = form_state.get_user_input(self.field_path(parents))
        if not isinstance(submitted, dict):
            submitted = {}

        keys = [key for key, slot in widget_state.iter_slots() if self.is_submitted_slot(slot)]
        keys.sort(key=lambda key: self._submitted_weight(submitted, key, widget_state.slot(key).weight))

        values = []
        for key in keys:
            slot = widget_state.slot(key)
            entity = slot.entity
            value: dict[str, Any] = {"target_id": None, "action": None, "modified": False}

            if entity is not None and slot.item_type == ItemType.ITEM and slot.mode != ItemMode.REMOVE:
                path = self.slot_path(parents, key)
                display = slot.display or self.get_form_display(entity)
                if slot.mode == ItemMode.EDIT and self.can_edit_entity(entity):
                    self._extract_subform(slot, path, form_state)
                    slot.show_warning = entity.is_new or self.has_changed(entity)

                entity = self.switch_language(entity, form_state.langcode)

                # Closed content is saved too, so it must be valid. Without
                # rendered sub-fields the errors go on the slot itself.
                if slot.mode != ItemMode.EDIT and form_state.limit_validation_errors is None:
                    for message in display.validate_entity(entity):
                        form_state.set_error(path, message)

                value.update(entity=entity, target_id=entity.id, modified=slot.show_warning)
            elif entity is not None:
                action = slot.mode if slot.item_type == ItemType.ITEM else slot.item_type
                value.update(entity=entity, target_id=entity.id, action=SaveAction(action))
            values.append(value)
        return values

    @staticmethod
    def _submitted_weight(submitted: dict, key: int, default: int) -> int:
        entry = submitted.get(key, submitted.get(str(key)))
        if isinstance(entry, dict):
            try:
                return int(entry.get("_weight", default))
            except (TypeError, ValueError):
                pass
        return default

    def extract_form_values(
        self,
        items: ManagedContentItemList,
        form_state: FormState,
        parents: Sequence = (),
    ) -> ManagedContentItemList:
        """
        Validate the submitted widget and write its values into ``items``.

        Check ``form_state.has_errors()`` before saving the host.
        """
        field_path = self.field_path(parents)
        submitted = form_state.get_user_input(field_path)
        if isinstance(submitted, dict):
            submitted.pop(HEADER_ACTIONS_KEY, None)

        widget_state = WidgetStateStore.get(parents, self.field_definition.name, form_state)
        if widget_state is None:
            # The widget was never rendered: keep the stored value.
            return items

        self.init_is_translating(form_state, items.host)
        if form_state.limit_validation_errors is None:
            for key in list(widget_state.order):
                self.element_validate(widget_state, key, form_state, parents)
            self.multiple_element_validate(widget_state, form_state, parents)

        values = self.massage_form_values(widget_state, form_state, parents)
        form_state.set_value(field_path, values)
        items.set_value(values)
        items.filter_empty_items()
        if form_state.has_errors():
            logger.debug(f"Submitted {self.field_definition.name} has errors: {form_state.errors}")
        return items

    # Helpers shared with rendering

    def get_form_display(self, entity: ContentEntity) -> EntityFormDisplay:
        return EntityFormDisplay(entity.bundle, self.settings["form_display_mode"])

    def subform_options(self, entity: ContentEntity) -> dict[str, bool]:
        """
        Keyword arguments for building (or extracting) an entity sub-form.
        """
        bundle_settings = self.context.translation.get_bundle_translation_settings(entity.bundle.key)
        return {
            "translating": bool(self.is_translating),
            "hide_untranslatable": bundle_settings.untranslatable_fields_hide,
        }

    def switch_language(self, entity: ContentEntity, langcode: str | None) -> ContentEntity:
        """
        The handle of ``entity`` in ``langcode``.

        Existing translations are switched to. A new entity without one takes
        ``langcode`` as its language; persisted content keeps its own.
        """
        if not langcode or entity.language == langcode:
            return entity
        if entity.has_translation(langcode):
            return entity.get_translation(langcode)
        if entity.is_new:
            entity.set_langcode(langcode)
        return entity

    def has_changed(self, entity: ContentEntity) -> bool:
        """
        Whether ``entity`` differs from what is stored for it.
        """
        if entity.is_new:
            return True
        original = self.context.storage.load(entity.id)
        return original is None or original.to_array() != entity.to_array()
