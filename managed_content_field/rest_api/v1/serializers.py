"""
Serializers for the managed content widget description.

A client-side renderer gets the widget as JSON: its slots with their buttons
and info icons, the header buttons and the add buttons. Forms are not part of
the description; renderers build sub-forms from the entity bundle.
"""
from __future__ import annotations

from rest_framework import serializers


class ActionButtonSerializer(serializers.Serializer):  # pylint: disable=abstract-method
    """
    Serializer for a widget ActionButton.
    """
    name = serializers.CharField()
    label = serializers.CharField()
    handler = serializers.CharField()
    key = serializers.IntegerField(allow_null=True)
    content_mode = serializers.CharField(allow_null=True)
    show_warning = serializers.BooleanField()
    bundle = serializers.CharField(allow_null=True)
    position = serializers.IntegerField(allow_null=True)
    limit_validation_errors = serializers.ListField(child=serializers.ListField(), allow_null=True)
    ajax_wrapper_id = serializers.CharField(allow_blank=True)
    access = serializers.BooleanField()
    weight = serializers.IntegerField()


class InfoIconSerializer(serializers.Serializer):  # pylint: disable=abstract-method
    name = serializers.CharField()
    message = serializers.CharField()
    access = serializers.BooleanField()


class AccessFlagsSerializer(serializers.Serializer):  # pylint: disable=abstract-method
    create = serializers.BooleanField()
    update = serializers.BooleanField()
    delete = serializers.BooleanField()
    can_edit = serializers.BooleanField(read_only=True)


class ContentEntitySerializer(serializers.Serializer):  # pylint: disable=abstract-method
    """
    The identity of the entity a slot holds.
    """
    id = serializers.IntegerField(allow_null=True)
    revision_id = serializers.IntegerField(allow_null=True)
    bundle = serializers.CharField(source="bundle.key")
    language = serializers.CharField()
    is_new = serializers.BooleanField()
    moderation_state = serializers.CharField(allow_blank=True)
    published = serializers.BooleanField()


def _serialize_buttons(buttons: dict) -> dict:
    """
    Serialize a ``{name: ActionButton}`` dict, keeping only shown buttons.
    """
    return {
        name: ActionButtonSerializer(button).data
        for name, button in buttons.items()
        if button.access
    }


class SlotElementSerializer(serializers.Serializer):  # pylint: disable=abstract-method
    """
    Serializer for one widget slot.

    Buttons the user has no access to are left out, so a renderer never has
    to decide whether to show a control.
    """
    key = serializers.IntegerField()
    position = serializers.IntegerField(allow_null=True)
    item_type = serializers.CharField(allow_null=True)
    mode = serializers.CharField()
    subform = serializers.CharField()
    entity = ContentEntitySerializer(allow_null=True)
    type_label = serializers.CharField(allow_blank=True)
    entity_label = serializers.CharField(allow_blank=True)
    moderation_label = serializers.CharField(allow_blank=True)
    subform_access = serializers.BooleanField()
    access_flags = AccessFlagsSerializer()
    actions = serializers.SerializerMethodField()
    dropdown_actions = serializers.SerializerMethodField()
    info_icons = serializers.SerializerMethodField()
    picker_value = serializers.IntegerField(allow_null=True)
    weight = serializers.IntegerField()
    path = serializers.ListField()

    def get_actions(self, obj) -> dict:
        return _serialize_buttons(obj.actions)

    def get_dropdown_actions(self, obj) -> dict:
        return _serialize_buttons(obj.dropdown_actions)

    def get_info_icons(self, obj) -> dict:
        return {
            name: InfoIconSerializer(icon).data
            for name, icon in obj.info_icons.items()
            if icon.access
        }


class WidgetElementSerializer(serializers.Serializer):  # pylint: disable=abstract-method
    """
    Serializer for a whole rendered widget.
    """
    field_name = serializers.CharField()
    label = serializers.CharField()
    description = serializers.CharField(allow_blank=True)
    required = serializers.BooleanField()
    cardinality = serializers.IntegerField()
    slots = SlotElementSerializer(many=True)
    header_actions = serializers.SerializerMethodField()
    header_dropdown_actions = serializers.SerializerMethodField()
    add_actions = serializers.SerializerMethodField()
    add_message = serializers.CharField(allow_null=True)
    items_count = serializers.IntegerField()
    real_item_count = serializers.IntegerField()
    ajax_wrapper_id = serializers.CharField(allow_blank=True)
    is_translating = serializers.BooleanField()
    allow_reference_changes = serializers.BooleanField()
    path = serializers.ListField()

    def get_header_actions(self, obj) -> dict:
        return _serialize_buttons(obj.header_actions)

    def get_header_dropdown_actions(self, obj) -> dict:
        return _serialize_buttons(obj.header_dropdown_actions)

    def get_add_actions(self, obj) -> dict:
        return _serialize_buttons(obj.add_actions)
