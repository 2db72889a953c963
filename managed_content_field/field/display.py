"""
Entity form displays: the Django forms used as inline sub-forms.

A display is built from a bundle and a form mode. It turns an entity into a
``forms.Form`` (``build_form``), copies submitted values back into the entity
(``extract_form_values``) and validates an entity that is not being edited
(``validate_entity``).
"""
from __future__ import annotations

from typing import Any

from django import forms

from managed_content_field.apps.entities.data import BundleDefinition, ContentEntity, FieldSpec, FieldType


def make_form_field(spec: FieldSpec) -> forms.Field:
    """
    The Django form field for one bundle field.
    """
    options: dict[str, Any] = {
        "label": spec.label,
        "required": spec.required,
        "help_text": spec.description,
    }
    match spec.type:
        case FieldType.TEXT:
            return forms.CharField(widget=forms.Textarea, **options)
        case FieldType.INTEGER:
            return forms.IntegerField(**options)
        case FieldType.BOOLEAN:
            return forms.BooleanField(**options)
        case _:
            return forms.CharField(max_length=255, **options)


class EntitySubform(forms.Form):
    """
    Form with one field per displayed bundle field.

    ``disabled`` lists fields that are shown but cannot be changed (e.g.
    untranslatable fields while translating).
    """

    def __init__(self, *args, field_specs: list[FieldSpec], disabled: tuple[str, ...] = (), **kwargs):
        super().__init__(*args, **kwargs)
        for spec in field_specs:
            form_field = make_form_field(spec)
            form_field.disabled = spec.name in disabled
            self.fields[spec.name] = form_field


class EntityFormDisplay:
    """
    Sub-form builder for one bundle and form mode.
    """

    def __init__(self, bundle: BundleDefinition, form_mode: str = "default"):
        self.bundle = bundle
        self.form_mode = form_mode

    def __repr__(self):
        return f"<{self.__class__.__name__} {self.bundle.key}.{self.form_mode}>"

    @property
    def components(self) -> list[FieldSpec]:
        return self.bundle.form_mode_fields(self.form_mode)

    def has_translatable_components(self) -> bool:
        return any(self.bundle.is_field_translatable(spec.name) for spec in self.components)

    def _visible_specs(self, entity: ContentEntity, translating: bool, hide_untranslatable: bool):
        specs = self.components
        disabled: tuple[str, ...] = ()
        if translating and not entity.is_default_translation:
            untranslatable = tuple(
                spec.name for spec in specs if not self.bundle.is_field_translatable(spec.name)
            )
            if hide_untranslatable:
                specs = [spec for spec in specs if spec.name not in untranslatable]
            else:
                disabled = untranslatable
        return specs, disabled

    def build_form(
        self,
        entity: ContentEntity,
        data: dict | None = None,
        *,
        prefix: str | None = None,
        translating: bool = False,
        hide_untranslatable: bool = False,
    ) -> EntitySubform:
        """
        Sub-form for ``entity``, bound to ``data`` when given.
        """
        specs, disabled = self._visible_specs(entity, translating, hide_untranslatable)
        initial = {spec.name: entity.get(spec.name) for spec in specs}
        return EntitySubform(
            data,
            initial=initial,
            prefix=prefix,
            field_specs=specs,
            disabled=disabled,
        )

    def extract_form_values(
        self,
        entity: ContentEntity,
        data: dict | None,
        *,
        translating: bool = False,
        hide_untranslatable: bool = False,
    ) -> EntitySubform:
        """
        Copy the submitted ``data`` into ``entity`` and return the bound form.

        Only fields that passed validation are copied. Check ``form.errors``
        for the others.
        """
        form = self.build_form(
            entity,
            data or {},
            translating=translating,
            hide_untranslatable=hide_untranslatable,
        )
        form.is_valid()
        for name, form_field in form.fields.items():
            if form_field.disabled or name in form.errors:
                continue
            if name in form.cleaned_data:
                entity.set(name, form.cleaned_data[name])
        return form

    def validate_entity(self, entity: ContentEntity) -> list[str]:
        """
        Validate the current values of ``entity`` against this display.
        """
        data = {}
        for spec in self.components:
            value = entity.get(spec.name)
            if value is not None:
                data[spec.name] = value
        form = EntitySubform(data, field_specs=self.components)
        if form.is_valid():
            return []
        return [
            f"{form.fields[name].label}: {message}"
            for name, messages in form.errors.items()
            for message in messages
        ]


class ReferencePickerForm(forms.Form):
    """
    Picks the existing content a "revise" or "clone" slot works on.
    """
    entity_id = forms.IntegerField(label="Content", required=True, min_value=1)
