"""
In-memory representations of bundles and entity revisions.

``ContentEntity`` is what the field engine works with: a loaded (or not yet
saved) revision of a managed entity with typed field access and a translation
API. It knows nothing about the database; ``storage.EntityStorage`` converts
between it and the models.
"""
from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from .exceptions import UnsupportedFieldAssignment


class FieldType(StrEnum):
    STRING = "string"
    TEXT = "text"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    NESTED = "nested"


@dataclass(frozen=True)
class FieldSpec:
    """
    One field of a bundle.
    """
    name: str
    type: FieldType = FieldType.STRING
    label: str = ""
    required: bool = False
    translatable: bool = False
    description: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> FieldSpec:
        return cls(
            name=data["name"],
            type=FieldType(data.get("type", FieldType.STRING)),
            label=data.get("label") or data["name"].replace("_", " ").capitalize(),
            required=bool(data.get("required", False)),
            translatable=bool(data.get("translatable", False)),
            description=data.get("description", ""),
        )


TITLE_FIELD = FieldSpec("title", FieldType.STRING, "Title", required=True, translatable=True)


@dataclass(frozen=True)
class BundleDefinition:
    """
    Read-only view of a ContentBundle, cached by ``api.get_bundle_definition``.
    """
    key: str
    label: str
    translatable: bool = False
    untranslatable_fields_hide: bool = False
    fields: tuple[FieldSpec, ...] = (TITLE_FIELD,)
    form_modes: dict[str, list[str]] = field(default_factory=dict, hash=False, compare=False)

    def get_field(self, name: str) -> FieldSpec | None:
        for spec in self.fields:
            if spec.name == name:
                return spec
        return None

    @property
    def field_names(self) -> list[str]:
        return [spec.name for spec in self.fields]

    def form_mode_fields(self, form_mode: str = "default") -> list[FieldSpec]:
        """
        Field specs shown by the inline sub-form in ``form_mode``.

        Unknown modes fall back to ``default``, and a missing ``default`` shows
        every non-nested field.
        """
        names = self.form_modes.get(form_mode, self.form_modes.get("default"))
        if names is None:
            return [spec for spec in self.fields if spec.type != FieldType.NESTED]
        return [spec for spec in self.fields if spec.name in names]

    def is_field_translatable(self, name: str) -> bool:
        spec = self.get_field(name)
        return bool(self.translatable and spec and spec.translatable)


def coerce_field_value(spec: FieldSpec, value: Any) -> Any:
    """
    Convert ``value`` to the storage type of ``spec``.

    Raises UnsupportedFieldAssignment if the type rejects the value.
    """
    if value is None:
        return [] if spec.type == FieldType.NESTED else None

    match spec.type:
        case FieldType.STRING | FieldType.TEXT:
            if isinstance(value, str):
                return value
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                return str(value)
        case FieldType.INTEGER:
            if isinstance(value, int) and not isinstance(value, bool):
                return value
            if isinstance(value, str) and value.strip().removeprefix("-").isdigit():
                return int(value)
        case FieldType.BOOLEAN:
            if isinstance(value, bool):
                return value
            if value in (0, 1, "0", "1"):
                return bool(int(value))
        case FieldType.NESTED:
            if isinstance(value, list) and all(
                isinstance(item, dict) and {"target_id", "target_revision_id"} <= item.keys()
                for item in value
            ):
                return [
                    {"target_id": item["target_id"], "target_revision_id": item["target_revision_id"]}
                    for item in value
                ]

    raise UnsupportedFieldAssignment(
        spec.name,
        f"Field '{spec.name}' of type {spec.type} does not accept {value!r}.",
    )


@dataclass
class EntityRecord:
    """
    The mutable state shared by an entity handle and all its translations.
    """
    bundle: BundleDefinition
    default_langcode: str
    values: dict[str, dict[str, Any]]
    sources: dict[str, str | None] = field(default_factory=dict)
    id: int | None = None
    revision_id: int | None = None
    moderation_state: str = ""
    published: bool = False
    is_default_revision: bool = True
    was_default_revision: bool = False
    new_revision: bool = False
    created_by_id: int | None = None


class ContentEntity:
    """
    A revision of a managed entity, viewed in one language.

    Translation handles returned by ``get_translation`` and
    ``add_translation`` share state with the handle they came from, so
    setting a value on a translation is visible from the original handle.
    """

    def __init__(self, record: EntityRecord, langcode: str | None = None):
        self._record = record
        self._langcode = langcode or record.default_langcode

    def __repr__(self):
        return (
            f"<{self.__class__.__name__} {self.bundle.key}:{self.id} "
            f"rev={self.revision_id} lang={self.language}>"
        )

    @classmethod
    def create(
        cls,
        bundle: BundleDefinition,
        values: dict[str, Any] | None = None,
        *,
        langcode: str,
        created_by_id: int | None = None,
    ) -> ContentEntity:
        """
        Make a new, unsaved entity.
        """
        entity = cls(EntityRecord(
            bundle=bundle,
            default_langcode=langcode,
            values={langcode: {}},
            created_by_id=created_by_id,
        ))
        for name, value in (values or {}).items():
            entity.set(name, value)
        return entity

    # Identity

    @property
    def bundle(self) -> BundleDefinition:
        return self._record.bundle

    @property
    def id(self) -> int | None:
        return self._record.id

    @property
    def revision_id(self) -> int | None:
        return self._record.revision_id

    @property
    def is_new(self) -> bool:
        return self._record.id is None

    @property
    def created_by_id(self) -> int | None:
        return self._record.created_by_id

    @property
    def label(self) -> str:
        title = self.get("title")
        if title:
            return title
        return f"{self.bundle.label} {self.id}" if self.id else self.bundle.label

    # Revision metadata

    @property
    def new_revision(self) -> bool:
        return self._record.new_revision

    def set_new_revision(self, value: bool = True) -> None:
        self._record.new_revision = value

    @property
    def is_default_revision(self) -> bool:
        return self._record.is_default_revision

    @property
    def was_default_revision(self) -> bool:
        return self._record.was_default_revision

    @property
    def moderation_state(self) -> str:
        return self._record.moderation_state

    @moderation_state.setter
    def moderation_state(self, value: str) -> None:
        self._record.moderation_state = value or ""

    @property
    def published(self) -> bool:
        return self._record.published

    @published.setter
    def published(self, value: bool) -> None:
        self._record.published = bool(value)

    # Field access

    def has_field(self, name: str) -> bool:
        return self.bundle.get_field(name) is not None

    def _values_for(self, name: str) -> dict[str, Any]:
        record = self._record
        if self._langcode != record.default_langcode and self.bundle.is_field_translatable(name):
            return record.values.setdefault(self._langcode, {})
        return record.values.setdefault(record.default_langcode, {})

    def get(self, name: str, default: Any = None) -> Any:
        if not self.has_field(name):
            return default
        record = self._record
        if self._langcode != record.default_langcode and self.bundle.is_field_translatable(name):
            values = record.values.get(self._langcode, {})
            if name in values:
                return values[name]
        # Translations fall back to the original language value.
        return record.values.get(record.default_langcode, {}).get(name, default)

    def set(self, name: str, value: Any) -> None:
        """
        Assign ``value`` to field ``name`` in the active language.
        """
        spec = self.bundle.get_field(name)
        if spec is None:
            raise UnsupportedFieldAssignment(
                name, f"Bundle '{self.bundle.key}' has no field '{name}'."
            )
        self._values_for(name)[name] = coerce_field_value(spec, value)

    # Translations

    @property
    def language(self) -> str:
        return self._langcode

    @property
    def default_langcode(self) -> str:
        return self._record.default_langcode

    @property
    def is_default_translation(self) -> bool:
        return self._langcode == self._record.default_langcode

    @property
    def translation_languages(self) -> list[str]:
        return list(self._record.values.keys())

    def has_translation(self, langcode: str) -> bool:
        return langcode in self._record.values

    def get_translation(self, langcode: str) -> ContentEntity:
        if not self.has_translation(langcode):
            raise KeyError(f"{self!r} has no '{langcode}' translation.")
        return ContentEntity(self._record, langcode)

    def get_untranslated(self) -> ContentEntity:
        return ContentEntity(self._record, self._record.default_langcode)

    def add_translation(self, langcode: str, values: dict[str, Any] | None = None) -> ContentEntity:
        """
        Add a ``langcode`` translation seeded from the active language.
        """
        if self.has_translation(langcode):
            raise ValueError(f"{self!r} already has a '{langcode}' translation.")
        seed = {
            name: copy.deepcopy(value)
            for name, value in self._values_for_language(self._langcode).items()
            if self.bundle.is_field_translatable(name)
        }
        self._record.values[langcode] = seed
        translation = ContentEntity(self._record, langcode)
        for name, value in (values or {}).items():
            translation.set(name, value)
        return translation

    def _values_for_language(self, langcode: str) -> dict[str, Any]:
        merged = dict(self._record.values.get(self._record.default_langcode, {}))
        if langcode != self._record.default_langcode:
            merged.update(self._record.values.get(langcode, {}))
        return merged

    def translation_source(self) -> str | None:
        return self._record.sources.get(self._langcode)

    def set_translation_source(self, langcode: str | None) -> None:
        self._record.sources[self._langcode] = langcode

    def set_langcode(self, langcode: str) -> None:
        """
        Change the original language of a new entity.
        """
        record = self._record
        if langcode == record.default_langcode:
            return
        if not self.is_new:
            raise ValueError("Only new entities can change their original language.")
        record.values[langcode] = record.values.pop(record.default_langcode, {})
        record.default_langcode = langcode
        self._langcode = langcode

    # Copies and snapshots

    def create_duplicate(self) -> ContentEntity:
        """
        Copy of this entity with no id or revision id, seen in the same language.
        """
        record = self._record
        duplicate = EntityRecord(
            bundle=record.bundle,
            default_langcode=record.default_langcode,
            values=copy.deepcopy(record.values),
            sources=dict(record.sources),
            moderation_state=record.moderation_state,
            published=record.published,
            created_by_id=record.created_by_id,
        )
        return ContentEntity(duplicate, self._langcode)

    def to_array(self) -> dict[str, Any]:
        """
        Comparable snapshot of everything a user can change on the entity.
        """
        record = self._record
        return {
            "bundle": record.bundle.key,
            "langcode": record.default_langcode,
            "values": copy.deepcopy(record.values),
            "moderation_state": record.moderation_state,
            "published": record.published,
        }

    def same_as(self, other: ContentEntity | None) -> bool:
        return other is not None and other._record is self._record
