"""
Entities API

Low level functions that read and write the entity models. Code outside this
app should normally go through ``storage.EntityStorage``, which turns these rows
into ``ContentEntity`` handles and applies moderation rules on save.
"""
from __future__ import annotations

from datetime import datetime, timezone

from django.core.exceptions import ValidationError
from django.db.models import QuerySet
from django.db.transaction import atomic

from managed_content_field.lib.cache import lru_cache

from .data import TITLE_FIELD, BundleDefinition, FieldSpec, FieldType
from .models import (
    ContentBundle,
    FieldItem,
    ManagedEntity,
    ManagedEntityRevision,
    NestedComponent,
    NestedComponentRevision,
)

__all__ = [
    "create_bundle",
    "get_bundle",
    "get_bundles",
    "get_bundle_definition",
    "get_entity",
    "get_revision",
    "get_latest_revision_id",
    "get_revision_ids",
    "create_entity",
    "create_revision",
    "update_revision",
    "set_default_revision",
    "delete_entity",
    "delete_revision",
    "count_references",
    "get_referencing_host_ids",
    "get_field_target_ids",
    "set_field_target_ids",
    "create_nested_component",
    "get_nested_revision",
    "duplicate_nested_revision",
]


def create_bundle(
    key: str,
    label: str,
    *,
    fields: list[dict] | None = None,
    translatable: bool = False,
    untranslatable_fields_hide: bool = False,
    form_modes: dict[str, list[str]] | None = None,
) -> ContentBundle:
    """
    Create a new ContentBundle.

    ``fields`` are validated here: unknown types and duplicated names raise a
    ValidationError. The ``title`` field is added if it's not listed.
    """
    fields = list(fields or [])
    names = [spec.get("name") for spec in fields]
    if None in names or len(set(names)) != len(names):
        raise ValidationError(f"Bundle '{key}' has unnamed or duplicated fields.")
    valid_types = {field_type.value for field_type in FieldType}
    for spec in fields:
        if spec.get("type", FieldType.STRING) not in valid_types:
            raise ValidationError(f"Field '{spec['name']}' has unsupported type '{spec.get('type')}'.")
    if "title" not in names:
        fields.insert(0, {
            "name": TITLE_FIELD.name,
            "type": TITLE_FIELD.type.value,
            "label": TITLE_FIELD.label,
            "required": TITLE_FIELD.required,
            "translatable": TITLE_FIELD.translatable,
        })

    bundle = ContentBundle(
        key=key,
        label=label,
        fields=fields,
        translatable=translatable,
        untranslatable_fields_hide=untranslatable_fields_hide,
        form_modes=form_modes or {},
    )
    bundle.full_clean()
    bundle.save()
    return bundle


def get_bundle(key: str, /) -> ContentBundle:
    """
    Get ContentBundle by key. Raises ContentBundle.DoesNotExist.
    """
    return ContentBundle.objects.get(key=key)


def get_bundles() -> QuerySet[ContentBundle]:
    """
    All ContentBundles, ordered by key.
    """
    return ContentBundle.objects.order_by("key")


@lru_cache(maxsize=128)
def get_bundle_definition(key: str, /) -> BundleDefinition:
    """
    Cached, read-only view of a ContentBundle.
    """
    bundle = get_bundle(key)
    return BundleDefinition(
        key=bundle.key,
        label=bundle.label,
        translatable=bundle.translatable,
        untranslatable_fields_hide=bundle.untranslatable_fields_hide,
        fields=tuple(FieldSpec.from_dict(spec) for spec in bundle.fields),
        form_modes=dict(bundle.form_modes),
    )


def get_entity(entity_id: int, /) -> ManagedEntity:
    return ManagedEntity.objects.select_related("bundle").get(id=entity_id)


def get_revision(revision_id: int, /) -> ManagedEntityRevision:
    return ManagedEntityRevision.with_entity.get(id=revision_id)


def get_latest_revision_id(entity_id: int, /) -> int | None:
    """
    Id of the most recent revision of an entity, default or not.
    """
    return (
        ManagedEntityRevision.objects
        .filter(entity_id=entity_id)
        .order_by("-id")
        .values_list("id", flat=True)
        .first()
    )


def get_revision_ids(entity_id: int, /) -> list[int]:
    """
    All revision ids of an entity, newest first.
    """
    return list(
        ManagedEntityRevision.objects
        .filter(entity_id=entity_id)
        .order_by("-id")
        .values_list("id", flat=True)
    )


def create_entity(
    bundle_key: str,
    *,
    langcode: str,
    created: datetime | None = None,
    created_by: int | None = None,
) -> ManagedEntity:
    """
    Create the identity row of a new entity. It has no revision yet.
    """
    if not created:
        created = datetime.now(tz=timezone.utc)
    entity = ManagedEntity(
        bundle=get_bundle(bundle_key),
        langcode=langcode,
        created=created,
        created_by_id=created_by,
    )
    entity.full_clean()
    entity.save()
    return entity


def create_revision(
    entity_id: int,
    *,
    data: dict,
    translations: dict | None = None,
    moderation_state: str = "",
    published: bool = False,
    was_default_revision: bool = False,
    created: datetime | None = None,
    created_by: int | None = None,
) -> ManagedEntityRevision:
    """
    Add a revision to an entity. This does not make it the default revision.
    """
    if not created:
        created = datetime.now(tz=timezone.utc)
    return ManagedEntityRevision.objects.create(
        entity_id=entity_id,
        title=(data.get("title") or "")[:255],
        data=data,
        translations=translations or {},
        moderation_state=moderation_state,
        published=published,
        was_default_revision=was_default_revision,
        created=created,
        created_by_id=created_by,
    )


def update_revision(
    revision_id: int,
    *,
    data: dict,
    translations: dict | None = None,
    moderation_state: str = "",
    published: bool = False,
) -> None:
    """
    Rewrite an existing revision's values in place.
    """
    ManagedEntityRevision.objects.filter(id=revision_id).update(
        title=(data.get("title") or "")[:255],
        data=data,
        translations=translations or {},
        moderation_state=moderation_state,
        published=published,
    )


def set_default_revision(entity_id: int, revision_id: int, /) -> None:
    """
    Make ``revision_id`` the canonical revision of ``entity_id``.
    """
    with atomic():
        ManagedEntity.objects.filter(id=entity_id).update(default_revision_id=revision_id)
        ManagedEntityRevision.objects.filter(id=revision_id).update(was_default_revision=True)


def delete_entity(entity_id: int, /) -> None:
    """
    Delete an entity with all its revisions.

    Field items on other hosts that referenced it are left empty.
    """
    ManagedEntity.objects.filter(id=entity_id).delete()


def delete_revision(revision_id: int, /) -> None:
    """
    Delete a single, non-default revision.
    """
    revision = ManagedEntityRevision.objects.select_related("entity").get(id=revision_id)
    if revision.entity.default_revision_id == revision.id:
        raise ValidationError(
            f"Revision {revision_id} is the default revision of entity "
            f"{revision.entity_id} and cannot be deleted."
        )
    revision.delete()


def count_references(entity_id: int, field_name: str, /, exclude_host_id: int | None = None) -> int:
    """
    Number of distinct hosts whose ``field_name`` references ``entity_id``.
    """
    items = FieldItem.objects.filter(target_id=entity_id, field_name=field_name)
    if exclude_host_id is not None:
        items = items.exclude(host_id=exclude_host_id)
    return items.values("host_id").distinct().count()


def get_referencing_host_ids(entity_id: int, field_name: str, /) -> list[int]:
    """
    Ids of hosts referencing ``entity_id`` through ``field_name``, newest first.
    """
    return list(
        FieldItem.objects
        .filter(target_id=entity_id, field_name=field_name)
        .order_by("-host__created", "-host_id")
        .values_list("host_id", flat=True)
        .distinct()
    )


def get_field_target_ids(host_id: int, field_name: str, /) -> list[int | None]:
    """
    Target ids of a host's field, in delta order. Deleted targets are None.
    """
    return list(
        FieldItem.objects
        .filter(host_id=host_id, field_name=field_name)
        .order_by("delta")
        .values_list("target_id", flat=True)
    )


def set_field_target_ids(host_id: int, field_name: str, target_ids: list[int], /) -> QuerySet[FieldItem]:
    """
    Replace the stored values of a host's field.
    """
    with atomic():
        FieldItem.objects.filter(host_id=host_id, field_name=field_name).delete()
        FieldItem.objects.bulk_create([
            FieldItem(host_id=host_id, field_name=field_name, delta=delta, target_id=target_id)
            for delta, target_id in enumerate(target_ids)
        ])
    return FieldItem.objects.filter(host_id=host_id, field_name=field_name)


def create_nested_component(
    kind: str,
    data: dict,
    *,
    created: datetime | None = None,
) -> NestedComponentRevision:
    """
    Create a nested component and return its first revision.
    """
    if not created:
        created = datetime.now(tz=timezone.utc)
    with atomic():
        component = NestedComponent.objects.create(kind=kind, created=created)
        return NestedComponentRevision.objects.create(component=component, data=data, created=created)


def get_nested_revision(revision_id: int, /) -> NestedComponentRevision | None:
    return (
        NestedComponentRevision.objects
        .select_related("component")
        .filter(id=revision_id)
        .first()
    )


def duplicate_nested_revision(revision_id: int, /, created: datetime | None = None) -> NestedComponentRevision:
    """
    Copy a nested component revision into a brand new component.

    Raises NestedComponentRevision.DoesNotExist if the revision is gone.
    """
    source = NestedComponentRevision.objects.select_related("component").get(id=revision_id)
    return create_nested_component(source.component.kind, dict(source.data), created=created)
