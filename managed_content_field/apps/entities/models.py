"""
Storage models for managed content entities.

The data model is small on purpose:

* ``ContentBundle`` describes a kind of entity (its fields, translatability and
  the fields shown in each form mode).
* ``ManagedEntity`` is the stable identity of a piece of content.
* ``ManagedEntityRevision`` holds the field values. An entity has many
  revisions and exactly one of them is the *default* revision (the canonical
  one that is shown when the entity is loaded by id).
* ``NestedComponent`` and ``NestedComponentRevision`` are owned sub-components
  (e.g. paragraphs) referenced by revision from ``nested`` fields.
* ``FieldItem`` is one persisted slot of a managed content field on a host.

Nothing outside of ``api.py`` should write to these models directly.
"""
from __future__ import annotations

from django.conf import settings
from django.db import models

from managed_content_field.lib.fields import (
    case_insensitive_char_field,
    immutable_uuid_field,
    key_field,
    manual_date_time_field,
)
from managed_content_field.lib.managers import WithRelationsManager
from managed_content_field.lib.validators import validate_langcode


class ContentBundle(models.Model):
    """
    A kind of managed entity, e.g. "article" or "event".

    ``fields`` is a list of field specs, each a dict like::

        {"name": "body", "type": "text", "label": "Body",
         "required": False, "translatable": True}

    Supported types are ``string``, ``text``, ``integer``, ``boolean`` and
    ``nested``. A ``title`` field is always present even if not listed.

    ``form_modes`` maps a form mode name to the list of field names rendered
    by the inline sub-form in that mode. A missing ``default`` mode means
    "every non-nested field".
    """

    key = key_field(unique=True)
    label = case_insensitive_char_field(max_length=255)
    translatable = models.BooleanField(default=False)

    # When a host is being translated, hide the fields that can't be translated
    # instead of showing them disabled.
    untranslatable_fields_hide = models.BooleanField(default=False)

    fields = models.JSONField(default=list, blank=True)
    form_modes = models.JSONField(default=dict, blank=True)

    class Meta:
        verbose_name = "Content Bundle"
        verbose_name_plural = "Content Bundles"

    def __str__(self):
        return f"{self.key}"


class ManagedEntity(models.Model):
    """
    The stable identity of a piece of managed content.

    ``langcode`` is the default (original) language of the entity. The current
    canonical revision is ``default_revision``; it is only null for a moment
    while the first revision is being written.
    """

    uuid = immutable_uuid_field()
    bundle = models.ForeignKey(
        ContentBundle,
        on_delete=models.PROTECT,
        related_name="entities",
    )
    langcode = models.CharField(max_length=12, validators=[validate_langcode])
    created = manual_date_time_field()
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
    )
    default_revision = models.ForeignKey(
        "ManagedEntityRevision",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    class Meta:
        indexes = [
            # Bundle (reverse) Created Index:
            #   * Most recently created entities of a given bundle.
            models.Index(
                fields=["bundle", "-created"],
                name="mcf_ent_idx_bundle_rcreated",
            ),
        ]
        verbose_name = "Managed Entity"
        verbose_name_plural = "Managed Entities"

    def __str__(self):
        return f"{self.bundle.key}:{self.id}"


class ManagedEntityRevision(models.Model):
    """
    A revision of a ManagedEntity.

    Revision ids grow monotonically, so the "latest revision" of an entity is
    simply the one with the highest id. Saving an entity without asking for a
    new revision rewrites its current revision row in place.

    ``data`` holds the field values in the entity's default language.
    ``translations`` maps every other langcode to a dict with ``values`` (the
    translatable field values) and ``source`` (the langcode it was translated
    from).

    ``was_default_revision`` records whether this revision was the canonical
    one at the time it was saved. It is never cleared afterwards, which is what
    lets us tell "a draft on top of published content" apart from "a revision
    that used to be live".
    """

    uuid = immutable_uuid_field()
    entity = models.ForeignKey(
        ManagedEntity,
        on_delete=models.CASCADE,
        related_name="revisions",
    )
    title = case_insensitive_char_field(max_length=255, blank=True, default="")
    data = models.JSONField(default=dict, blank=True)
    translations = models.JSONField(default=dict, blank=True)

    # Blank when the entity is not governed by a moderation workflow (or was
    # saved before its bundle became moderated).
    moderation_state = models.CharField(max_length=100, blank=True, default="")
    published = models.BooleanField(default=False)
    was_default_revision = models.BooleanField(default=False)

    created = manual_date_time_field()
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
    )

    objects: models.Manager[ManagedEntityRevision] = models.Manager()
    with_entity = WithRelationsManager("entity", "entity__bundle")

    class Meta:
        indexes = [
            # Entity (reverse) Id Index:
            #   * Walking revisions newest to oldest when pruning on remove.
            models.Index(
                fields=["entity", "-id"],
                name="mcf_rev_idx_entity_rid",
            ),
            # Title Index:
            #   * Search by title.
            models.Index(
                fields=["title"],
                name="mcf_rev_idx_title",
            ),
        ]
        verbose_name = "Managed Entity Revision"
        verbose_name_plural = "Managed Entity Revisions"

    def __str__(self):
        return f"{self.entity_id} @ {self.id}: {self.title}"


class NestedComponent(models.Model):
    """
    An owned sub-component (e.g. a paragraph) of a managed entity.

    Nested components are referenced by revision, so duplicating a host means
    duplicating each referenced component revision as well.
    """

    uuid = immutable_uuid_field()
    kind = key_field()
    created = manual_date_time_field()

    class Meta:
        verbose_name = "Nested Component"
        verbose_name_plural = "Nested Components"

    def __str__(self):
        return f"{self.kind}:{self.id}"


class NestedComponentRevision(models.Model):
    """
    One revision of a NestedComponent's data.
    """

    component = models.ForeignKey(
        NestedComponent,
        on_delete=models.CASCADE,
        related_name="revisions",
    )
    data = models.JSONField(default=dict, blank=True)
    created = manual_date_time_field()

    class Meta:
        verbose_name = "Nested Component Revision"
        verbose_name_plural = "Nested Component Revisions"

    def __str__(self):
        return f"{self.component_id} @ {self.id}"


class FieldItem(models.Model):
    """
    One persisted slot of a managed content field.

    ``host`` is the entity that owns the field and ``target`` the referenced
    managed entity. A target that gets deleted leaves an empty (null) slot
    behind, which is filtered out the next time the host is saved.
    """

    host = models.ForeignKey(
        ManagedEntity,
        on_delete=models.CASCADE,
        related_name="field_items",
    )
    field_name = models.CharField(max_length=255)
    delta = models.PositiveIntegerField()
    target = models.ForeignKey(
        ManagedEntity,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="referenced_by",
    )

    class Meta:
        constraints = [
            # A host has exactly one value per field and position.
            models.UniqueConstraint(
                fields=["host", "field_name", "delta"],
                name="mcf_item_uniq_host_field_delta",
            )
        ]
        indexes = [
            # Reverse reference lookups: "who else points at this entity?"
            models.Index(
                fields=["target", "field_name"],
                name="mcf_item_idx_target_field",
            ),
        ]
        ordering = ["host", "field_name", "delta"]
        verbose_name = "Field Item"
        verbose_name_plural = "Field Items"

    def __str__(self):
        return f"{self.host_id}.{self.field_name}[{self.delta}] -> {self.target_id}"
