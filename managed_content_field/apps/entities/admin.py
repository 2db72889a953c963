"""
Django admin for managed content entities
"""
from __future__ import annotations

from django.contrib import admin

from managed_content_field.lib.admin_utils import ReadOnlyModelAdmin

from .models import ContentBundle, FieldItem, ManagedEntity, ManagedEntityRevision


@admin.register(ContentBundle)
class ContentBundleAdmin(ReadOnlyModelAdmin):
    """
    Read-only admin for ContentBundle model
    """
    fields = ["key", "label", "translatable", "untranslatable_fields_hide", "fields", "form_modes"]
    readonly_fields = fields
    list_display = ["key", "label", "translatable"]
    search_fields = ["key", "label"]


class ManagedEntityRevisionTabularInline(admin.TabularInline):
    """
    Inline read-only tabular view for revisions of an entity
    """
    model = ManagedEntityRevision
    fields = ["id", "title", "moderation_state", "published", "was_default_revision", "created"]
    readonly_fields = fields
    ordering = ["-id"]

    def has_add_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(ManagedEntity)
class ManagedEntityAdmin(ReadOnlyModelAdmin):
    """
    Read-only admin for ManagedEntity model
    """
    inlines = [ManagedEntityRevisionTabularInline]
    fields = ["uuid", "bundle", "langcode", "default_revision", "created", "created_by"]
    readonly_fields = fields
    list_display = ["id", "bundle", "title", "langcode", "created"]
    list_filter = ["bundle"]

    def get_queryset(self, request):
        queryset = super().get_queryset(request)
        return queryset.select_related("bundle", "default_revision")

    def title(self, entity: ManagedEntity) -> str:
        return entity.default_revision.title if entity.default_revision else ""


@admin.register(FieldItem)
class FieldItemAdmin(ReadOnlyModelAdmin):
    """
    Read-only admin for FieldItem model
    """
    list_display = ["host", "field_name", "delta", "target"]
    list_filter = ["field_name"]
