"""
Convenience utilities for the Django Admin.
"""
from django.contrib import admin


class ReadOnlyModelAdmin(admin.ModelAdmin):
    """
    ModelAdmin subclass that removes any editing ability.

    Entities, revisions and field items are only ever written through the
    storage API (moderation state, default revision bookkeeping and reference
    counts depend on it), so editing them in the Django Admin is unsafe.
    """

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
