"""
Tests of the read-only Django admin for managed content
"""
from __future__ import annotations

from django.contrib import admin
from django.test import RequestFactory

from managed_content_field.apps.entities import api
from managed_content_field.apps.entities.models import ContentBundle, FieldItem, ManagedEntity
from managed_content_field.apps.entities.storage import EntityStorage
from managed_content_field.lib.test_utils import TestCase


class ReadOnlyAdminTestCase(TestCase):
    """
    Entities are written through the storage API only.
    """
    def test_read_only(self) -> None:
        request = RequestFactory().get("/")
        for model in (ContentBundle, ManagedEntity, FieldItem):
            model_admin = admin.site._registry[model]  # pylint: disable=protected-access
            assert not model_admin.has_add_permission(request)
            assert not model_admin.has_change_permission(request)
            assert not model_admin.has_delete_permission(request)

    def test_entity_title(self) -> None:
        api.create_bundle("page", "Page")
        storage = EntityStorage()
        entity = storage.save(storage.create("page", {"title": "Welcome"}))

        model_admin = admin.site._registry[ManagedEntity]  # pylint: disable=protected-access
        row = model_admin.get_queryset(RequestFactory().get("/")).get(id=entity.id)
        assert model_admin.title(row) == "Welcome"
