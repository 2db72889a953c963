"""
Tests managed content rules-based permissions
"""
import ddt  # type: ignore[import]
from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group

from managed_content_field.apps.entities.access import EntityAccess, Operation
from managed_content_field.apps.entities.data import BundleDefinition, ContentEntity
from managed_content_field.apps.entities.rules import CONTENT_EDITORS_GROUP
from managed_content_field.lib.test_utils import TestCase

User = get_user_model()

PAGE = BundleDefinition(key="page", label="Page")


@ddt.ddt
class TestRulesContent(TestCase):
    """
    Tests that the expected rules have been applied to managed content.
    """

    def setUp(self):
        super().setUp()
        self.superuser = User.objects.create(
            username="superuser",
            email="superuser@example.com",
            is_superuser=True,
        )
        self.staff = User.objects.create(
            username="staff",
            email="staff@example.com",
            is_staff=True,
        )
        self.editor = User.objects.create(
            username="editor",
            email="editor@example.com",
        )
        self.editor.groups.add(Group.objects.create(name=CONTENT_EDITORS_GROUP))
        self.learner = User.objects.create(
            username="learner",
            email="learner@example.com",
        )
        self.entity = self._saved_entity(created_by_id=None)

    @staticmethod
    def _saved_entity(created_by_id=None, published=False) -> ContentEntity:
        entity = ContentEntity.create(PAGE, {"title": "Page"}, langcode="en", created_by_id=created_by_id)
        # Pretend it's stored.
        entity._record.id = 1  # pylint: disable=protected-access
        entity.published = published
        return entity

    @ddt.data(
        "mcf_entities.create_content",
        "mcf_entities.update_content",
    )
    def test_create_update(self, perm):
        """
        Admins and editors can create or change any content.
        """
        assert self.superuser.has_perm(perm, self.entity)
        assert self.staff.has_perm(perm, self.entity)
        assert self.editor.has_perm(perm, self.entity)
        assert not self.learner.has_perm(perm, self.entity)

    def test_create_by_bundle(self):
        assert self.editor.has_perm("mcf_entities.create_content", "page")
        assert not self.learner.has_perm("mcf_entities.create_content", "page")

    def test_delete(self):
        """
        Editors can only delete the content they created.
        """
        perm = "mcf_entities.delete_content"
        assert self.staff.has_perm(perm, self.entity)
        assert not self.editor.has_perm(perm, self.entity)
        assert not self.learner.has_perm(perm, self.entity)

        own = self._saved_entity(created_by_id=self.editor.id)
        assert self.editor.has_perm(perm, own)

        # New content belongs to whoever is making it.
        new = ContentEntity.create(PAGE, {"title": "New"}, langcode="en")
        assert self.editor.has_perm(perm, new)

    def test_view(self):
        perm = "mcf_entities.view_content"
        assert self.editor.has_perm(perm, self.entity)
        assert not self.learner.has_perm(perm, self.entity)
        published = self._saved_entity(published=True)
        assert self.learner.has_perm(perm, published)

    @ddt.data(*Operation)
    def test_system_access(self, operation):
        """
        Without a user, access checks are made on behalf of the system.
        """
        access = EntityAccess()
        assert access.check(self.entity, operation)
        assert access.create_access("page")

    def test_user_access(self):
        access = EntityAccess(self.learner)
        assert not access.check(self.entity, Operation.UPDATE)
        assert not access.create_access("page")
        assert EntityAccess(self.editor).check(self.entity, "update")
