"""
Custom Django ORM Managers.
"""
from django.db import models
from django.db.models.query import QuerySet


class WithRelationsManager(models.Manager):
    """
    Custom Manager that adds select_related to the default queryset.

    Revisions are nearly always turned into ``ContentEntity`` handles, which
    need the entity row and its bundle. Use this as a distinctly named manager
    so the default ``objects`` manager stays plain::

      class ManagedEntityRevision(models.Model):
          with_entity = WithRelationsManager('entity', 'entity__bundle')
    """
    def __init__(self, *relations):
        self._relations = relations
        super().__init__()

    def get_queryset(self) -> QuerySet:
        return super().get_queryset().select_related(
            *self._relations
        )
