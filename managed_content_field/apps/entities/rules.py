"""
Django rules-based permissions for managed content
"""
from __future__ import annotations

from typing import Callable, Union

import django.contrib.auth.models
# typing support in rules depends on https://github.com/dfunckt/django-rules/pull/177
import rules  # type: ignore[import]

from .data import ContentEntity

UserType = Union[
    django.contrib.auth.models.User, django.contrib.auth.models.AnonymousUser
]

# Name of the auth Group whose members edit managed content.
CONTENT_EDITORS_GROUP = "content_editors"

# Global staff are content admins.
# (Superusers can already do anything)
is_content_admin: Callable[[UserType], bool] = rules.is_staff

is_content_editor: Callable[[UserType], bool] = rules.is_group_member(CONTENT_EDITORS_GROUP)


@rules.predicate
def is_content_author(user: UserType, entity: ContentEntity | str | None = None) -> bool:
    """
    The user created the entity. New entities belong to whoever is making them.
    """
    if not isinstance(entity, ContentEntity) or entity.is_new:
        return True
    return entity.created_by_id is not None and entity.created_by_id == user.id


@rules.predicate
def can_view_content(user: UserType, entity: ContentEntity | None = None) -> bool:
    """
    Anyone can view published content. Editors can view everything.
    """
    if entity is not None and entity.published:
        return True
    return is_content_admin(user) or is_content_editor(user)


@rules.predicate
def can_change_content(user: UserType, entity: ContentEntity | str | None = None) -> bool:
    """
    Editors can create and update content of any bundle.
    """
    return is_content_admin(user) or is_content_editor(user)


@rules.predicate
def can_delete_content(user: UserType, entity: ContentEntity | None = None) -> bool:
    """
    Admins can delete anything, editors only what they created.
    """
    return is_content_admin(user) or (is_content_editor(user) and is_content_author(user, entity))


# Entity permissions; "create" receives a bundle key instead of an entity.
rules.add_perm("mcf_entities.create_content", can_change_content)
rules.add_perm("mcf_entities.update_content", can_change_content)
rules.add_perm("mcf_entities.delete_content", can_delete_content)
rules.add_perm("mcf_entities.view_content", can_view_content)
