"""
Managed Content Field API

Entry points that commit a host together with its managed content. These are
the only places where revise, clone and remove actions actually run.
"""
from __future__ import annotations

from datetime import datetime, timezone
from logging import getLogger

from django.db import DatabaseError
from django.db.transaction import atomic

from managed_content_field.apps.entities.data import ContentEntity
from managed_content_field.apps.entities.exceptions import StorageFailure

from .context import ManagedContentContext
from .data import FieldDefinition
from .item import ManagedContentItemList

logger = getLogger(__name__)

__all__ = [
    "load_field_items",
    "save_host",
    "delete_host",
]


def load_field_items(
    context: ManagedContentContext,
    field_definition: FieldDefinition,
    host: ContentEntity,
    /,
) -> ManagedContentItemList:
    """
    Load the managed content field ``field_definition`` of ``host``.
    """
    return ManagedContentItemList.load(context, field_definition, host)


def save_host(
    context: ManagedContentContext,
    host: ContentEntity,
    fields: list[ManagedContentItemList],
    /,
    saved_at: datetime | None = None,
    saved_by_id: int | None = None,
) -> ContentEntity:
    """
    Save ``host`` and replay the pending actions of its managed items.

    Everything happens in one transaction. A refused action either clears its
    reference (default) or raises RefusedAction (``strict_actions``), which
    rolls the whole save back. Database errors are raised as StorageFailure.
    """
    saved_at = saved_at or datetime.now(tz=timezone.utc)
    try:
        with atomic():
            for item_list in fields:
                item_list.host = host
                for item in item_list:
                    item.host = host
                item_list.pre_save()
            context.storage.save(host, saved_at=saved_at, saved_by_id=saved_by_id)
            for item_list in fields:
                item_list.post_save()
    except DatabaseError as exc:
        logger.exception(f"Could not save host {host!r}")
        raise StorageFailure(f"Could not save {host!r}: {exc}") from exc
    return host


def delete_host(
    context: ManagedContentContext,
    host: ContentEntity,
    fields: list[ManagedContentItemList],
    /,
) -> None:
    """
    Delete ``host``, removing each managed item it references first.
    """
    try:
        with atomic():
            for item_list in fields:
                item_list.delete()
            context.storage.delete(host)
    except DatabaseError as exc:
        logger.exception(f"Could not delete host {host!r}")
        raise StorageFailure(f"Could not delete {host!r}: {exc}") from exc
