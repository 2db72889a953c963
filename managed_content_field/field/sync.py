"""
Copying values between hosts and the content they manage.

These are the building blocks of automation (imports, scheduled jobs, signal
receivers): push a host value into every managed item, or pull a value from
the most recent host referencing an item.

Values are addressed with colon separated paths. The first part is a field
name; later parts index into list values (``"0"``) or pick a key of a
dict value (``"target_id"``). A non numeric part applied to a list picks the
key from the first list entry, so ``"parts:target_id"`` reads
``parts[0]["target_id"]``.

Assignments are best effort: a value the destination field type rejects is
logged and skipped, and never invalidates the rest of the entity.
"""
from __future__ import annotations

import copy
from logging import getLogger
from typing import Any

from managed_content_field.apps.entities.data import ContentEntity
from managed_content_field.apps.entities.exceptions import UnsupportedFieldAssignment

from .context import ManagedContentContext
from .item import ManagedContentItemList

logger = getLogger(__name__)

__all__ = [
    "get_field_value",
    "set_field_value",
    "set_content_value",
    "push_field_value",
    "pull_field_value",
]


def _step(target: Any, part: str) -> Any:
    if isinstance(target, list):
        if part.isdigit():
            index = int(part)
            return target[index] if index < len(target) else None
        target = target[0] if target else None
    if isinstance(target, dict):
        return target.get(part)
    return None


def get_field_value(entity: ContentEntity, path: str, /) -> Any:
    """
    The value at ``path`` on ``entity``, or None if it can't be found.
    """
    field_name, *parts = path.split(":")
    if not entity.has_field(field_name):
        return None
    target = entity.get(field_name)
    for part in parts:
        target = _step(target, part)
        if target is None:
            return None
    return target


def set_field_value(entity: ContentEntity, path: str, value: Any, /, force: bool = True) -> bool:
    """
    Set the value at ``path`` on ``entity``.

    Without ``force`` only empty values are replaced. Lists get a first entry
    when a path steps into an empty one. Returns whether the value was set.
    """
    field_name, *parts = path.split(":")
    if not entity.has_field(field_name):
        return False

    if not parts:
        if entity.get(field_name) and not force:
            return False
        return _assign(entity, field_name, value)

    root = copy.deepcopy(entity.get(field_name))
    container = root
    for part in parts[:-1]:
        container = _step_for_write(container, part)
        if container is None:
            return False

    leaf = parts[-1]
    if isinstance(container, list) and not leaf.isdigit():
        if not container:
            container.append({})
        container = container[0]
    if isinstance(container, list):
        index = int(leaf)
        if index >= len(container):
            return False
        if container[index] and not force:
            return False
        container[index] = value
    elif isinstance(container, dict):
        if container.get(leaf) and not force:
            return False
        container[leaf] = value
    else:
        return False
    return _assign(entity, field_name, root)


def _step_for_write(target: Any, part: str) -> Any:
    if isinstance(target, list):
        if part.isdigit():
            index = int(part)
            return target[index] if index < len(target) else None
        # Create a value when there is none for a list.
        if not target:
            target.append({})
        target = target[0]
    if isinstance(target, dict):
        return target.get(part)
    return None


def _assign(entity: ContentEntity, field_name: str, value: Any) -> bool:
    try:
        entity.set(field_name, value)
    except UnsupportedFieldAssignment as exc:
        logger.warning(f"Skipped assigning {value!r} to {entity!r}: {exc}")
        return False
    return True


def set_content_value(entity: ContentEntity, path: str, value: Any, /) -> bool:
    """
    Unconditionally set the value at ``path``.
    """
    return set_field_value(entity, path, value, force=True)


def push_field_value(
    item_list: ManagedContentItemList,
    source_path: str,
    dest_path: str,
    /,
    force: bool = True,
) -> int:
    """
    Copy a value of the host of ``item_list`` into each managed item.

    Items that receive the value are flagged as modified, so saving the host
    saves them. Returns how many items were updated.
    """
    host = item_list.host
    value = get_field_value(host, source_path) if host is not None else None
    if value is None:
        return 0

    updated = 0
    for item in item_list:
        entity = item.entity
        if entity is not None and set_field_value(entity, dest_path, value, force=force):
            item.set_modified(True)
            updated += 1
    logger.info(f"Pushed {source_path} of {host!r} to {updated} item(s) as {dest_path}")
    return updated


def pull_field_value(
    context: ManagedContentContext,
    entity: ContentEntity,
    field_name: str,
    source_path: str,
    dest_path: str,
    /,
    force: bool = True,
) -> bool:
    """
    Copy a value from the most recent host referencing ``entity``.

    The host is the newest one holding ``entity`` in its ``field_name``
    field. Returns whether ``entity`` was changed; it is not saved.
    """
    if entity.is_new:
        return False
    host_ids = context.storage.referencing_host_ids(entity.id, field_name)
    if not host_ids:
        return False
    host = context.storage.load(host_ids[0])
    if host is None:
        return False
    value = get_field_value(host, source_path)
    if value is None:
        return False
    return set_field_value(entity, dest_path, value, force=force)
