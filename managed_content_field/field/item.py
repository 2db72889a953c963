"""
Values of a managed content field.

A ``ManagedContentItem`` is one reference from a host to a managed entity. On
top of the plain reference it carries the pending ``action`` and the
``modified`` flag set by the widget, and it replays them when the host is
saved (``pre_save``) or deleted (``delete``).
"""
from __future__ import annotations

from logging import getLogger
from typing import Any

from managed_content_field.apps.entities.data import ContentEntity

from .actions import ActionContext
from .context import ManagedContentContext
from .data import FieldDefinition, SaveAction

logger = getLogger(__name__)

_NOT_LOADED = object()


class ManagedContentItem:
    """
    One reference from a host to a managed entity.
    """

    def __init__(
        self,
        context: ManagedContentContext,
        field_definition: FieldDefinition,
        host: ContentEntity | None = None,
        value: Any = None,
    ):
        self.context = context
        self.field_definition = field_definition
        self.host = host
        self.target_id: int | None = None
        self._entity: Any = _NOT_LOADED
        self._action: SaveAction | None = None
        self._modified = False
        if value is not None:
            self.set_value(value)

    def __repr__(self):
        return f"<{self.__class__.__name__} target={self.target_id} action={self._action} modified={self._modified}>"

    # Entity

    @property
    def entity(self) -> ContentEntity | None:
        """
        The referenced entity, loaded on first access.
        """
        if self._entity is _NOT_LOADED:
            self._entity = self.context.storage.load(self.target_id)
        return self._entity

    @entity.setter
    def entity(self, entity: ContentEntity | None) -> None:
        self._entity = entity
        self.target_id = entity.id if entity is not None else None

    def has_new_entity(self) -> bool:
        return self._entity is not _NOT_LOADED and self._entity is not None and self._entity.is_new

    def is_empty(self) -> bool:
        if self._entity is _NOT_LOADED:
            return self.target_id is None
        return self._entity is None

    # Action and modified flag

    def get_save_action(self) -> SaveAction | None:
        return self._action

    def set_save_action(self, action: SaveAction | str | None) -> None:
        self._action = SaveAction(action) if action else None

    def is_modified(self) -> bool:
        return self._modified

    def set_modified(self, modified: bool = True) -> None:
        self._modified = bool(modified)

    # Serialization

    def get_value(self) -> dict[str, Any]:
        value: dict[str, Any] = {
            "target_id": self.target_id,
            "action": self._action,
            "modified": self._modified,
        }
        if self._entity is not _NOT_LOADED:
            value["entity"] = self._entity
        return value

    def set_value(self, value: Any) -> None:
        """
        Accepts a target id, an entity, or a dict as returned by ``get_value``.
        """
        if isinstance(value, ContentEntity):
            value = {"entity": value}
        elif not isinstance(value, dict):
            value = {"target_id": value}

        self.target_id = value.get("target_id")
        self._entity = _NOT_LOADED
        if "entity" in value:
            self.entity = value["entity"]
        self.set_save_action(value.get("action"))
        self.set_modified(value.get("modified", False))

    # Persistence

    def _action_context(self) -> ActionContext:
        host = self.host
        return ActionContext(
            host_id=host.id if host is not None else None,
            field_name=self.field_definition.name,
            langcode=host.language if host is not None else None,
        )

    def pre_save(self) -> None:
        """
        Replay the pending action, or save modified content, then persist the
        reference itself.
        """
        action = self.get_save_action()
        if action is not None:
            result = self.context.resolver.resolve(action, self.entity, self._action_context())
            if result.refused and self.context.strict_actions:
                raise result.error
            self.entity = result.entity
        elif self._modified and self.entity is not None:
            self.context.storage.save(self.entity)

        entity = self.entity
        if entity is not None:
            if entity.is_new:
                self.context.storage.save(entity)
            self.target_id = entity.id

    def post_save(self) -> None:
        self._action = None
        self._modified = False

    def delete(self) -> None:
        """
        The host is being deleted: always detach through ``remove``.
        """
        self.context.resolver.resolve(SaveAction.REMOVE, self.entity, self._action_context())
        self.entity = None


class ManagedContentItemList:
    """
    The full value of a managed content field on one host.
    """

    def __init__(
        self,
        context: ManagedContentContext,
        field_definition: FieldDefinition,
        host: ContentEntity | None = None,
    ):
        self.context = context
        self.field_definition = field_definition
        self.host = host
        self.items: list[ManagedContentItem] = []

    def __iter__(self):
        return iter(self.items)

    def __len__(self):
        return len(self.items)

    def __getitem__(self, delta: int) -> ManagedContentItem:
        return self.items[delta]

    @classmethod
    def load(
        cls,
        context: ManagedContentContext,
        field_definition: FieldDefinition,
        host: ContentEntity,
    ) -> ManagedContentItemList:
        """
        Load the stored value of ``field_definition`` on ``host``.
        """
        item_list = cls(context, field_definition, host)
        if not host.is_new:
            for target_id in context.storage.load_field_targets(host.id, field_definition.name):
                if target_id is not None:
                    item_list.append_item(target_id)
        return item_list

    def append_item(self, value: Any = None) -> ManagedContentItem:
        item = ManagedContentItem(self.context, self.field_definition, self.host, value)
        self.items.append(item)
        return item

    def is_empty(self) -> bool:
        return all(item.is_empty() for item in self.items)

    def filter_empty_items(self) -> None:
        self.items = [item for item in self.items if not item.is_empty()]

    def get_value(self) -> list[dict[str, Any]]:
        return [item.get_value() for item in self.items]

    def set_value(self, values: list[Any]) -> None:
        self.items = []
        for value in values:
            self.append_item(value)

    def referenced_entities(self) -> list[ContentEntity]:
        return [item.entity for item in self.items if item.entity is not None]

    def target_ids(self) -> list[int]:
        return [item.target_id for item in self.items if item.target_id is not None]

    def pre_save(self) -> None:
        for item in self.items:
            item.pre_save()
        self.filter_empty_items()

    def post_save(self) -> None:
        self.context.storage.save_field_targets(self.host.id, self.field_definition.name, self.target_ids())
        for item in self.items:
            item.post_save()
        logger.info(
            f"Saved {len(self.items)} managed items in {self.field_definition.name} of host {self.host.id}"
        )

    def delete(self) -> None:
        for item in self.items:
            item.delete()
