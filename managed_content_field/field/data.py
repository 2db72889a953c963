"""
Enums and small value types shared by the managed content field engine.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

# Cardinality value for fields that accept any number of items.
CARDINALITY_UNLIMITED = -1


class ItemType(StrEnum):
    """
    What a widget slot holds.

    ``item`` is an entity edited inline; ``revise`` and ``clone`` are pickers
    for existing content that will be revised or cloned on save.
    """
    ITEM = "item"
    REVISE = "revise"
    CLONE = "clone"


class ItemMode(StrEnum):
    EDIT = "edit"
    CLOSED = "closed"
    REMOVE = "remove"


class SaveAction(StrEnum):
    """
    Action replayed on the referenced entity when the host is saved.
    """
    REVISE = "revise"
    CLONE = "clone"
    REMOVE = "remove"


class PendingAction(StrEnum):
    """
    What the next render should add to the widget.
    """
    CREATE = "create"
    REVISE = "revise"
    CLONE = "clone"


class EditMode(StrEnum):
    OPEN = "open"
    CLOSED = "closed"


class Autocollapse(StrEnum):
    NONE = "none"
    ALL = "all"


class SubformKind(StrEnum):
    EDIT_ENTITY = "edit_entity"
    REFERENCE_PICKER = "reference_picker"
    REMOVE_CONFIRMATION = "remove_confirmation"
    COLLAPSED = "collapsed"
    NONE = "none"


class SubmitHandler(StrEnum):
    ADD_MORE = "add_more"
    ADD_REVISE = "add_revise"
    ADD_CLONE = "add_clone"
    ITEM_ACTION = "item_action"
    CHANGE_ALL_EDIT_MODE = "change_all_edit_mode"


@dataclass(frozen=True)
class FieldDefinition:
    """
    Configuration of one managed content field on a host bundle.

    ``target_bundles`` empty means every bundle may be referenced.
    """
    name: str
    label: str = ""
    target_bundles: tuple[str, ...] = ()
    cardinality: int = CARDINALITY_UNLIMITED
    required: bool = False
    description: str = ""
    settings: dict = field(default_factory=dict, hash=False, compare=False)

    @property
    def is_unlimited(self) -> bool:
        return self.cardinality == CARDINALITY_UNLIMITED

    def get_label(self) -> str:
        return self.label or self.name
