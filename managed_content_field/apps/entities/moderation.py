"""
Moderation workflows for managed entities.

Workflows are configured in ``settings.MANAGED_CONTENT["WORKFLOWS"]``. Each one
governs a list of bundles and defines a set of states. A state says whether
content in it is published and whether a revision saved in it becomes the
default (canonical) revision::

    "editorial": {
        "label": "Editorial",
        "bundles": ["article"],
        "initial_state": "draft",
        "states": {
            "draft": {"label": "Draft", "published": False, "default_revision": False},
            "published": {"label": "Published", "published": True, "default_revision": True},
            "archived": {"label": "Archived", "published": False, "default_revision": True},
        },
    }

This module only answers questions about workflows. Transitions between states
are not modeled here.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from django.core.exceptions import ImproperlyConfigured

from managed_content_field.conf import get_setting
from managed_content_field.lib.cache import lru_cache

if TYPE_CHECKING:
    from .data import ContentEntity

__all__ = [
    "WorkflowState",
    "WorkflowType",
    "Workflow",
    "ModerationInformation",
    "get_moderation_information",
]


@dataclass(frozen=True)
class WorkflowState:
    """
    One state of a moderation workflow.
    """
    id: str
    label: str
    published: bool = False
    default_revision: bool = False

    def is_published_state(self) -> bool:
        return self.published

    def is_default_revision_state(self) -> bool:
        # Published states always produce the canonical revision.
        return self.published or self.default_revision


@dataclass(frozen=True)
class WorkflowType:
    """
    The state definitions of a workflow.
    """
    states: dict[str, WorkflowState] = field(hash=False)
    initial_state: str = ""

    def has_state(self, state_id: str) -> bool:
        return state_id in self.states

    def get_state(self, state_id: str) -> WorkflowState:
        try:
            return self.states[state_id]
        except KeyError as exc:
            raise ValueError(f"Workflow has no state '{state_id}'.") from exc

    def get_initial_state(self, entity: ContentEntity | None = None) -> WorkflowState:
        """
        The state new content should start in.

        Saved content that already sits in a known state keeps it.
        """
        if entity is not None and not entity.is_new and self.has_state(entity.moderation_state):
            return self.states[entity.moderation_state]
        return self.states[self.initial_state]


@dataclass(frozen=True)
class Workflow:
    id: str
    label: str
    bundles: tuple[str, ...]
    type_plugin: WorkflowType

    def get_type_plugin(self) -> WorkflowType:
        return self.type_plugin


class ModerationInformation:
    """
    Answers "which workflow governs this entity?" and related questions.
    """

    def __init__(self, workflows: list[Workflow]):
        self._by_bundle: dict[str, Workflow] = {}
        for workflow in workflows:
            for bundle_key in workflow.bundles:
                self._by_bundle[bundle_key] = workflow

    def get_workflow_for_bundle(self, bundle_key: str) -> Workflow | None:
        return self._by_bundle.get(bundle_key)

    def get_workflow_for_entity(self, entity: ContentEntity) -> Workflow | None:
        return self.get_workflow_for_bundle(entity.bundle.key)

    def is_moderated_entity(self, entity: ContentEntity) -> bool:
        return self.get_workflow_for_entity(entity) is not None

    def should_moderate_bundle(self, bundle_key: str) -> bool:
        return bundle_key in self._by_bundle

    def get_state_label(self, entity: ContentEntity) -> str | None:
        """
        Label of ``entity``'s moderation state, or None if not moderated.
        """
        workflow = self.get_workflow_for_entity(entity)
        if workflow is None:
            return None
        type_plugin = workflow.get_type_plugin()
        if not type_plugin.has_state(entity.moderation_state):
            return None
        return type_plugin.get_state(entity.moderation_state).label


def build_workflow(workflow_id: str, config: dict) -> Workflow:
    """
    Build a Workflow from one ``WORKFLOWS`` entry.
    """
    states = {
        state_id: WorkflowState(
            id=state_id,
            label=state_config.get("label", state_id.capitalize()),
            published=bool(state_config.get("published", False)),
            default_revision=bool(state_config.get("default_revision", False)),
        )
        for state_id, state_config in config.get("states", {}).items()
    }
    initial_state = config.get("initial_state", "draft")
    if initial_state not in states:
        raise ImproperlyConfigured(
            f"Workflow '{workflow_id}' has initial_state '{initial_state}' "
            f"which is not one of its states."
        )
    return Workflow(
        id=workflow_id,
        label=config.get("label", workflow_id),
        bundles=tuple(config.get("bundles", ())),
        type_plugin=WorkflowType(states=states, initial_state=initial_state),
    )


@lru_cache(maxsize=1)
def get_moderation_information() -> ModerationInformation | None:
    """
    The site's moderation information, or None when moderation is disabled.
    """
    configured = get_setting("WORKFLOWS")
    if not configured:
        return None
    return ModerationInformation([
        build_workflow(workflow_id, config)
        for workflow_id, config in configured.items()
    ])
