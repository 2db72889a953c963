"""
Managed content widget signals.
"""
from django.dispatch import Signal


# The WIDGET_ACTIONS_ALTER signal is sent:
#
# * AFTER the widget has decided which buttons a slot gets (remove, collapse,
#   edit, restore) and what their access flags are.
# * BEFORE the buttons are attached to the SlotElement handed to the renderer.
#
# Receivers may add, remove or change entries of ``widget_actions["actions"]``
# and ``widget_actions["dropdown_actions"]`` in place, e.g. to add a project
# specific "duplicate" button or to hide "remove" for some bundles. Return
# values are ignored.
#
# Signal handlers should be simple and fast: they run on every render of every
# slot.
#
# providing_args=[
#     'widget_actions',  # {"actions": {name: ActionButton}, "dropdown_actions": {...}}
#     'context',         # dict with: widget, widget_state, key, slot, form_state,
#                        # entity, is_translating, allow_reference_changes
# ]
WIDGET_ACTIONS_ALTER = Signal()
