"""
Form state: everything a multi-step form submission carries between requests.

The widget never talks to an HTTP request directly. The embedding view builds
a ``FormState`` from the request (user input, triggering button, language) and
keeps ``storage`` around between rebuilds, e.g. in the session.
"""
from __future__ import annotations

from typing import Any, Sequence

from managed_content_field.lib.nested import get_nested_value, set_nested_value


def element_path_key(path: Sequence) -> str:
    """
    Stable string key for an element path, e.g. ``field_items][3][subform``.
    """
    return "][".join(str(part) for part in path)


class FormState:
    """
    State of one form submission.

    * ``storage``: opaque data kept across rebuilds (widget state lives here).
    * ``user_input``: raw submitted values, nested by element path.
    * ``values``: processed values, filled in by the widgets.
    * ``triggering_element``: the button that submitted the form.
    * ``errors``: validation messages keyed by element path.
    * ``limit_validation_errors``: when set, only these element paths are
      validated (used by buttons that only touch one slot).
    """

    def __init__(
        self,
        user_input: dict | None = None,
        *,
        storage: dict | None = None,
        langcode: str | None = None,
        content_translation: dict | None = None,
        programmed: bool = False,
    ):
        self.storage: dict = storage if storage is not None else {}
        self.user_input: dict = user_input if user_input is not None else {}
        self.values: dict = {}
        self.langcode = langcode
        self.content_translation = content_translation
        self.programmed = programmed
        self.triggering_element = None
        self.limit_validation_errors: list[list] | None = None
        self.errors: dict[str, str] = {}
        self._rebuild = False
        self._rebuilding = False

    # Storage

    def get(self, parents: Sequence, default: Any = None) -> Any:
        return get_nested_value(self.storage, parents, default)

    def set(self, parents: Sequence, value: Any) -> None:
        set_nested_value(self.storage, parents, value)

    # User input

    def get_user_input(self, parents: Sequence, default: Any = None) -> Any:
        return get_nested_value(self.user_input, parents, default)

    def set_user_input(self, parents: Sequence, value: Any) -> None:
        set_nested_value(self.user_input, parents, value)

    def get_value(self, parents: Sequence, default: Any = None) -> Any:
        return get_nested_value(self.values, parents, default)

    def set_value(self, parents: Sequence, value: Any) -> None:
        set_nested_value(self.values, parents, value)

    # Submission

    def set_triggering_element(self, button) -> None:
        self.triggering_element = button
        self.limit_validation_errors = button.limit_validation_errors if button is not None else None

    def set_rebuild(self, rebuild: bool = True) -> None:
        self._rebuild = rebuild

    def is_rebuild_requested(self) -> bool:
        return self._rebuild

    def is_rebuilding(self) -> bool:
        return self._rebuilding

    def start_rebuild(self) -> FormState:
        """
        The next render of the same form, sharing storage and user input.
        """
        rebuilt = FormState(
            self.user_input,
            storage=self.storage,
            langcode=self.langcode,
            content_translation=self.content_translation,
            programmed=self.programmed,
        )
        rebuilt._rebuilding = True  # pylint: disable=protected-access
        return rebuilt

    # Errors

    def set_error(self, path: Sequence, message: str) -> None:
        """
        Record an error, unless ``path`` is outside the validation limits.

        The first error recorded for a path wins.
        """
        if not self.should_validate(path):
            return
        self.errors.setdefault(element_path_key(path), str(message))

    def get_error(self, path: Sequence) -> str | None:
        return self.errors.get(element_path_key(path))

    def has_errors(self) -> bool:
        return bool(self.errors)

    def should_validate(self, path: Sequence) -> bool:
        """
        Whether errors on ``path`` count under the current limits.
        """
        if self.limit_validation_errors is None:
            return True
        path = [str(part) for part in path]
        for limit in self.limit_validation_errors:
            limit = [str(part) for part in limit]
            if path[:len(limit)] == limit:
                return True
        return False
