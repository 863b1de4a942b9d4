"""Property panel use cases.

Each control in the properties panel edits either the selected field or the
form-level settings; settings edits apply whether or not a field is
selected. These use cases translate a single control change into a single
store update, so one edit is one undo step.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ...editor.form_model import FormField, FormSettings
from ...editor.palette import next_option_label

if TYPE_CHECKING:  # pragma: no cover - imports for type checking only
    from ..domain.form_store import FormDocumentStore

LOGGER = logging.getLogger(__name__)

_SETTING_NAMES = frozenset(FormSettings.__dataclass_fields__)  # type: ignore[attr-defined]


class FieldPropertyEditor:
    """Edits the store's selected field on behalf of the properties panel.

    Every method returns ``True`` when it dispatched an update and ``False``
    when there was nothing to do (no selection, wrong field kind, index out
    of range).
    """

    __slots__ = ("_store",)

    def __init__(self, store: FormDocumentStore) -> None:
        self._store = store

    @property
    def selected(self) -> FormField | None:
        return self._store.selected_field

    def set_label(self, value: str) -> bool:
        return self._update({"label": value})

    def set_placeholder(self, value: str) -> bool:
        field = self._store.selected_field
        if field is None or not field.supports_placeholder:
            return False
        return self._update({"placeholder": value}, field)

    def set_required(self, value: bool) -> bool:
        return self._update({"required": bool(value)})

    def add_option(self) -> bool:
        field = self._option_field()
        if field is None:
            return False
        options = list(field.options or [])
        options.append(next_option_label(options))
        return self._update({"options": options}, field)

    def remove_option(self, index: int) -> bool:
        field = self._option_field()
        if field is None:
            return False
        options = list(field.options or [])
        if not 0 <= index < len(options):
            LOGGER.debug("FieldPropertyEditor.remove_option: index %d out of range", index)
            return False
        del options[index]
        return self._update({"options": options}, field)

    def update_option(self, index: int, value: str) -> bool:
        field = self._option_field()
        if field is None:
            return False
        options = list(field.options or [])
        if not 0 <= index < len(options):
            LOGGER.debug("FieldPropertyEditor.update_option: index %d out of range", index)
            return False
        options[index] = value
        return self._update({"options": options}, field)

    def set_form_setting(self, name: str, value: Any) -> bool:
        """Write one form-level setting (title, description, toggles)."""

        if name not in _SETTING_NAMES:
            LOGGER.warning("FieldPropertyEditor.set_form_setting: unknown setting %r", name)
            return False
        self._store.update_settings({name: value})
        return True

    def _option_field(self) -> FormField | None:
        field = self._store.selected_field
        if field is None or not field.supports_options:
            return None
        return field

    def _update(self, updates: dict[str, Any], field: FormField | None = None) -> bool:
        target = field or self._store.selected_field
        if target is None:
            return False
        self._store.update_field(target.id, updates)
        return True


__all__ = ["FieldPropertyEditor"]
