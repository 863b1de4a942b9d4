"""Form document store domain manager.

The single authority over the form being edited: the ordered field sequence,
the form settings, the current selection, the preview flag, the undo/redo
history and the one-slot "recently deleted" buffer. Views read from the store
and dispatch intents to it; every change is announced on the event bus.
"""

from __future__ import annotations

import logging
from dataclasses import fields as dataclass_fields
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Mapping

from ...editor.form_model import DeletedField, FieldKind, FormField, FormSettings, FormSnapshot
from ...editor.history import DEFAULT_HISTORY_LIMIT, FormHistory
from ..events import (
    Event,
    EventBus,
    FieldAdded,
    FieldRemoved,
    FieldRestored,
    FieldsReordered,
    DocumentRestored,
    FieldUpdated,
    FormReset,
    FormSettingsChanged,
    HistoryChanged,
    PreviewModeChanged,
    RecentlyDeletedChanged,
    SelectionChanged,
)

LOGGER = logging.getLogger(__name__)

_FIELD_ATTRIBUTES = frozenset(item.name for item in dataclass_fields(FormField)) - {"id"}
_SETTINGS_ATTRIBUTES = frozenset(item.name for item in dataclass_fields(FormSettings))


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FormDocumentStore:
    """Domain manager for the form under edit.

    Structural edits (add, update, remove, reorder, settings) are recorded
    as one history step each. Selection and preview changes are not
    historied on their own; selection rides along inside the snapshots taken
    for structural edits. Selection is kept as a field id and resolved on
    read, so it can never go stale after an update.

    Events Emitted:
        - FieldAdded, FieldUpdated, FieldRemoved, FieldRestored, FieldsReordered
        - FormSettingsChanged, SelectionChanged, PreviewModeChanged
        - HistoryChanged: after every history push, undo, redo or reset
        - RecentlyDeletedChanged: when the recently-deleted slot fills or empties
        - DocumentRestored: after undo or redo replaced the document
        - FormReset
    """

    def __init__(
        self,
        event_bus: EventBus | None = None,
        *,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize an empty document.

        Args:
            event_bus: Optional bus for publishing change events.
            history_limit: Maximum number of history entries kept.
            clock: Source of deletion timestamps (defaults to UTC now).
        """
        self._bus = event_bus
        self._clock = clock or _utcnow
        self._fields: list[FormField] = []
        self._settings = FormSettings()
        self._selected_id: str | None = None
        self._preview_mode = False
        self._recently_deleted: DeletedField | None = None
        self._history = FormHistory(self._capture(), limit=history_limit)

    # ------------------------------------------------------------------
    # Read surface
    # ------------------------------------------------------------------

    @property
    def fields(self) -> tuple[FormField, ...]:
        """Copies of the current fields in display order."""
        return tuple(item.copy() for item in self._fields)

    @property
    def settings(self) -> FormSettings:
        return self._settings.copy()

    @property
    def selected_id(self) -> str | None:
        """Id of the selected field, or ``None`` if it no longer exists."""
        if self._selected_id is None or self._find(self._selected_id) is None:
            return None
        return self._selected_id

    @property
    def selected_field(self) -> FormField | None:
        """A copy of the selected field resolved from the current sequence."""
        if self._selected_id is None:
            return None
        match = self._find(self._selected_id)
        return match.copy() if match is not None else None

    @property
    def preview_mode(self) -> bool:
        return self._preview_mode

    @property
    def recently_deleted(self) -> DeletedField | None:
        """A copy of the recently-deleted record, if any."""
        record = self._recently_deleted
        if record is None:
            return None
        return DeletedField(field=record.field.copy(), index=record.index, deleted_at=record.deleted_at)

    @property
    def has_recently_deleted(self) -> bool:
        return self._recently_deleted is not None

    @property
    def history_index(self) -> int:
        return self._history.index

    @property
    def history_length(self) -> int:
        return len(self._history)

    @property
    def history_limit(self) -> int:
        return self._history.limit

    def get_field(self, field_id: str) -> FormField | None:
        match = self._find(field_id)
        return match.copy() if match is not None else None

    def field_index(self, field_id: str) -> int:
        """Return the position of ``field_id`` or ``-1`` when absent."""
        for index, item in enumerate(self._fields):
            if item.id == field_id:
                return index
        return -1

    def can_undo(self) -> bool:
        return self._history.can_step_back()

    def can_redo(self) -> bool:
        return self._history.can_step_forward()

    def snapshot(self) -> dict[str, Any]:
        """Return a serializable view of the whole read surface."""

        deleted = self._recently_deleted
        return {
            "fields": [item.to_dict() for item in self._fields],
            "settings": self._settings.to_dict(),
            "selected_id": self.selected_id,
            "preview_mode": self._preview_mode,
            "history_index": self._history.index,
            "history_length": len(self._history),
            "can_undo": self.can_undo(),
            "can_redo": self.can_redo(),
            "recently_deleted": deleted.to_dict() if deleted is not None else None,
        }

    # ------------------------------------------------------------------
    # Field operations
    # ------------------------------------------------------------------

    def add_field(self, field: FormField) -> None:
        """Append ``field`` to the end of the form.

        Callers supply a fresh unique id; uniqueness is not checked here.

        Emits:
            FieldAdded, HistoryChanged, RecentlyDeletedChanged (if the slot was filled).
        """
        before = self._capture()
        self._fields.append(field.copy())
        index = len(self._fields) - 1
        LOGGER.debug("FormDocumentStore.add_field: id=%s, kind=%s, index=%d", field.id, field.kind.value, index)
        self._commit(before)
        cleared = self._drop_recently_deleted()
        self._publish(FieldAdded(field_id=field.id, index=index))
        self._publish_history()
        if cleared:
            self._publish(RecentlyDeletedChanged(field_id=None))

    def update_field(self, field_id: str, updates: Mapping[str, Any]) -> None:
        """Merge ``updates`` into the field matching ``field_id``.

        A history step is recorded even when no field matches, which keeps
        undo step counts aligned with the number of update intents.

        Emits:
            FieldUpdated, HistoryChanged, RecentlyDeletedChanged (if the slot was filled).
        """
        before = self._capture()
        target = self._find(field_id)
        changed: list[str] = []
        if target is None:
            LOGGER.warning("FormDocumentStore.update_field: unknown field_id=%s", field_id)
        else:
            staged = self._stage_field_updates(field_id, updates)
            for name, value in staged.items():
                setattr(target, name, value)
                changed.append(name)
            LOGGER.debug("FormDocumentStore.update_field: id=%s, changed=%s", field_id, changed)
        self._commit(before)
        cleared = self._drop_recently_deleted()
        self._publish(FieldUpdated(field_id=field_id, changed=tuple(changed), found=target is not None))
        self._publish_history()
        if cleared:
            self._publish(RecentlyDeletedChanged(field_id=None))

    def remove_field(self, field_id: str) -> bool:
        """Delete the field matching ``field_id`` and remember it for undo-delete.

        Returns:
            True if a field was removed; False (and no history step) otherwise.

        Emits:
            FieldRemoved, HistoryChanged, RecentlyDeletedChanged,
            SelectionChanged (if the removed field was selected).
        """
        index = self.field_index(field_id)
        if index < 0:
            LOGGER.debug("FormDocumentStore.remove_field: unknown field_id=%s", field_id)
            return False

        before = self._capture()
        removed = self._fields.pop(index)
        was_selected = self._selected_id == field_id
        if was_selected:
            self._selected_id = None
        self._recently_deleted = DeletedField(field=removed.copy(), index=index, deleted_at=self._clock())
        LOGGER.debug("FormDocumentStore.remove_field: id=%s, index=%d", field_id, index)
        self._commit(before)
        self._publish(FieldRemoved(field_id=field_id, index=index))
        if was_selected:
            self._publish(SelectionChanged(field_id=None))
        self._publish_history()
        self._publish(RecentlyDeletedChanged(field_id=field_id, index=index))
        return True

    def select_field(self, field: FormField | str | None) -> None:
        """Select a field (by object or id) or clear the selection with ``None``.

        Ids that are not in the form clear the selection.

        Emits:
            SelectionChanged: When the selected id actually changes.
        """
        field_id = field.id if isinstance(field, FormField) else field
        if field_id is not None and self._find(field_id) is None:
            LOGGER.debug("FormDocumentStore.select_field: unknown field_id=%s, clearing selection", field_id)
            field_id = None
        if field_id == self._selected_id:
            return
        self._selected_id = field_id
        LOGGER.debug("FormDocumentStore.select_field: id=%s", field_id)
        self._publish(SelectionChanged(field_id=field_id))

    def reorder_fields(self, fields: Iterable[FormField]) -> None:
        """Replace the field sequence wholesale (e.g. after a drag-and-drop).

        Emits:
            FieldsReordered, HistoryChanged, RecentlyDeletedChanged (if the slot was filled).
        """
        before = self._capture()
        self._fields = [item.copy() for item in fields]
        order = tuple(item.id for item in self._fields)
        LOGGER.debug("FormDocumentStore.reorder_fields: order=%s", order)
        self._commit(before)
        cleared = self._drop_recently_deleted()
        self._publish(FieldsReordered(field_ids=order))
        self._publish_history()
        if cleared:
            self._publish(RecentlyDeletedChanged(field_id=None))

    # ------------------------------------------------------------------
    # Form-level operations
    # ------------------------------------------------------------------

    def update_settings(self, updates: Mapping[str, Any]) -> None:
        """Merge ``updates`` into the form settings.

        Emits:
            FormSettingsChanged, HistoryChanged, RecentlyDeletedChanged (if the slot was filled).
        """
        before = self._capture()
        changed: list[str] = []
        for name, value in updates.items():
            if name not in _SETTINGS_ATTRIBUTES:
                LOGGER.warning("FormDocumentStore.update_settings: ignoring unknown setting %r", name)
                continue
            setattr(self._settings, name, value)
            changed.append(name)
        LOGGER.debug("FormDocumentStore.update_settings: changed=%s", changed)
        self._commit(before)
        cleared = self._drop_recently_deleted()
        self._publish(FormSettingsChanged(changed=tuple(changed)))
        self._publish_history()
        if cleared:
            self._publish(RecentlyDeletedChanged(field_id=None))

    def set_preview_mode(self, enabled: bool) -> None:
        enabled = bool(enabled)
        if enabled == self._preview_mode:
            return
        self._preview_mode = enabled
        LOGGER.debug("FormDocumentStore.set_preview_mode: %s", enabled)
        self._publish(PreviewModeChanged(enabled=enabled))

    def toggle_preview_mode(self) -> bool:
        """Flip the preview flag and return the new value."""
        self.set_preview_mode(not self._preview_mode)
        return self._preview_mode

    def reset(self) -> None:
        """Clear the document and discard all history.

        Emits:
            FormReset, HistoryChanged, plus SelectionChanged, PreviewModeChanged
            and RecentlyDeletedChanged when those were set.
        """
        had_selection = self._selected_id is not None
        had_preview = self._preview_mode
        cleared = self._recently_deleted is not None
        self._fields = []
        self._settings = FormSettings()
        self._selected_id = None
        self._preview_mode = False
        self._recently_deleted = None
        self._history.reset(self._capture())
        LOGGER.debug("FormDocumentStore.reset")
        self._publish(FormReset())
        if had_selection:
            self._publish(SelectionChanged(field_id=None))
        if had_preview:
            self._publish(PreviewModeChanged(enabled=False))
        self._publish_history()
        if cleared:
            self._publish(RecentlyDeletedChanged(field_id=None))

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def undo(self) -> bool:
        """Step back one history entry.

        Returns:
            True if the document changed; False at the oldest entry.
        """
        entry = self._history.step_back()
        if entry is None:
            return False
        LOGGER.debug("FormDocumentStore.undo: index=%d", self._history.index)
        self._restore(entry, "undo")
        return True

    def redo(self) -> bool:
        """Step forward one history entry.

        Returns:
            True if the document changed; False at the newest entry.
        """
        entry = self._history.step_forward()
        if entry is None:
            return False
        LOGGER.debug("FormDocumentStore.redo: index=%d", self._history.index)
        self._restore(entry, "redo")
        return True

    # ------------------------------------------------------------------
    # Undo delete
    # ------------------------------------------------------------------

    def undo_delete(self) -> bool:
        """Reinsert the most recently deleted field at its original index.

        The index is clamped to the end of the sequence if the form has since
        shrunk. This does not touch the undo/redo history.

        Returns:
            True if a field was restored.

        Emits:
            FieldRestored, RecentlyDeletedChanged.
        """
        record = self._recently_deleted
        if record is None:
            return False
        index = min(max(record.index, 0), len(self._fields))
        self._fields.insert(index, record.field.copy())
        self._recently_deleted = None
        LOGGER.debug(
            "FormDocumentStore.undo_delete: id=%s, recorded_index=%d, index=%d",
            record.field.id,
            record.index,
            index,
        )
        self._publish(FieldRestored(field_id=record.field.id, index=index))
        self._publish(RecentlyDeletedChanged(field_id=None))
        return True

    def clear_recently_deleted(self) -> None:
        """Forget the recently deleted field (toast dismissed or timed out)."""
        if self._drop_recently_deleted():
            self._publish(RecentlyDeletedChanged(field_id=None))

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _find(self, field_id: str) -> FormField | None:
        for item in self._fields:
            if item.id == field_id:
                return item
        return None

    def _stage_field_updates(self, field_id: str, updates: Mapping[str, Any]) -> dict[str, Any]:
        """Validate ``updates`` up front so a bad value never half-applies an edit."""
        staged: dict[str, Any] = {}
        for name, value in updates.items():
            if name not in _FIELD_ATTRIBUTES:
                LOGGER.warning(
                    "FormDocumentStore.update_field: ignoring attribute %r for field_id=%s",
                    name,
                    field_id,
                )
                continue
            if name == "kind":
                try:
                    value = FieldKind.coerce(value)
                except ValueError:
                    LOGGER.warning(
                        "FormDocumentStore.update_field: ignoring invalid kind %r for field_id=%s",
                        value,
                        field_id,
                    )
                    continue
            elif name == "options" and value is not None:
                value = list(value)
            staged[name] = value
        return staged

    def _capture(self) -> FormSnapshot:
        return FormSnapshot.capture(self._fields, self._settings, self._selected_id)

    def _commit(self, before: FormSnapshot) -> None:
        dropped = self._history.record(before, self._capture())
        if dropped:
            LOGGER.debug("FormDocumentStore: history capped at %d entries", self._history.limit)

    def _restore(self, entry: FormSnapshot, source: str) -> None:
        previous_selection = self._selected_id
        self._fields, self._settings, self._selected_id = entry.restore()
        cleared = self._drop_recently_deleted()
        self._publish(DocumentRestored(source=source, index=self._history.index))
        if self._selected_id != previous_selection:
            self._publish(SelectionChanged(field_id=self._selected_id))
        self._publish_history()
        if cleared:
            self._publish(RecentlyDeletedChanged(field_id=None))

    def _drop_recently_deleted(self) -> bool:
        if self._recently_deleted is None:
            return False
        self._recently_deleted = None
        return True

    def _publish_history(self) -> None:
        self._publish(HistoryChanged(
            index=self._history.index,
            length=len(self._history),
            can_undo=self.can_undo(),
            can_redo=self.can_redo(),
        ))

    def _publish(self, event: Event) -> None:
        if self._bus is not None:
            self._bus.publish(event)


__all__ = ["FormDocumentStore"]
