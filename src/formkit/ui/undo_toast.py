"""Controller behind the undo toast shown after a field is deleted."""

from __future__ import annotations

import logging
from typing import Callable

from .domain.form_store import FormDocumentStore
from .events import EventBus, RecentlyDeletedChanged

__all__ = ["UndoToastController", "Scheduler", "qt_single_shot"]

LOGGER = logging.getLogger(__name__)

Scheduler = Callable[[int, Callable[[], None]], None]

DEFAULT_TIMEOUT_MS = 5_000


def qt_single_shot(timeout_ms: int, callback: Callable[[], None]) -> None:
    """Run ``callback`` once after ``timeout_ms`` on the Qt event loop."""

    from PySide6.QtCore import QTimer

    QTimer.singleShot(timeout_ms, callback)


class UndoToastController:
    """Tracks the recently-deleted slot and expires it after a timeout.

    The toast is visible while the store holds a deletion record. Each new
    deletion starts a fresh timer; timers started for an earlier deletion are
    ignored when they fire.
    """

    def __init__(
        self,
        store: FormDocumentStore,
        event_bus: EventBus,
        *,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        scheduler: Scheduler | None = None,
    ) -> None:
        self._store = store
        self._bus = event_bus
        self._timeout_ms = max(0, int(timeout_ms))
        self._schedule = scheduler or qt_single_shot
        self._generation = 0
        self._bus.subscribe(RecentlyDeletedChanged, self._on_recently_deleted_changed)

    @property
    def timeout_ms(self) -> int:
        return self._timeout_ms

    @property
    def visible(self) -> bool:
        return self._store.has_recently_deleted

    @property
    def message(self) -> str:
        record = self._store.recently_deleted
        if record is None:
            return ""
        return f'Deleted "{record.field.label}"'

    def undo(self) -> bool:
        """Put the deleted field back (toast action button)."""

        return self._store.undo_delete()

    def dismiss(self) -> None:
        self._store.clear_recently_deleted()

    def _on_recently_deleted_changed(self, event: RecentlyDeletedChanged) -> None:
        self._generation += 1
        if event.field_id is None:
            return
        generation = self._generation
        LOGGER.debug(
            "UndoToastController: showing toast for field_id=%s (timeout=%dms)",
            event.field_id,
            self._timeout_ms,
        )
        self._schedule(self._timeout_ms, lambda: self._expire(generation))

    def _expire(self, generation: int) -> None:
        if generation != self._generation:
            return
        LOGGER.debug("UndoToastController: toast expired")
        self._store.clear_recently_deleted()
