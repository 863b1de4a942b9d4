"""Builder session bootstrap.

Creates the event bus, the form document store and every collaborator that
reads from or dispatches to it, wired together by constructor injection.
There is no module-level store: each call returns a fresh, independent
session.

Usage:
    from formkit.ui.bootstrap import create_builder

    session = create_builder(settings)
    session.store.add_field(create_field(FieldKind.TEXT))
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping

from ..services.settings import BuilderSettings
from .application.field_ops import FieldPropertyEditor
from .domain.form_store import FormDocumentStore
from .events import EventBus
from .shortcuts import ShortcutRouter
from .undo_toast import Scheduler, UndoToastController
from .window_shell import BuilderWindowShell

_LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class BuilderSession:
    """Everything one builder window needs, owned for the window's lifetime."""

    settings: BuilderSettings
    event_bus: EventBus
    store: FormDocumentStore
    shell: BuilderWindowShell
    toast: UndoToastController
    editor: FieldPropertyEditor

    @property
    def router(self) -> ShortcutRouter:
        return self.shell.router

    def close(self) -> None:
        """Drop every event subscription made for this session."""

        self.event_bus.clear()
        _LOGGER.debug("Builder session closed")


def create_builder(
    settings: BuilderSettings | None = None,
    *,
    scheduler: Scheduler | None = None,
    callbacks: Mapping[str, Callable[[], Any]] | None = None,
) -> BuilderSession:
    """Create and wire a builder session.

    Args:
        settings: Effective settings; defaults are used when omitted.
        scheduler: Timer used by the undo toast. Defaults to ``QTimer.singleShot``.
        callbacks: Optional replacements for header action callbacks
            (e.g. ``{"form_save": ...}``).

    Returns:
        A :class:`BuilderSession` holding the bus, store and collaborators.
    """
    active = settings or BuilderSettings()
    _LOGGER.info("Bootstrapping builder session (history_limit=%d)", active.history_limit)

    event_bus = EventBus()
    store = FormDocumentStore(event_bus, history_limit=active.history_limit)
    shell = BuilderWindowShell(store, event_bus, callbacks=callbacks)
    toast = UndoToastController(
        store,
        event_bus,
        timeout_ms=active.undo_toast_timeout_ms,
        scheduler=scheduler,
    )
    editor = FieldPropertyEditor(store)

    _LOGGER.debug("Builder session ready: shortcuts=%s", sorted(shell.router.bindings()))
    return BuilderSession(
        settings=active,
        event_bus=event_bus,
        store=store,
        shell=shell,
        toast=toast,
        editor=editor,
    )


__all__ = ["BuilderSession", "create_builder"]
