"""Header actions for the builder window and their menu/toolbar wiring."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from .domain.form_store import FormDocumentStore
from .events import EventBus, HistoryChanged, NoticePosted, PreviewModeChanged
from .models.actions import MenuSpec, ToolbarSpec, WindowAction
from .shortcuts import ShortcutRouter

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class _ActionDefinition:
    """Static metadata describing a header action."""

    name: str
    text: str
    shortcuts: Tuple[str, ...]
    status_tip: Optional[str]


_ACTION_DEFINITIONS: Tuple[_ActionDefinition, ...] = (
    _ActionDefinition(
        name="edit_undo",
        text="Undo",
        shortcuts=("Ctrl+Z",),
        status_tip="Undo last action",
    ),
    _ActionDefinition(
        name="edit_redo",
        text="Redo",
        shortcuts=("Ctrl+Shift+Z", "Ctrl+Y"),
        status_tip="Redo last action",
    ),
    _ActionDefinition(
        name="view_toggle_preview",
        text="Preview",
        shortcuts=("Ctrl+P",),
        status_tip="Switch to preview mode",
    ),
    _ActionDefinition(
        name="form_save",
        text="Save",
        shortcuts=(),
        status_tip="Save form",
    ),
    _ActionDefinition(
        name="form_share",
        text="Share",
        shortcuts=(),
        status_tip="Share form",
    ),
)


_DEFAULT_MENUS: Tuple[MenuSpec, ...] = (
    MenuSpec(name="file", title="&File", actions=("form_save", "form_share")),
    MenuSpec(name="edit", title="&Edit", actions=("edit_undo", "edit_redo")),
    MenuSpec(name="view", title="&View", actions=("view_toggle_preview",)),
)


_DEFAULT_TOOLBARS: Tuple[ToolbarSpec, ...] = (
    ToolbarSpec(name="history", actions=("edit_undo", "edit_redo")),
    ToolbarSpec(name="form", actions=("view_toggle_preview", "form_save", "form_share")),
)


class BuilderWindowShell:
    """Declarative header for the builder: actions, menus, toolbars, shortcuts.

    Undo/redo enablement follows ``HistoryChanged`` events and the preview
    action flips between "Preview" and "Edit" on ``PreviewModeChanged``.
    Save and share are hooks: unless callbacks are supplied they only post a
    notice.
    """

    def __init__(
        self,
        store: FormDocumentStore,
        event_bus: EventBus,
        *,
        callbacks: Mapping[str, Callable[[], Any]] | None = None,
    ) -> None:
        self._store = store
        self._bus = event_bus
        defaults: Dict[str, Callable[[], Any]] = {
            "edit_undo": store.undo,
            "edit_redo": store.redo,
            "view_toggle_preview": store.toggle_preview_mode,
            "form_save": lambda: self._post_unavailable("Saving"),
            "form_share": lambda: self._post_unavailable("Sharing"),
        }
        defaults.update(callbacks or {})
        self._callbacks = defaults
        self._actions = self._create_actions()
        self._menus = {menu.name: menu for menu in _DEFAULT_MENUS}
        self._toolbars = {toolbar.name: toolbar for toolbar in _DEFAULT_TOOLBARS}
        self._router = ShortcutRouter(self._actions.values())
        self._qt_actions: Dict[str, Any] = {}

        self._bus.subscribe(HistoryChanged, self._on_history_changed)
        self._bus.subscribe(PreviewModeChanged, self._on_preview_mode_changed)
        self.sync_action_state()

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def actions(self) -> Dict[str, WindowAction]:
        return dict(self._actions)

    @property
    def menus(self) -> Dict[str, MenuSpec]:
        return dict(self._menus)

    @property
    def toolbars(self) -> Dict[str, ToolbarSpec]:
        return dict(self._toolbars)

    @property
    def router(self) -> ShortcutRouter:
        return self._router

    def action(self, name: str) -> WindowAction:
        return self._actions[name]

    def trigger(self, name: str) -> bool:
        return self._actions[name].trigger()

    def handle_shortcut(self, chord: str) -> bool:
        return self._router.handle(chord)

    # ------------------------------------------------------------------
    # State sync
    # ------------------------------------------------------------------
    def sync_action_state(self) -> None:
        """Refresh enablement and labels from the store's current state."""

        self._actions["edit_undo"].enabled = self._store.can_undo()
        self._actions["edit_redo"].enabled = self._store.can_redo()
        preview = self._actions["view_toggle_preview"]
        if self._store.preview_mode:
            preview.text = "Edit"
            preview.status_tip = "Switch to edit mode"
        else:
            preview.text = "Preview"
            preview.status_tip = "Switch to preview mode"
        self._sync_qt_actions()

    def _on_history_changed(self, event: HistoryChanged) -> None:
        del event
        self.sync_action_state()

    def _on_preview_mode_changed(self, event: PreviewModeChanged) -> None:
        del event
        self.sync_action_state()

    def _post_unavailable(self, feature: str) -> None:
        LOGGER.info("%s is not available in this build", feature)
        self._bus.publish(NoticePosted(message=f"{feature} forms is not available yet."))

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------
    def _create_actions(self) -> Dict[str, WindowAction]:
        actions: Dict[str, WindowAction] = {}
        for definition in _ACTION_DEFINITIONS:
            callback = self._callbacks.get(definition.name)
            if callback is None:
                raise KeyError(f"Missing callback for action '{definition.name}'")
            actions[definition.name] = WindowAction(
                name=definition.name,
                text=definition.text,
                shortcuts=definition.shortcuts,
                status_tip=definition.status_tip,
                callback=callback,
            )
        return actions

    # ------------------------------------------------------------------
    # Qt wiring
    # ------------------------------------------------------------------
    def install_qt_actions(self, window: Any) -> Dict[str, Any]:
        """Create ``QAction`` objects, menus and toolbars on a ``QMainWindow``.

        Returns an empty mapping when PySide6 is not installed.
        """

        try:
            from PySide6.QtGui import QAction, QKeySequence
        except ImportError:
            LOGGER.debug("PySide6 unavailable; skipping Qt action install")
            return {}

        qt_actions: Dict[str, Any] = {}
        for action in self._actions.values():
            qt_action = QAction(action.text, window)
            if action.shortcuts:
                qt_action.setShortcuts([QKeySequence(chord) for chord in action.shortcuts])
            if action.status_tip:
                qt_action.setStatusTip(action.status_tip)
            qt_action.triggered.connect(lambda _checked=False, target=action: target.trigger())
            qt_actions[action.name] = qt_action

        menubar = window.menuBar()
        for menu in self._menus.values():
            qt_menu = menubar.addMenu(menu.title)
            for name in menu.actions:
                qt_menu.addAction(qt_actions[name])
        for toolbar in self._toolbars.values():
            qt_toolbar = window.addToolBar(toolbar.name)
            for name in toolbar.actions:
                qt_toolbar.addAction(qt_actions[name])

        self._qt_actions = qt_actions
        self._sync_qt_actions()
        return dict(qt_actions)

    def _sync_qt_actions(self) -> None:
        for name, qt_action in self._qt_actions.items():
            action = self._actions[name]
            qt_action.setEnabled(action.enabled)
            qt_action.setText(action.text)
            if action.status_tip:
                qt_action.setStatusTip(action.status_tip)


__all__ = ["BuilderWindowShell"]
