"""UI action and layout data structures used by the builder header."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable


@dataclass(slots=True)
class WindowAction:
    """Represents a high-level action exposed through menus, toolbars and shortcuts."""

    name: str
    text: str
    shortcuts: tuple[str, ...] = ()
    status_tip: str | None = None
    callback: Callable[[], Any] | None = None
    enabled: bool = True

    @property
    def shortcut(self) -> str | None:
        """Primary shortcut shown next to the action text."""

        return self.shortcuts[0] if self.shortcuts else None

    def trigger(self) -> bool:
        """Invoke the registered callback if the action is enabled."""

        if not self.enabled or self.callback is None:
            return False
        self.callback()
        return True


@dataclass(slots=True)
class MenuSpec:
    """Declarative menu definition used for headless + Qt builds."""

    name: str
    title: str
    actions: tuple[str, ...]


@dataclass(slots=True)
class ToolbarSpec:
    """Declarative toolbar definition for the builder header."""

    name: str
    actions: tuple[str, ...]


__all__ = [
    "WindowAction",
    "MenuSpec",
    "ToolbarSpec",
]
