"""Keyboard chord normalisation and routing to header actions.

Qt delivers shortcuts through ``QAction``; this router covers the same chords
for headless runs and for views that capture key presses themselves.
"""

from __future__ import annotations

import logging
from typing import Iterable, Mapping

from .models.actions import WindowAction

__all__ = ["normalize_chord", "ShortcutRouter"]

LOGGER = logging.getLogger(__name__)

_MODIFIER_ORDER: tuple[str, ...] = ("Ctrl", "Alt", "Shift")
_MODIFIER_ALIASES: Mapping[str, str] = {
    "ctrl": "Ctrl",
    "control": "Ctrl",
    # macOS command key maps onto Ctrl, as Qt does
    "meta": "Ctrl",
    "cmd": "Ctrl",
    "command": "Ctrl",
    "alt": "Alt",
    "option": "Alt",
    "shift": "Shift",
}


def normalize_chord(chord: str) -> str:
    """Return ``chord`` in canonical ``Ctrl+Alt+Shift+Key`` form.

    >>> normalize_chord("shift+cmd+z")
    'Ctrl+Shift+Z'
    """

    parts = [part.strip() for part in chord.split("+")]
    parts = [part for part in parts if part]
    if not parts:
        raise ValueError("Shortcut chord is empty")
    modifiers: set[str] = set()
    key: str | None = None
    for part in parts:
        alias = _MODIFIER_ALIASES.get(part.lower())
        if alias is not None:
            modifiers.add(alias)
            continue
        if key is not None:
            raise ValueError(f"Shortcut chord {chord!r} names more than one key")
        key = part.upper() if len(part) == 1 else part.capitalize()
    if key is None:
        raise ValueError(f"Shortcut chord {chord!r} has no key")
    ordered = [name for name in _MODIFIER_ORDER if name in modifiers]
    return "+".join([*ordered, key])


class ShortcutRouter:
    """Maps normalised chords onto :class:`WindowAction` instances."""

    def __init__(self, actions: Iterable[WindowAction] = ()) -> None:
        self._bindings: dict[str, WindowAction] = {}
        for action in actions:
            self.register(action)

    def register(self, action: WindowAction) -> None:
        for chord in action.shortcuts:
            normalized = normalize_chord(chord)
            previous = self._bindings.get(normalized)
            if previous is not None and previous.name != action.name:
                LOGGER.warning(
                    "Shortcut %s rebound from %s to %s", normalized, previous.name, action.name
                )
            self._bindings[normalized] = action

    def bindings(self) -> dict[str, str]:
        """Return a ``chord -> action name`` mapping."""

        return {chord: action.name for chord, action in self._bindings.items()}

    def action_for(self, chord: str) -> WindowAction | None:
        try:
            return self._bindings.get(normalize_chord(chord))
        except ValueError:
            return None

    def handle(self, chord: str) -> bool:
        """Trigger the action bound to ``chord``.

        Returns:
            True when an enabled action ran; False for unbound chords or
            disabled actions (e.g. undo with nothing to undo).
        """
        action = self.action_for(chord)
        if action is None:
            return False
        handled = action.trigger()
        LOGGER.debug("Shortcut %s -> %s (handled=%s)", chord, action.name, handled)
        return handled
