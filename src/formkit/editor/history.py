"""Bounded linear undo/redo history for the form document."""

from __future__ import annotations

import logging
from typing import Optional

from .form_model import FormSnapshot

__all__ = ["FormHistory", "DEFAULT_HISTORY_LIMIT"]

LOGGER = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 50


class FormHistory:
    """Ordered snapshots plus a cursor pointing at the current entry.

    The entry under the cursor mirrors the current document. A structural
    edit is recorded with :meth:`record`: the state captured *before* the
    edit overwrites the cursor entry (so selection changes and restored
    deletions made since the last edit are kept), then the resulting state is
    pushed. Pushing from a non-tip cursor discards the redo branch, and the
    list is capped to ``limit`` entries by dropping the oldest ones.
    """

    __slots__ = ("_entries", "_index", "_limit")

    def __init__(self, initial: FormSnapshot | None = None, *, limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        if limit < 1:
            raise ValueError(f"History limit must be at least 1 (got {limit})")
        self._limit = int(limit)
        self._entries: list[FormSnapshot] = [initial or FormSnapshot()]
        self._index = 0

    # ------------------------------------------------------------------
    # Query helpers
    # ------------------------------------------------------------------
    @property
    def limit(self) -> int:
        return self._limit

    @property
    def index(self) -> int:
        return self._index

    @property
    def entries(self) -> tuple[FormSnapshot, ...]:
        """Independent copies of every entry, oldest first."""
        return tuple(FormSnapshot.capture(*entry.restore()) for entry in self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def current(self) -> FormSnapshot:
        return self._entries[self._index]

    def can_step_back(self) -> bool:
        return self._index > 0

    def can_step_forward(self) -> bool:
        return self._index < len(self._entries) - 1

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------
    def reset(self, entry: FormSnapshot | None = None) -> None:
        """Discard all entries and start over from ``entry``."""

        self._entries = [entry or FormSnapshot()]
        self._index = 0

    def push(self, entry: FormSnapshot) -> int:
        """Append ``entry`` after the cursor and return how many old entries were dropped."""

        del self._entries[self._index + 1 :]
        self._entries.append(entry)
        overflow = len(self._entries) - self._limit
        dropped = 0
        if overflow > 0:
            del self._entries[:overflow]
            dropped = overflow
            LOGGER.debug("FormHistory.push: dropped %d oldest entr%s", dropped, "y" if dropped == 1 else "ies")
        self._index = len(self._entries) - 1
        return dropped

    def replace_current(self, entry: FormSnapshot) -> None:
        self._entries[self._index] = entry

    def record(self, before: FormSnapshot, after: FormSnapshot) -> int:
        """Record one edit step from ``before`` to ``after``."""

        self.replace_current(before)
        return self.push(after)

    def step_back(self) -> Optional[FormSnapshot]:
        if not self.can_step_back():
            return None
        self._index -= 1
        return self._entries[self._index]

    def step_forward(self) -> Optional[FormSnapshot]:
        if not self.can_step_forward():
            return None
        self._index += 1
        return self._entries[self._index]
