"""Event bus and the events published by the form builder.

Views never poke each other directly: the document store publishes what
changed and each panel re-reads the store's read surface in response.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar, TYPE_CHECKING
from weakref import WeakMethod

if TYPE_CHECKING:  # pragma: no cover - imports for type checking only
    from typing import DefaultDict

logger = logging.getLogger(__name__)

E = TypeVar("E", bound="Event")

Handler = Callable[[E], None]


@dataclass(slots=True)
class Event:
    """Base class for all builder events.

    Subclasses are slotted dataclasses carrying plain values (ids, indices,
    flags) rather than live model objects, so handlers always go back to the
    store for the current state.
    """

    pass


# Event types published often enough that per-publish logging is noise
_QUIET_EVENT_TYPES: set[type] = set()


# =============================================================================
# Field events
# =============================================================================


@dataclass(slots=True)
class FieldAdded(Event):
    """A field was appended to the form.

    Attributes:
        field_id: Id of the new field.
        index: Position of the field in the sequence.
    """

    field_id: str
    index: int


@dataclass(slots=True)
class FieldUpdated(Event):
    """Properties of a field changed.

    Attributes:
        field_id: Id passed to the update.
        changed: Names of the attributes that were written.
        found: ``False`` when no field matched ``field_id``.
    """

    field_id: str
    changed: tuple[str, ...]
    found: bool = True


@dataclass(slots=True)
class FieldRemoved(Event):
    """A field was deleted from the form."""

    field_id: str
    index: int


@dataclass(slots=True)
class FieldRestored(Event):
    """A deleted field was put back through "undo delete"."""

    field_id: str
    index: int


@dataclass(slots=True)
class FieldsReordered(Event):
    """The field sequence was replaced wholesale.

    Attributes:
        field_ids: The new order of field ids.
    """

    field_ids: tuple[str, ...]


@dataclass(slots=True)
class SelectionChanged(Event):
    """The selected field changed (``None`` when nothing is selected)."""

    field_id: str | None


# =============================================================================
# Form-level events
# =============================================================================


@dataclass(slots=True)
class FormSettingsChanged(Event):
    """Form settings were merged.

    Attributes:
        changed: Names of the settings that were written.
    """

    changed: tuple[str, ...]


@dataclass(slots=True)
class PreviewModeChanged(Event):
    enabled: bool


@dataclass(slots=True)
class HistoryChanged(Event):
    """The undo/redo cursor or history length changed.

    Attributes:
        index: Cursor position after the change.
        length: Number of history entries.
        can_undo: Whether an undo step is available.
        can_redo: Whether a redo step is available.
    """

    index: int
    length: int
    can_undo: bool
    can_redo: bool


# Published after every edit; the specific field events already get logged
_QUIET_EVENT_TYPES.add(HistoryChanged)


@dataclass(slots=True)
class RecentlyDeletedChanged(Event):
    """The recently-deleted slot was filled or emptied.

    Attributes:
        field_id: Id of the recorded field, or ``None`` once the slot is empty.
        index: Original index of the recorded field, or ``None``.
    """

    field_id: str | None
    index: int | None = None


@dataclass(slots=True)
class DocumentRestored(Event):
    """Undo or redo replaced the fields, settings and selection wholesale.

    Attributes:
        source: ``"undo"`` or ``"redo"``.
        index: History cursor after the step.
    """

    source: str
    index: int


@dataclass(slots=True)
class FormReset(Event):
    """The document was cleared back to an empty form."""

    pass


# =============================================================================
# UI events
# =============================================================================


@dataclass(slots=True)
class NoticePosted(Event):
    """A short, non-modal message for the user (toast or status bar)."""

    message: str


class EventBus(Generic[E]):
    """A typed publish-subscribe bus.

    Bound-method handlers are held through :class:`WeakMethod` so panels that
    go away stop receiving events without unsubscribing; plain functions and
    lambdas are held strongly.

    Thread Safety:
        Not thread-safe. Publish and subscribe from the Qt event loop thread.
    """

    __slots__ = ("_handlers",)

    def __init__(self) -> None:
        self._handlers: DefaultDict[type[Event], list[_HandlerRef]] = defaultdict(list)

    def subscribe(self, event_type: type[E], handler: Handler[E]) -> None:
        """Register ``handler`` for events of exactly ``event_type``.

        Subscribing the same handler twice results in two invocations.
        """
        self._handlers[event_type].append(_HandlerRef.create(handler))
        logger.debug("Subscribed %s to %s", _handler_name(handler), event_type.__name__)

    def unsubscribe(self, event_type: type[E], handler: Handler[E]) -> None:
        """Remove the first registration of ``handler``; unknown handlers are ignored."""
        handlers = self._handlers.get(event_type)
        if handlers is None:
            return
        for position, handler_ref in enumerate(handlers):
            if handler_ref.matches(handler):
                handlers.pop(position)
                logger.debug("Unsubscribed %s from %s", _handler_name(handler), event_type.__name__)
                return

    def publish(self, event: E) -> None:
        """Invoke every handler registered for ``type(event)`` in order.

        A handler that raises is logged and skipped; the remaining handlers
        still run and the publisher never sees the exception.
        """
        event_type = type(event)
        handlers = self._handlers.get(event_type)
        quiet = event_type in _QUIET_EVENT_TYPES
        if not handlers:
            if not quiet:
                logger.debug("No handlers for %s", event_type.__name__)
            return
        if not quiet:
            logger.debug("Publishing %s to %d handler(s)", event_type.__name__, len(handlers))

        dead: list[int] = []
        # Iterate over a copy: handlers may subscribe/unsubscribe while we publish
        for position, handler_ref in enumerate(list(handlers)):
            handler = handler_ref.resolve()
            if handler is None:
                dead.append(position)
                continue
            try:
                handler(event)
            except Exception:
                logger.exception(
                    "Handler %s raised while handling %s",
                    _handler_name(handler),
                    event_type.__name__,
                )
        for position in reversed(dead):
            if position < len(handlers) and handlers[position].resolve() is None:
                handlers.pop(position)

    def clear(self) -> None:
        self._handlers.clear()
        logger.debug("Cleared all event handlers")

    def handler_count(self, event_type: type[E] | None = None) -> int:
        """Return the number of handlers for ``event_type`` (or for all types)."""
        if event_type is not None:
            return len(self._handlers.get(event_type, []))
        return sum(len(handlers) for handlers in self._handlers.values())


class _HandlerRef:
    """Weak reference for bound methods, strong reference for everything else."""

    __slots__ = ("_ref", "_is_weak")

    def __init__(self, handler_ref: Any, is_weak: bool) -> None:
        self._ref = handler_ref
        self._is_weak = is_weak

    @classmethod
    def create(cls, handler: Handler) -> _HandlerRef:
        if hasattr(handler, "__self__") and hasattr(handler, "__func__"):
            try:
                return cls(WeakMethod(handler), is_weak=True)
            except TypeError:
                pass
        return cls(handler, is_weak=False)

    def resolve(self) -> Handler | None:
        if not self._is_weak:
            return self._ref
        return self._ref()

    def matches(self, handler: Handler) -> bool:
        resolved = self.resolve()
        return resolved is not None and resolved == handler


def _handler_name(handler: Handler) -> str:
    if hasattr(handler, "__self__") and hasattr(handler, "__func__"):
        return f"{type(handler.__self__).__name__}.{handler.__func__.__name__}"
    return getattr(handler, "__name__", repr(handler))


__all__ = [
    "Event",
    "EventBus",
    "Handler",
    # Field events
    "FieldAdded",
    "FieldUpdated",
    "FieldRemoved",
    "FieldRestored",
    "FieldsReordered",
    "SelectionChanged",
    # Form-level events
    "FormSettingsChanged",
    "PreviewModeChanged",
    "HistoryChanged",
    "RecentlyDeletedChanged",
    "DocumentRestored",
    "FormReset",
    # UI events
    "NoticePosted",
]
