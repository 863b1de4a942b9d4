"""Shared pytest fixtures."""

from __future__ import annotations

import os
from datetime import datetime, timezone
from typing import Callable

import pytest

from formkit.editor.form_model import FieldKind, FormField
from formkit.ui.domain.form_store import FormDocumentStore
from formkit.ui.events import EventBus

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

FIXED_NOW = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


class FakeScheduler:
    """Collects scheduled callbacks so tests decide when timers fire."""

    def __init__(self) -> None:
        self.calls: list[tuple[int, Callable[[], None]]] = []

    def __call__(self, timeout_ms: int, callback: Callable[[], None]) -> None:
        self.calls.append((timeout_ms, callback))

    def fire(self, position: int = -1) -> None:
        _, callback = self.calls[position]
        callback()


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def store(event_bus: EventBus) -> FormDocumentStore:
    return FormDocumentStore(event_bus, clock=lambda: FIXED_NOW)


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def make_field() -> Callable[..., FormField]:
    def _make(field_id: str, kind: str = "text", label: str | None = None, **extra) -> FormField:
        return FormField(id=field_id, kind=FieldKind.coerce(kind), label=label or field_id.upper(), **extra)

    return _make
