"""Tests for the FormDocumentStore domain manager."""

from __future__ import annotations

import logging
from typing import Callable

import pytest

from formkit.editor.form_model import DeletedField, FieldKind, FormField
from formkit.ui.domain.form_store import FormDocumentStore
from formkit.ui.events import (
    DocumentRestored,
    Event,
    EventBus,
    FieldAdded,
    FieldRemoved,
    FieldRestored,
    FieldsReordered,
    FieldUpdated,
    FormReset,
    FormSettingsChanged,
    HistoryChanged,
    PreviewModeChanged,
    RecentlyDeletedChanged,
    SelectionChanged,
)

from conftest import FIXED_NOW

MakeField = Callable[..., FormField]


def _ids(store: FormDocumentStore) -> list[str]:
    return [field.id for field in store.fields]


def _record(event_bus: EventBus, *event_types: type[Event]) -> list[Event]:
    events: list[Event] = []
    for event_type in event_types:
        event_bus.subscribe(event_type, events.append)
    return events


# =============================================================================
# Initial state
# =============================================================================


class TestInitialState:
    def test_empty_document(self, store: FormDocumentStore) -> None:
        assert store.fields == ()
        assert store.selected_id is None
        assert store.selected_field is None
        assert store.preview_mode is False
        assert store.recently_deleted is None
        assert store.history_length == 1
        assert store.history_index == 0
        assert not store.can_undo()
        assert not store.can_redo()

    def test_undo_and_redo_are_noops_on_fresh_store(self, store: FormDocumentStore) -> None:
        assert store.undo() is False
        assert store.redo() is False
        assert store.history_index == 0

    def test_works_without_event_bus(self, make_field: MakeField) -> None:
        store = FormDocumentStore()
        store.add_field(make_field("f1"))
        assert store.undo() is True
        assert store.fields == ()


# =============================================================================
# Field operations
# =============================================================================


class TestAddField:
    """Tests for FormDocumentStore.add_field()."""

    def test_appends_and_records_history(self, store: FormDocumentStore, make_field: MakeField) -> None:
        store.add_field(make_field("f1"))
        store.add_field(make_field("f2"))

        assert _ids(store) == ["f1", "f2"]
        assert store.history_length == 3
        assert store.history_index == 2
        assert store.can_undo()

    def test_stores_a_copy_of_the_field(self, store: FormDocumentStore, make_field: MakeField) -> None:
        field = make_field("f1", kind="select", options=["Red"])
        store.add_field(field)
        field.label = "Mutated"
        field.options.append("Blue")  # type: ignore[union-attr]

        stored = store.get_field("f1")
        assert stored is not None
        assert stored.label == "F1"
        assert stored.options == ["Red"]

    def test_emits_field_added_then_history(
        self, store: FormDocumentStore, event_bus: EventBus, make_field: MakeField
    ) -> None:
        events = _record(event_bus, FieldAdded, HistoryChanged)
        store.add_field(make_field("f1"))

        assert [type(event) for event in events] == [FieldAdded, HistoryChanged]
        assert events[0] == FieldAdded(field_id="f1", index=0)
        assert events[1] == HistoryChanged(index=1, length=2, can_undo=True, can_redo=False)


class TestUpdateField:
    """Tests for FormDocumentStore.update_field()."""

    def test_merges_updates(self, store: FormDocumentStore, make_field: MakeField) -> None:
        store.add_field(make_field("f1"))
        store.update_field("f1", {"label": "Full name", "required": True})

        field = store.get_field("f1")
        assert field is not None
        assert field.label == "Full name"
        assert field.required is True

    def test_coerces_kind_strings(self, store: FormDocumentStore, make_field: MakeField) -> None:
        store.add_field(make_field("f1"))
        store.update_field("f1", {"kind": "select", "options": ("A", "B")})

        field = store.get_field("f1")
        assert field is not None
        assert field.kind is FieldKind.SELECT
        assert field.options == ["A", "B"]

    def test_ignores_id_and_unknown_keys(
        self,
        store: FormDocumentStore,
        event_bus: EventBus,
        make_field: MakeField,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        store.add_field(make_field("f1"))
        events = _record(event_bus, FieldUpdated)

        with caplog.at_level(logging.WARNING):
            store.update_field("f1", {"id": "hijack", "colour": "red", "label": "Kept"})

        assert _ids(store) == ["f1"]
        assert store.get_field("f1").label == "Kept"  # type: ignore[union-attr]
        assert events == [FieldUpdated(field_id="f1", changed=("label",), found=True)]
        assert "ignoring attribute 'id'" in caplog.text
        assert "ignoring attribute 'colour'" in caplog.text

    def test_no_match_still_records_history(
        self,
        store: FormDocumentStore,
        event_bus: EventBus,
        make_field: MakeField,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        store.add_field(make_field("f1"))
        before = store.fields
        events = _record(event_bus, FieldUpdated)

        with caplog.at_level(logging.WARNING):
            store.update_field("missing", {"label": "Nope"})

        assert store.fields == before
        assert store.history_length == 3
        assert events == [FieldUpdated(field_id="missing", changed=(), found=False)]
        assert "unknown field_id=missing" in caplog.text

        # The extra step undoes to an identical document.
        assert store.undo() is True
        assert store.fields == before
        assert store.history_index == 1

    def test_invalid_kind_is_skipped_and_edit_stays_atomic(
        self,
        store: FormDocumentStore,
        make_field: MakeField,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """A bad kind is dropped; the remaining keys land as one undoable step."""
        store.add_field(make_field("f1", label="Name"))

        with caplog.at_level(logging.WARNING):
            store.update_field("f1", {"label": "Changed", "kind": "bogus"})

        field = store.get_field("f1")
        assert field is not None
        assert field.label == "Changed"
        assert field.kind is FieldKind.TEXT
        assert store.history_length == 3
        assert "ignoring invalid kind 'bogus'" in caplog.text

        assert store.undo() is True
        assert store.get_field("f1").label == "Name"  # type: ignore[union-attr]

    def test_selection_reflects_update(self, store: FormDocumentStore, make_field: MakeField) -> None:
        store.add_field(make_field("f1"))
        store.select_field("f1")
        store.update_field("f1", {"label": "Renamed", "placeholder": "Type here"})

        selected = store.selected_field
        assert selected is not None
        assert selected.label == "Renamed"
        assert selected.placeholder == "Type here"
        assert selected == store.get_field("f1")


class TestRemoveField:
    """Tests for FormDocumentStore.remove_field()."""

    def test_removes_and_remembers_deletion(self, store: FormDocumentStore, make_field: MakeField) -> None:
        store.add_field(make_field("f1"))
        store.add_field(make_field("f2"))

        assert store.remove_field("f1") is True

        assert _ids(store) == ["f2"]
        assert store.recently_deleted == DeletedField(field=make_field("f1"), index=0, deleted_at=FIXED_NOW)
        assert store.has_recently_deleted
        assert store.history_length == 4

    def test_unknown_id_is_a_noop(
        self, store: FormDocumentStore, event_bus: EventBus, make_field: MakeField
    ) -> None:
        store.add_field(make_field("f1"))
        events = _record(event_bus, FieldRemoved, HistoryChanged, RecentlyDeletedChanged)

        assert store.remove_field("missing") is False

        assert _ids(store) == ["f1"]
        assert store.history_length == 2
        assert store.recently_deleted is None
        assert events == []

    def test_clears_selection_of_removed_field(
        self, store: FormDocumentStore, event_bus: EventBus, make_field: MakeField
    ) -> None:
        store.add_field(make_field("f1"))
        store.select_field("f1")
        events = _record(
            event_bus, FieldRemoved, SelectionChanged, HistoryChanged, RecentlyDeletedChanged
        )

        store.remove_field("f1")

        assert store.selected_id is None
        assert [type(event) for event in events] == [
            FieldRemoved,
            SelectionChanged,
            HistoryChanged,
            RecentlyDeletedChanged,
        ]
        assert events[-1] == RecentlyDeletedChanged(field_id="f1", index=0)

    def test_keeps_selection_of_other_field(self, store: FormDocumentStore, make_field: MakeField) -> None:
        store.add_field(make_field("f1"))
        store.add_field(make_field("f2"))
        store.select_field("f2")
        store.remove_field("f1")
        assert store.selected_id == "f2"

    def test_second_delete_replaces_slot(self, store: FormDocumentStore, make_field: MakeField) -> None:
        store.add_field(make_field("f1"))
        store.add_field(make_field("f2"))
        store.remove_field("f1")
        store.remove_field("f2")
        record = store.recently_deleted
        assert record is not None
        assert record.field.id == "f2"
        assert record.index == 0


class TestSelection:
    """Tests for select_field()."""

    def test_select_by_object_or_id(self, store: FormDocumentStore, make_field: MakeField) -> None:
        field = make_field("f1")
        store.add_field(field)
        store.select_field(field)
        assert store.selected_id == "f1"
        store.select_field(None)
        assert store.selected_id is None
        store.select_field("f1")
        assert store.selected_id == "f1"

    def test_unknown_id_clears_selection(self, store: FormDocumentStore, make_field: MakeField) -> None:
        store.add_field(make_field("f1"))
        store.select_field("f1")
        store.select_field("ghost")
        assert store.selected_id is None

    def test_emits_only_on_change(
        self, store: FormDocumentStore, event_bus: EventBus, make_field: MakeField
    ) -> None:
        store.add_field(make_field("f1"))
        events = _record(event_bus, SelectionChanged)
        store.select_field("f1")
        store.select_field("f1")
        assert events == [SelectionChanged(field_id="f1")]

    def test_selection_does_not_record_history(self, store: FormDocumentStore, make_field: MakeField) -> None:
        store.add_field(make_field("f1"))
        store.select_field("f1")
        assert store.history_length == 2


class TestReorderAndSettings:
    def test_reorder_replaces_sequence(
        self, store: FormDocumentStore, event_bus: EventBus, make_field: MakeField
    ) -> None:
        store.add_field(make_field("f1"))
        store.add_field(make_field("f2"))
        events = _record(event_bus, FieldsReordered)

        store.reorder_fields(reversed(store.fields))

        assert _ids(store) == ["f2", "f1"]
        assert events == [FieldsReordered(field_ids=("f2", "f1"))]
        assert store.undo() is True
        assert _ids(store) == ["f1", "f2"]

    def test_update_settings_merges_known_keys(
        self, store: FormDocumentStore, event_bus: EventBus
    ) -> None:
        events = _record(event_bus, FormSettingsChanged)
        store.update_settings({"title": "Signup", "collect_email": True, "bogus": 1})

        settings = store.settings
        assert settings.title == "Signup"
        assert settings.collect_email is True
        assert events == [FormSettingsChanged(changed=("title", "collect_email"))]
        assert store.undo() is True
        assert store.settings.title == ""

    def test_settings_read_surface_is_a_copy(self, store: FormDocumentStore) -> None:
        store.settings.title = "Leaked"
        assert store.settings.title == ""


class TestPreviewMode:
    def test_toggle_flips_and_emits(self, store: FormDocumentStore, event_bus: EventBus) -> None:
        events = _record(event_bus, PreviewModeChanged)
        assert store.toggle_preview_mode() is True
        assert store.toggle_preview_mode() is False
        store.set_preview_mode(False)
        assert events == [PreviewModeChanged(enabled=True), PreviewModeChanged(enabled=False)]

    def test_preview_is_not_historied(self, store: FormDocumentStore) -> None:
        store.set_preview_mode(True)
        assert store.history_length == 1
        assert not store.can_undo()


# =============================================================================
# History
# =============================================================================


class TestHistory:
    """Undo/redo behaviour across structural edits."""

    def test_history_is_bounded(self, event_bus: EventBus, make_field: MakeField) -> None:
        store = FormDocumentStore(event_bus, history_limit=50)
        for step in range(60):
            store.add_field(make_field(f"f{step}"))

        assert store.history_length == 50

        reached = [len(store.fields)]
        while store.undo():
            reached.append(len(store.fields))

        # The 50 most recent states hold 60, 59, ... 11 fields.
        assert reached == list(range(60, 10, -1))

    def test_new_edit_discards_redo_branch(self, store: FormDocumentStore, make_field: MakeField) -> None:
        store.add_field(make_field("s1"))
        store.add_field(make_field("s2"))
        store.undo()

        store.add_field(make_field("m"))

        assert _ids(store) == ["s1", "m"]
        assert store.history_length == 3
        assert not store.can_redo()
        assert store.redo() is False
        store.undo()
        assert _ids(store) == ["s1"]
        store.undo()
        assert _ids(store) == []

    def test_undo_redo_round_trip(self, store: FormDocumentStore, make_field: MakeField) -> None:
        states = [store.fields]
        store.add_field(make_field("f1"))
        states.append(store.fields)
        store.add_field(make_field("f2", kind="radio", options=["Yes", "No"]))
        states.append(store.fields)
        store.update_field("f2", {"options": ["Yes", "No", "Maybe"]})
        states.append(store.fields)
        store.reorder_fields(reversed(store.fields))
        states.append(store.fields)
        store.remove_field("f1")
        states.append(store.fields)

        for expected in reversed(states[:-1]):
            assert store.undo() is True
            assert store.fields == expected
        assert store.undo() is False

        for expected in states[1:]:
            assert store.redo() is True
            assert store.fields == expected
        assert store.redo() is False

    def test_undo_restores_selection(self, store: FormDocumentStore, make_field: MakeField) -> None:
        store.add_field(make_field("f1"))
        store.select_field("f1")
        store.remove_field("f1")
        assert store.selected_id is None

        store.undo()

        assert _ids(store) == ["f1"]
        assert store.selected_id == "f1"

    def test_snapshots_are_independent_of_live_state(
        self, store: FormDocumentStore, make_field: MakeField
    ) -> None:
        store.add_field(make_field("f1", kind="checkbox", options=["a"]))
        store.update_field("f1", {"options": ["a", "b"]})

        live = store.fields[0]
        live.options.append("leak")  # type: ignore[union-attr]

        store.undo()
        assert store.get_field("f1").options == ["a"]  # type: ignore[union-attr]
        store.redo()
        assert store.get_field("f1").options == ["a", "b"]  # type: ignore[union-attr]

    def test_undo_emits_document_restored(
        self, store: FormDocumentStore, event_bus: EventBus, make_field: MakeField
    ) -> None:
        store.add_field(make_field("f1"))
        events = _record(event_bus, DocumentRestored, HistoryChanged)

        store.undo()
        store.redo()

        assert events == [
            DocumentRestored(source="undo", index=0),
            HistoryChanged(index=0, length=2, can_undo=False, can_redo=True),
            DocumentRestored(source="redo", index=1),
            HistoryChanged(index=1, length=2, can_undo=True, can_redo=False),
        ]

    def test_reset_discards_everything(
        self, store: FormDocumentStore, event_bus: EventBus, make_field: MakeField
    ) -> None:
        store.add_field(make_field("f1"))
        store.select_field("f1")
        store.set_preview_mode(True)
        events = _record(event_bus, FormReset)

        store.reset()

        assert store.fields == ()
        assert store.selected_id is None
        assert store.preview_mode is False
        assert store.history_length == 1
        assert not store.can_undo()
        assert events == [FormReset()]


# =============================================================================
# Undo delete
# =============================================================================


class TestUndoDelete:
    """Tests for the one-slot recently-deleted buffer."""

    def test_restores_at_original_index(self, store: FormDocumentStore, make_field: MakeField) -> None:
        store.add_field(make_field("f1"))
        after_add = store.fields
        store.remove_field("f1")

        assert store.undo_delete() is True

        assert store.fields == after_add
        assert store.recently_deleted is None

    def test_restores_in_the_middle(self, store: FormDocumentStore, make_field: MakeField) -> None:
        for field_id in ("a", "b", "c"):
            store.add_field(make_field(field_id))
        store.remove_field("b")
        store.undo_delete()
        assert _ids(store) == ["a", "b", "c"]

    def test_does_not_touch_history(self, store: FormDocumentStore, make_field: MakeField) -> None:
        store.add_field(make_field("f1"))
        store.remove_field("f1")
        length, index = store.history_length, store.history_index

        store.undo_delete()

        assert (store.history_length, store.history_index) == (length, index)

    def test_next_edit_keeps_restored_field(self, store: FormDocumentStore, make_field: MakeField) -> None:
        store.add_field(make_field("f1"))
        store.remove_field("f1")
        store.undo_delete()
        store.add_field(make_field("f2"))

        assert _ids(store) == ["f1", "f2"]
        store.undo()
        assert _ids(store) == ["f1"]

    def test_edit_clears_slot(
        self, store: FormDocumentStore, event_bus: EventBus, make_field: MakeField
    ) -> None:
        store.add_field(make_field("f1"))
        store.add_field(make_field("f2"))
        store.remove_field("f1")
        events = _record(event_bus, RecentlyDeletedChanged)

        store.update_field("f2", {"label": "Edited"})

        assert store.recently_deleted is None
        assert store.undo_delete() is False
        assert _ids(store) == ["f2"]
        assert events == [RecentlyDeletedChanged(field_id=None)]

    def test_undo_clears_slot(self, store: FormDocumentStore, make_field: MakeField) -> None:
        store.add_field(make_field("f1"))
        store.remove_field("f1")
        store.undo()
        assert store.recently_deleted is None
        assert store.undo_delete() is False
        assert _ids(store) == ["f1"]

    def test_index_is_clamped_to_sequence_end(self, store: FormDocumentStore, make_field: MakeField) -> None:
        store.add_field(make_field("f1"))
        store._recently_deleted = DeletedField(field=make_field("gone"), index=7, deleted_at=FIXED_NOW)

        assert store.undo_delete() is True

        assert _ids(store) == ["f1", "gone"]

    def test_emits_restored_and_slot_cleared(
        self, store: FormDocumentStore, event_bus: EventBus, make_field: MakeField
    ) -> None:
        store.add_field(make_field("f1"))
        store.remove_field("f1")
        events = _record(event_bus, FieldRestored, RecentlyDeletedChanged)

        store.undo_delete()

        assert events == [FieldRestored(field_id="f1", index=0), RecentlyDeletedChanged(field_id=None)]

    def test_record_is_a_copy(self, store: FormDocumentStore, make_field: MakeField) -> None:
        """Mutating the returned record does not change what gets restored."""
        store.add_field(make_field("f1", label="Name"))
        store.remove_field("f1")

        record = store.recently_deleted
        assert record is not None
        record.field.label = "tampered"

        assert store.recently_deleted.field.label == "Name"  # type: ignore[union-attr]
        assert store.undo_delete() is True
        assert store.get_field("f1").label == "Name"  # type: ignore[union-attr]

    def test_clear_recently_deleted(self, store: FormDocumentStore, make_field: MakeField) -> None:
        store.add_field(make_field("f1"))
        store.remove_field("f1")
        store.clear_recently_deleted()
        assert store.recently_deleted is None
        assert store.undo_delete() is False
        assert store.fields == ()


# =============================================================================
# End-to-end
# =============================================================================


def test_name_and_color_walkthrough(store: FormDocumentStore) -> None:
    """Add two fields, toggle required through undo/redo, then delete and restore."""
    store.add_field(FormField(id="f1", kind=FieldKind.TEXT, label="Name"))
    store.add_field(FormField(id="f2", kind=FieldKind.SELECT, label="Color", options=["Red", "Blue"]))
    store.update_field("f1", {"required": True})

    store.undo()
    assert store.get_field("f1").required is False  # type: ignore[union-attr]
    assert store.get_field("f2") is not None

    store.redo()
    assert store.get_field("f1").required is True  # type: ignore[union-attr]

    store.remove_field("f2")
    record = store.recently_deleted
    assert record is not None
    assert record.field == FormField(id="f2", kind=FieldKind.SELECT, label="Color", options=["Red", "Blue"])
    assert record.index == 1

    assert store.undo_delete() is True
    assert _ids(store) == ["f1", "f2"]
    assert store.field_index("f2") == 1


def test_snapshot_exposes_read_surface(store: FormDocumentStore, make_field: MakeField) -> None:
    store.add_field(make_field("f1"))
    store.select_field("f1")
    store.remove_field("f1")

    payload = store.snapshot()

    assert payload["fields"] == []
    assert payload["selected_id"] is None
    assert payload["history_length"] == 3
    assert payload["can_undo"] is True
    assert payload["can_redo"] is False
    assert payload["recently_deleted"]["index"] == 0
    assert payload["recently_deleted"]["deleted_at"] == FIXED_NOW.isoformat()
