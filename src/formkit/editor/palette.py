"""Palette of field types offered by the builder sidebar."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Sequence

from .form_model import FieldKind, FormField, OPTION_KINDS, PLACEHOLDER_KINDS

__all__ = ["PaletteItem", "DEFAULT_PALETTE", "palette_item", "create_field", "next_option_label"]


@dataclass(frozen=True, slots=True)
class PaletteItem:
    """Entry shown in the palette; dragging or clicking it adds a field."""

    kind: FieldKind
    label: str
    description: str


DEFAULT_PALETTE: tuple[PaletteItem, ...] = (
    PaletteItem(FieldKind.TEXT, "Text Input", "Single line text field"),
    PaletteItem(FieldKind.TEXTAREA, "Text Area", "Multi-line text field"),
    PaletteItem(FieldKind.EMAIL, "Email", "Email address input"),
    PaletteItem(FieldKind.PHONE, "Phone", "Phone number input"),
    PaletteItem(FieldKind.NUMBER, "Number", "Numeric input"),
    PaletteItem(FieldKind.SELECT, "Dropdown", "Select one option from a list"),
    PaletteItem(FieldKind.RADIO, "Radio Group", "Choose one of several options"),
    PaletteItem(FieldKind.CHECKBOX, "Checkboxes", "Choose any number of options"),
    PaletteItem(FieldKind.FILE, "File Upload", "Attach a file"),
    PaletteItem(FieldKind.DATE, "Date", "Calendar date picker"),
)


def palette_item(kind: FieldKind | str) -> PaletteItem:
    resolved = FieldKind.coerce(kind)
    for item in DEFAULT_PALETTE:
        if item.kind is resolved:
            return item
    raise KeyError(f"No palette entry for kind {resolved.value!r}")  # pragma: no cover - palette covers every kind


def next_option_label(options: Sequence[str] | None) -> str:
    """Return the default label for an option appended to ``options``."""

    return f"Option {len(options or ()) + 1}"


def create_field(
    kind: FieldKind | str,
    *,
    field_id: str | None = None,
    label: str | None = None,
) -> FormField:
    """Create a new field with a fresh id and palette defaults."""

    item = palette_item(kind)
    resolved_label = label if label is not None else item.label
    placeholder: str | None = None
    options: list[str] | None = None
    if item.kind in PLACEHOLDER_KINDS:
        placeholder = f"Enter {resolved_label.lower()}"
    if item.kind in OPTION_KINDS:
        options = []
        for _ in range(2):
            options.append(next_option_label(options))
    return FormField(
        id=field_id or uuid.uuid4().hex,
        kind=item.kind,
        label=resolved_label,
        placeholder=placeholder,
        options=options,
    )
