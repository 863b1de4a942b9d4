"""Dataclasses representing form fields, form settings and history snapshots."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, Optional


def _utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""

    return datetime.now(timezone.utc)


class FieldKind(str, Enum):
    TEXT = "text"
    TEXTAREA = "textarea"
    EMAIL = "email"
    PHONE = "phone"
    NUMBER = "number"
    SELECT = "select"
    RADIO = "radio"
    CHECKBOX = "checkbox"
    FILE = "file"
    DATE = "date"

    @classmethod
    def coerce(cls, value: "FieldKind | str") -> "FieldKind":
        """Return ``value`` as a :class:`FieldKind`, accepting raw strings."""

        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            raise ValueError(f"Unknown field kind: {value!r}") from exc


PLACEHOLDER_KINDS: frozenset[FieldKind] = frozenset(
    {FieldKind.TEXT, FieldKind.TEXTAREA, FieldKind.EMAIL, FieldKind.PHONE, FieldKind.NUMBER}
)
OPTION_KINDS: frozenset[FieldKind] = frozenset({FieldKind.SELECT, FieldKind.RADIO, FieldKind.CHECKBOX})


@dataclass(slots=True)
class FormField:
    """One element of the form being designed."""

    id: str
    kind: FieldKind
    label: str
    placeholder: Optional[str] = None
    required: bool = False
    options: Optional[list[str]] = None

    def __post_init__(self) -> None:
        self.kind = FieldKind.coerce(self.kind)
        if self.options is not None:
            self.options = list(self.options)

    @property
    def supports_placeholder(self) -> bool:
        return self.kind in PLACEHOLDER_KINDS

    @property
    def supports_options(self) -> bool:
        return self.kind in OPTION_KINDS

    def copy(self) -> "FormField":
        """Return an independent copy that shares no mutable state."""

        return FormField(
            id=self.id,
            kind=self.kind,
            label=self.label,
            placeholder=self.placeholder,
            required=self.required,
            options=list(self.options) if self.options is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "kind": self.kind.value,
            "label": self.label,
            "required": self.required,
        }
        if self.placeholder is not None:
            payload["placeholder"] = self.placeholder
        if self.options is not None:
            payload["options"] = list(self.options)
        return payload


@dataclass(slots=True)
class FormSettings:
    """Form-level metadata edited from the properties panel."""

    title: str = ""
    description: str = ""
    require_login: bool = False
    collect_email: bool = False

    def copy(self) -> "FormSettings":
        return FormSettings(
            title=self.title,
            description=self.description,
            require_login=self.require_login,
            collect_email=self.collect_email,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "require_login": self.require_login,
            "collect_email": self.collect_email,
        }


@dataclass(frozen=True, slots=True)
class FormSnapshot:
    """Immutable copy of the document's mutable parts, used as a history entry."""

    fields: tuple[FormField, ...] = ()
    settings: FormSettings = field(default_factory=FormSettings)
    selected_id: str | None = None

    @classmethod
    def capture(
        cls,
        fields: Iterable[FormField],
        settings: FormSettings,
        selected_id: str | None,
    ) -> "FormSnapshot":
        """Deep-copy the given state into a new snapshot."""

        return cls(
            fields=tuple(item.copy() for item in fields),
            settings=settings.copy(),
            selected_id=selected_id,
        )

    def restore(self) -> tuple[list[FormField], FormSettings, str | None]:
        """Return fresh copies of the stored state.

        Callers may mutate the returned objects freely; the snapshot keeps its
        own copies.
        """

        return (
            [item.copy() for item in self.fields],
            self.settings.copy(),
            self.selected_id,
        )


@dataclass(frozen=True, slots=True)
class DeletedField:
    """Record of the most recent field deletion, kept for "undo delete"."""

    field: FormField
    index: int
    deleted_at: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "field": self.field.to_dict(),
            "index": self.index,
            "deleted_at": self.deleted_at.isoformat(),
        }


__all__ = [
    "FieldKind",
    "PLACEHOLDER_KINDS",
    "OPTION_KINDS",
    "FormField",
    "FormSettings",
    "FormSnapshot",
    "DeletedField",
]
