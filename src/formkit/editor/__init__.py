"""Form model, history and palette primitives."""

from .form_model import DeletedField, FieldKind, FormField, FormSettings, FormSnapshot
from .history import DEFAULT_HISTORY_LIMIT, FormHistory
from .palette import DEFAULT_PALETTE, PaletteItem, create_field

__all__ = [
    "DEFAULT_HISTORY_LIMIT",
    "DEFAULT_PALETTE",
    "DeletedField",
    "FieldKind",
    "FormField",
    "FormHistory",
    "FormSettings",
    "FormSnapshot",
    "PaletteItem",
    "create_field",
]
