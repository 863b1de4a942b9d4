"""Use cases that translate panel edits into store operations."""

from .field_ops import FieldPropertyEditor

__all__ = ["FieldPropertyEditor"]
