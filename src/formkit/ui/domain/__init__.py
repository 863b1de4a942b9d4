"""Domain managers owning builder state."""

from .form_store import FormDocumentStore

__all__ = ["FormDocumentStore"]
