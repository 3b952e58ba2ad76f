"""Document link sections (PDFs, Google Docs, slides, ...)."""

from __future__ import annotations

from .base import ContentKindPlugin
from .payloads import DocumentPayload

DOC_TYPES: tuple[str, ...] = ("pdf", "google-doc", "word", "slides", "other")


class DocumentPlugin(ContentKindPlugin):
    type = "document"
    display_name = "Document Link"
    icon = "📄"
    payload_model = DocumentPayload


document_plugin = DocumentPlugin()

__all__ = ["DOC_TYPES", "DocumentPlugin", "document_plugin"]
