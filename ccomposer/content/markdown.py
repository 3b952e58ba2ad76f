"""Markdown text sections."""

from __future__ import annotations

from .base import ContentKindPlugin
from .payloads import MarkdownPayload


class MarkdownPlugin(ContentKindPlugin):
    """Rich text written in Markdown; valid whenever ``markdown`` is a string (empty allowed)."""

    type = "markdown"
    display_name = "Markdown Text"
    icon = "📝"
    payload_model = MarkdownPayload


markdown_plugin = MarkdownPlugin()

__all__ = ["MarkdownPlugin", "markdown_plugin"]
