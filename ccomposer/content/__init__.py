"""Content-kind plugins and the registry that looks them up."""

from .base import ContentKindPlugin, ensure_plugin
from .document import DocumentPlugin
from .markdown import MarkdownPlugin
from .payloads import DocumentPayload, MarkdownPayload, OpaquePayload, VideoPayload, parse_payload
from .registry import DEFAULT_PLUGINS, ContentKindRegistry, build_default_registry
from .video import VideoPlugin

__all__ = [
    "ContentKindPlugin",
    "ContentKindRegistry",
    "DEFAULT_PLUGINS",
    "DocumentPayload",
    "DocumentPlugin",
    "MarkdownPayload",
    "MarkdownPlugin",
    "OpaquePayload",
    "VideoPayload",
    "VideoPlugin",
    "build_default_registry",
    "ensure_plugin",
    "parse_payload",
]
