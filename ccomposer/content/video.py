"""Video embed sections (YouTube, Vimeo, or direct links)."""

from __future__ import annotations

import re

from .base import ContentKindPlugin
from .payloads import VideoPayload

_YOUTUBE_ID = re.compile(r"(?:youtube\.com/watch\?v=|youtu\.be/)([^&\s]+)")
_VIMEO_ID = re.compile(r"vimeo\.com/(\d+)")


class VideoPlugin(ContentKindPlugin):
    type = "video"
    display_name = "Video"
    icon = "🎥"
    payload_model = VideoPayload

    @staticmethod
    def embed_url(url: str | None) -> str | None:
        """Return an embeddable player URL, or None when the link should be opened directly."""
        if not url:
            return None
        match = _YOUTUBE_ID.search(url)
        if match:
            return f"https://www.youtube.com/embed/{match.group(1)}"
        match = _VIMEO_ID.search(url)
        if match:
            return f"https://player.vimeo.com/video/{match.group(1)}"
        return None


video_plugin = VideoPlugin()

__all__ = ["VideoPlugin", "video_plugin"]
