"""Registry that maps content-kind identifiers to their plugins."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Iterator, List, Mapping, Sequence

from .base import ContentKindPlugin, ensure_plugin
from .document import document_plugin
from .markdown import markdown_plugin
from .video import video_plugin

LOGGER = logging.getLogger(__name__)

# Order determines listing order in the CLI.
DEFAULT_PLUGINS: tuple[ContentKindPlugin, ...] = (markdown_plugin, video_plugin, document_plugin)


class ContentKindRegistry:
    """Insertion-ordered mapping from kind identifier to plugin."""

    def __init__(self, plugins: Iterable[object] = ()) -> None:
        self._plugins: Dict[str, object] = {}
        self.register(plugins)

    def register(self, plugins: Iterable[object]) -> None:
        """
        Register plugins by their ``type``.

        Every object is checked before any is inserted, so a bad entry leaves
        the registry untouched. A duplicate key overwrites the earlier plugin
        but keeps its original position.
        """
        checked = [ensure_plugin(plugin) for plugin in plugins]
        for plugin in checked:
            kind = plugin.type
            if kind in self._plugins:
                LOGGER.debug("Replacing plugin for content kind %s", kind)
            self._plugins[kind] = plugin

    def get(self, kind: object) -> object | None:
        """Plugin for ``kind``, or None for unknown or non-string identifiers."""
        if not isinstance(kind, str):
            return None
        return self._plugins.get(kind)

    def has(self, kind: object) -> bool:
        return isinstance(kind, str) and kind in self._plugins

    def get_all_plugins(self) -> List[object]:
        return list(self._plugins.values())

    def kinds(self) -> List[str]:
        return list(self._plugins.keys())

    def describe(self) -> Mapping[str, str]:
        return {kind: plugin.display_name for kind, plugin in self._plugins.items()}

    def __contains__(self, kind: object) -> bool:
        return self.has(kind)

    def __iter__(self) -> Iterator[object]:
        return iter(self.get_all_plugins())

    def __len__(self) -> int:
        return len(self._plugins)


def build_default_registry(enabled: Sequence[str] | None = None) -> ContentKindRegistry:
    """Register the built-in kinds, optionally restricted to ``enabled`` identifiers."""
    plugins = list(DEFAULT_PLUGINS)
    if enabled:
        allowed = set(enabled)
        unknown = sorted(allowed - {plugin.type for plugin in plugins})
        if unknown:
            raise ValueError(f"Unknown content kinds in enabled list: {', '.join(unknown)}")
        plugins = [plugin for plugin in plugins if plugin.type in allowed]
    return ContentKindRegistry(plugins)


__all__ = ["ContentKindRegistry", "DEFAULT_PLUGINS", "build_default_registry"]
