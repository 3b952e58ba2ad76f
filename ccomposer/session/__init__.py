"""Session bootstrap utilities."""

from __future__ import annotations

from .bootstrap import bootstrap, configure_logging
from .context import ComposerContext

__all__ = ["ComposerContext", "bootstrap", "configure_logging"]
