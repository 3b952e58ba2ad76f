"""
Foundational configuration, error, and journaling utilities.

Higher layers (document, interchange, storage) depend on these modules; they
never import upward.
"""

from .config import ComposerConfig, load_composer_config
from .errors import (
    ComposerError,
    InterchangeError,
    NoActiveDocument,
    PluginContractError,
    SectionNotFound,
    StoreError,
    TransferError,
)
from .provenance import ProvenanceEvent, ProvenanceLogger
from .validation import ValidationResult

__all__ = [
    "ComposerConfig",
    "ComposerError",
    "InterchangeError",
    "NoActiveDocument",
    "PluginContractError",
    "ProvenanceEvent",
    "ProvenanceLogger",
    "SectionNotFound",
    "StoreError",
    "TransferError",
    "ValidationResult",
    "load_composer_config",
]
