"""Exception hierarchy shared by the document, interchange, and storage layers."""

from __future__ import annotations


class ComposerError(Exception):
    """Base class for every error raised by ccomposer."""


class NoActiveDocument(ComposerError):
    """A mutating operation was requested before a course was created or loaded."""

    def __init__(self, message: str = "No active course") -> None:
        super().__init__(message)


class SectionNotFound(ComposerError, KeyError):
    """The referenced section id is not part of the active course."""

    def __init__(self, section_id: str) -> None:
        self.section_id = section_id
        super().__init__(f"Section {section_id} not found")

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message.
        return str(self.args[0])


class PluginContractError(ComposerError, TypeError):
    """An object offered to the registry does not implement the plugin capabilities."""


class InterchangeError(ComposerError, ValueError):
    """An external document cannot be converted at all."""


class TransferError(ComposerError):
    """Reading or writing an exchange file failed."""


class StoreError(ComposerError):
    """The persistence store could not read or write a document."""


__all__ = [
    "ComposerError",
    "InterchangeError",
    "NoActiveDocument",
    "PluginContractError",
    "SectionNotFound",
    "StoreError",
    "TransferError",
]
