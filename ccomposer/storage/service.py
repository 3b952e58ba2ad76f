"""Save/load courses in the store and exchange them as MECS files."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from ccomposer.core.validation import ValidationResult
from ccomposer.document.models import Course, Section
from ccomposer.interchange.mecs import MECSAdapter

from .store import CourseStore
from .transfer import FileTransfer, suggest_filename

LOGGER = logging.getLogger(__name__)


@dataclass
class ImportResult:
    """Internal course fields plus the advisory MECS validation report."""

    fields: Dict[str, Any]
    report: ValidationResult
    source: Optional[Path] = None
    legacy: bool = False
    warnings: List[str] = field(default_factory=list)


class StorageService:
    """
    Bridges the document model to the store and file collaborators.

    The store keeps the internal layout (``Course.to_json``); files are always
    written as MECS and read back through ``MECSAdapter.from_external``.
    """

    def __init__(
        self,
        store: CourseStore,
        transfer: FileTransfer,
        adapter: MECSAdapter,
        *,
        key_prefix: str = "course_",
        active_key: str = "active_course",
    ) -> None:
        self.store = store
        self.transfer = transfer
        self.adapter = adapter
        self.key_prefix = key_prefix
        self.active_key = active_key

    # ------------------------------------------------------------------
    # Store

    def key_for(self, course: Course) -> str:
        return f"{self.key_prefix}{course.id}"

    def save_course(self, course: Course) -> str:
        key = self.key_for(course)
        self.store.put(key, course.to_json())
        LOGGER.info("Saved course %s under %s", course.id, key)
        return key

    def load_course_data(self, key: str) -> Optional[Dict[str, Any]]:
        data = self.store.get(key)
        if data is None:
            LOGGER.info("No saved course under %s", key)
            return None
        return self.adapter.from_external(data)

    def remove_course(self, key: str) -> None:
        self.store.remove(key)
        LOGGER.info("Removed saved course %s", key)

    def list_saved_courses(self) -> List[Dict[str, Any]]:
        return self.store.list_keys_with_prefix(self.key_prefix)

    def latest_course_data(self) -> Optional[Dict[str, Any]]:
        """Most recently updated saved course, if any."""
        courses = self.list_saved_courses()
        if not courses:
            return None
        return self.load_course_data(courses[0]["key"])

    def remember_active(self, course: Course) -> str:
        key = self.save_course(course)
        self.store.put(self.active_key, {"key": key, "id": course.id})
        return key

    def active_course_data(self) -> Optional[Dict[str, Any]]:
        pointer = self.store.get(self.active_key)
        if not pointer or not pointer.get("key"):
            return None
        return self.load_course_data(str(pointer["key"]))

    # ------------------------------------------------------------------
    # Files

    def export_to_file(self, course: Course, filename: str | Path | None = None) -> Path:
        document = self.adapter.to_external(course)
        return self.transfer.write_download(document, filename or suggest_filename(course.title))

    def export_section_to_file(self, section: Section, filename: str | Path | None = None) -> Path:
        document = self.adapter.section_to_external(section)
        return self.transfer.write_download(document, filename or suggest_filename(section.title))

    def import_from_file(self, path: str | Path | None, *, validate: bool = True) -> ImportResult:
        """Read a course file (MECS or legacy) and convert it to internal fields."""
        raw = self.transfer.read_upload(path)
        legacy = not self.adapter.is_mecs(raw)
        report = self.adapter.validate(raw) if validate else ValidationResult(valid=True)
        if validate and not report.valid and not legacy:
            LOGGER.warning("Imported MECS document has problems: %s", "; ".join(report.errors))
        fields = self.adapter.from_external(raw)
        return ImportResult(
            fields=fields,
            report=report,
            source=Path(path) if path is not None else None,
            legacy=legacy,
            warnings=list(report.warnings),
        )

    def import_section_from_file(self, path: str | Path | None) -> Dict[str, Any]:
        raw = self.transfer.read_upload(path)
        return self.adapter.section_from_any(raw)


__all__ = ["ImportResult", "StorageService"]
