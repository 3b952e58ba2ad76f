"""CRUD facade over the single active course."""

from __future__ import annotations

import copy
import logging
from typing import Any, Dict, List, Mapping, Optional, Protocol

from ccomposer.content.registry import ContentKindRegistry
from ccomposer.core.config import CourseDefaults
from ccomposer.core.errors import InterchangeError, NoActiveDocument, SectionNotFound
from ccomposer.core.provenance import ProvenanceEvent, ProvenanceLogger

from .models import Course, Section

LOGGER = logging.getLogger(__name__)

COURSE_FIELDS = ("title", "description", "author")
SECTION_FIELDS = ("title", "order", "content_type", "content")
# Accepted but never applied: identity and timestamps are owned by the model.
_IMMUTABLE_FIELDS = frozenset({"id", "sections", "created_at", "updated_at"})
_WIRE_ALIASES = {"contentType": "content_type", "createdAt": "created_at", "updatedAt": "updated_at"}


def _normalize_keys(updates: Mapping[str, Any]) -> Dict[str, Any]:
    return {_WIRE_ALIASES.get(key, key): value for key, value in updates.items()}


def _is_namespaced(kind: Any) -> bool:
    return isinstance(kind, str) and ":" in kind


class SectionReader(Protocol):
    """Converts one MECS section into internal fields (see ``MECSAdapter``)."""

    def section_from_external(self, section: Mapping[str, Any]) -> Dict[str, Any]: ...


class CourseService:
    """
    Owns exactly one active ``Course`` and every mutation applied to it.

    Mutating calls raise ``NoActiveDocument`` until ``create_course`` or
    ``load_course`` has run. Content-shape rules are delegated to the plugins
    in ``registry``; adding a section never validates its content.
    """

    def __init__(
        self,
        registry: ContentKindRegistry,
        *,
        defaults: CourseDefaults | None = None,
        journal: ProvenanceLogger | None = None,
        adapter: SectionReader | None = None,
    ) -> None:
        self.registry = registry
        self.defaults = defaults or CourseDefaults()
        self.journal = journal
        self.adapter = adapter
        self._course: Optional[Course] = None

    # ------------------------------------------------------------------
    # Active document

    def get_current_course(self) -> Optional[Course]:
        return self._course

    def _require_course(self) -> Course:
        if self._course is None:
            raise NoActiveDocument()
        return self._course

    def _require_section(self, section_id: str) -> Section:
        section = self._require_course().find_section(section_id)
        if section is None:
            raise SectionNotFound(section_id)
        return section

    def create_course(self, fields: Mapping[str, Any] | None = None) -> Course:
        """Replace the active course with a fresh one; unset fields take defaults."""
        payload = dict(fields or {})
        if not payload.get("title"):
            payload["title"] = self.defaults.title
        payload.setdefault("description", "")
        payload.setdefault("author", "")
        payload.pop("sections", None)
        self._course = Course.from_json(payload)
        LOGGER.info("Created course %s", self._course.id)
        self._record("create_course", f"Created course {self._course.title!r}")
        return self._course

    def load_course(self, fields: Mapping[str, Any]) -> Course:
        """Replace the active course with one built from internal-shape ``fields``."""
        self._course = Course.from_json(fields)
        LOGGER.info("Loaded course %s with %d sections", self._course.id, len(self._course.sections))
        self._record("load_course", f"Loaded course {self._course.title!r}")
        return self._course

    def update_course(self, updates: Mapping[str, Any]) -> Course:
        """Shallow-merge course-level fields; always touches the course."""
        course = self._require_course()
        changes = self._filter_updates(_normalize_keys(updates), COURSE_FIELDS, "course")
        if "title" in changes and not changes["title"]:
            changes["title"] = self.defaults.title
        for key, value in course.validated_changes(changes).items():
            setattr(course, key, value)
        course.touch()
        LOGGER.debug("Updated course %s fields %s", course.id, sorted(changes))
        self._record("update_course", "Updated course fields", fields=sorted(changes))
        return course

    # ------------------------------------------------------------------
    # Sections

    def add_section(self, data: Mapping[str, Any] | None = None) -> Section:
        """Append a new section; title defaults from the kind's display name."""
        course = self._require_course()
        payload = _normalize_keys(dict(data or {}))
        for key in ("id", "created_at", "updated_at"):
            payload.pop(key, None)
        kind = payload.get("content_type") or self.defaults.content_type
        payload["content_type"] = kind
        if not payload.get("title"):
            plugin = self.registry.get(kind)
            payload["title"] = f"New {plugin.display_name} Section" if plugin else self.defaults.section_title
        payload["order"] = len(course.sections)
        payload["content"] = copy.deepcopy(payload.get("content") or {})
        section = Section.model_validate(payload)
        course.add_section(section)
        LOGGER.debug("Added %s section %s to course %s", kind, section.id, course.id)
        self._record("add_section", f"Added section {section.title!r}", section_id=section.id, kind=kind)
        return section

    def update_section(self, section_id: str, updates: Mapping[str, Any]) -> Section:
        """Commit ``updates`` to a section; touches both the section and the course."""
        course = self._require_course()
        section = self._require_section(section_id)
        changes = self._filter_updates(_normalize_keys(updates), SECTION_FIELDS, "section")
        if "content_type" in changes and not changes["content_type"]:
            changes.pop("content_type")
        if "title" in changes and not changes["title"]:
            changes["title"] = self.defaults.section_title
        if "content" in changes:
            changes["content"] = copy.deepcopy(changes["content"]) if changes["content"] is not None else {}
        if "order" in changes and changes["order"] is None:
            changes["order"] = 0
        for key, value in section.validated_changes(changes).items():
            setattr(section, key, value)
        section.touch()
        course.touch()
        LOGGER.debug("Updated section %s fields %s", section_id, sorted(changes))
        self._record("update_section", "Updated section", section_id=section_id, fields=sorted(changes))
        return section

    def delete_section(self, section_id: str) -> bool:
        """Remove a section by id; an unknown id is a no-op."""
        course = self._require_course()
        removed = course.remove_section(section_id)
        if removed:
            LOGGER.debug("Removed section %s from course %s", section_id, course.id)
            self._record("delete_section", "Removed section", section_id=section_id)
        else:
            LOGGER.debug("Section %s not present; nothing removed", section_id)
        return removed

    def move_section(self, section_id: str, new_index: int) -> bool:
        """Move a section to ``new_index`` (clamped); an unknown id is a no-op."""
        course = self._require_course()
        moved = course.move_section(section_id, new_index)
        if moved:
            LOGGER.debug("Moved section %s to index %d", section_id, course.index_of(section_id))
            self._record("move_section", "Moved section", section_id=section_id, index=course.index_of(section_id))
        return moved

    def move_section_by(self, section_id: str, offset: int) -> bool:
        """Shift a section up/down by ``offset``; refuses moves that would leave the list."""
        course = self._require_course()
        current = course.index_of(section_id)
        if current == -1:
            raise SectionNotFound(section_id)
        target = current + offset
        if offset == 0 or target < 0 or target >= len(course.sections):
            return False
        return self.move_section(section_id, target)

    def draft_section(self, section_id: str) -> Section:
        """Detached copy for editing; commit it back with ``update_section``."""
        return self._require_section(section_id).model_copy(deep=True)

    def import_section(self, data: Mapping[str, Any]) -> Section:
        """
        Append a previously exported section under a fresh id.

        ``data`` may be an internal snapshot or a MECS section; namespaced
        content types are unmapped through ``adapter``.
        """
        payload = _normalize_keys(dict(data))
        if _is_namespaced(payload.get("content_type")):
            if self.adapter is None:
                raise InterchangeError("Importing a MECS section requires an interchange adapter")
            external = {**data, "contentType": payload["content_type"]}
            payload = _normalize_keys(self.adapter.section_from_external(external))
        return self.add_section(
            {
                "title": payload.get("title"),
                "content_type": payload.get("content_type"),
                "content": payload.get("content"),
            }
        )

    # ------------------------------------------------------------------
    # Validation (caller-invoked)

    def validate_section(self, section_id: str) -> bool:
        section = self._require_section(section_id)
        plugin = self.registry.get(section.content_type)
        if plugin is None:
            LOGGER.warning("No plugin registered for content kind %s", section.content_type)
            return False
        return bool(plugin.validate(section.content))

    def invalid_sections(self) -> List[str]:
        course = self._require_course()
        return [section.id for section in course.sections if not self.validate_section(section.id)]

    # ------------------------------------------------------------------
    # Snapshots

    def export_course(self) -> Dict[str, Any]:
        return self._require_course().to_json()

    def export_section(self, section_id: str) -> Dict[str, Any]:
        return self._require_section(section_id).to_json()

    # ------------------------------------------------------------------

    def _filter_updates(self, updates: Mapping[str, Any], allowed: tuple[str, ...], target: str) -> Dict[str, Any]:
        changes: Dict[str, Any] = {}
        unknown: List[str] = []
        for key, value in updates.items():
            if key in allowed:
                changes[key] = value
            elif key in _IMMUTABLE_FIELDS:
                LOGGER.debug("Ignoring immutable %s field %s", target, key)
            else:
                unknown.append(key)
        if unknown:
            raise ValueError(f"Unknown {target} fields: {', '.join(sorted(unknown))}")
        return changes

    def _record(self, stage: str, message: str, **payload: Any) -> None:
        if self.journal is None:
            return
        if self._course is not None:
            payload.setdefault("course_id", self._course.id)
        self.journal.log(ProvenanceEvent(stage=stage, message=message, agent="course_service", payload=payload))


__all__ = ["CourseService", "SectionReader"]
