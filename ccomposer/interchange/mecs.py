"""
Conversion between the internal course model and MECS, the namespaced
interchange schema.

``to_external`` always emits the current MECS version. ``from_external``
accepts current MECS documents, the older flat (un-namespaced) layout, and
partial data, filling gaps instead of failing. ``validate`` is advisory: it
reports every structural problem it finds but never blocks conversion.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Dict, List, Mapping, Optional

from ccomposer.content.registry import ContentKindRegistry
from ccomposer.core.errors import InterchangeError
from ccomposer.core.validation import ValidationResult
from ccomposer.document.models import Course, Section, utc_now_iso

LOGGER = logging.getLogger(__name__)

MECS_VERSION = "1.0.0"
COURSE_TYPE = "mecs:course"
CUSTOM_PREFIX = "custom:"
NAMESPACE_SEPARATOR = ":"

TYPE_TO_MECS: Dict[str, str] = {
    "markdown": "mecs:text",
    "video": "mecs:video",
    "document": "mecs:document",
}
MECS_TO_TYPE: Dict[str, str] = {value: key for key, value in TYPE_TO_MECS.items()}


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def detect_provider(url: Any) -> str:
    """Plain substring match on the raw URL; no parsing, case-sensitive."""
    if not url or not isinstance(url, str):
        return "other"
    if "youtube.com" in url or "youtu.be" in url:
        return "youtube"
    if "vimeo.com" in url:
        return "vimeo"
    return "direct"


class MECSAdapter:
    """Stateless converter; the optional registry supplies per-kind transforms."""

    def __init__(self, registry: ContentKindRegistry | None = None) -> None:
        self.registry = registry

    # ------------------------------------------------------------------
    # Internal -> MECS

    def to_external(self, course: Course | Mapping[str, Any]) -> Dict[str, Any]:
        data = course.to_json() if isinstance(course, Course) else copy.deepcopy(dict(course))
        sections = data.get("sections") or []
        return {
            "mecsVersion": MECS_VERSION,
            "type": COURSE_TYPE,
            "id": data.get("id"),
            "title": data.get("title"),
            "description": data.get("description") or "",
            "metadata": {
                "author": data.get("author") or "",
                "createdAt": data.get("createdAt"),
                "updatedAt": data.get("updatedAt"),
            },
            "sections": [self.section_to_external(section) for section in sections],
            "createdAt": data.get("createdAt"),
            "updatedAt": data.get("updatedAt"),
        }

    def section_to_external(self, section: Section | Mapping[str, Any]) -> Dict[str, Any]:
        data = section.to_json() if isinstance(section, Section) else dict(section)
        kind = data.get("contentType")
        content = self._apply_export_transform(kind, data.get("content"))
        return {
            "id": data.get("id"),
            "title": data.get("title"),
            "order": data.get("order") or 0,
            "contentType": self.map_content_type(kind),
            "content": self.map_content(kind, content),
            "createdAt": data.get("createdAt"),
            "updatedAt": data.get("updatedAt"),
        }

    def map_content_type(self, kind: str) -> str:
        return TYPE_TO_MECS.get(kind) or f"{CUSTOM_PREFIX}{kind}"

    def map_content(self, kind: str, content: Any) -> Any:
        if kind == "markdown":
            payload = _mapping(content)
            return {"format": "markdown", "text": payload.get("markdown") or ""}
        if kind == "video":
            payload = _mapping(content)
            return {
                "url": payload.get("url") or "",
                "title": payload.get("title") or "",
                "description": payload.get("description") or "",
                "provider": detect_provider(payload.get("url")),
            }
        if kind == "document":
            payload = _mapping(content)
            return {
                "url": payload.get("url") or "",
                "title": payload.get("title") or "",
                "description": payload.get("description") or "",
                "docType": payload.get("docType") or "other",
            }
        return copy.deepcopy(content)

    # ------------------------------------------------------------------
    # MECS / legacy -> internal

    def is_mecs(self, doc: Any) -> bool:
        return isinstance(doc, Mapping) and bool(doc.get("mecsVersion")) and doc.get("type") == COURSE_TYPE

    def from_external(self, doc: Any) -> Dict[str, Any]:
        """Return internal course fields (camelCase, as produced by ``Course.to_json``)."""
        if not isinstance(doc, Mapping):
            raise InterchangeError(f"Expected a JSON object for a course, received {type(doc).__name__}")

        now = utc_now_iso()
        if self.is_mecs(doc):
            self._check_version(doc.get("mecsVersion"))
            metadata = _mapping(doc.get("metadata"))
            return {
                "id": doc.get("id"),
                "title": doc.get("title"),
                "description": doc.get("description") or "",
                "author": metadata.get("author") or "",
                "createdAt": doc.get("createdAt") or metadata.get("createdAt") or now,
                "updatedAt": doc.get("updatedAt") or metadata.get("updatedAt") or now,
                "sections": [self.section_from_external(section) for section in self._section_list(doc)],
            }

        LOGGER.info("Document %s has no MECS envelope; reading legacy layout", doc.get("id"))
        return {
            "id": doc.get("id"),
            "title": doc.get("title"),
            "description": doc.get("description") or "",
            "author": doc.get("author") or "",
            "createdAt": doc.get("createdAt") or now,
            "updatedAt": doc.get("updatedAt") or now,
            "sections": [self.section_from_legacy(section) for section in self._section_list(doc)],
        }

    def section_from_external(self, section: Mapping[str, Any]) -> Dict[str, Any]:
        now = utc_now_iso()
        external_type = section.get("contentType")
        kind = self.unmap_content_type(external_type)
        content = self.unmap_content(external_type, section.get("content"))
        return {
            "id": section.get("id"),
            "title": section.get("title"),
            "order": section.get("order") or 0,
            "contentType": kind,
            "content": self._apply_import_transform(kind, content),
            "createdAt": section.get("createdAt") or now,
            "updatedAt": section.get("updatedAt") or now,
        }

    def section_from_legacy(self, section: Mapping[str, Any]) -> Dict[str, Any]:
        now = utc_now_iso()
        return {
            "id": section.get("id"),
            "title": section.get("title"),
            "order": section.get("order") or 0,
            "contentType": section.get("contentType"),
            "content": copy.deepcopy(section.get("content")),
            "createdAt": section.get("createdAt") or now,
            "updatedAt": section.get("updatedAt") or now,
        }

    def section_from_any(self, section: Mapping[str, Any]) -> Dict[str, Any]:
        """Convert a lone exported section, namespaced or not."""
        external_type = section.get("contentType")
        if isinstance(external_type, str) and NAMESPACE_SEPARATOR in external_type:
            return self.section_from_external(section)
        return self.section_from_legacy(section)

    def unmap_content_type(self, external_type: Any) -> Any:
        if not isinstance(external_type, str):
            return external_type
        if external_type in MECS_TO_TYPE:
            return MECS_TO_TYPE[external_type]
        if external_type.startswith(CUSTOM_PREFIX):
            return external_type[len(CUSTOM_PREFIX):]
        # Unrecognized namespace: keep verbatim so nothing is lost.
        return external_type

    def unmap_content(self, external_type: Any, content: Any) -> Any:
        kind = self.unmap_content_type(external_type)
        if kind == "markdown":
            return {"markdown": _text(_mapping(content).get("text"))}
        if kind == "video":
            payload = _mapping(content)
            return {
                "url": _text(payload.get("url")),
                "title": _text(payload.get("title")),
                "description": _text(payload.get("description")),
            }
        if kind == "document":
            payload = _mapping(content)
            return {
                "url": _text(payload.get("url")),
                "title": _text(payload.get("title")),
                "description": _text(payload.get("description")),
                "docType": _text(payload.get("docType")) or "other",
            }
        return copy.deepcopy(content)

    # ------------------------------------------------------------------
    # Validation

    def validate(self, doc: Any) -> ValidationResult:
        """Collect every structural problem in ``doc``; never raises."""
        errors: List[str] = []
        if doc is None:
            return ValidationResult.from_errors(["Data is null or undefined"])
        if not isinstance(doc, Mapping):
            return ValidationResult.from_errors([f"Expected a JSON object, received {type(doc).__name__}"])

        if not doc.get("mecsVersion"):
            errors.append("Missing mecsVersion field")
        if doc.get("type") != COURSE_TYPE:
            errors.append(f'Invalid type field (expected "{COURSE_TYPE}")')
        if not doc.get("id") or not doc.get("title"):
            errors.append("Missing required fields: id and title")

        sections = doc.get("sections")
        if not isinstance(sections, list):
            errors.append("Sections must be an array")
        else:
            for index, section in enumerate(sections):
                if not isinstance(section, Mapping):
                    errors.append(f"Section {index}: Expected an object")
                    continue
                if not section.get("id") or not section.get("title"):
                    errors.append(f"Section {index}: Missing id or title")
                content_type = section.get("contentType")
                if not isinstance(content_type, str) or NAMESPACE_SEPARATOR not in content_type:
                    errors.append(f"Section {index}: Invalid contentType (must be namespaced)")

        warnings: List[str] = []
        version = doc.get("mecsVersion")
        if version and not self._version_supported(version):
            warnings.append(f"mecsVersion {version} differs from supported {MECS_VERSION}")
        return ValidationResult.from_errors(errors, warnings, data=doc)

    # ------------------------------------------------------------------

    def _section_list(self, doc: Mapping[str, Any]) -> List[Mapping[str, Any]]:
        sections = doc.get("sections")
        if not isinstance(sections, list):
            return []
        usable = []
        for index, section in enumerate(sections):
            if isinstance(section, Mapping):
                usable.append(section)
            else:
                LOGGER.warning("Skipping section %d: expected an object, received %s", index, type(section).__name__)
        return usable

    def _version_supported(self, version: Any) -> bool:
        return str(version).split(".")[0] == MECS_VERSION.split(".")[0]

    def _check_version(self, version: Any) -> None:
        if not self._version_supported(version):
            LOGGER.warning("MECS version %s differs from supported %s; converting anyway", version, MECS_VERSION)

    def _plugin(self, kind: Any) -> Optional[object]:
        if self.registry is None or not isinstance(kind, str):
            return None
        plugin = self.registry.get(kind)
        if plugin is None:
            LOGGER.debug("No plugin registered for content kind %s; content passed through", kind)
        return plugin

    def _apply_export_transform(self, kind: Any, content: Any) -> Any:
        plugin = self._plugin(kind)
        if plugin is None or not isinstance(content, Mapping):
            return copy.deepcopy(content)
        return plugin.export_transform(dict(content))

    def _apply_import_transform(self, kind: Any, content: Any) -> Any:
        plugin = self._plugin(kind)
        if plugin is None or not isinstance(content, Mapping):
            return content
        return plugin.import_transform(dict(content))


__all__ = [
    "COURSE_TYPE",
    "CUSTOM_PREFIX",
    "MECSAdapter",
    "MECS_VERSION",
    "detect_provider",
]
