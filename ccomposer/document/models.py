"""
In-memory document tree edited by the author: a Course owning ordered Sections.

Field names are snake_case in Python and camelCase on the wire
(``createdAt``, ``contentType``); ``to_json`` always emits the wire names.
Section order is list position; ``Section.order`` is informational only.
"""

from __future__ import annotations

import copy
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator

DEFAULT_COURSE_TITLE = "Untitled Course"
DEFAULT_SECTION_TITLE = "Untitled Section"
DEFAULT_CONTENT_TYPE = "markdown"


def utc_now_iso() -> str:
    """Current UTC time as ISO-8601 with millisecond precision and a ``Z`` suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: Any) -> Optional[datetime]:
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def latest_timestamp(*candidates: Optional[str]) -> str:
    """Return the latest parseable candidate (first wins on ties); now when none parse."""
    best: Optional[str] = None
    best_value: Optional[datetime] = None
    for candidate in candidates:
        parsed = parse_timestamp(candidate)
        if parsed is None:
            continue
        if best_value is None or parsed > best_value:
            best, best_value = candidate, parsed
    return best if best is not None else utc_now_iso()


def generate_id(prefix: str) -> str:
    return f"{prefix}_{int(time.time() * 1000)}_{uuid4().hex[:9]}"


def _drop_empty(data: Any, keys: tuple[str, ...]) -> Any:
    """Treat ``None`` and empty strings like missing keys so defaults apply."""
    if not isinstance(data, Mapping):
        return data
    payload = dict(data)
    for key in keys:
        if key in payload and (payload[key] is None or payload[key] == ""):
            payload.pop(key)
    return payload


class _TimestampedModel(BaseModel):
    """Touch rules shared by Course and Section; both declare ``created_at``/``updated_at`` last."""

    # Legacy files carry numeric ids and titles; store them as text.
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    @model_validator(mode="after")
    def updated_not_before_created(self) -> "_TimestampedModel":
        created = parse_timestamp(self.created_at)
        updated = parse_timestamp(self.updated_at)
        if created is not None and updated is not None and updated < created:
            self.updated_at = self.created_at
        return self

    def validated_changes(self, changes: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Run ``changes`` through the field rules as if merged into this model.

        Returns the coerced value for each changed field; raises
        ``pydantic.ValidationError`` (a ``ValueError``) when a value is unusable.
        """
        merged = type(self).model_validate({**self.model_dump(exclude={"sections"}), **changes})
        return {key: getattr(merged, key) for key in changes}

    def touch(self) -> None:
        """Advance ``updated_at`` to now without ever moving it backwards."""
        self.updated_at = latest_timestamp(utc_now_iso(), self.updated_at, self.created_at)


class Section(_TimestampedModel):
    """One entry of a course; ``content`` shape belongs to the plugin named by ``content_type``."""

    id: str = Field(default_factory=lambda: generate_id("section"))
    title: str = DEFAULT_SECTION_TITLE
    order: int = 0
    content_type: str = Field(default=DEFAULT_CONTENT_TYPE, alias="contentType")
    content: Any = Field(default_factory=dict)
    created_at: str = Field(default_factory=utc_now_iso, alias="createdAt")
    updated_at: str = Field(default_factory=utc_now_iso, alias="updatedAt")

    @model_validator(mode="before")
    @classmethod
    def fill_defaults(cls, data: Any) -> Any:
        payload = _drop_empty(data, ("id", "title", "contentType", "content_type", "createdAt", "updatedAt"))
        if isinstance(payload, dict):
            if payload.get("order") is None:
                payload.pop("order", None)
            if payload.get("content") is None:
                payload.pop("content", None)
        return payload

    def update_content(self, content: Any) -> None:
        self.content = copy.deepcopy(content)
        self.touch()

    def to_json(self) -> Dict[str, Any]:
        return copy.deepcopy(self.model_dump(by_alias=True))

    @classmethod
    def from_json(cls, data: Mapping[str, Any] | None) -> "Section":
        return cls.model_validate(copy.deepcopy(dict(data or {})))


class Course(_TimestampedModel):
    """The single document being authored."""

    id: str = Field(default_factory=lambda: generate_id("course"))
    title: str = DEFAULT_COURSE_TITLE
    description: str = ""
    author: str = ""
    sections: List[Section] = Field(default_factory=list)
    created_at: str = Field(default_factory=utc_now_iso, alias="createdAt")
    updated_at: str = Field(default_factory=utc_now_iso, alias="updatedAt")

    @model_validator(mode="before")
    @classmethod
    def fill_defaults(cls, data: Any) -> Any:
        payload = _drop_empty(data, ("id", "title", "createdAt", "updatedAt"))
        if isinstance(payload, dict):
            for key in ("description", "author"):
                if payload.get(key) is None:
                    payload.pop(key, None)
            if payload.get("sections") is None:
                payload.pop("sections", None)
        return payload

    # ------------------------------------------------------------------
    # Lookup

    def index_of(self, section_id: str) -> int:
        for index, section in enumerate(self.sections):
            if section.id == section_id:
                return index
        return -1

    def find_section(self, section_id: str) -> Optional[Section]:
        index = self.index_of(section_id)
        return self.sections[index] if index >= 0 else None

    # ------------------------------------------------------------------
    # Mutation

    def add_section(self, section: Section) -> None:
        self.sections.append(section)
        self.touch()

    def remove_section(self, section_id: str) -> bool:
        remaining = [section for section in self.sections if section.id != section_id]
        if len(remaining) == len(self.sections):
            return False
        self.sections = remaining
        self.touch()
        return True

    def move_section(self, section_id: str, new_index: int) -> bool:
        """
        Move a section to ``new_index``, clamped to ``[0, len(sections) - 1]``.

        Returns False (and leaves the course untouched) for an unknown id.
        """
        current = self.index_of(section_id)
        if current == -1:
            return False
        section = self.sections.pop(current)
        target = max(0, min(int(new_index), len(self.sections)))
        self.sections.insert(target, section)
        self.touch()
        return True

    # ------------------------------------------------------------------
    # Serialization

    def to_json(self) -> Dict[str, Any]:
        """Plain snapshot; mutating the result never affects the course."""
        return copy.deepcopy(self.model_dump(by_alias=True))

    @classmethod
    def from_json(cls, data: Mapping[str, Any] | None) -> "Course":
        return cls.model_validate(copy.deepcopy(dict(data or {})))


__all__ = [
    "Course",
    "DEFAULT_CONTENT_TYPE",
    "DEFAULT_COURSE_TITLE",
    "DEFAULT_SECTION_TITLE",
    "Section",
    "generate_id",
    "latest_timestamp",
    "parse_timestamp",
    "utc_now_iso",
]
