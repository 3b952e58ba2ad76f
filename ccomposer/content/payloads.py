"""Typed views over section content, keyed by content kind."""

from __future__ import annotations

from typing import Any, Dict, Mapping, Type, Union

from pydantic import BaseModel, ConfigDict, Field, StrictStr, field_validator


def _text_or_empty(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


class MarkdownPayload(BaseModel):
    """Free-form markdown text."""

    model_config = ConfigDict(extra="allow")

    markdown: StrictStr


class _LinkPayload(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    url: StrictStr
    title: str = ""
    description: str = ""

    @field_validator("url")
    @classmethod
    def url_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("url must not be blank")
        return value

    @field_validator("title", "description", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> str:
        return _text_or_empty(value)


class VideoPayload(_LinkPayload):
    """Embedded video referenced by URL."""


class DocumentPayload(_LinkPayload):
    """Link to an external document."""

    doc_type: str = Field(default="other", alias="docType")

    @field_validator("doc_type", mode="before")
    @classmethod
    def default_doc_type(cls, value: Any) -> str:
        return _text_or_empty(value) or "other"


class OpaquePayload(BaseModel):
    """Raw key/value content for kinds this package does not model."""

    model_config = ConfigDict(extra="allow")

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.model_extra or {})


ContentPayload = Union[MarkdownPayload, VideoPayload, DocumentPayload, OpaquePayload]

PAYLOAD_MODELS: Dict[str, Type[BaseModel]] = {
    "markdown": MarkdownPayload,
    "video": VideoPayload,
    "document": DocumentPayload,
}


def payload_model_for(kind: str) -> Type[BaseModel]:
    return PAYLOAD_MODELS.get(kind, OpaquePayload)


def parse_payload(kind: str, data: Mapping[str, Any] | None) -> ContentPayload:
    """
    Return the typed payload for ``kind``.

    Built-in kinds raise ``pydantic.ValidationError`` when ``data`` does not
    satisfy their minimum shape; unknown kinds accept any mapping (or ``None``)
    as an ``OpaquePayload``.
    """
    model = payload_model_for(kind)
    if isinstance(data, Mapping):
        data = dict(data)
    elif data is None and model is OpaquePayload:
        data = {}
    return model.model_validate(data)


__all__ = [
    "ContentPayload",
    "DocumentPayload",
    "MarkdownPayload",
    "OpaquePayload",
    "PAYLOAD_MODELS",
    "VideoPayload",
    "parse_payload",
    "payload_model_for",
]
