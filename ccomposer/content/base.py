"""Capability contract every content-kind plugin implements."""

from __future__ import annotations

import copy
from abc import ABC
from typing import Any, ClassVar, Dict, Mapping, Type

from pydantic import BaseModel, ValidationError

from ccomposer.core.errors import PluginContractError

from .payloads import OpaquePayload

REQUIRED_CAPABILITIES: tuple[str, ...] = (
    "type",
    "display_name",
    "icon",
    "validate",
    "export_transform",
    "import_transform",
)
_CALLABLE_CAPABILITIES = ("validate", "export_transform", "import_transform")


class ContentKindPlugin(ABC):
    """
    Describes one content kind: identity, validity rule, and interchange transforms.

    Subclasses set the identity class attributes and ``payload_model``; the
    default ``validate`` accepts whatever the payload model accepts. Plugins
    never see each other and never mutate the content they are handed.
    """

    type: ClassVar[str] = ""
    display_name: ClassVar[str] = ""
    icon: ClassVar[str] = ""
    payload_model: ClassVar[Type[BaseModel]] = OpaquePayload

    def validate(self, content: Any) -> bool:
        if not isinstance(content, Mapping):
            return False
        try:
            self.payload_model.model_validate(copy.deepcopy(dict(content)))
        except ValidationError:
            return False
        return True

    def parse(self, content: Mapping[str, Any]) -> BaseModel:
        """Return the typed payload; raises ``ValidationError`` for invalid content."""
        return self.payload_model.model_validate(copy.deepcopy(dict(content)))

    def export_transform(self, content: Dict[str, Any]) -> Dict[str, Any]:
        return copy.deepcopy(content)

    def import_transform(self, content: Dict[str, Any]) -> Dict[str, Any]:
        return copy.deepcopy(content)

    def describe(self) -> Dict[str, str]:
        return {"type": self.type, "display_name": self.display_name, "icon": self.icon}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(type={self.type!r})"


def ensure_plugin(candidate: object) -> object:
    """Reject objects that lack a plugin capability or a usable ``type`` key."""
    missing = [name for name in REQUIRED_CAPABILITIES if not hasattr(candidate, name)]
    if missing:
        raise PluginContractError(f"{candidate!r} is missing plugin capabilities: {', '.join(missing)}")
    not_callable = [name for name in _CALLABLE_CAPABILITIES if not callable(getattr(candidate, name))]
    if not_callable:
        raise PluginContractError(f"{candidate!r} capabilities are not callable: {', '.join(not_callable)}")
    kind = getattr(candidate, "type")
    if not isinstance(kind, str) or not kind.strip():
        raise PluginContractError(f"{candidate!r} must declare a non-empty string type")
    return candidate


__all__ = ["ContentKindPlugin", "REQUIRED_CAPABILITIES", "ensure_plugin"]
