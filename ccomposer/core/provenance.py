"""Append-only JSONL journal of course edits."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List

from pydantic import BaseModel, Field


class ProvenanceEvent(BaseModel):
    """Structured record for one authoring operation."""

    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    stage: str = Field(..., description="Operation name, e.g. 'add_section' or 'import'.")
    message: str = Field(..., description="Human-readable description of the event.")
    agent: str = Field(default="ccomposer")
    payload: Dict[str, Any] = Field(default_factory=dict)


class ProvenanceLogger:
    """Append-only JSONL logger for edit history and debugging."""

    def __init__(self, output_path: Path):
        self.output_path = output_path
        self.output_path.parent.mkdir(parents=True, exist_ok=True)

    def log(self, event: ProvenanceEvent | Dict[str, Any]) -> ProvenanceEvent:
        """Write a single event to disk and return the normalized object."""
        if not isinstance(event, ProvenanceEvent):
            event = ProvenanceEvent(**event)
        line = event.model_dump_json()
        with self.output_path.open("a", encoding="utf-8") as handle:
            handle.write(line + "\n")
        return event

    def read(self) -> List[ProvenanceEvent]:
        if not self.output_path.exists():
            return []
        events = []
        with self.output_path.open("r", encoding="utf-8") as handle:
            for line in handle:
                if line.strip():
                    events.append(ProvenanceEvent.model_validate_json(line))
        return events


__all__ = ["ProvenanceEvent", "ProvenanceLogger"]
