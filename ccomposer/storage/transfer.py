"""File exchange: write MECS downloads and read uploaded course files."""

from __future__ import annotations

import json
import logging
import re
import time
from pathlib import Path
from typing import Any, Dict

from ccomposer.core.errors import TransferError
from ccomposer.core.validation import ValidationFramework

LOGGER = logging.getLogger(__name__)
_WHITESPACE = re.compile(r"\s+")


def suggest_filename(title: str | None) -> str:
    """``<title with whitespace runs as _>_<epoch-ms>.json``."""
    stem = _WHITESPACE.sub("_", (title or "").strip()) or "course"
    stem = stem.replace("/", "_").replace("\\", "_")
    return f"{stem}_{int(time.time() * 1000)}.json"


class FileTransfer:
    """Reads and writes exchange files; every failure surfaces as ``TransferError``."""

    def __init__(self, export_dir: Path, *, indent: int = 2) -> None:
        self.export_dir = Path(export_dir)
        self.indent = indent
        self._checks = ValidationFramework()

    def write_download(self, data: Dict[str, Any], filename: str | Path) -> Path:
        target = Path(filename)
        if not target.is_absolute():
            target = self.export_dir / target
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(json.dumps(data, indent=self.indent or None, ensure_ascii=False) + "\n", encoding="utf-8")
        except (OSError, TypeError, ValueError) as exc:
            raise TransferError(f"Failed to write {target}: {exc}") from exc
        LOGGER.info("Wrote %s", target)
        return target

    def read_upload(self, path: str | Path | None) -> Dict[str, Any]:
        if path is None:
            raise TransferError("No file selected")
        result = self._checks.validate_json_file(path)
        if not result.valid:
            raise TransferError("; ".join(result.errors))
        if not isinstance(result.data, dict):
            raise TransferError(f"Invalid JSON file: expected an object at the root of {path}")
        LOGGER.info("Read %s", path)
        return result.data


__all__ = ["FileTransfer", "suggest_filename"]
