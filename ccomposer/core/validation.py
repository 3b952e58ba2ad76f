"""Validation helpers that report problems as data instead of raising."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List


@dataclass
class ValidationResult:
    """Result of a validation check."""

    valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    data: Any = None

    @classmethod
    def from_errors(cls, errors: List[str], warnings: List[str] | None = None, data: Any = None) -> "ValidationResult":
        return cls(valid=len(errors) == 0, errors=list(errors), warnings=list(warnings or []), data=data)

    @property
    def has_warnings(self) -> bool:
        return len(self.warnings) > 0


class ValidationFramework:
    """File-level checks used at the exchange boundary."""

    def __init__(self) -> None:
        self.logger = logging.getLogger(__name__)

    def validate_file_exists(self, path: Path | str) -> ValidationResult:
        """Validate that a file exists and is readable."""
        errors = []
        warnings = []
        path_obj = Path(path)

        if not path_obj.exists():
            errors.append(f"File does not exist: {path}")
        elif not path_obj.is_file():
            errors.append(f"Path is not a file: {path}")
        else:
            if not path_obj.stat().st_size:
                warnings.append(f"File is empty: {path}")
            try:
                with path_obj.open("r", encoding="utf-8"):
                    pass
            except PermissionError:
                errors.append(f"No read permission for file: {path}")
            except OSError as e:
                errors.append(f"Cannot read file {path}: {e}")

        result = ValidationResult.from_errors(errors, warnings, data=path_obj if not errors else None)
        if not result.valid:
            self.logger.error("File validation failed: %s", result.errors)
        elif result.has_warnings:
            self.logger.warning("File validation warnings: %s", result.warnings)
        return result

    def validate_json_file(self, path: Path | str) -> ValidationResult:
        """Validate and load a JSON file."""
        errors = []
        data = None

        file_result = self.validate_file_exists(path)
        if not file_result.valid:
            return file_result

        path_obj = Path(path)
        try:
            content = path_obj.read_text(encoding="utf-8")
            if not content.strip():
                errors.append(f"JSON file is empty: {path}")
            else:
                data = json.loads(content)
                self.logger.debug("Loaded JSON from %s", path)
        except json.JSONDecodeError as e:
            errors.append(f"Invalid JSON in {path}: {e}")
        except (OSError, UnicodeDecodeError) as e:
            errors.append(f"Error reading JSON file {path}: {e}")

        result = ValidationResult.from_errors(errors, data=data)
        if not result.valid:
            self.logger.error("JSON validation failed: %s", result.errors)
        return result


__all__ = ["ValidationFramework", "ValidationResult"]
