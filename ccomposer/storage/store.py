"""Key/value stores that persist course JSON between sessions."""

from __future__ import annotations

import json
import logging
import sqlite3
from contextlib import closing
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Protocol, Tuple

from ccomposer.core.errors import StoreError

LOGGER = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS documents (
    key TEXT PRIMARY KEY,
    body TEXT NOT NULL,
    updated_at TEXT
);
"""


class CourseStore(Protocol):
    def put(self, key: str, data: Dict[str, Any]) -> None: ...

    def get(self, key: str) -> Optional[Dict[str, Any]]: ...

    def remove(self, key: str) -> None: ...

    def list_keys_with_prefix(self, prefix: str) -> List[Dict[str, Any]]: ...


def _encode(key: str, data: Dict[str, Any]) -> str:
    try:
        return json.dumps(data, ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        raise StoreError(f"Cannot serialize document {key}: {exc}") from exc


def _decode(key: str, body: str) -> Dict[str, Any]:
    try:
        data = json.loads(body)
    except json.JSONDecodeError as exc:
        raise StoreError(f"Stored document {key} is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise StoreError(f"Stored document {key} is not a JSON object")
    return data


def summarize(rows: Iterable[Tuple[str, str]]) -> List[Dict[str, Any]]:
    """Build ``{key, id, title, updatedAt}`` summaries, newest first; bad rows are skipped."""
    summaries = []
    for key, body in rows:
        try:
            data = _decode(key, body)
        except StoreError as exc:
            LOGGER.warning("Skipping unreadable course %s: %s", key, exc)
            continue
        summaries.append(
            {
                "key": key,
                "id": data.get("id"),
                "title": data.get("title"),
                "updatedAt": data.get("updatedAt"),
            }
        )
    summaries.sort(key=lambda item: str(item.get("updatedAt") or ""), reverse=True)
    return summaries


class SqliteCourseStore:
    """SQLite-backed store; one row per key, JSON body."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        """Create a connection, ensuring the parent directory exists."""

        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        return sqlite3.connect(self.db_path)

    def _ensure_schema(self) -> None:
        try:
            with closing(self._connect()) as con:
                con.executescript(SCHEMA_SQL)
        except sqlite3.Error as exc:
            raise StoreError(f"Cannot initialise course store at {self.db_path}: {exc}") from exc

    def put(self, key: str, data: Dict[str, Any]) -> None:
        body = _encode(key, data)
        try:
            with closing(self._connect()) as con, con:
                con.execute(
                    """
                    INSERT INTO documents (key, body, updated_at) VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET body = excluded.body, updated_at = excluded.updated_at
                    """,
                    (key, body, data.get("updatedAt")),
                )
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to save {key}: {exc}") from exc

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        try:
            with closing(self._connect()) as con:
                row = con.execute("SELECT body FROM documents WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to load {key}: {exc}") from exc
        if row is None:
            return None
        return _decode(key, row[0])

    def remove(self, key: str) -> None:
        try:
            with closing(self._connect()) as con, con:
                con.execute("DELETE FROM documents WHERE key = ?", (key,))
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to remove {key}: {exc}") from exc

    def list_keys_with_prefix(self, prefix: str) -> List[Dict[str, Any]]:
        # substr comparison instead of LIKE: prefixes such as "course_" contain wildcards.
        try:
            with closing(self._connect()) as con:
                rows = con.execute(
                    "SELECT key, body FROM documents WHERE substr(key, 1, ?) = ?",
                    (len(prefix), prefix),
                ).fetchall()
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to list courses: {exc}") from exc
        return summarize(rows)


class InMemoryCourseStore:
    """Process-local store; keeps serialized JSON so callers never share references."""

    def __init__(self) -> None:
        self._rows: Dict[str, str] = {}

    def put(self, key: str, data: Dict[str, Any]) -> None:
        self._rows[key] = _encode(key, data)

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        body = self._rows.get(key)
        return _decode(key, body) if body is not None else None

    def remove(self, key: str) -> None:
        self._rows.pop(key, None)

    def list_keys_with_prefix(self, prefix: str) -> List[Dict[str, Any]]:
        return summarize((key, body) for key, body in self._rows.items() if key.startswith(prefix))

    def __len__(self) -> int:
        return len(self._rows)


__all__ = ["CourseStore", "InMemoryCourseStore", "SqliteCourseStore", "summarize"]
