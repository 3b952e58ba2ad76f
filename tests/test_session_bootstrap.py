from pathlib import Path

import pytest

from ccomposer.core.config import ComposerConfig, CourseDefaults, StorageConfig
from ccomposer.core.errors import NoActiveDocument
from ccomposer.session import bootstrap
from ccomposer.storage import InMemoryCourseStore, SqliteCourseStore


def _config(tmp_path: Path, **updates) -> ComposerConfig:
    return ComposerConfig(
        storage=StorageConfig(sqlite_path=tmp_path / "store" / "courses.sqlite"),
        export={"export_dir": tmp_path / "exports"},
        **updates,
    )


def test_in_memory_session_resumes_with_new_course(tmp_path: Path) -> None:
    ctx = bootstrap(config=_config(tmp_path, defaults=CourseDefaults(new_course_title="Fresh")), in_memory=True)
    assert isinstance(ctx.storage.store, InMemoryCourseStore)
    assert ctx.journal is None
    course = ctx.resume()
    assert course.title == "Fresh"
    assert ctx.course_service.get_current_course() is course


def test_persist_requires_active_course(tmp_path: Path) -> None:
    ctx = bootstrap(config=_config(tmp_path), in_memory=True)
    with pytest.raises(NoActiveDocument):
        ctx.persist()


def test_sqlite_session_round_trip(tmp_path: Path) -> None:
    config = _config(tmp_path)
    ctx = bootstrap(config=config)
    assert isinstance(ctx.storage.store, SqliteCourseStore)
    ctx.course_service.create_course({"title": "Persistent"})
    ctx.course_service.add_section({"content_type": "markdown", "content": {"markdown": "kept"}})
    key = ctx.persist()

    reopened = bootstrap(config=config)
    course = reopened.resume()
    assert key == f"course_{course.id}"
    assert course.title == "Persistent"
    assert course.sections[0].content == {"markdown": "kept"}


def test_bootstrap_writes_journal_next_to_store(tmp_path: Path) -> None:
    ctx = bootstrap(config=_config(tmp_path))
    ctx.course_service.create_course({"title": "Journaled"})
    journal_path = (tmp_path / "store" / "journal.jsonl").resolve()
    stages = [event.stage for event in ctx.journal.read()]
    assert ctx.journal.output_path == journal_path
    assert stages[0] == "bootstrap"
    assert stages[-1] == "create_course"


def test_enabled_kinds_limit_registry(tmp_path: Path) -> None:
    ctx = bootstrap(config=_config(tmp_path, enabled_kinds=["markdown"]), in_memory=True)
    assert ctx.registry.kinds() == ["markdown"]


def test_store_override_wins(tmp_path: Path) -> None:
    override = tmp_path / "elsewhere" / "other.sqlite"
    ctx = bootstrap(config=_config(tmp_path), store_override=override)
    assert ctx.config.storage.sqlite_path == override.resolve()
    assert override.exists()
