from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from ccomposer.cli.main import app

runner = CliRunner()


@pytest.fixture()
def cli(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("COURSE_COMPOSER_CONFIG", raising=False)
    monkeypatch.delenv("COURSE_COMPOSER_STORE", raising=False)
    monkeypatch.delenv("COURSE_COMPOSER_LOG_LEVEL", raising=False)
    store = tmp_path / "store" / "courses.sqlite"

    def invoke(*args: str):
        return runner.invoke(app, ["--store", str(store), *args])

    return invoke


def _snapshot(cli) -> dict:
    result = cli("show", "--json")
    assert result.exit_code == 0, result.stdout
    return json.loads(result.stdout)


def _section_ids(cli) -> list[str]:
    return [section["id"] for section in _snapshot(cli)["sections"]]


def test_new_and_show(cli) -> None:
    result = cli("new", "--title", "Operating Systems", "--author", "Dennis")
    assert result.exit_code == 0
    assert "Created" in result.stdout

    data = _snapshot(cli)
    assert data["title"] == "Operating Systems"
    assert data["author"] == "Dennis"
    assert data["sections"] == []

    result = cli("show")
    assert result.exit_code == 0
    assert "No sections yet." in result.stdout


def test_add_unknown_kind_fails(cli) -> None:
    cli("new", "--title", "Kinds")
    result = cli("add", "quiz")
    assert result.exit_code == 1
    assert "Unknown content type: quiz" in result.stdout


def test_add_edit_and_check(cli) -> None:
    cli("new", "--title", "Edited")
    assert cli("add", "markdown").exit_code == 0
    assert cli("add", "video").exit_code == 0
    markdown_id, video_id = _section_ids(cli)

    result = cli("check")
    assert result.exit_code == 1
    assert "need attention" in result.stdout

    assert cli("edit", markdown_id, "--markdown", "# Hello", "--title", "Welcome").exit_code == 0
    assert cli("edit", video_id, "--url", "https://youtu.be/abc").exit_code == 0

    data = _snapshot(cli)
    assert data["sections"][0]["title"] == "Welcome"
    assert data["sections"][0]["content"] == {"markdown": "# Hello"}
    assert data["sections"][1]["title"] == "New Video Section"
    assert data["sections"][1]["content"] == {"url": "https://youtu.be/abc"}

    result = cli("check")
    assert result.exit_code == 0
    assert "All sections look good!" in result.stdout


def test_edit_unknown_section_fails(cli) -> None:
    cli("new", "--title", "Missing")
    result = cli("edit", "section_nope", "--markdown", "x")
    assert result.exit_code == 1
    assert "not found" in result.stdout


def test_move_and_remove(cli) -> None:
    cli("new", "--title", "Ordering")
    for _ in range(3):
        cli("add", "markdown")
    first, second, third = _section_ids(cli)

    assert cli("move", third, "--to", "0").exit_code == 0
    assert _section_ids(cli) == [third, first, second]

    result = cli("move", third, "--up")
    assert result.exit_code == 0
    assert "nothing moved" in result.stdout

    assert cli("move", third, "--down").exit_code == 0
    assert _section_ids(cli) == [first, third, second]

    result = cli("remove", "section_nope")
    assert result.exit_code == 0
    assert "nothing removed" in result.stdout

    assert cli("remove", first).exit_code == 0
    assert _section_ids(cli) == [third, second]


def test_set_updates_course_fields(cli) -> None:
    cli("new", "--title", "Before")
    assert cli("set", "--title", "After", "--description", "Updated").exit_code == 0
    data = _snapshot(cli)
    assert data["title"] == "After"
    assert data["description"] == "Updated"
    assert cli("set").exit_code == 1


def test_list_and_load(cli) -> None:
    result = cli("list")
    assert "No saved courses found." in result.stdout

    cli("new", "--title", "First")
    first_id = _snapshot(cli)["id"]
    cli("new", "--title", "Second")

    rows = json.loads(cli("list", "--json").stdout)
    assert {row["title"] for row in rows} == {"First", "Second"}

    assert cli("load", f"course_{first_id}").exit_code == 0
    assert _snapshot(cli)["title"] == "First"

    result = cli("load", "course_missing")
    assert result.exit_code == 1


def test_export_validate_and_import(cli, tmp_path: Path) -> None:
    cli("new", "--title", "Portable")
    cli("add", "document")
    (section_id,) = _section_ids(cli)
    cli("edit", section_id, "--url", "https://example.com/a.pdf", "--doc-type", "pdf")
    original = _snapshot(cli)

    target = tmp_path / "portable.json"
    result = cli("export", str(target))
    assert result.exit_code == 0
    exported = json.loads(target.read_text(encoding="utf-8"))
    assert exported["mecsVersion"] == "1.0.0"
    assert exported["sections"][0]["contentType"] == "mecs:document"

    result = cli("validate", str(target))
    assert result.exit_code == 0
    assert "Document looks good!" in result.stdout

    cli("new", "--title", "Scratch")
    result = cli("import", str(target))
    assert result.exit_code == 0
    restored = _snapshot(cli)
    assert restored["id"] == original["id"]
    assert restored["sections"][0]["content"]["docType"] == "pdf"
    assert restored["sections"][0]["content"]["url"] == "https://example.com/a.pdf"


def test_validate_reports_errors(cli, tmp_path: Path) -> None:
    bad = tmp_path / "bad.json"
    bad.write_text("{}", encoding="utf-8")
    result = cli("validate", str(bad))
    assert result.exit_code == 1
    assert "Missing mecsVersion field" in result.stdout


def test_validate_fail_on_warning(cli, tmp_path: Path) -> None:
    future = tmp_path / "future.json"
    future.write_text(
        json.dumps({"mecsVersion": "2.0.0", "type": "mecs:course", "id": "c", "title": "T", "sections": []}),
        encoding="utf-8",
    )
    assert cli("validate", str(future)).exit_code == 0
    assert cli("validate", str(future), "--fail-on-warning").exit_code == 1


def test_import_missing_file_fails(cli, tmp_path: Path) -> None:
    result = cli("import", str(tmp_path / "nope.json"))
    assert result.exit_code == 1
    assert "does not exist" in result.stdout


def test_section_export_and_import(cli, tmp_path: Path) -> None:
    cli("new", "--title", "Sections")
    cli("add", "markdown")
    (section_id,) = _section_ids(cli)
    cli("edit", section_id, "--markdown", "shared")

    target = tmp_path / "section.json"
    assert cli("export-section", section_id, str(target)).exit_code == 0
    assert cli("import", str(target), "--section").exit_code == 0

    data = _snapshot(cli)
    assert len(data["sections"]) == 2
    assert data["sections"][1]["id"] != section_id
    assert data["sections"][1]["content"] == {"markdown": "shared"}


def test_kinds_lists_builtins(cli) -> None:
    result = cli("kinds")
    assert result.exit_code == 0
    for kind in ("markdown", "video", "document"):
        assert kind in result.stdout
