import pytest

from ccomposer.content import build_default_registry
from ccomposer.core.config import CourseDefaults
from ccomposer.core.errors import InterchangeError, NoActiveDocument, SectionNotFound
from ccomposer.core.provenance import ProvenanceLogger
from ccomposer.document.models import Course, parse_timestamp
from ccomposer.document.service import CourseService
from ccomposer.interchange import MECSAdapter

PAST = "2024-01-01T00:00:00.000Z"


@pytest.fixture()
def service() -> CourseService:
    return CourseService(build_default_registry())


@pytest.fixture()
def course_service(service: CourseService) -> CourseService:
    service.create_course({"title": "Databases", "author": "Ada"})
    return service


def _ids(service: CourseService) -> list[str]:
    return [section.id for section in service.get_current_course().sections]


def test_mutations_require_active_course(service: CourseService) -> None:
    assert service.get_current_course() is None
    with pytest.raises(NoActiveDocument):
        service.add_section({"content_type": "markdown"})
    with pytest.raises(NoActiveDocument):
        service.update_course({"title": "x"})
    with pytest.raises(NoActiveDocument):
        service.delete_section("anything")
    with pytest.raises(NoActiveDocument):
        service.export_course()


def test_create_course_applies_defaults() -> None:
    service = CourseService(build_default_registry(), defaults=CourseDefaults(title="Draft"))
    course = service.create_course({"sections": [{"title": "ignored"}]})
    assert course.title == "Draft"
    assert course.description == ""
    assert course.sections == []
    assert service.get_current_course() is course


def test_create_course_replaces_active_course(course_service: CourseService) -> None:
    first = course_service.get_current_course()
    second = course_service.create_course({"title": "Networks"})
    assert second.id != first.id
    assert course_service.get_current_course() is second


def test_add_section_defaults_title_from_kind(course_service: CourseService) -> None:
    markdown = course_service.add_section({"content_type": "markdown"})
    video = course_service.add_section({"contentType": "video", "content": {"url": ""}})
    unknown = course_service.add_section({"content_type": "quiz"})
    assert markdown.title == "New Markdown Text Section"
    assert video.title == "New Video Section"
    assert unknown.title == "Untitled Section"
    assert [section.order for section in course_service.get_current_course().sections] == [0, 1, 2]
    # Adding never validates content.
    assert not course_service.validate_section(video.id)


def test_add_section_copies_content(course_service: CourseService) -> None:
    content = {"markdown": "hello"}
    section = course_service.add_section({"content_type": "markdown", "content": content})
    content["markdown"] = "changed"
    assert section.content == {"markdown": "hello"}


def test_update_section_touches_section_and_course(course_service: CourseService) -> None:
    section = course_service.add_section({"content_type": "markdown"})
    course = course_service.get_current_course()
    section.updated_at = PAST
    course.updated_at = PAST

    updated = course_service.update_section(section.id, {"title": "Intro", "content": {"markdown": "# Intro"}})

    assert updated.title == "Intro"
    assert updated.content == {"markdown": "# Intro"}
    assert parse_timestamp(updated.updated_at) > parse_timestamp(PAST)
    assert parse_timestamp(course.updated_at) >= parse_timestamp(updated.updated_at)


def test_update_section_unknown_id_raises(course_service: CourseService) -> None:
    with pytest.raises(SectionNotFound) as exc_info:
        course_service.update_section("missing", {"title": "x"})
    assert exc_info.value.section_id == "missing"


def test_update_rejects_unknown_fields(course_service: CourseService) -> None:
    section = course_service.add_section({"content_type": "markdown"})
    with pytest.raises(ValueError):
        course_service.update_section(section.id, {"colour": "red"})
    with pytest.raises(ValueError):
        course_service.update_course({"subtitle": "x"})


def test_update_course_ignores_identity_fields(course_service: CourseService) -> None:
    course = course_service.get_current_course()
    original_id = course.id
    course_service.update_course({"id": "hijack", "title": "Renamed", "description": "Joins"})
    assert course.id == original_id
    assert course.title == "Renamed"
    assert course.description == "Joins"
    assert course.author == "Ada"


def test_update_course_always_touches(course_service: CourseService) -> None:
    course = course_service.get_current_course()
    course.updated_at = PAST
    course_service.update_course({})
    assert parse_timestamp(course.updated_at) > parse_timestamp(PAST)


def test_delete_unknown_section_is_noop(course_service: CourseService) -> None:
    course_service.add_section({"content_type": "markdown"})
    course = course_service.get_current_course()
    course.updated_at = PAST
    assert course_service.delete_section("missing") is False
    assert len(course.sections) == 1
    assert course.updated_at == PAST


def test_delete_section(course_service: CourseService) -> None:
    section = course_service.add_section({"content_type": "markdown"})
    assert course_service.delete_section(section.id) is True
    assert course_service.get_current_course().sections == []


def test_move_section_to_index_zero(course_service: CourseService) -> None:
    a, b, c = (course_service.add_section({"content_type": "markdown"}) for _ in range(3))
    assert course_service.move_section(c.id, 0)
    assert _ids(course_service) == [c.id, a.id, b.id]


def test_move_section_unknown_id_is_noop(course_service: CourseService) -> None:
    a = course_service.add_section({"content_type": "markdown"})
    assert course_service.move_section("missing", 0) is False
    assert _ids(course_service) == [a.id]


def test_move_section_by_offset(course_service: CourseService) -> None:
    a, b = (course_service.add_section({"content_type": "markdown"}) for _ in range(2))
    assert course_service.move_section_by(a.id, -1) is False
    assert course_service.move_section_by(a.id, 1) is True
    assert _ids(course_service) == [b.id, a.id]
    with pytest.raises(SectionNotFound):
        course_service.move_section_by("missing", 1)


def test_draft_is_detached_until_committed(course_service: CourseService) -> None:
    section = course_service.add_section({"content_type": "markdown", "content": {"markdown": "v1"}})
    draft = course_service.draft_section(section.id)
    draft.content["markdown"] = "v2"
    draft.title = "Draft title"
    assert section.content == {"markdown": "v1"}
    assert section.title == "New Markdown Text Section"

    course_service.update_section(section.id, {"title": draft.title, "content": draft.content})
    assert section.content == {"markdown": "v2"}
    assert section.title == "Draft title"


def test_import_section_assigns_fresh_id(course_service: CourseService) -> None:
    original = course_service.add_section({"content_type": "video", "content": {"url": "https://vimeo.com/1"}})
    exported = course_service.export_section(original.id)
    imported = course_service.import_section(exported)
    assert imported.id != original.id
    assert imported.content_type == "video"
    assert imported.content == {"url": "https://vimeo.com/1"}
    assert imported.order == 1


def test_validate_section_uses_plugins(course_service: CourseService) -> None:
    good = course_service.add_section({"content_type": "markdown", "content": {"markdown": ""}})
    bad = course_service.add_section({"content_type": "document", "content": {"docType": "pdf"}})
    orphan = course_service.add_section({"content_type": "quiz", "content": {"questions": []}})
    assert course_service.validate_section(good.id)
    assert course_service.invalid_sections() == [bad.id, orphan.id]


def test_export_course_is_a_snapshot(course_service: CourseService) -> None:
    course_service.add_section({"content_type": "markdown", "content": {"markdown": "x"}})
    snapshot = course_service.export_course()
    snapshot["sections"][0]["content"]["markdown"] = "mutated"
    assert course_service.get_current_course().sections[0].content == {"markdown": "x"}


def test_edits_are_journaled(tmp_path) -> None:
    journal = ProvenanceLogger(tmp_path / "journal.jsonl")
    service = CourseService(build_default_registry(), journal=journal)
    course = service.create_course({"title": "Journaled"})
    section = service.add_section({"content_type": "markdown"})
    service.delete_section(section.id)

    events = journal.read()
    assert [event.stage for event in events] == ["create_course", "add_section", "delete_section"]
    assert all(event.payload["course_id"] == course.id for event in events)


def test_import_section_unmaps_mecs_sections() -> None:
    registry = build_default_registry()
    adapter = MECSAdapter(registry)
    service = CourseService(registry, adapter=adapter)
    service.create_course({"title": "Media"})
    video = service.add_section(
        {"title": "Talk", "content_type": "video", "content": {"url": "https://youtu.be/abc", "title": "", "description": ""}}
    )

    imported = service.import_section(adapter.section_to_external(video))

    assert imported.id != video.id
    assert imported.content_type == "video"
    assert imported.content == {"url": "https://youtu.be/abc", "title": "", "description": ""}
    assert service.validate_section(imported.id)


def test_import_mecs_section_without_adapter_fails(course_service: CourseService) -> None:
    with pytest.raises(InterchangeError):
        course_service.import_section({"title": "Quiz", "contentType": "custom:quiz", "content": {}})


def test_updates_are_coerced_or_rejected(course_service: CourseService) -> None:
    course_service.update_course({"title": 5})
    assert course_service.get_current_course().title == "5"
    assert Course.from_json(course_service.export_course()).title == "5"

    with pytest.raises(ValueError):
        course_service.update_course({"author": ["not", "text"]})
    assert course_service.get_current_course().author == "Ada"

    section = course_service.add_section({"content_type": "markdown"})
    course_service.update_section(section.id, {"order": "3", "title": None})
    assert section.order == 3
    assert section.title == "Untitled Section"
    with pytest.raises(ValueError):
        course_service.update_section(section.id, {"order": "third"})
    assert Course.from_json(course_service.export_course()).sections[0].order == 3
