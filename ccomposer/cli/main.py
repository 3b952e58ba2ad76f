"""Command line for authoring a course and exchanging it as MECS JSON."""

from __future__ import annotations

import functools
import json
from pathlib import Path
from typing import Any, Callable, Dict, Optional, TypeVar

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ccomposer import get_version
from ccomposer.core.errors import ComposerError, SectionNotFound
from ccomposer.session import ComposerContext, bootstrap

F = TypeVar("F", bound=Callable[..., Any])

app = typer.Typer(help="Author courses as ordered sections and exchange them as MECS JSON.")
console = Console()


def _fail(message: str) -> None:
    console.print(f"[bold red]{escape(message)}[/bold red]")
    raise typer.Exit(code=1)


def _handle_errors(func: F) -> F:
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ComposerError as exc:
            _fail(str(exc))
        except ValueError as exc:
            _fail(f"Invalid input: {exc}")

    return wrapper  # type: ignore[return-value]


def _session(ctx: typer.Context) -> ComposerContext:
    options: Dict[str, Any] = ctx.obj or {}
    return bootstrap(
        options.get("config"),
        store_override=options.get("store"),
        log_level="DEBUG" if options.get("verbose") else None,
    )


def _resumed(ctx: typer.Context) -> ComposerContext:
    session = _session(ctx)
    session.resume()
    return session


def _print_sections(session: ComposerContext) -> None:
    course = session.course_service.get_current_course()
    table = Table(title=escape(course.title), show_header=True)
    table.add_column("#", justify="right")
    table.add_column("ID")
    table.add_column("Kind")
    table.add_column("Title")
    table.add_column("Valid", justify="center")
    for index, section in enumerate(course.sections):
        plugin = session.registry.get(section.content_type)
        kind = f"{plugin.icon} {section.content_type}" if plugin else section.content_type
        valid = session.course_service.validate_section(section.id)
        table.add_row(
            str(index),
            section.id,
            escape(str(kind)),
            escape(section.title),
            "[green]yes[/green]" if valid else "[red]no[/red]",
        )
    console.print(table)


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(None, "--config", help="Composer YAML config (defaults to config/composer.yaml)."),
    store: Optional[Path] = typer.Option(
        None,
        "--store",
        show_default=False,
        help="SQLite course store (overrides config and COURSE_COMPOSER_STORE).",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    ctx.obj = {"config": config, "store": store, "verbose": verbose}


@app.command()
def version() -> None:
    """Print the installed version."""
    typer.echo(get_version())


@app.command()
@_handle_errors
def new(
    ctx: typer.Context,
    title: Optional[str] = typer.Option(None, help="Course title."),
    description: str = typer.Option("", help="Course description."),
    author: str = typer.Option("", help="Course author."),
) -> None:
    """Start a new course and make it the active one."""
    session = _session(ctx)
    course = session.course_service.create_course(
        {
            "title": title or session.config.defaults.new_course_title,
            "description": description,
            "author": author,
        }
    )
    key = session.persist()
    console.print(f"[green]Created[/green] {escape(course.title)} ({course.id}) saved as {key}")


@app.command()
@_handle_errors
def show(
    ctx: typer.Context,
    as_json: bool = typer.Option(False, "--json", help="Emit the internal JSON snapshot."),
) -> None:
    """Show the active course."""
    session = _resumed(ctx)
    if as_json:
        typer.echo(json.dumps(session.course_service.export_course(), indent=2, ensure_ascii=False))
        return
    course = session.course_service.get_current_course()
    console.print(f"[bold]{escape(course.title)}[/bold] ({course.id})")
    if course.author:
        console.print(f"by {escape(course.author)}")
    if course.description:
        console.print(escape(course.description))
    if not course.sections:
        console.print("[yellow]No sections yet.[/yellow]")
        return
    _print_sections(session)


@app.command(name="set")
@_handle_errors
def set_fields(
    ctx: typer.Context,
    title: Optional[str] = typer.Option(None),
    description: Optional[str] = typer.Option(None),
    author: Optional[str] = typer.Option(None),
) -> None:
    """Update course title, description, or author."""
    updates = {key: value for key, value in (("title", title), ("description", description), ("author", author)) if value is not None}
    if not updates:
        _fail("Nothing to update; pass --title, --description, or --author.")
    session = _resumed(ctx)
    session.course_service.update_course(updates)
    session.persist()
    console.print(f"[green]Updated[/green] {', '.join(sorted(updates))}")


@app.command()
@_handle_errors
def kinds(ctx: typer.Context) -> None:
    """List the registered content kinds."""
    session = _session(ctx)
    table = Table("Icon", "Kind", "Name")
    for plugin in session.registry.get_all_plugins():
        table.add_row(plugin.icon, plugin.type, escape(plugin.display_name))
    console.print(table)


@app.command()
@_handle_errors
def add(
    ctx: typer.Context,
    kind: str = typer.Argument(..., help="Content kind (see `kinds`)."),
    title: Optional[str] = typer.Option(None, help="Section title (defaults from the kind)."),
) -> None:
    """Append a new, empty section of KIND."""
    session = _resumed(ctx)
    if not session.registry.has(kind):
        _fail(f"Unknown content type: {kind}")
    section = session.course_service.add_section({"title": title, "content_type": kind, "content": {}})
    session.persist()
    console.print(f"[green]Added[/green] {escape(section.title)} ({section.id})")


@app.command()
@_handle_errors
def edit(
    ctx: typer.Context,
    section_id: str = typer.Argument(...),
    title: Optional[str] = typer.Option(None, help="New section title."),
    markdown: Optional[str] = typer.Option(None, help="Markdown text (markdown sections)."),
    url: Optional[str] = typer.Option(None, help="Video or document URL."),
    content_title: Optional[str] = typer.Option(None, "--content-title", help="Video/document title."),
    description: Optional[str] = typer.Option(None, help="Video/document description."),
    doc_type: Optional[str] = typer.Option(None, "--doc-type", help="Document type (pdf, google-doc, word, slides, other)."),
    content_json: Optional[str] = typer.Option(None, "--content-json", help="Replace content with this JSON object."),
) -> None:
    """Edit a section's title or content."""
    session = _resumed(ctx)
    service = session.course_service
    draft = service.draft_section(section_id)
    content = dict(draft.content) if isinstance(draft.content, dict) else {}
    if content_json is not None:
        try:
            parsed = json.loads(content_json)
        except json.JSONDecodeError as exc:
            _fail(f"--content-json is not valid JSON: {exc}")
        if not isinstance(parsed, dict):
            _fail("--content-json must be a JSON object")
        content = parsed
    for key, value in (
        ("markdown", markdown),
        ("url", url),
        ("title", content_title),
        ("description", description),
        ("docType", doc_type),
    ):
        if value is not None:
            content[key] = value

    updates: Dict[str, Any] = {"content": content}
    if title is not None:
        updates["title"] = title
    section = service.update_section(section_id, updates)
    session.persist()
    console.print(f"[green]Updated[/green] {escape(section.title)}")
    if not service.validate_section(section_id):
        console.print(f"[yellow]Content is not yet valid for {escape(section.content_type)} sections.[/yellow]")


@app.command()
@_handle_errors
def remove(ctx: typer.Context, section_id: str = typer.Argument(...)) -> None:
    """Delete a section (unknown ids are ignored)."""
    session = _resumed(ctx)
    removed = session.course_service.delete_section(section_id)
    session.persist()
    if removed:
        console.print(f"[green]Removed[/green] {section_id}")
    else:
        console.print(f"[yellow]No section {section_id}; nothing removed.[/yellow]")


@app.command()
@_handle_errors
def move(
    ctx: typer.Context,
    section_id: str = typer.Argument(...),
    to: Optional[int] = typer.Option(None, "--to", help="Target index (clamped to the section list)."),
    up: bool = typer.Option(False, "--up", help="Move one position up."),
    down: bool = typer.Option(False, "--down", help="Move one position down."),
) -> None:
    """Reorder a section."""
    chosen = [flag for flag in (to is not None, up, down) if flag]
    if len(chosen) != 1:
        _fail("Pass exactly one of --to, --up, or --down.")
    session = _resumed(ctx)
    service = session.course_service
    if to is not None:
        if service.get_current_course().index_of(section_id) == -1:
            raise SectionNotFound(section_id)
        moved = service.move_section(section_id, to)
    else:
        moved = service.move_section_by(section_id, -1 if up else 1)
    if not moved:
        console.print("[yellow]Section is already at the edge; nothing moved.[/yellow]")
        return
    session.persist()
    index = service.get_current_course().index_of(section_id)
    console.print(f"[green]Moved[/green] {section_id} to position {index}")


@app.command()
@_handle_errors
def check(ctx: typer.Context) -> None:
    """Validate every section against its content kind."""
    session = _resumed(ctx)
    invalid = session.course_service.invalid_sections()
    _print_sections(session)
    if invalid:
        console.print(f"[red]{len(invalid)} section(s) need attention.[/red]")
        raise typer.Exit(code=1)
    console.print("[green]All sections look good![/green]")


@app.command()
@_handle_errors
def save(ctx: typer.Context) -> None:
    """Save the active course to the store."""
    session = _resumed(ctx)
    key = session.persist()
    console.print(f"[green]Course saved[/green] as {key}")


@app.command(name="list")
@_handle_errors
def list_courses(
    ctx: typer.Context,
    as_json: bool = typer.Option(False, "--json"),
) -> None:
    """List saved courses, most recently updated first."""
    session = _session(ctx)
    rows = session.storage.list_saved_courses()
    if as_json:
        typer.echo(json.dumps(rows, indent=2, ensure_ascii=False))
        return
    if not rows:
        console.print("[yellow]No saved courses found.[/yellow]")
        return
    table = Table("Key", "Title", "Updated")
    for row in rows:
        table.add_row(str(row["key"]), escape(str(row.get("title") or "")), str(row.get("updatedAt") or ""))
    console.print(table)


@app.command()
@_handle_errors
def load(ctx: typer.Context, key: str = typer.Argument(..., help="Store key from `list`.")) -> None:
    """Make a saved course the active one."""
    session = _session(ctx)
    data = session.storage.load_course_data(key)
    if data is None:
        _fail(f"No saved course under {key}")
    course = session.course_service.load_course(data)
    session.persist()
    console.print(f"[green]Loaded[/green] {escape(course.title)}")


@app.command(name="export")
@_handle_errors
def export_course(
    ctx: typer.Context,
    path: Optional[Path] = typer.Argument(None, help="Output file (defaults to <title>_<ms>.json in the export dir)."),
) -> None:
    """Export the active course as a MECS file."""
    session = _resumed(ctx)
    target = session.storage.export_to_file(session.course_service.get_current_course(), path)
    console.print(f"[green]Course exported[/green] to {target}")


@app.command(name="export-section")
@_handle_errors
def export_section(
    ctx: typer.Context,
    section_id: str = typer.Argument(...),
    path: Optional[Path] = typer.Argument(None),
) -> None:
    """Export one section in MECS section form."""
    session = _resumed(ctx)
    section = session.course_service.get_current_course().find_section(section_id)
    if section is None:
        raise SectionNotFound(section_id)
    target = session.storage.export_section_to_file(section, path)
    console.print(f"[green]Section exported[/green] to {target}")


@app.command(name="import")
@_handle_errors
def import_course(
    ctx: typer.Context,
    path: Path = typer.Argument(..., help="MECS or legacy course JSON."),
    section: bool = typer.Option(False, "--section", help="Append a single exported section instead."),
) -> None:
    """Import a course file (replacing the active course) or append a section."""
    session = _session(ctx)
    if section:
        session.resume()
        data = session.storage.import_section_from_file(path)
        added = session.course_service.import_section(data)
        session.persist()
        console.print(f"[green]Imported section[/green] {escape(added.title)} ({added.id})")
        return

    result = session.storage.import_from_file(path, validate=session.config.export.validate_on_import)
    if result.legacy:
        console.print("[yellow]Legacy course file detected; converted without MECS envelope.[/yellow]")
    elif not result.report.valid:
        for error in result.report.errors:
            console.print(f"[yellow]warning:[/yellow] {escape(error)}")
    course = session.course_service.load_course(result.fields)
    session.persist()
    console.print(f"[green]Course imported[/green]: {escape(course.title)} ({len(course.sections)} sections)")


@app.command()
@_handle_errors
def validate(
    ctx: typer.Context,
    path: Path = typer.Argument(..., help="MECS file to check."),
    fail_on_warning: bool = typer.Option(False, "--fail-on-warning", help="Exit non-zero when warnings are present."),
) -> None:
    """Check a MECS file's structure without importing it."""
    session = _session(ctx)
    raw = session.storage.transfer.read_upload(path)
    report = session.adapter.validate(raw)
    table = Table(title="MECS Validation", show_header=True)
    table.add_column("Severity", justify="center")
    table.add_column("Message")
    for issue in report.errors:
        table.add_row("error", escape(issue), style="bold red")
    for issue in report.warnings:
        table.add_row("warning", escape(issue), style="yellow")
    console.print(table)

    if not report.valid or (fail_on_warning and report.has_warnings):
        raise typer.Exit(code=1)

    console.print("[green]Document looks good![/green]")


if __name__ == "__main__":  # pragma: no cover
    app()
