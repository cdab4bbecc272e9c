from __future__ import annotations
from datetime import datetime
from pathlib import Path
from typing import Optional
import json
import typer
from rich.console import Console
from rich.table import Table
from rich.markdown import Markdown

from .config import configure_logging, get_settings
from .db import init_db
from .errors import NoteError
from .models import SearchQuery
from .services import (
    create_note, search_notes, get_note, update_note, delete_note,
    import_note, tag_summary, refresh_tags,
)

app = typer.Typer(help="Hashnotes — notes with #tags")
console = Console()

@app.callback()
def _boot():
    configure_logging(get_settings().log_level)
    init_db()

def _fail(message: str) -> None:
    console.print(f"[red]{message}[/]")
    raise typer.Exit(1)

@app.command()
def add(
    note: str = typer.Option(..., "--note", "-n", help="note body; #tags are picked up from it"),
    title: str = typer.Option("", "--title", "-t", help="defaults to the first line of the note"),
    favorite: bool = typer.Option(False, "--favorite"),
):
    try:
        n = create_note(title, note, favorite=favorite)
    except (ValueError, NoteError) as e:
        _fail(str(e))
    console.print(f"[green]Created[/] {n.id}: {n.title}")
    if n.tags:
        console.print(f"[dim]tags:[/] {', '.join(n.tags)}")

@app.command("list")
def _list(
    query: str = typer.Option("", "--query", "-q"),
    tag: str = typer.Option("", "--tag"),
    archived: bool = typer.Option(False, "--archived", help="include archived notes"),
    favorites: bool = typer.Option(False, "--favorites", help="favorites only"),
):
    try:
        notes = search_notes(SearchQuery(query=query.strip(), tag=tag.strip(), archived=archived, favorites=favorites))
    except NoteError as e:
        _fail(str(e))
    table = Table(title="Hashnotes")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Title", style="bold")
    table.add_column("Tags", style="magenta")
    table.add_column("Favorite")
    table.add_column("Archived")
    table.add_column("Modified")
    for n in notes:
        table.add_row(
            n.id, n.title, ", ".join(n.tags),
            "★" if n.favorite else "", "✓" if n.archive else "",
            n.modified_at.isoformat(timespec="minutes"),
        )
    console.print(table)

@app.command()
def show(note_id: str):
    n = get_note(note_id)
    if not n:
        _fail(f"Not found: {note_id}")
    console.rule(f"{n.id} {n.title}")
    if n.tags:
        console.print(f"[dim]tags:[/] {', '.join(n.tags)}")
    console.print(Markdown(n.note or "_<empty>_"))

@app.command()
def edit(
    note_id: str,
    title: Optional[str] = typer.Option(None, "--title", "-t"),
    note: Optional[str] = typer.Option(None, "--note", "-n"),
    favorite: Optional[bool] = typer.Option(None, "--favorite/--no-favorite"),
    archive: Optional[bool] = typer.Option(None, "--archive/--unarchive"),
):
    try:
        n = update_note(note_id, title=title, note=note, favorite=favorite, archive=archive)
    except (ValueError, NoteError) as e:
        _fail(str(e))
    console.print(f"[green]Updated[/] {n.id}: {n.title}")

@app.command()
def delete(note_id: str):
    try:
        delete_note(note_id)
    except NoteError as e:
        _fail(str(e))
    console.print(f"[red]Deleted[/]: {note_id}")

@app.command()
def tags():
    table = Table(title="Tags")
    table.add_column("Tag", style="magenta")
    table.add_column("Notes", justify="right")
    for t in tag_summary():
        table.add_row(t.tag_name, str(t.note_count))
    console.print(table)

@app.command("refresh-tags")
def refresh_tags_cmd(
    timeout: Optional[float] = typer.Option(None, "--timeout", help="seconds before the pass gives up"),
):
    result = refresh_tags(timeout=timeout if timeout is not None else get_settings().refresh_timeout)
    color = "yellow" if result.failed or result.timed_out else "green"
    console.print(f"[{color}]Refreshed[/] {result.updated} notes, {result.failed} failed"
                  + (" (timed out)" if result.timed_out else ""))

@app.command()
def export(to: Path = typer.Option(..., "--to")):
    notes = search_notes(SearchQuery(archived=True))
    payload = [
        {
            "id": n.id,
            "title": n.title,
            "note": n.note,
            "tags": n.tags,
            "archive": n.archive,
            "favorite": n.favorite,
            "created_at": n.created_at.isoformat(),
            "modified_at": n.modified_at.isoformat(),
        }
        for n in notes
    ]
    to.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    console.print(f"[green]Exported[/] {len(payload)} notes → {to}")

@app.command("import")
def import_(from_: Path = typer.Option(..., "--from")):
    data = json.loads(from_.read_text(encoding="utf-8"))
    imported = 0
    for item in data:
        try:
            import_note(
                item["id"], item["title"], item["note"],
                archive=bool(item.get("archive", False)),
                favorite=bool(item.get("favorite", False)),
                created_at=datetime.fromisoformat(item["created_at"]),
                modified_at=datetime.fromisoformat(item["modified_at"]),
            )
        except (KeyError, ValueError, NoteError) as e:
            console.print(f"[yellow]Skipped[/] {item.get('id', '?')}: {e}")
            continue
        imported += 1
    console.print(f"[green]Imported[/] {imported} of {len(data)} notes")

def main():
    app()

if __name__ == "__main__":
    main()
