"""Command line front end for ztln.

Thin layer: parses arguments, calls the Organization, renders results.
"""

import json
import sys
from contextlib import contextmanager
from pathlib import Path

import click
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import load_settings, setup_logging
from .constants import BASE_DIR_ENV, DEFAULT_HISTORY_LIMIT, HEAD
from .errors import ZtlnError
from .models import NoteMetadata
from .organization import Organization
from .store import RepositoryStore

console = Console()

VERBOSITY_LEVELS = {1: "INFO", 2: "DEBUG"}


@contextmanager
def handle_errors():
    """Print ztln failures and exit non-zero instead of tracing back."""
    try:
        yield
    except ZtlnError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(1)


def _organization(ctx: click.Context) -> Organization:
    return Organization(RepositoryStore.attach(ctx.obj["settings"].base_dir))


def _first_line(content: bytes, width: int = 60) -> str:
    text = content.decode("utf-8", errors="replace").strip()
    line = text.splitlines()[0] if text else ""
    return line if len(line) <= width else line[: width - 3] + "..."


@click.group()
@click.option(
    "--base-dir",
    envvar=BASE_DIR_ENV,
    type=click.Path(path_type=Path),
    help="Repository directory",
)
@click.option("-v", "--verbose", count=True, help="Log more (-v info, -vv debug)")
@click.pass_context
def cli(ctx, base_dir, verbose):
    """ztln - versioned notes organized by topics and paths."""
    ctx.ensure_object(dict)
    try:
        settings = load_settings(
            base_dir=base_dir,
            log_level=VERBOSITY_LEVELS.get(min(verbose, 2)) if verbose else None,
        )
    except ValidationError as e:
        message = "; ".join(err["msg"] for err in e.errors())
        console.print(f"[red]Error:[/red] Invalid settings: {escape(message)}")
        sys.exit(1)
    setup_logging(settings)
    ctx.obj["settings"] = settings


@cli.command()
@click.pass_context
def init(ctx):
    """Initialize a new repository."""
    base_dir = ctx.obj["settings"].base_dir
    with handle_errors():
        RepositoryStore.initialize(base_dir)
    console.print(f"[green]✓[/green] Initialized ztln repository at {base_dir}")


@cli.command()
@click.pass_context
def info(ctx):
    """Show repository location, current topic and current path."""
    with handle_errors():
        status = _organization(ctx).info()

    console.print(f"Organization located at: {status['base_dir']}")
    if status["topic"] is None:
        console.print("Current topic: None")
        console.print("Current path: None")
        console.print("[dim]Use `ztln topic create` to create a new topic.[/dim]")
    else:
        console.print(f"Current topic: [cyan]{status['topic']}[/cyan]")
        console.print(f"Current path: [cyan]{status['path'] or 'None'}[/cyan]")


# --- Topics ---


@cli.group()
def topic():
    """Manage topics."""
    pass


@topic.command("create")
@click.argument("name")
@click.pass_context
def topic_create(ctx, name):
    """Create a new topic."""
    with handle_errors():
        _organization(ctx).create_topic(name)
    console.print(f"[green]✓[/green] Created topic {name}")


@topic.command("list")
@click.pass_context
def topic_list(ctx):
    """List topics, marking the current one."""
    with handle_errors():
        orga = _organization(ctx)
        topics = orga.list_topics()
        current = orga.current_topic()

    if not topics:
        console.print("No topics.")
        return
    for name in topics:
        console.print(f"{'→' if name == current else ' '} {name}")


@topic.command("default")
@click.argument("name")
@click.pass_context
def topic_default(ctx, name):
    """Set the current topic."""
    with handle_errors():
        _organization(ctx).set_current_topic(name)
    console.print(f"[green]✓[/green] Current topic is {name}")


# --- Paths ---


@cli.group()
def path():
    """Manage paths (named heads) within a topic."""
    pass


@path.command("list")
@click.option("--topic", "topic_name", help="Topic (default: current)")
@click.pass_context
def path_list(ctx, topic_name):
    """List paths of a topic, marking the current one."""
    with handle_errors():
        orga = _organization(ctx)
        paths = orga.list_paths(topic_name)
        current = orga.current_path(topic_name)

    if not paths:
        console.print("No paths.")
        return
    for name in paths:
        console.print(f"{'→' if name == current else ' '} {name}")


@path.command("branch")
@click.argument("name")
@click.option("--from", "source", help="Path to branch from (default: current)")
@click.option("--topic", "topic_name", help="Topic (default: current)")
@click.pass_context
def path_branch(ctx, name, source, topic_name):
    """Create a path pointing where another path points."""
    with handle_errors():
        head = _organization(ctx).create_path(name, topic=topic_name, source=source)
    console.print(f"[green]✓[/green] Created path {name} at [yellow]{str(head)[:8]}[/yellow]")


@path.command("default")
@click.argument("name")
@click.option("--topic", "topic_name", help="Topic (default: current)")
@click.pass_context
def path_default(ctx, name, topic_name):
    """Set the current path of a topic."""
    with handle_errors():
        _organization(ctx).set_current_path(name, topic=topic_name)
    console.print(f"[green]✓[/green] Current path is {name}")


@path.command("remove")
@click.argument("name")
@click.option("--topic", "topic_name", help="Topic (default: current)")
@click.pass_context
def path_remove(ctx, name, topic_name):
    """Delete a path. Its notes stay reachable by id."""
    with handle_errors():
        head = _organization(ctx).remove_path(name, topic=topic_name)
    console.print(f"[green]✓[/green] Removed path {name} (was at [yellow]{head.short_id}[/yellow])")


@path.command("reset")
@click.argument("name")
@click.argument("location")
@click.option("--topic", "topic_name", help="Topic (default: current)")
@click.pass_context
def path_reset(ctx, name, location, topic_name):
    """Move a path to the note at LOCATION."""
    with handle_errors():
        previous, current = _organization(ctx).reset_path(name, location, topic=topic_name)
    console.print(
        f"[green]✓[/green] {name}: [yellow]{previous.short_id}[/yellow] → "
        f"[yellow]{current.short_id}[/yellow]"
    )


# --- Notes ---


@cli.group()
def note():
    """Add and inspect notes."""
    pass


@note.command("add")
@click.option("-m", "--message", help="Note content")
@click.option("--file", "content_file", type=click.File("rb"), help="Read content from file")
@click.option("--topic", "topic_name", help="Topic (becomes current)")
@click.option("--path", "path_name", help="Path (becomes current)")
@click.pass_context
def note_add(ctx, message, content_file, topic_name, path_name):
    """Add a note at the head of a path.

    Content comes from --message, --file, or standard input.
    """
    if message is not None:
        content = message
    elif content_file is not None:
        content = content_file.read()
    else:
        content = click.get_binary_stream("stdin").read()

    with handle_errors():
        report = _organization(ctx).add_note(content, topic=topic_name, path=path_name)

    parent = str(report.parent_id)[:8] if report.parent_id else "none"
    console.print(
        f"[green]✓[/green] Added [yellow]{str(report.note_id)[:8]}[/yellow] "
        f"to {report.topic}/{report.path} (parent {parent})"
    )


def _print_note(metadata: NoteMetadata, content: bytes) -> None:
    console.print(f"[yellow]note {metadata.note_id}[/yellow]")
    console.print(f"Parent: {metadata.parent_id or 'none'}")
    console.print(f"Topic:  {metadata.topic}")
    console.print(f"Path:   {metadata.path}")
    for ref in metadata.references:
        console.print(f"Ref:    {ref}")
    console.print()
    console.print(content.decode("utf-8", errors="replace"), markup=False, highlight=False)


@note.command("show")
@click.argument("location", default=HEAD)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def note_show(ctx, location, as_json):
    """Show the note at LOCATION (default: HEAD)."""
    with handle_errors():
        metadata, content = _organization(ctx).get_note(location)

    if as_json:
        result = metadata.to_summary()
        result["content"] = content.decode("utf-8", errors="replace")
        click.echo(json.dumps(result, indent=2))
    else:
        _print_note(metadata, content)


@note.command("ref")
@click.argument("from_location")
@click.argument("to_location")
@click.pass_context
def note_ref(ctx, from_location, to_location):
    """Make the note at FROM_LOCATION reference the note at TO_LOCATION."""
    with handle_errors():
        updated = _organization(ctx).add_note_reference(from_location, to_location)
    console.print(
        f"[green]✓[/green] {updated.short_id} → {str(updated.references[-1])[:8]}"
    )


@note.command("log")
@click.argument("location", default=HEAD)
@click.option("-n", "--max-count", default=DEFAULT_HISTORY_LIMIT, help="Number of notes to show")
@click.pass_context
def note_log(ctx, location, max_count):
    """Show the parent chain of the note at LOCATION."""
    with handle_errors():
        orga = _organization(ctx)
        notes = orga.history(location, limit=max_count)
        rows = [(n, orga.store.get_note_content(n.note_id)) for n in notes]

    table = Table(title=f"History of {location}")
    table.add_column("Id", style="yellow")
    table.add_column("Topic/Path", style="cyan")
    table.add_column("Content")
    for metadata, content in rows:
        table.add_row(
            metadata.short_id,
            f"{metadata.topic}/{metadata.path}",
            escape(_first_line(content)),
        )
    console.print(table)


# --- Keywords ---


@cli.group()
def keyword():
    """Index notes under keywords."""
    pass


@keyword.command("add")
@click.argument("word")
@click.argument("location", default=HEAD)
@click.pass_context
def keyword_add(ctx, word, location):
    """Index the note at LOCATION (default: HEAD) under WORD."""
    with handle_errors():
        metadata = _organization(ctx).add_keyword(word, location)
    console.print(f"[green]✓[/green] {metadata.short_id} indexed under '{escape(word)}'")


@keyword.command("search")
@click.argument("word")
@click.pass_context
def keyword_search(ctx, word):
    """List notes indexed under WORD."""
    with handle_errors():
        notes = _organization(ctx).notes_for_keyword(word)

    if not notes:
        console.print(f"[dim]No notes under '{escape(word)}'[/dim]")
        return
    for metadata in notes:
        console.print(f"[yellow]{metadata.short_id}[/yellow] {metadata.topic}/{metadata.path}")


@keyword.command("list")
@click.pass_context
def keyword_list(ctx):
    """List keywords with their note counts."""
    with handle_errors():
        counts = _organization(ctx).list_keywords()

    if not counts:
        console.print("No keywords.")
        return
    table = Table()
    table.add_column("Keyword", style="cyan")
    table.add_column("Notes", justify="right")
    for word, count in counts:
        table.add_row(escape(word), str(count))
    console.print(table)


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
