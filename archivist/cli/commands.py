"""CLI commands for archivist."""

import asyncio
import time

import typer
from rich.console import Console
from rich.table import Table

from archivist import __logo__, __version__
from archivist.errors import ArchivistError

app = typer.Typer(
    name="archivist",
    help=f"{__logo__} archivist - memory for a personal AI assistant",
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} archivist v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True
    ),
    log_level: str = typer.Option("WARNING", "--log-level", help="Log level"),
    log_file: str = typer.Option(None, "--log-file", help="Write logs to this file instead of stderr"),
):
    """archivist - memory for a personal AI assistant."""
    from archivist.logging_config import setup_logging

    setup_logging(log_level, sink=log_file)


# ============================================================================
# Memory Commands
# ============================================================================

memory_app = typer.Typer(help="Inspect and edit a user's memory")
app.add_typer(memory_app, name="memory")


def _user_option():
    return typer.Option(None, "--user-id", "-u", help="User ID (default from config)")


def _open_memory(user_id: str | None):
    from archivist.config.loader import load_config
    from archivist.memory import open_user_memory

    try:
        return open_user_memory(load_config(), user_id)
    except (ValueError, ArchivistError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


def _with_memory(user_id: str | None, fn):
    """Run an async function against the user's memory and close it afterwards."""
    memory = _open_memory(user_id)

    async def run():
        try:
            return await fn(memory)
        finally:
            await memory.aclose()

    try:
        return asyncio.run(run())
    except ArchivistError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


def _truncate(text: str, max_chars: int = 200) -> str:
    return text if len(text) <= max_chars else text[:max_chars] + "…"


@memory_app.command("core")
def memory_core(user_id: str = _user_option()):
    """Show the core memory document."""

    async def show(memory):
        content = memory.core.read().strip()
        if not content:
            console.print("[dim](empty)[/dim]")
            return
        console.print(content, markup=False)
        console.print(f"\n[dim]{memory.core.size()} / {memory.core.max_bytes} bytes[/dim]")

    _with_memory(user_id, show)


@memory_app.command("append")
def memory_append(
    section: str = typer.Argument(..., help="Section heading"),
    content: str = typer.Argument(..., help="Content to append"),
    user_id: str = _user_option(),
):
    """Append content to a core memory section."""

    async def append(memory):
        return memory.core.append(section, content)

    result = _with_memory(user_id, append)
    if result.ok:
        console.print(f"[green]✓[/green] Appended to '{section}'")
    else:
        console.print(f"[red]{result.error}[/red]")
        raise typer.Exit(1)


@memory_app.command("replace")
def memory_replace(
    section: str = typer.Argument(..., help="Section heading"),
    old_text: str = typer.Argument(..., help="Existing text"),
    new_text: str = typer.Argument(..., help="Replacement text"),
    user_id: str = _user_option(),
):
    """Replace text inside a core memory section."""

    async def replace(memory):
        return memory.core.replace(section, old_text, new_text)

    result = _with_memory(user_id, replace)
    if result.ok:
        console.print(f"[green]✓[/green] Updated '{section}'")
    else:
        console.print(f"[red]{result.error}[/red]")
        raise typer.Exit(1)


@memory_app.command("archival")
def memory_archival(
    query: str = typer.Option(None, "--query", "-q", help="Search instead of listing recent facts"),
    limit: int = typer.Option(20, "--limit", "-n", help="Max facts to list"),
    user_id: str = _user_option(),
):
    """List recent archival facts, or search them."""

    async def show(memory):
        if query:
            results = await memory.search.search(query)
            if not results:
                console.print(f"No facts match '{query}'.")
                return
            table = Table(title=f"Archival search: {query}")
            table.add_column("ID", style="cyan")
            table.add_column("Score")
            table.add_column("Matched by")
            table.add_column("Content")
            for r in results:
                table.add_row(r.id, f"{r.combined_score:.4f}", ", ".join(r.matched_by), _truncate(r.content))
            console.print(table)
            return

        facts = memory.store.recent_facts(limit)
        if not facts:
            console.print("No archival facts.")
            return
        table = Table(title=f"Archival facts ({memory.store.count()} total)")
        table.add_column("ID", style="cyan")
        table.add_column("Stored")
        table.add_column("Source")
        table.add_column("Vector")
        table.add_column("Content")
        for fact in facts:
            stored = time.strftime("%Y-%m-%d %H:%M", time.localtime(fact.timestamp / 1000))
            vector = "[green]yes[/green]" if fact.has_embedding else "[dim]no[/dim]"
            table.add_row(fact.id, stored, fact.source, vector, _truncate(fact.content))
        console.print(table)

    _with_memory(user_id, show)


@memory_app.command("insert")
def memory_insert(
    content: str = typer.Argument(..., help="Fact to store"),
    source: str = typer.Option("archival", "--source", "-s", help="Provenance tag"),
    user_id: str = _user_option(),
):
    """Store a fact in archival memory."""

    async def insert(memory):
        embedding = await memory.embed(content)
        return memory.store.add_fact(content, source, embedding), embedding is not None

    fact_id, embedded = _with_memory(user_id, insert)
    note = "" if embedded else " [yellow](keyword-only, no embedding)[/yellow]"
    console.print(f"[green]✓[/green] Stored fact {fact_id}{note}")


@memory_app.command("remove")
def memory_remove(
    fact_id: str = typer.Argument(..., help="Fact ID to remove"),
    user_id: str = _user_option(),
):
    """Remove an archival fact."""

    async def remove(memory):
        existed = memory.store.get_fact(fact_id) is not None
        memory.store.remove_fact(fact_id)
        return existed

    if _with_memory(user_id, remove):
        console.print(f"[green]✓[/green] Removed fact {fact_id}")
    else:
        console.print(f"[red]Fact {fact_id} not found[/red]")


if __name__ == "__main__":
    app()
