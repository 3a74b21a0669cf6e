"""
CLI Main - Typer-based command-line interface.

Usage:
    forumsearch init
    forumsearch import forum.json
    forumsearch search "door sensor" --type topic --blurbs
    forumsearch serve
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from forumsearch.config import ForumSearchError, get_settings

app = typer.Typer(
    name="forumsearch",
    help="ForumSearch - Faceted forum search",
    add_completion=False,
)
console = Console()


@app.callback()
def configure(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output"),
) -> None:
    """Configure logging for every command."""
    level = "DEBUG" if verbose else get_settings().log_level
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


@app.command()
def search(
    term: str = typer.Argument(..., help="Search term"),
    type_filter: str | None = typer.Option(
        None, "--type", "-t", help="Restrict to topic, category or user"
    ),
    topic: int | None = typer.Option(None, "--topic", help="Search from inside a topic"),
    category: int | None = typer.Option(None, "--category", help="Search from a category"),
    user: int | None = typer.Option(None, "--user", help="Search from a user profile"),
    blurbs: bool = typer.Option(False, "--blurbs", "-b", help="Show post excerpts"),
    as_user: int | None = typer.Option(None, "--as-user", help="Search as this user id"),
    locale: str | None = typer.Option(None, "--locale", "-l", help="Language tag"),
) -> None:
    """Search users, categories and topics."""
    contexts = [
        (kind, entity_id)
        for kind, entity_id in (("topic", topic), ("category", category), ("user", user))
        if entity_id is not None
    ]
    if len(contexts) > 1:
        console.print("[red]Error:[/red] Use only one of --topic, --category, --user")
        raise typer.Exit(1)
    context_kind, context_id = contexts[0] if contexts else (None, None)

    asyncio.run(
        _search_async(term, type_filter, context_kind, context_id, blurbs, as_user, locale)
    )


async def _search_async(
    term: str,
    type_filter: str | None,
    context_kind: str | None,
    context_id: int | None,
    blurbs: bool,
    as_user: int | None,
    locale: str | None,
) -> None:
    """Async search implementation."""
    from forumsearch.adapters.sqlite import SQLiteRepository
    from forumsearch.domains.access import load_guardian
    from forumsearch.domains.search import (
        FacetedSearch,
        SearchConfig,
        SearchRequest,
        resolve_search_context,
    )

    settings = get_settings()
    repo = SQLiteRepository(settings.db_path, stemmers=settings.installed_stemmers)

    try:
        guardian = await load_guardian(repo, as_user)
        if guardian is None:
            console.print(f"[red]Error:[/red] Unknown user: {as_user}")
            raise typer.Exit(1)

        engine = FacetedSearch(repo, SearchConfig.from_settings(settings))
        results = await engine.execute(
            SearchRequest(
                term=term,
                type_filter=type_filter,
                search_context=await resolve_search_context(
                    repo, guardian, context_kind, context_id
                ),
                include_blurbs=blurbs,
                guardian=guardian,
                locale=locale,
            )
        )
    except ForumSearchError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1)
    finally:
        await repo.close()

    if results.is_empty():
        console.print(f"\n[yellow]No results for:[/yellow] {term}")
        return

    for group in results.groups():
        table = Table(title=group.name)
        table.add_column("ID", style="dim", justify="right")
        table.add_column("Title", style="cyan")
        table.add_column("URL", style="green")
        if blurbs:
            table.add_column("Excerpt")

        for result in group.results:
            row = [str(result.id), result.title, result.url]
            if blurbs:
                row.append(result.blurb or "")
            table.add_row(*row)

        console.print(table)
        if group.more:
            console.print(
                f"[dim]More {group.name.lower()} available, try --type {group.type.value}[/dim]"
            )


@app.command()
def init() -> None:
    """Create the database schema and search indexes."""
    asyncio.run(_init_async())


async def _init_async() -> None:
    """Async initialization."""
    from forumsearch.adapters.sqlite import SQLiteRepository

    settings = get_settings()

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        task = progress.add_task("Initializing...", total=2)

        progress.update(task, description="Creating directories...")
        Path(settings.data_dir).mkdir(parents=True, exist_ok=True)
        progress.advance(task)

        progress.update(task, description="Initializing SQLite database...")
        repo = SQLiteRepository(settings.db_path, stemmers=settings.installed_stemmers)
        try:
            await repo.initialize()
            stemmers = repo.stemmers
        finally:
            await repo.close()
        progress.advance(task)

    console.print("\n[green]Initialization complete![/green]")
    console.print(f"[dim]Database: {settings.db_path}[/dim]")
    console.print(f"[dim]Search indexes: {', '.join(stemmers)}[/dim]")


@app.command("import")
def import_fixture(
    path: Path = typer.Argument(..., help="Path to forum JSON fixture"),
    reindex: bool = typer.Option(False, "--reindex", help="Rebuild search indexes afterwards"),
) -> None:
    """Load users, categories, topics and posts from a JSON fixture."""
    if not path.exists():
        console.print(f"[red]Error:[/red] File not found: {path}")
        raise typer.Exit(1)

    asyncio.run(_import_async(path, reindex))


async def _import_async(path: Path, reindex: bool) -> None:
    """Async import implementation."""
    from forumsearch.adapters.sqlite import ForumFixture, SQLiteRepository, load_fixture

    settings = get_settings()
    fixture = ForumFixture.from_file(path)
    repo = SQLiteRepository(settings.db_path, stemmers=settings.installed_stemmers)

    try:
        await repo.initialize()
        counts = await load_fixture(repo, fixture)
        if reindex:
            await repo.reindex()
        totals = await repo.get_counts()
    except ForumSearchError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1)
    finally:
        await repo.close()

    table = Table(title="Import Summary")
    table.add_column("Kind", style="cyan")
    table.add_column("Imported", style="green", justify="right")
    table.add_column("Total", justify="right")
    for kind, count in counts.items():
        table.add_row(kind, str(count), str(totals[kind]))
    console.print(table)


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host", "-h", help="Host to bind"),
    port: int | None = typer.Option(None, "--port", "-p", help="Port to bind"),
    reload: bool = typer.Option(False, "--reload", "-r", help="Enable auto-reload"),
) -> None:
    """Start the API server."""
    import uvicorn

    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port

    console.print(Panel(f"http://{host}:{port}/docs", title="Starting ForumSearch API"))

    uvicorn.run(
        "forumsearch.interfaces.api:create_app",
        host=host,
        port=port,
        reload=reload,
        factory=True,
    )


@app.command()
def version() -> None:
    """Show version information."""
    from forumsearch import __version__

    console.print(f"ForumSearch v{__version__}")


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
