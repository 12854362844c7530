"""CLI interface for CompeteAI."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Optional, TypeVar

import typer
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table
from sqlalchemy.exc import DBAPIError

from competeai.config import Settings, get_settings
from competeai.database.connection import Database
from competeai.exceptions import CompeteAIError
from competeai.logging import setup_logging
from competeai.models.content import ContentType, parse_content_type
from competeai.models.rag import IndexSummary, QueryResult
from competeai.rag.completion import CompletionClient
from competeai.rag.embedder import Embedder
from competeai.rag.indexer import ALL_TYPES, BatchIndexer, DatabaseCandidateSource
from competeai.rag.pipeline import RAGSearchPipeline
from competeai.rag.vector_store import EmbeddingStore, create_store

app = typer.Typer(
    name="competeai",
    help="Pharmaceutical competitive intelligence: embedding index and grounded AI search",
)
console = Console()

T = TypeVar("T")


def _run_async(coro):
    """Run async coroutine in sync context."""
    return asyncio.run(coro)


def _load_settings(verbose: bool = False) -> Settings:
    settings = get_settings()
    setup_logging(level=logging.DEBUG if verbose else settings.log_level.upper())
    return settings


async def _with_store(
    settings: Settings, action: Callable[[EmbeddingStore, Optional[Database]], Awaitable[T]]
) -> T:
    """Build the configured store, run action, then release connections."""
    database = Database(settings) if settings.vector_store_backend.lower() == "postgres" else None
    store = create_store(settings, database)
    try:
        return await action(store, database)
    finally:
        if database is not None:
            await database.close()


def _fail(error: Exception) -> None:
    console.print(f"[red]Error: {error}[/red]")
    raise typer.Exit(1)


def _parse_type_option(value: str) -> str | ContentType:
    if value.strip().lower() == ALL_TYPES:
        return ALL_TYPES
    try:
        return parse_content_type(value)
    except ValueError as e:
        raise typer.BadParameter(str(e))


def render_summary(summary: IndexSummary) -> Table:
    table = Table(title="Indexing Summary")
    table.add_column("Content Type", style="cyan")
    table.add_column("Processed", justify="right", style="green")
    table.add_column("Skipped", justify="right", style="yellow")
    table.add_column("Errors", justify="right", style="red")

    for content_type, stats in summary.stats.items():
        table.add_row(
            content_type.value, str(stats.processed), str(stats.skipped), str(stats.errored)
        )
    table.add_row(
        "[bold]Total[/bold]",
        f"[bold]{summary.processed}[/bold]",
        f"[bold]{summary.skipped}[/bold]",
        f"[bold]{summary.errored}[/bold]",
    )
    return table


def render_answer(result: QueryResult) -> None:
    console.print(Panel(result.answer, title="Answer", border_style="green"))

    if result.sources:
        table = Table(title="Sources")
        table.add_column("#", justify="right")
        table.add_column("Type", style="cyan")
        table.add_column("Title")
        table.add_column("Relevance", justify="right", style="green")
        table.add_column("URL", style="dim")
        for i, source in enumerate(result.sources, 1):
            table.add_row(str(i), source.type, source.title, f"{source.relevance:.3f}", source.url)
        console.print(table)

    if result.model:
        tokens = result.tokens_used.total if result.tokens_used else 0
        console.print(
            f"[dim]Model: {result.model} | Tokens: {tokens} | "
            f"Cost: ${result.estimated_cost or 0:.6f}[/dim]"
        )


@app.command()
def index(
    content_type: str = typer.Option(
        ALL_TYPES,
        "--type",
        "-t",
        help="Content type to index: trial, company, news, indication or all",
    ),
    limit: Optional[int] = typer.Option(
        None, "--limit", "-n", min=1, help="Maximum records fetched per content type"
    ),
    skip_existing: bool = typer.Option(
        True,
        "--skip-existing/--reindex",
        help="Skip records that already have an embedding",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """
    Generate embeddings for trials, companies, news and indications.

    Records already in the index are skipped unless --reindex is given.
    A record that fails is reported and the run continues.
    """
    ctype = _parse_type_option(content_type)
    settings = _load_settings(verbose)
    label = ALL_TYPES if ctype == ALL_TYPES else ctype.value

    console.print(
        Panel.fit(
            f"[bold blue]Content:[/bold blue] {label}\n"
            f"[bold blue]Model:[/bold blue] {settings.embedding_model} "
            f"({settings.embedding_dimensions} dimensions)",
            title="CompeteAI Indexer",
        )
    )

    async def run(store: EmbeddingStore, database: Optional[Database]) -> IndexSummary:
        if database is None:
            raise CompeteAIError("Indexing reads the domain tables and needs the postgres backend")
        indexer = BatchIndexer(
            embedder=Embedder(settings),
            store=store,
            source=DatabaseCandidateSource(database, news_limit=settings.indexer_news_limit),
            item_delay=settings.indexer_item_delay_seconds,
        )
        return await indexer.index(ctype, limit=limit, skip_existing=skip_existing)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        progress.add_task("Indexing...", total=None)
        try:
            summary = _run_async(_with_store(settings, run))
        except (CompeteAIError, ValueError) as e:
            progress.stop()
            _fail(e)

    console.print(render_summary(summary))

    for stats in summary.stats.values():
        for failure in stats.failures:
            console.print(f"[red]  {failure.content_type.value}/{failure.content_id}:[/red] {failure.error}")

    console.print("\n[green]Indexing complete[/green]")


@app.command()
def search(
    query: str = typer.Argument(..., help="Question to answer"),
    content_type: str = typer.Option(
        ALL_TYPES, "--type", "-t", help="Restrict to trial, company, news, indication or all"
    ),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Number of records to retrieve"),
    provider: Optional[str] = typer.Option(
        None, "--provider", "-p", help="Completion provider (openai or deepseek)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """
    Answer a question from the embedding index.
    """
    ctype = _parse_type_option(content_type)
    settings = _load_settings(verbose)

    async def run(store: EmbeddingStore, database: Optional[Database]) -> QueryResult:
        pipeline = RAGSearchPipeline(
            settings,
            Embedder(settings),
            store,
            CompletionClient(settings, provider=provider),
        )
        return await pipeline.search(query, content_type=ctype, limit=limit)

    with console.status("Searching..."):
        try:
            result = _run_async(_with_store(settings, run))
        except (CompeteAIError, ValueError) as e:
            _fail(e)

    render_answer(result)


@app.command()
def stats():
    """Show the number of indexed records per content type."""
    settings = _load_settings()

    async def run(store: EmbeddingStore, database: Optional[Database]) -> dict[ContentType, int]:
        return await store.count()

    try:
        counts = _run_async(_with_store(settings, run))
    except CompeteAIError as e:
        _fail(e)

    table = Table(title="Embedding Index")
    table.add_column("Content Type", style="cyan")
    table.add_column("Records", justify="right", style="green")
    for content_type in ContentType:
        table.add_row(content_type.value, str(counts.get(content_type, 0)))
    table.add_row("[bold]Total[/bold]", f"[bold]{sum(counts.values())}[/bold]")
    console.print(table)


@app.command()
def clear(
    content_type: str = typer.Option(
        ALL_TYPES, "--type", "-t", help="Content type to delete, or all"
    ),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """
    Delete embeddings, all of them or one content type.
    """
    ctype = _parse_type_option(content_type)
    label = "all embeddings" if ctype == ALL_TYPES else f"all {ctype.value} embeddings"

    if not yes and not typer.confirm(f"Delete {label}?"):
        console.print("[yellow]Aborted[/yellow]")
        raise typer.Exit(0)

    settings = _load_settings()

    async def run(store: EmbeddingStore, database: Optional[Database]) -> int:
        if ctype == ALL_TYPES:
            return await store.clear_all()
        return await store.clear_by_type(ctype)

    try:
        deleted = _run_async(_with_store(settings, run))
    except CompeteAIError as e:
        _fail(e)

    console.print(f"[green]Deleted {deleted} embeddings[/green]")


@app.command(name="init-db")
def init_db():
    """Enable the pgvector extension and create all tables."""
    settings = _load_settings()
    database = Database(settings)

    async def run() -> None:
        try:
            await database.init_db()
        finally:
            await database.close()

    try:
        _run_async(run())
    except (DBAPIError, OSError) as e:
        _fail(e)

    console.print("[green]Database initialized[/green]")


@app.command()
def version():
    """Show version information."""
    from competeai import __version__

    console.print(f"CompeteAI v{__version__}")


if __name__ == "__main__":
    app()
