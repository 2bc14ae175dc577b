"""corpus-rag CLI entry point."""

import logging
from typing import Annotated

import typer
from rich.console import Console

from corpus_rag.config import settings
from corpus_rag.errors import CorpusRagError, UpstreamError
from corpus_rag.ingestion.models import CorpusType

console = Console()
app = typer.Typer(
    name="corpus-rag",
    help="Ingest documentation, chat exports and source code into a vector store, and search them.",
)

# CLI names → corpus types; "docs" is the prose corpus.
_CORPORA = {"docs": CorpusType.PROSE, "chat": CorpusType.CHAT, "code": CorpusType.CODE}


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command()
def ingest(
    corpora: Annotated[
        list[str] | None,
        typer.Argument(help="Corpora to ingest: docs, chat, code or all"),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose logging"),
    ] = False,
) -> None:
    """Ingest the configured corpus directories into their collections."""
    from corpus_rag.ingestion.runner import build_default_pipeline, ingest_corpus

    _configure_logging(verbose)
    names = corpora or ["all"]
    unknown = [n for n in names if n != "all" and n not in _CORPORA]
    if unknown:
        console.print(f"[bold red]Unknown corpus:[/bold red] {', '.join(unknown)}")
        raise typer.Exit(2)
    kinds = list(_CORPORA.values()) if "all" in names else [_CORPORA[n] for n in names]

    pipeline = build_default_pipeline()
    for kind in kinds:
        console.print(f"[bold]Ingesting {kind.value} corpus[/bold]")
        try:
            report = ingest_corpus(kind, pipeline=pipeline)
        except UpstreamError as exc:
            console.print(f"[bold red]Ingestion failed:[/bold red] {exc.message}")
            raise typer.Exit(1) from exc
        console.print(f"  {report.summary()}", markup=False, highlight=False)
    console.print("[bold green]Ingestion complete![/bold green]")


@app.command()
def search(
    collection: Annotated[str, typer.Argument(help="Collection: docs, chat or code")],
    query: Annotated[str, typer.Argument(help="Search query")],
    n_results: Annotated[int, typer.Option("--n-results", "-n", help="Number of results")] = settings.default_n_results,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose logging"),
    ] = False,
) -> None:
    """Run a single query against a collection."""
    from corpus_rag.retrieval.formatting import render_results
    from corpus_rag.retrieval.service import QueryService

    _configure_logging(verbose)
    try:
        results = QueryService.from_settings().search(collection, query, n_results)
    except CorpusRagError as exc:
        console.print(f"[bold red]{exc.error_type}:[/bold red] {exc.message}")
        raise typer.Exit(1) from exc
    if not results:
        console.print("No results.")
        return
    console.print(render_results(results), markup=False, highlight=False)


@app.command()
def serve(
    host: Annotated[str, typer.Option(help="Bind address")] = "0.0.0.0",
    port: Annotated[int, typer.Option(help="Port")] = 3000,
) -> None:
    """Start the HTTP query gateway."""
    import uvicorn

    _configure_logging(True)
    uvicorn.run("corpus_rag.serving.app:app", host=host, port=port)


if __name__ == "__main__":
    app()
