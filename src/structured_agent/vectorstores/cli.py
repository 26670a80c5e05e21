"""Typer sub-app for vector index commands."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from structured_agent.config import settings

index_app = typer.Typer(name="index", help="Vector index commands (ChromaDB-based semantic search).")
console = Console()


def open_store(index: str, persist_dir: Path | None = None):
    """Open a persistent vector store backed by the configured embedding model."""
    from structured_agent.vectorstores.config import VectorStoreConfig
    from structured_agent.vectorstores.embeddings import EmbeddingClient
    from structured_agent.vectorstores.store import VectorStore

    config = VectorStoreConfig()
    return VectorStore(
        EmbeddingClient.from_config(config),
        index_name=index,
        persist_dir=persist_dir or Path(settings.vector_persist_dir),
        config=config,
    )


@index_app.command()
def add(
    files: list[Path] = typer.Argument(..., exists=True, dir_okay=False, help="Text files to index"),
    index: str = typer.Option(settings.vector_index_name, help="Index name"),
    persist_dir: Path = typer.Option(None, help="Index storage directory"),
) -> None:
    """Split text files into chunks and add them to an index."""
    from structured_agent.vectorstores.splitter import TextSplitter, load_text_files

    store = open_store(index, persist_dir)
    chunks = TextSplitter(store.config).split_documents(load_text_files(files))
    ids = store.add_documents(chunks)
    console.print(f"[green]Indexed {len(ids)}/{len(chunks)} chunks[/green] into '{index}' ({store.count()} total)")


@index_app.command()
def search(
    query: str = typer.Argument(..., help="Search query"),
    index: str = typer.Option(settings.vector_index_name, help="Index name"),
    persist_dir: Path = typer.Option(None, help="Index storage directory"),
    k: int = typer.Option(4, help="Number of results"),
) -> None:
    """Search an index by similarity."""
    store = open_store(index, persist_dir)
    results = store.similarity_search_with_score(query, k)
    if not results:
        console.print("[yellow]No results found.[/yellow]")
        return
    for doc, score in results:
        console.print(f"[bold cyan]{escape(f'[Score: {score:.2f}]')}[/] [dim]{escape(str(doc.metadata))}[/dim]")
        console.print(doc.page_content, markup=False)
        console.print()


@index_app.command()
def delete(
    ids: list[str] = typer.Argument(..., help="Document ids to delete"),
    index: str = typer.Option(settings.vector_index_name, help="Index name"),
    persist_dir: Path = typer.Option(None, help="Index storage directory"),
) -> None:
    """Delete documents by id."""
    store = open_store(index, persist_dir)
    store.delete(ids)
    console.print(f"[green]Deleted {len(ids)} ids[/green] from '{index}'")


@index_app.command()
def drop(
    index: str = typer.Option(settings.vector_index_name, help="Index name"),
    persist_dir: Path = typer.Option(None, help="Index storage directory"),
) -> None:
    """Delete a whole index."""
    store = open_store(index, persist_dir)
    store.delete_index()
    console.print(f"[green]Dropped index '{index}'[/green]")
