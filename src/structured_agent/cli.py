import logging
from pathlib import Path

import typer
from rich.console import Console

from structured_agent.config import settings
from structured_agent.vectorstores.cli import index_app, open_store

app = typer.Typer(name="structured-agent", help="Function-calling agent with structured final answers.")
app.add_typer(index_app, name="index")
console = Console()


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _build_agent(index: str, persist_dir: Path | None, max_steps: int = 0):
    """Create a StructuredAgent with a retriever tool over the given index."""
    from structured_agent.agents.console_callback import ConsoleCallback
    from structured_agent.agents.structured_agent import StructuredAgent
    from structured_agent.config import get_model_config
    from structured_agent.services.llm_service import LLMService
    from structured_agent.tools import ToolRegistry
    from structured_agent.tools.final_response import FinalResponseSchema
    from structured_agent.vectorstores.tools import create_retriever_tool

    store = open_store(index, persist_dir)
    if store.count() == 0:
        console.print(
            f"[yellow]Index '{index}' is empty, run 'structured-agent index add' first[/yellow]"
        )

    registry = ToolRegistry()
    registry.register(create_retriever_tool(
        store.as_retriever(),
        name="search_documents",
        description=f"Query a retriever to get information about the documents in '{index}'.",
    ))

    callback = ConsoleCallback(console)
    callback.print_tools(registry)

    llm = LLMService(get_model_config("structured"))
    agent = StructuredAgent(
        llm=llm,
        registry=registry,
        final_response=FinalResponseSchema(name=settings.final_response_name),
        max_steps=max_steps or settings.agent_max_steps,
        callback=callback,
    )
    return agent, callback


@app.command()
def ask(
    question: str = typer.Argument(..., help="Question to answer"),
    index: str = typer.Option(settings.vector_index_name, help="Index to search"),
    persist_dir: Path = typer.Option(None, help="Index storage directory"),
    max_steps: int = typer.Option(0, help="Max agent steps (0 = from settings)"),
) -> None:
    """Answer a question from an index, returning an answer and its sources."""
    from openai import APIError

    from structured_agent.models.agent_schemas import ResponseDecodeError

    agent, callback = _build_agent(index, persist_dir, max_steps)
    try:
        result = agent.run(question)
    except ResponseDecodeError as e:
        console.print(f"[red]Model returned malformed arguments:[/red] {e}")
        raise typer.Exit(code=1) from e
    except APIError as e:
        console.print(f"[red]Model request failed:[/red] {e}")
        raise typer.Exit(code=1) from e
    callback.print_result(result)


if __name__ == "__main__":
    app()
