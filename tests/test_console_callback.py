from __future__ import annotations

from rich.console import Console

from structured_agent.agents.console_callback import ConsoleCallback, _truncate
from structured_agent.models.agent_schemas import AgentResult
from structured_agent.tools import Tool, ToolRegistry


def _callback() -> tuple[ConsoleCallback, Console]:
    console = Console(record=True, width=120)
    return ConsoleCallback(console), console


def test_truncate_long_output():
    text = "\n".join(f"line {i}" for i in range(50))
    truncated = _truncate(text)
    assert "line 19" in truncated
    assert "line 20" not in truncated
    assert "(30 more lines)" in truncated


def test_truncate_keeps_short_output():
    assert _truncate("short") == "short"


def test_print_tools_lists_parameters():
    cb, console = _callback()
    registry = ToolRegistry()
    registry.register(Tool(
        name="search_documents",
        description="Search the index",
        parameters={"type": "object", "properties": {"query": {"type": "string"}}},
        execute=lambda args: "",
    ))
    cb.print_tools(registry)
    assert "search_documents(query)" in console.export_text()


def test_print_result_shows_extra_fields():
    cb, console = _callback()
    cb.print_result(AgentResult(
        return_values={"answer": "42", "sources": [1, 3]}, output="42", steps=1, tool_calls_made=0
    ))
    text = console.export_text()
    assert "sources: [1, 3]" in text
    assert "answer" not in text
