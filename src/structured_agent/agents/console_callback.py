"""Rich console callback for the structured agent loop."""

from __future__ import annotations

import json
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from structured_agent.models.agent_schemas import AgentResult
from structured_agent.tools import ToolRegistry

MAX_RESULT_LINES = 20
MAX_RESULT_CHARS = 1500


def _truncate(text: str) -> str:
    lines = text.splitlines()
    if len(lines) <= MAX_RESULT_LINES and len(text) <= MAX_RESULT_CHARS:
        return text
    truncated = "\n".join(lines[:MAX_RESULT_LINES])[:MAX_RESULT_CHARS]
    omitted = len(lines) - MAX_RESULT_LINES
    if omitted > 0:
        truncated += f"\n... ({omitted} more lines)"
    return truncated


def _format_arg_value(value: Any) -> str:
    s = value if isinstance(value, str) else json.dumps(value, ensure_ascii=False)
    if len(s) > 120:
        return s[:120] + "..."
    return s


class ConsoleCallback:
    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def print_tools(self, registry: ToolRegistry) -> None:
        table = Table(title="Available tools", border_style="dim", show_lines=False)
        table.add_column("Tool", style="bold cyan", no_wrap=True)
        table.add_column("Description", style="dim")
        for tool in registry.list_all():
            params = tool.parameters.get("properties", {})
            table.add_row(f"{tool.name}({', '.join(params)})", tool.description)
        self.console.print(table)
        self.console.print()

    def on_step_start(self, step: int, max_steps: int) -> None:
        self.console.rule(f"[bold blue]Step {step}/{max_steps}", style="blue")

    def on_thinking(self, text: str) -> None:
        self.console.print(
            Panel(Text(_truncate(text)), title="[bold yellow]Thinking", border_style="yellow", padding=(0, 1))
        )

    def on_tool_call(self, name: str, args: dict[str, Any]) -> None:
        self.console.print(f"  [bold cyan]{name}[/]")
        for k, v in args.items():
            self.console.print(f"      [dim]{k}:[/] {escape(_format_arg_value(v))}")

    def on_tool_result(self, name: str, result: str) -> None:
        self.console.print(
            Panel(Text(_truncate(result), style="dim"), title="[dim]result", border_style="dim", padding=(0, 1))
        )

    def on_finish(self, text: str, steps: int, tool_calls: int) -> None:
        self.console.print()
        self.console.rule("[bold green]Agent finished", style="green")
        self.console.print(
            Panel(
                Text(text),
                title=f"[bold green]Result ({steps} steps, {tool_calls} tool calls)",
                border_style="green",
                padding=(0, 1),
            )
        )

    def print_result(self, result: AgentResult) -> None:
        """Print the structured fields of a final response, if any."""
        extra = {k: v for k, v in result.return_values.items() if k not in ("output", "answer")}
        for key, value in extra.items():
            self.console.print(f"[bold]{key}:[/] {escape(_format_arg_value(value))}")
