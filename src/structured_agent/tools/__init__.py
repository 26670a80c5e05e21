"""Tool plugin system for the structured agent loop."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from structured_agent.models.agent_schemas import ToolNotFoundError

logger = logging.getLogger(__name__)


@dataclass
class Tool:
    name: str
    description: str
    parameters: dict[str, Any]
    execute: Callable[[dict[str, Any]], str]

    def to_openai_tool(self) -> dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


class ToolRegistry:
    def __init__(self) -> None:
        self._tools: dict[str, Tool] = {}

    def register(self, tool: Tool) -> None:
        if tool.name in self._tools:
            logger.warning("Replacing already registered tool '%s'", tool.name)
        self._tools[tool.name] = tool

    def register_many(self, tools: list[Tool]) -> None:
        for tool in tools:
            self.register(tool)

    def get(self, name: str) -> Tool:
        try:
            return self._tools[name]
        except KeyError:
            raise ToolNotFoundError(name) from None

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def list_all(self) -> list[Tool]:
        return list(self._tools.values())

    def to_openai_tools(self) -> list[dict[str, Any]]:
        return [tool.to_openai_tool() for tool in self._tools.values()]

    def execute(self, name: str, args: dict[str, Any]) -> str:
        """Run a tool and return its observation.

        Unknown names raise ``ToolNotFoundError``. Failures inside the tool
        are returned as an error string so the model can react to them.
        """
        tool = self.get(name)
        try:
            return tool.execute(args)
        except Exception as e:
            logger.error("Tool '%s' failed: %s", name, e)
            return f"Error executing '{name}': {e}"
