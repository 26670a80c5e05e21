"""Models for the structured agent loop."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ToolInvocation(BaseModel):
    """The model asked for a tool; the loop should run it and continue."""

    model_config = ConfigDict(frozen=True)

    tool: str
    tool_input: dict[str, Any]
    log: str
    call_id: str | None = None


class FinalResult(BaseModel):
    """The model produced its answer; the loop should stop."""

    model_config = ConfigDict(frozen=True)

    return_values: dict[str, Any]
    log: str


class AgentResult(BaseModel):
    return_values: dict[str, Any]
    output: str
    steps: int
    tool_calls_made: int
    intermediate_steps: list[tuple[ToolInvocation, str]] = Field(default_factory=list)
    structured: BaseModel | None = None


class ResponseDecodeError(ValueError):
    """Raised when a function call's arguments are not a JSON object."""

    def __init__(self, name: str, arguments: str, reason: str) -> None:
        self.name = name
        self.arguments = arguments
        super().__init__(f"Could not decode arguments for '{name}': {reason}")


class ToolNotFoundError(KeyError):
    """Raised when the model names a tool the registry does not know."""


class MaxStepsError(Exception):
    """Raised when the agent exceeds the maximum number of steps."""
