"""Function-calling agent loop that ends on a structured final response."""

from __future__ import annotations

import json
import logging
from typing import Any, Literal, Protocol

from pydantic import ValidationError

from structured_agent.agents.output_parser import ResponseClassifier
from structured_agent.models.agent_schemas import (
    AgentResult,
    FinalResult,
    MaxStepsError,
    ToolInvocation,
    ToolNotFoundError,
)
from structured_agent.models.responses import FunctionCall, ModelResponse, model_response_from_message
from structured_agent.prompts.prompt_layer import render_prompt
from structured_agent.services.llm_service import LLMService
from structured_agent.tools import ToolRegistry
from structured_agent.tools.final_response import FinalResponseSchema

logger = logging.getLogger(__name__)

STOPPED_OUTPUT = "Agent stopped due to max steps."


class StepCallback(Protocol):
    def on_step_start(self, step: int, max_steps: int) -> None: ...
    def on_thinking(self, text: str) -> None: ...
    def on_tool_call(self, name: str, args: dict[str, Any]) -> None: ...
    def on_tool_result(self, name: str, result: str) -> None: ...
    def on_finish(self, text: str, steps: int, tool_calls: int) -> None: ...


class NullCallback:
    def on_step_start(self, step: int, max_steps: int) -> None: ...
    def on_thinking(self, text: str) -> None: ...
    def on_tool_call(self, name: str, args: dict[str, Any]) -> None: ...
    def on_tool_result(self, name: str, result: str) -> None: ...
    def on_finish(self, text: str, steps: int, tool_calls: int) -> None: ...


def _assistant_message(response: ModelResponse) -> dict[str, Any]:
    if not isinstance(response, FunctionCall):
        return {"role": "assistant", "content": response.content}
    call = {"name": response.name, "arguments": response.arguments}
    if response.call_id is None:
        return {"role": "assistant", "content": response.content or None, "function_call": call}
    return {
        "role": "assistant",
        "content": response.content or None,
        "tool_calls": [{"id": response.call_id, "type": "function", "function": call}],
    }


def _observation_message(invocation: ToolInvocation, observation: str) -> dict[str, Any]:
    if invocation.call_id is None:
        return {"role": "function", "name": invocation.tool, "content": observation}
    return {"role": "tool", "tool_call_id": invocation.call_id, "content": observation}


def _output_text(return_values: dict[str, Any]) -> str:
    for key in ("output", "answer"):
        value = return_values.get(key)
        if isinstance(value, str):
            return value
    return json.dumps(return_values, ensure_ascii=False)


class StructuredAgent:
    def __init__(
        self,
        llm: LLMService,
        registry: ToolRegistry,
        final_response: FinalResponseSchema | None = None,
        max_steps: int = 15,
        callback: StepCallback | None = None,
        early_stopping: Literal["force", "raise"] = "force",
    ) -> None:
        self.llm = llm
        self.registry = registry
        self.final_response = final_response or FinalResponseSchema()
        self.classifier = ResponseClassifier(self.final_response.name)
        self.max_steps = max_steps
        self.early_stopping = early_stopping
        self.cb: StepCallback = callback or NullCallback()

    def _tools(self) -> list[dict[str, Any]]:
        if self.final_response.name in self.registry:
            raise ValueError(
                f"Tool name '{self.final_response.name}' is reserved for the final response"
            )
        return self.registry.to_openai_tools() + [self.final_response.to_openai_tool()]

    def run(self, task: str) -> AgentResult:
        system_prompt = render_prompt("structured_system", final_response_name=self.final_response.name)
        messages: list[dict] = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": task},
        ]
        tools = self._tools()
        intermediate_steps: list[tuple[ToolInvocation, str]] = []

        for step in range(self.max_steps):
            self.cb.on_step_start(step + 1, self.max_steps)

            completion = self.llm.generate_with_tools(messages, tools)
            response = model_response_from_message(completion.choices[0].message)
            messages.append(_assistant_message(response))

            outcome = self.classifier.classify(response)
            if isinstance(outcome, FinalResult):
                return self._finish(outcome, response, step + 1, intermediate_steps)

            if outcome.log:
                self.cb.on_thinking(outcome.log)
            self.cb.on_tool_call(outcome.tool, outcome.tool_input)
            observation = self._run_tool(outcome)
            self.cb.on_tool_result(outcome.tool, observation)

            intermediate_steps.append((outcome, observation))
            messages.append(_observation_message(outcome, observation))

        if self.early_stopping == "raise":
            raise MaxStepsError(f"Agent did not finish within {self.max_steps} steps")

        logger.warning("Agent hit max steps (%d), stopping", self.max_steps)
        self.cb.on_finish(STOPPED_OUTPUT, self.max_steps, len(intermediate_steps))
        return AgentResult(
            return_values={"output": STOPPED_OUTPUT},
            output=STOPPED_OUTPUT,
            steps=self.max_steps,
            tool_calls_made=len(intermediate_steps),
            intermediate_steps=intermediate_steps,
        )

    def _run_tool(self, invocation: ToolInvocation) -> str:
        try:
            return self.registry.execute(invocation.tool, invocation.tool_input)
        except ToolNotFoundError:
            logger.warning("Model requested unknown tool '%s'", invocation.tool)
            return f"Error: unknown tool '{invocation.tool}'"

    def _finish(
        self,
        result: FinalResult,
        response: ModelResponse,
        steps: int,
        intermediate_steps: list[tuple[ToolInvocation, str]],
    ) -> AgentResult:
        structured = None
        if isinstance(response, FunctionCall):
            try:
                structured = self.final_response.validate_result(result)
            except ValidationError as e:
                logger.warning("Final response does not match %s: %s",
                               self.final_response.model.__name__, e)

        output = _output_text(result.return_values)
        self.cb.on_finish(output, steps, len(intermediate_steps))
        return AgentResult(
            return_values=result.return_values,
            output=output,
            steps=steps,
            tool_calls_made=len(intermediate_steps),
            intermediate_steps=intermediate_steps,
            structured=structured,
        )
