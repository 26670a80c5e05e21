"""Classify a model response as a final answer or a tool invocation."""

from __future__ import annotations

import json
import logging

from structured_agent.models.agent_schemas import FinalResult, ResponseDecodeError, ToolInvocation
from structured_agent.models.responses import FunctionCall, ModelResponse, PlainText

logger = logging.getLogger(__name__)

DEFAULT_FINAL_RESPONSE_NAME = "Response"


class ResponseClassifier:
    """Decide whether a model response ends the run or calls a tool.

    ``final_response_name`` must match the name of the function schema the
    model was given for its final answer. A call to any other function is
    treated as a tool invocation.
    """

    def __init__(self, final_response_name: str = DEFAULT_FINAL_RESPONSE_NAME) -> None:
        if not final_response_name:
            raise ValueError("final_response_name must be a non-empty string")
        self.final_response_name = final_response_name

    def classify(self, response: ModelResponse) -> ToolInvocation | FinalResult:
        if isinstance(response, PlainText):
            return FinalResult(return_values={"output": response.content}, log=response.content)

        if not isinstance(response, FunctionCall):
            raise TypeError(f"Unsupported response type: {type(response).__name__}")

        is_final = response.name == self.final_response_name
        decoded = self._decode(response, allow_empty=not is_final)

        if is_final:
            if not decoded:
                raise ResponseDecodeError(response.name, response.arguments, "final response has no fields")
            logger.debug("Final response with fields: %s", sorted(decoded))
            return FinalResult(return_values=dict(decoded), log=response.content)

        logger.debug("Tool invocation: %s", response.name)
        return ToolInvocation(
            tool=response.name,
            tool_input=decoded,
            log=response.content,
            call_id=response.call_id,
        )

    @staticmethod
    def _decode(response: FunctionCall, allow_empty: bool) -> dict:
        raw = response.arguments
        if allow_empty and not raw.strip():
            return {}
        try:
            decoded = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("Malformed arguments for '%s': %s", response.name, raw[:200])
            raise ResponseDecodeError(response.name, raw, str(e)) from e
        if not isinstance(decoded, dict):
            raise ResponseDecodeError(
                response.name, raw, f"expected a JSON object, got {type(decoded).__name__}"
            )
        return decoded


def parse_response(
    response: ModelResponse,
    final_response_name: str = DEFAULT_FINAL_RESPONSE_NAME,
) -> ToolInvocation | FinalResult:
    """Classify a single response with a one-off classifier."""
    return ResponseClassifier(final_response_name).classify(response)
