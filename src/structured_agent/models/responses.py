"""Model responses as a closed set of variants.

A chat completion message either carries a function call or it does not.
The shape is decided once, when the message is converted, so downstream code
matches on the variant instead of probing optional fields.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True)
class PlainText:
    content: str


@dataclass(frozen=True)
class FunctionCall:
    content: str
    name: str
    arguments: str
    call_id: str | None = None


ModelResponse = Union[PlainText, FunctionCall]


def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def model_response_from_message(message: Any) -> ModelResponse:
    """Convert an OpenAI chat message (object or dict) into a ModelResponse.

    Only the first tool call is taken; the legacy ``function_call`` field is
    used when no ``tool_calls`` are present.
    """
    content = _field(message, "content") or ""

    tool_calls = _field(message, "tool_calls")
    if tool_calls:
        first = tool_calls[0]
        function = _field(first, "function")
        return FunctionCall(
            content=content,
            name=_field(function, "name") or "",
            arguments=_field(function, "arguments") or "",
            call_id=_field(first, "id"),
        )

    function_call = _field(message, "function_call")
    if function_call:
        return FunctionCall(
            content=content,
            name=_field(function_call, "name") or "",
            arguments=_field(function_call, "arguments") or "",
        )

    return PlainText(content=content)
