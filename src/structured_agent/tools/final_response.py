"""Function schema the model calls to deliver its final, structured answer."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from structured_agent.models.agent_schemas import FinalResult


class Response(BaseModel):
    """Final response to the question being asked"""

    answer: str = Field(description="The final answer to respond to the user")
    sources: list[int] = Field(
        description=(
            "List of page chunks that contain answer to the question. "
            "Only include a page chunk if it contains relevant information"
        )
    )


class FinalResponseSchema:
    """Pairs a pydantic model with the function name the model must call.

    The same ``name`` has to be handed to the ``ResponseClassifier``; the
    agent loop does that from this object.
    """

    def __init__(
        self,
        model: type[BaseModel] = Response,
        name: str | None = None,
        description: str | None = None,
    ) -> None:
        self.model = model
        self.name = name or model.__name__
        self.description = description or (model.__doc__ or "").strip() or "Final response"

    def parameters(self) -> dict[str, Any]:
        schema = self.model.model_json_schema()
        schema.pop("title", None)
        schema.pop("description", None)
        return schema

    def to_openai_tool(self) -> dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters(),
            },
        }

    def validate_result(self, result: FinalResult) -> BaseModel:
        """Validate the fields of a final result against the model.

        Raises ``pydantic.ValidationError`` when required fields are missing
        or have the wrong type.
        """
        return self.model.model_validate(result.return_values)
