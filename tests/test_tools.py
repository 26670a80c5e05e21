from __future__ import annotations

import pytest
from pydantic import BaseModel, ValidationError

from structured_agent.models.agent_schemas import FinalResult, ToolNotFoundError
from structured_agent.tools import Tool, ToolRegistry
from structured_agent.tools.final_response import FinalResponseSchema, Response


def _echo_tool(name: str = "echo") -> Tool:
    return Tool(
        name=name,
        description="Echo the input",
        parameters={"type": "object", "properties": {"text": {"type": "string"}}, "required": ["text"]},
        execute=lambda args: args["text"],
    )


def _failing(args: dict) -> str:
    raise RuntimeError("boom")


# ---------------------------------------------------------------------------
# ToolRegistry
# ---------------------------------------------------------------------------

class TestToolRegistry:
    def test_execute(self):
        registry = ToolRegistry()
        registry.register(_echo_tool())
        assert registry.execute("echo", {"text": "hi"}) == "hi"

    def test_unknown_tool_raises(self):
        registry = ToolRegistry()
        with pytest.raises(ToolNotFoundError):
            registry.execute("missing", {})

    def test_tool_failure_is_reported_as_text(self):
        registry = ToolRegistry()
        registry.register(Tool(name="bad", description="", parameters={}, execute=_failing))
        result = registry.execute("bad", {})
        assert result.startswith("Error executing 'bad'")
        assert "boom" in result

    def test_to_openai_tools(self):
        registry = ToolRegistry()
        registry.register_many([_echo_tool("a"), _echo_tool("b")])
        tools = registry.to_openai_tools()
        assert [t["function"]["name"] for t in tools] == ["a", "b"]
        assert tools[0]["type"] == "function"
        assert tools[0]["function"]["parameters"]["required"] == ["text"]

    def test_contains(self):
        registry = ToolRegistry()
        registry.register(_echo_tool())
        assert "echo" in registry
        assert "other" not in registry


# ---------------------------------------------------------------------------
# FinalResponseSchema
# ---------------------------------------------------------------------------

class TestFinalResponseSchema:
    def test_defaults_to_response_model(self):
        schema = FinalResponseSchema()
        assert schema.model is Response
        assert schema.name == "Response"
        assert schema.description == "Final response to the question being asked"

    def test_openai_tool(self):
        tool = FinalResponseSchema().to_openai_tool()
        function = tool["function"]
        assert function["name"] == "Response"
        params = function["parameters"]
        assert set(params["properties"]) == {"answer", "sources"}
        assert sorted(params["required"]) == ["answer", "sources"]
        assert "title" not in params

    def test_custom_name(self):
        assert FinalResponseSchema(name="FinalAnswer").to_openai_tool()["function"]["name"] == "FinalAnswer"

    def test_name_from_custom_model(self):
        class Verdict(BaseModel):
            guilty: bool

        schema = FinalResponseSchema(Verdict)
        assert schema.name == "Verdict"
        assert schema.description == "Final response"

    def test_validate_result(self):
        result = FinalResult(return_values={"answer": "x", "sources": [1, 2]}, log="")
        validated = FinalResponseSchema().validate_result(result)
        assert isinstance(validated, Response)
        assert validated.sources == [1, 2]

    def test_validate_result_missing_field(self):
        result = FinalResult(return_values={"answer": "x"}, log="")
        with pytest.raises(ValidationError):
            FinalResponseSchema().validate_result(result)
