"""Tests for the chat completion request built by LLMService."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from tenacity import wait_none

from structured_agent.config import ModelConfig
from structured_agent.services.llm_service import LLMService

MESSAGES = [{"role": "user", "content": "hi"}]
TOOLS = [{"type": "function", "function": {"name": "Response", "parameters": {}}}]


@pytest.fixture(autouse=True)
def _no_retry_wait(monkeypatch):
    monkeypatch.setattr(LLMService.generate_with_tools.retry, "wait", wait_none())


def _service(**kwargs) -> tuple[LLMService, MagicMock]:
    client = MagicMock()
    cfg = ModelConfig(
        model=kwargs.get("model", "m"),
        temperature=kwargs.get("temperature"),
        max_tokens=kwargs.get("max_tokens"),
        base_url="https://x.test/v1",
    )
    with patch("structured_agent.services.llm_service._create_openai_client", return_value=client) as create:
        service = LLMService(cfg)
    create.assert_called_once_with("https://x.test/v1")
    return service, client


def _sent_kwargs(client: MagicMock) -> dict:
    return client.chat.completions.create.call_args.kwargs


def test_default_request():
    service, client = _service()
    service.generate_with_tools(MESSAGES, TOOLS)
    assert _sent_kwargs(client) == {"model": "m", "messages": MESSAGES, "temperature": 0.0, "tools": TOOLS}


def test_tools_left_out_when_empty():
    service, client = _service()
    service.generate_with_tools(MESSAGES, [])
    assert "tools" not in _sent_kwargs(client)


def test_configured_temperature_and_max_tokens():
    service, client = _service(temperature=0.4, max_tokens=512)
    service.generate_with_tools(MESSAGES, TOOLS)
    kwargs = _sent_kwargs(client)
    assert kwargs["temperature"] == 0.4
    assert kwargs["max_tokens"] == 512


def test_empty_model_falls_back_to_settings():
    from structured_agent.config import settings

    service, client = _service(model="")
    service.generate_with_tools(MESSAGES, TOOLS)
    assert _sent_kwargs(client)["model"] == settings.llm_model


def test_returns_completion():
    service, client = _service()
    assert service.generate_with_tools(MESSAGES, TOOLS) is client.chat.completions.create.return_value


def test_rate_limit_is_retried(rate_limit_error):
    service, client = _service()
    completion = MagicMock()
    client.chat.completions.create.side_effect = [rate_limit_error(), completion]
    assert service.generate_with_tools(MESSAGES, TOOLS) is completion
    assert client.chat.completions.create.call_count == 2


def test_exhausted_retries_raise_original_error(rate_limit_error):
    from openai import RateLimitError

    service, client = _service()
    client.chat.completions.create.side_effect = [rate_limit_error() for _ in range(3)]
    with pytest.raises(RateLimitError):
        service.generate_with_tools(MESSAGES, TOOLS)
    assert client.chat.completions.create.call_count == 3


def test_other_errors_are_not_retried():
    service, client = _service()
    client.chat.completions.create.side_effect = ValueError("bad payload")
    with pytest.raises(ValueError):
        service.generate_with_tools(MESSAGES, TOOLS)
    assert client.chat.completions.create.call_count == 1
