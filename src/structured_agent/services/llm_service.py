from __future__ import annotations

import logging
from typing import Any

from openai import APIConnectionError, APITimeoutError, InternalServerError, OpenAI, RateLimitError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from structured_agent.config import ModelConfig, get_model_config, settings

logger = logging.getLogger(__name__)

_TRANSIENT_ERRORS = (APIConnectionError, APITimeoutError, InternalServerError, RateLimitError)


def _create_openai_client(base_url: str = "") -> OpenAI:
    return OpenAI(
        api_key=settings.llm_api_key,
        base_url=base_url or settings.llm_base_url,
    )


class LLMService:
    def __init__(self, config: ModelConfig | None = None) -> None:
        if config is None:
            config = get_model_config()
        self._config = config
        self.client = _create_openai_client(config.base_url)
        self.model = config.model or settings.llm_model
        self._temperature = config.temperature
        self._max_tokens = config.max_tokens

    def _get_temperature(self) -> float:
        return self._temperature if self._temperature is not None else 0.0

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(min=2, max=30),
        retry=retry_if_exception_type(_TRANSIENT_ERRORS),
        reraise=True,
    )
    def generate_with_tools(self, messages: list[dict], tools: list[dict[str, Any]]):
        """Run one chat completion with the given function schemas bound."""
        kwargs: dict = {
            "model": self.model,
            "messages": messages,
            "temperature": self._get_temperature(),
        }
        if tools:
            kwargs["tools"] = tools
        if self._max_tokens is not None:
            kwargs["max_tokens"] = self._max_tokens
        logger.debug("Chat completion: model=%s, messages=%d, tools=%d",
                     self.model, len(messages), len(tools))
        return self.client.chat.completions.create(**kwargs)
