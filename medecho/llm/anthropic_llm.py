"""Claude via the Anthropic Messages API, the cloud fallback for intake."""

import logging
from typing import Any, Optional

import anthropic

from medecho.llm.base import (
    BaseLLM,
    LLMResponse,
    Message,
    MessageRole,
    SDKErrors,
    translate_sdk_errors,
)

logger = logging.getLogger(__name__)

ANTHROPIC_ERRORS = SDKErrors(
    timeout=(anthropic.APITimeoutError,),
    connection=(anthropic.APIConnectionError,),
    overload=(anthropic.RateLimitError, anthropic.InternalServerError),
)

API_HOST = "api.anthropic.com"


def split_system_prompt(messages: list[Message]) -> tuple[str, list[dict[str, str]]]:
    """Pull system turns out of *messages*; Claude takes them as a separate field."""
    system = "\n\n".join(m.content for m in messages if m.role == MessageRole.SYSTEM)
    turns = [m.to_dict() for m in messages if m.role != MessageRole.SYSTEM]
    return system, turns


class AnthropicLLM(BaseLLM):
    def __init__(
        self,
        api_key: str,
        model: str = "claude-sonnet-4-20250514",
        timeout: int = 120,
    ):
        self.timeout = timeout
        self._model = model
        self._client = anthropic.AsyncAnthropic(api_key=api_key, timeout=timeout, max_retries=0)

    @property
    def model_name(self) -> str:
        return self._model

    @property
    def provider(self) -> str:
        return "anthropic"

    async def complete(
        self,
        messages: list[Message],
        *,
        temperature: float = 0.7,
        max_tokens: int = 2048,
        stop: Optional[list[str]] = None,
        **kwargs: Any,
    ) -> LLMResponse:
        system, turns = split_system_prompt(messages)
        request: dict[str, Any] = {
            "model": self._model,
            "messages": turns,
            "temperature": temperature,
            "max_tokens": max_tokens,
            **kwargs,
        }
        if system:
            request["system"] = system
        if stop:
            request["stop_sequences"] = stop

        with translate_sdk_errors("claude", ANTHROPIC_ERRORS, timeout=self.timeout, target=API_HOST):
            message = await self._client.messages.create(**request)

        text = "".join(block.text for block in message.content if block.type == "text")
        return LLMResponse(
            content=text,
            model=message.model,
            usage={"input_tokens": message.usage.input_tokens, "output_tokens": message.usage.output_tokens},
            finish_reason=message.stop_reason,
            raw_response=message,
        )

    async def health_check(self) -> bool:
        """Cheapest possible round trip: a one-token reply."""
        try:
            probe = await self._client.messages.create(
                model=self._model,
                messages=[{"role": "user", "content": "ping"}],
                max_tokens=1,
            )
        except anthropic.AnthropicError as e:
            logger.debug("claude health probe failed: %s", e)
            return False
        return bool(probe.content)
