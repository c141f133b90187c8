"""Self-hosted chat model behind an OpenAI-compatible endpoint (vLLM, Ollama, TGI)."""

import logging
from typing import Any, Optional

import httpx
import openai

from medecho.llm.base import BaseLLM, LLMResponse, Message, SDKErrors, translate_sdk_errors

logger = logging.getLogger(__name__)

OPENAI_ERRORS = SDKErrors(
    timeout=(openai.APITimeoutError,),
    connection=(openai.APIConnectionError,),
    overload=(openai.RateLimitError, openai.InternalServerError),
)


def _token_counts(usage: Any) -> dict[str, int]:
    if usage is None:
        return {}
    return {"prompt_tokens": usage.prompt_tokens, "completion_tokens": usage.completion_tokens}


class LocalLLM(BaseLLM):
    """Primary intake model. Most local servers ignore the API key."""

    def __init__(
        self,
        base_url: str,
        model: str,
        timeout: int = 60,
        api_key: str = "not-needed",
    ):
        self.base_url = base_url
        self.timeout = timeout
        self._model = model
        self._client = openai.AsyncOpenAI(
            base_url=base_url,
            api_key=api_key,
            timeout=httpx.Timeout(timeout, connect=10.0),
            max_retries=0,
        )

    @property
    def model_name(self) -> str:
        return self._model

    @property
    def provider(self) -> str:
        return "local"

    async def complete(
        self,
        messages: list[Message],
        *,
        temperature: float = 0.7,
        max_tokens: int = 2048,
        stop: Optional[list[str]] = None,
        **kwargs: Any,
    ) -> LLMResponse:
        payload = [m.to_dict() for m in messages]
        with translate_sdk_errors("local model", OPENAI_ERRORS, timeout=self.timeout, target=self.base_url):
            completion = await self._client.chat.completions.create(
                model=self._model,
                messages=payload,
                temperature=temperature,
                max_tokens=max_tokens,
                stop=stop,
                **kwargs,
            )

        first = completion.choices[0]
        logger.debug("local model %s finished with %s", completion.model, first.finish_reason)
        return LLMResponse(
            content=first.message.content or "",
            model=completion.model,
            usage=_token_counts(completion.usage),
            finish_reason=first.finish_reason,
            raw_response=completion,
        )

    async def health_check(self) -> bool:
        # Listing models is free on every OpenAI-compatible server
        try:
            await self._client.models.list()
        except openai.OpenAIError as e:
            logger.debug("local model at %s is down: %s", self.base_url, e)
            return False
        return True
