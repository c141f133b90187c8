"""Chooses which chat model answers an intake request."""

import logging
import time
from typing import Any, Awaitable, Callable, Optional, TypeVar

from pydantic import BaseModel
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from medecho.llm.base import (
    BaseLLM,
    LLMError,
    LLMOverloadError,
    LLMResponse,
    LLMTimeoutError,
    Message,
)

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)
R = TypeVar("R")


class LLMRouter:
    """Primary model first, secondary on failure.

    Timeouts and overloads are retried on the same backend first. After
    ``failure_threshold`` consecutive primary failures the primary is marked
    unhealthy; with ``always_try_primary=False`` it is then skipped until a
    health check or a successful call brings it back.
    """

    def __init__(
        self,
        primary: BaseLLM,
        fallback: Optional[BaseLLM] = None,
        max_retries: int = 3,
        always_try_primary: bool = True,
        failure_threshold: int = 3,
        retry_backoff: float = 1.0,
    ):
        self.primary = primary
        self.fallback = fallback
        self.max_retries = max(1, max_retries)
        self.always_try_primary = always_try_primary
        self.retry_backoff = retry_backoff

        self._primary_healthy = True
        self._failures_in_a_row = 0
        self._failure_threshold = failure_threshold

    async def complete(
        self,
        messages: list[Message],
        *,
        temperature: float = 0.7,
        max_tokens: int = 2048,
        stop: Optional[list[str]] = None,
        prefer_fallback: bool = False,
        **kwargs: Any,
    ) -> LLMResponse:
        """Chat completion from whichever backend answers."""

        def call(llm: BaseLLM) -> Awaitable[LLMResponse]:
            return llm.complete(
                messages, temperature=temperature, max_tokens=max_tokens, stop=stop, **kwargs
            )

        return await self._route(call, "complete", prefer_fallback)

    async def complete_structured(
        self,
        messages: list[Message],
        schema: type[T],
        *,
        temperature: float = 0.2,
        max_tokens: int = 2048,
        prefer_fallback: bool = False,
        **kwargs: Any,
    ) -> T:
        """Schema-validated output from whichever backend answers."""

        def call(llm: BaseLLM) -> Awaitable[T]:
            return llm.complete_structured(
                messages, schema, temperature=temperature, max_tokens=max_tokens, **kwargs
            )

        return await self._route(call, f"structured:{schema.__name__}", prefer_fallback)

    async def _route(
        self,
        call: Callable[[BaseLLM], Awaitable[R]],
        label: str,
        prefer_fallback: bool,
    ) -> R:
        if prefer_fallback and self.fallback:
            return await self._call_with_retry(self.fallback, call, label)

        if self._primary_in_rotation():
            try:
                result = await self._call_with_retry(self.primary, call, label)
                self._mark_primary_up()
                return result
            except LLMError as e:
                self._mark_primary_failed()
                logger.warning(
                    f"Primary LLM ({self.primary.provider}) failed on {label}: {e}. "
                    f"{'Trying fallback...' if self.fallback else 'No fallback available.'}"
                )
                if not self.fallback:
                    raise

        if self.fallback:
            try:
                result = await self._call_with_retry(self.fallback, call, label)
            except LLMError as e:
                logger.error("%s fallback failed on %s too: %s", self.fallback.provider, label, e)
                raise
            logger.info("%s answered %s in place of %s", self.fallback.provider, label, self.primary.provider)
            return result

        raise LLMError("Primary model is out of rotation and no fallback is configured")

    async def _call_with_retry(
        self,
        llm: BaseLLM,
        call: Callable[[BaseLLM], Awaitable[R]],
        label: str,
    ) -> R:
        started = time.perf_counter()
        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type((LLMTimeoutError, LLMOverloadError)),
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=self.retry_backoff, min=0, max=10),
            reraise=True,
        ):
            with attempt:
                result = await call(llm)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.debug("%s/%s %s took %.0fms", llm.provider, llm.model_name, label, elapsed_ms)
        return result

    def _primary_in_rotation(self) -> bool:
        if self.always_try_primary:
            return True
        return self._primary_healthy

    def _mark_primary_up(self) -> None:
        self._primary_healthy = True
        self._failures_in_a_row = 0

    def _mark_primary_failed(self) -> None:
        self._failures_in_a_row += 1
        if self._failures_in_a_row >= self._failure_threshold and self._primary_healthy:
            self._primary_healthy = False
            logger.warning(
                "%s taken out of rotation after %d failures", self.primary.provider, self._failures_in_a_row
            )

    async def health_check(self) -> dict[str, bool]:
        """Probe every backend; a healthy primary is put back in rotation."""
        result = {"primary": await self.primary.health_check()}
        if result["primary"]:
            self._mark_primary_up()
        if self.fallback:
            result["fallback"] = await self.fallback.health_check()
        return result

    @property
    def active_provider(self) -> str:
        if self._primary_healthy:
            return self.primary.provider
        if self.fallback:
            return self.fallback.provider
        return "none"


def create_router_from_settings() -> LLMRouter:
    """Local model first, Claude as fallback when an API key is configured."""
    from medecho.config import get_settings
    from medecho.llm.anthropic_llm import AnthropicLLM
    from medecho.llm.local import LocalLLM

    settings = get_settings()

    primary = LocalLLM(
        base_url=settings.local_llm_base_url,
        model=settings.local_llm_model,
        timeout=settings.local_llm_timeout,
    )

    fallback = None
    if settings.has_anthropic_key:
        fallback = AnthropicLLM(
            api_key=settings.anthropic_api_key,
            model=settings.anthropic_model,
        )

    return LLMRouter(primary=primary, fallback=fallback, max_retries=settings.max_retries)
