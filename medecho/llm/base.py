"""Abstract LLM interface shared by the intake assistant and its backends."""

import json
import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Optional, TypeVar

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)


class MessageRole(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass
class Message:
    """One turn of a chat."""

    role: MessageRole
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}


@dataclass
class LLMResponse:
    """Completion text plus the bookkeeping the backends report."""

    content: str
    model: str
    usage: dict[str, int] = field(default_factory=dict)
    finish_reason: Optional[str] = None
    raw_response: Optional[Any] = None

    @property
    def input_tokens(self) -> int:
        return self.usage.get("input_tokens", 0) or self.usage.get("prompt_tokens", 0)

    @property
    def output_tokens(self) -> int:
        return self.usage.get("output_tokens", 0) or self.usage.get("completion_tokens", 0)


T = TypeVar("T", bound=BaseModel)


class LLMError(Exception):
    """Raised by every model backend; the API maps it to 502."""


class LLMConnectionError(LLMError):
    """Backend could not be reached."""


class LLMTimeoutError(LLMError):
    """Backend accepted the request but never answered. Retryable."""


class LLMOverloadError(LLMError):
    """Backend is throttling us. Retryable."""


class LLMValidationError(LLMError):
    """Structured output was not JSON or did not fit the schema."""


@dataclass(frozen=True)
class SDKErrors:
    """Which exception classes of a vendor SDK mean timeout, unreachable or throttled."""

    timeout: tuple[type[BaseException], ...]
    connection: tuple[type[BaseException], ...]
    overload: tuple[type[BaseException], ...]


@contextmanager
def translate_sdk_errors(
    backend: str, errors: SDKErrors, *, timeout: float, target: str
) -> Iterator[None]:
    """Re-raise vendor SDK failures as the LLMError family the router understands.

    Anything not listed in *errors* propagates untouched.
    """
    try:
        yield
    except errors.timeout as e:
        logger.error("%s: no answer from %s within %ss (%s)", backend, target, timeout, e)
        raise LLMTimeoutError(f"{backend} gave no answer within {timeout}s") from e
    except errors.connection as e:
        logger.error("%s: cannot reach %s (%s)", backend, target, e)
        raise LLMConnectionError(f"{backend} unreachable at {target}") from e
    except errors.overload as e:
        logger.warning("%s: throttled by %s (%s)", backend, target, e)
        raise LLMOverloadError(f"{backend} is throttling requests") from e


def _strip_code_fence(text: str) -> str:
    text = text.strip()
    if not text.startswith("```"):
        return text
    lines = text.split("\n")
    if lines[-1].strip() == "```":
        return "\n".join(lines[1:-1])
    return "\n".join(lines[1:])


def parse_structured_response(content: str, schema: type[T]) -> T:
    """Parse an LLM response string into a Pydantic model.

    Markdown code fences around the JSON are tolerated.

    Raises:
        LLMValidationError: If JSON parsing or schema validation fails
    """
    try:
        data = json.loads(_strip_code_fence(content))
        return schema.model_validate(data)
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse JSON from LLM: {e}\nContent: {content}")
        raise LLMValidationError(f"Invalid JSON in response: {e}") from e
    except ValidationError as e:
        logger.error(f"Response doesn't match schema: {e}")
        raise LLMValidationError(f"Response doesn't match schema: {e}") from e


def with_schema_instruction(messages: list[Message], schema: type[BaseModel]) -> list[Message]:
    """Copy of *messages* whose last turn asks for JSON matching *schema*."""
    schema_json = json.dumps(schema.model_json_schema(), indent=2)
    last = messages[-1]
    instructed = Message(
        role=last.role,
        content=(
            f"{last.content}\n\nRespond with valid JSON matching this schema:\n"
            f"```json\n{schema_json}\n```\n\nRespond ONLY with the JSON object, no other text."
        ),
    )
    return [*messages[:-1], instructed]


class BaseLLM(ABC):
    """A chat model the intake assistant can talk to."""

    @abstractmethod
    async def complete(
        self,
        messages: list[Message],
        *,
        temperature: float = 0.7,
        max_tokens: int = 2048,
        stop: Optional[list[str]] = None,
        **kwargs: Any,
    ) -> LLMResponse:
        """Return the next assistant turn for *messages*.

        Backends raise LLMConnectionError, LLMTimeoutError or LLMOverloadError
        instead of their SDK exceptions.
        """

    async def complete_structured(
        self,
        messages: list[Message],
        schema: type[T],
        *,
        temperature: float = 0.2,
        max_tokens: int = 2048,
        **kwargs: Any,
    ) -> T:
        """Generate output validated against a Pydantic schema."""
        response = await self.complete(
            with_schema_instruction(messages, schema),
            temperature=temperature,
            max_tokens=max_tokens,
            **kwargs,
        )
        return parse_structured_response(response.content, schema)

    @abstractmethod
    async def health_check(self) -> bool:
        """True if the service answers."""

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Model identifier sent with each request."""

    @property
    @abstractmethod
    def provider(self) -> str:
        """Short backend label, reported by the health endpoint."""
