"""LLM abstraction layer with local-first routing and cloud fallback."""

from medecho.llm.anthropic_llm import AnthropicLLM
from medecho.llm.base import BaseLLM, LLMError, LLMResponse, Message, MessageRole
from medecho.llm.local import LocalLLM
from medecho.llm.router import LLMRouter, create_router_from_settings

__all__ = [
    "AnthropicLLM",
    "BaseLLM",
    "LLMError",
    "LLMResponse",
    "LLMRouter",
    "LocalLLM",
    "Message",
    "MessageRole",
    "create_router_from_settings",
]
