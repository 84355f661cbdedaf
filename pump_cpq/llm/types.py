"""
Chat provider types and exceptions.

Shared message shape and the error hierarchy every provider raises, so
callers can catch ``ProviderError`` without knowing which backend is live.
"""

from typing import Literal, TypedDict

# Message format compatible with Ollama and OpenAI-style chat APIs
ChatMessage = TypedDict(
    "ChatMessage",
    {"role": Literal["system", "user", "assistant"], "content": str},
)


class ProviderError(Exception):
    """Base class for chat provider failures."""


class ProviderTimeoutError(ProviderError):
    """Request to provider timed out."""


class ProviderUnavailableError(ProviderError):
    """Provider is not reachable or down."""


class ProviderDisabledError(ProviderError):
    """Provider is missing required configuration."""


class ProviderResponseError(ProviderError):
    """Provider returned an invalid or error response."""
