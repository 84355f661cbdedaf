"""
Chat provider factory.

Resolves a provider name (or the configured default) to a concrete
provider instance. Each quote session gets its own instance.
"""

import logging
from typing import TYPE_CHECKING, Optional

from pump_cpq.config import settings

if TYPE_CHECKING:
    from pump_cpq.llm.provider import ChatProvider

logger = logging.getLogger(__name__)


def create_provider(name: Optional[str] = None, **kwargs) -> "ChatProvider":
    """
    Build a chat provider.

    Args:
        name: "ollama" or "openai"; defaults to AI_PROVIDER.

    Raises:
        ValueError: If the provider name is unknown.
        ProviderDisabledError: If the provider lacks required credentials.
    """
    provider_name = (name or settings.provider.name).lower()

    if provider_name == "ollama":
        from pump_cpq.llm.ollama import OllamaProvider
        provider = OllamaProvider(**kwargs)
    elif provider_name == "openai":
        from pump_cpq.llm.openai_provider import OpenAIProvider
        provider = OpenAIProvider(**kwargs)
    else:
        raise ValueError(f"Unknown AI provider: {provider_name}")

    logger.info("Chat provider initialized: %s (model: %s)", provider_name, provider.model)
    return provider
