from pump_cpq.llm.provider import ChatProvider
from pump_cpq.llm.provider_factory import create_provider
from pump_cpq.llm.types import (
    ProviderDisabledError,
    ProviderError,
    ProviderResponseError,
    ProviderTimeoutError,
    ProviderUnavailableError,
)

__all__ = [
    "ChatProvider", "create_provider",
    "ProviderError", "ProviderTimeoutError", "ProviderUnavailableError",
    "ProviderDisabledError", "ProviderResponseError",
]
