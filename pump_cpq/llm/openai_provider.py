"""OpenAI-compatible chat provider (``/chat/completions``)."""

from typing import Any, Optional

from pump_cpq.config import settings
from pump_cpq.llm.base import HTTPChatProvider
from pump_cpq.llm.types import ProviderDisabledError


class OpenAIProvider(HTTPChatProvider):
    """Chat completions against OpenAI or any compatible endpoint."""

    name = "openai"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        key = api_key if api_key is not None else settings.provider.openai_api_key
        if not key:
            raise ProviderDisabledError("OPENAI_API_KEY is not set")
        super().__init__(
            base_url or settings.provider.openai_base_url,
            model or settings.provider.openai_model,
            headers={"Authorization": f"Bearer {key}"},
            **kwargs,
        )

    def _endpoint(self) -> str:
        return "/chat/completions"

    def _build_payload(
        self, system_instruction: str, user_prompt: str, force_json: bool, temperature: Optional[float]
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": self._messages(system_instruction, user_prompt),
        }
        if force_json:
            payload["response_format"] = {"type": "json_object"}
        if temperature is not None:
            payload["temperature"] = temperature
        return payload

    def _extract_text(self, data: dict[str, Any]) -> str:
        return data["choices"][0]["message"]["content"]
