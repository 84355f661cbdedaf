"""Ollama chat provider (local inference via ``/api/chat``)."""

from typing import Any, Optional

from pump_cpq.config import settings
from pump_cpq.llm.base import HTTPChatProvider


class OllamaProvider(HTTPChatProvider):
    """Non-streaming Ollama chat with optional forced JSON output."""

    name = "ollama"

    def __init__(self, host: Optional[str] = None, model: Optional[str] = None, **kwargs: Any) -> None:
        super().__init__(
            host or settings.provider.ollama_host,
            model or settings.provider.ollama_model,
            **kwargs,
        )

    def _endpoint(self) -> str:
        return "/api/chat"

    def _build_payload(
        self, system_instruction: str, user_prompt: str, force_json: bool, temperature: Optional[float]
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": self._messages(system_instruction, user_prompt),
            "stream": False,
        }
        if force_json:
            payload["format"] = "json"
        if temperature is not None:
            payload["options"] = {"temperature": temperature}
        return payload

    def _extract_text(self, data: dict[str, Any]) -> str:
        return data["message"]["content"]
