"""
Shared HTTP plumbing for chat providers.

Each provider only builds its payload and reads its reply; the retry
loop with exponential backoff and the error mapping live here.
"""

import json
import logging
import re
import time
from typing import Any, Optional

import httpx

from pump_cpq.config import settings
from pump_cpq.llm.types import (
    ChatMessage,
    ProviderResponseError,
    ProviderTimeoutError,
    ProviderUnavailableError,
)

logger = logging.getLogger(__name__)

_THINK_BLOCK = re.compile(r"<think(?:ing)?>.*?</think(?:ing)?>\s*", re.DOTALL | re.IGNORECASE)
_THINK_TAG = re.compile(r"</?think(?:ing)?>\s*", re.IGNORECASE)


def strip_thinking_blocks(text: str) -> str:
    """Remove ``<think>...</think>`` reasoning blocks some local models emit."""
    text = _THINK_BLOCK.sub("", text)
    return _THINK_TAG.sub("", text).strip()


class HTTPChatProvider:
    """Base class for providers reached over a JSON HTTP API."""

    name = "http"

    def __init__(
        self,
        base_url: str,
        model: str,
        *,
        headers: Optional[dict[str, str]] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout if timeout is not None else settings.provider.timeout_sec
        self.max_retries = max_retries if max_retries is not None else settings.provider.max_retries
        self.retry_delay = (
            retry_delay if retry_delay is not None else settings.provider.retry_delay_sec
        )
        self.client = client or httpx.Client(
            timeout=httpx.Timeout(5.0, read=self.timeout),
            headers=headers,
        )

    def _endpoint(self) -> str:
        raise NotImplementedError

    @staticmethod
    def _messages(system_instruction: str, user_prompt: str) -> list[ChatMessage]:
        return [
            {"role": "system", "content": system_instruction},
            {"role": "user", "content": user_prompt},
        ]

    def _build_payload(
        self, system_instruction: str, user_prompt: str, force_json: bool, temperature: Optional[float]
    ) -> dict[str, Any]:
        raise NotImplementedError

    def _extract_text(self, data: dict[str, Any]) -> str:
        raise NotImplementedError

    def chat(
        self,
        system_instruction: str,
        user_prompt: str,
        *,
        force_json: bool = False,
        temperature: Optional[float] = None,
    ) -> str:
        """
        Send one system+user exchange and return the reply text.

        Raises:
            ProviderTimeoutError: Every attempt timed out.
            ProviderUnavailableError: The backend could not be reached or dropped the connection.
            ProviderResponseError: The backend answered with an error or bad payload.
        """
        payload = self._build_payload(system_instruction, user_prompt, force_json, temperature)
        url = f"{self.base_url}{self._endpoint()}"

        for attempt in range(self.max_retries):
            try:
                response = self.client.post(url, json=payload)
                response.raise_for_status()
                text = self._extract_text(response.json())
                logger.debug("%s chat success (model: %s)", self.name, self.model)
                return strip_thinking_blocks(text or "")

            except httpx.TimeoutException as e:
                logger.warning("%s timeout (attempt %d/%d)", self.name, attempt + 1, self.max_retries)
                if attempt == self.max_retries - 1:
                    raise ProviderTimeoutError(
                        f"{self.name} timed out after {self.max_retries} attempts"
                    ) from e

            except httpx.ConnectError as e:
                logger.warning(
                    "%s connection refused (attempt %d/%d)", self.name, attempt + 1, self.max_retries
                )
                if attempt == self.max_retries - 1:
                    raise ProviderUnavailableError(f"{self.name} is not reachable at {self.base_url}") from e

            except httpx.TransportError as e:
                logger.warning(
                    "%s transport error %s (attempt %d/%d)",
                    self.name, type(e).__name__, attempt + 1, self.max_retries,
                )
                if attempt == self.max_retries - 1:
                    raise ProviderUnavailableError(f"{self.name} connection failed: {e}") from e

            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                if status < 500:
                    # Client errors don't retry
                    raise ProviderResponseError(f"HTTP {status}: {e.response.text}") from e
                logger.warning(
                    "%s server error %d (attempt %d/%d)", self.name, status, attempt + 1, self.max_retries
                )
                if attempt == self.max_retries - 1:
                    raise ProviderResponseError(f"Server error: {status}") from e

            except (KeyError, IndexError, TypeError, json.JSONDecodeError, httpx.DecodingError) as e:
                logger.error("Invalid response from %s: %s", self.name, e)
                raise ProviderResponseError(f"Invalid response format: {e}") from e

            time.sleep(self.retry_delay * (2 ** attempt))

        raise ProviderResponseError(f"{self.name} returned no response")

    def close(self) -> None:
        self.client.close()
