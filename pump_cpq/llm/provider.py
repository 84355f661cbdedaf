"""Chat provider protocol used by the extractor and question writer."""

from typing import Optional, Protocol


class ChatProvider(Protocol):
    """Interface all chat providers implement."""

    name: str

    def chat(
        self,
        system_instruction: str,
        user_prompt: str,
        *,
        force_json: bool = False,
        temperature: Optional[float] = None,
    ) -> str:
        """Return the assistant's reply text.

        ``force_json`` requests structured output where the backend supports
        it. Callers must still tolerate prose around the payload.
        """
        ...

    def close(self) -> None:
        """Release any held connections."""
        ...
