"""
In-memory trace of tool invocations.

Each catalog search, selection, validation and pricing call is recorded
with its input, output, duration and outcome. Writing the trace anywhere
is left to the caller.
"""

import dataclasses
import logging
import time
from typing import Any, Callable, Optional, TypeVar

from pydantic import BaseModel

from pump_cpq.schemas.conversation_schema import ToolCall

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _serialize(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: _serialize(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, (list, tuple)):
        return [_serialize(item) for item in value]
    if isinstance(value, dict):
        return {key: _serialize(item) for key, item in value.items()}
    return value


class ToolTrace:
    """Records ToolCall entries into a list owned by the session state."""

    def __init__(self, calls: Optional[list[ToolCall]] = None) -> None:
        self.calls: list[ToolCall] = calls if calls is not None else []

    def record(
        self,
        tool: str,
        payload: dict[str, Any],
        output: Any,
        duration_ms: float,
        success: bool = True,
        error: Optional[str] = None,
    ) -> ToolCall:
        call = ToolCall(
            tool=tool,
            input=_serialize(payload),
            output=_serialize(output),
            duration_ms=round(duration_ms, 3),
            success=success,
            error=error,
        )
        self.calls.append(call)
        logger.debug("Tool %s %s in %.1fms", tool, "ok" if success else "failed", duration_ms)
        return call

    def run(self, tool: str, payload: dict[str, Any], func: Callable[..., T], *args, **kwargs) -> T:
        """Call ``func`` and record the call. Exceptions are recorded and re-raised."""
        start = time.perf_counter()
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            self.record(tool, payload, None, (time.perf_counter() - start) * 1000, False, str(e))
            raise
        self.record(tool, payload, result, (time.perf_counter() - start) * 1000)
        return result

    def summary(self) -> dict[str, Any]:
        by_tool: dict[str, int] = {}
        for call in self.calls:
            by_tool[call.tool] = by_tool.get(call.tool, 0) + 1
        return {
            "total_calls": len(self.calls),
            "failed_calls": sum(1 for call in self.calls if not call.success),
            "total_duration_ms": round(sum(call.duration_ms for call in self.calls), 3),
            "by_tool": by_tool,
        }
