"""Bounded wait for an external configuration approval signal."""

import logging
import threading

from pump_cpq.schemas.conversation_schema import ApprovalOutcome

logger = logging.getLogger(__name__)


class ApprovalGate:
    """
    One-shot approval signal shared between a session and its controller.

    ``approve(True)`` releases a waiting session immediately. A rejection
    is remembered but does not end the wait, so the session still runs
    the full timeout before proceeding.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._rejected = False

    def approve(self, approved: bool = True) -> None:
        if approved:
            self._rejected = False
            self._event.set()
        else:
            self._rejected = True
        logger.info("Approval signal received: %s", "approved" if approved else "rejected")

    def wait(self, timeout: float) -> ApprovalOutcome:
        """Block for at most ``timeout`` seconds and report what happened."""
        if self._event.wait(timeout):
            return ApprovalOutcome.APPROVED
        if self._rejected:
            return ApprovalOutcome.REJECTED
        return ApprovalOutcome.TIMED_OUT

    def reset(self) -> None:
        self._event.clear()
        self._rejected = False

    @property
    def is_approved(self) -> bool:
        return self._event.is_set()
