"""
Media readiness polling.

The uploaded file's processing state is polled at a fixed interval until the
remote side reports ACTIVE or FAILED, or the attempt ceiling is reached. The
decision logic is the pure function next_poll_state so the policy can be
tested without waiting.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional

from calsnap.constants import ORACLE_SETTINGS

logger = logging.getLogger(__name__)

REMOTE_ACTIVE = "ACTIVE"
REMOTE_FAILED = "FAILED"


class PollState(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    FAILED = "failed"
    TIMED_OUT = "timed_out"

    @property
    def is_terminal(self) -> bool:
        return self is not PollState.PENDING


def next_poll_state(attempt: int, status: Optional[str], max_attempts: int) -> PollState:
    """
    Transition after a status check.

    Args:
        attempt: Number of status checks made so far, including this one
        status: Remote state reported by this check, None if the check itself failed
        max_attempts: Attempt ceiling

    Returns:
        The new PollState
    """
    if status == REMOTE_ACTIVE:
        return PollState.ACTIVE
    if status == REMOTE_FAILED:
        return PollState.FAILED
    if attempt >= max_attempts:
        return PollState.TIMED_OUT
    return PollState.PENDING


@dataclass
class MediaPoller:
    """Drives next_poll_state with real (or injected) sleeps between checks."""
    max_attempts: int
    interval: float = ORACLE_SETTINGS.POLL_INTERVAL_SECONDS
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep

    async def wait(self, check_status: Callable[[], Awaitable[Optional[str]]]) -> PollState:
        attempt = 0
        while True:
            status = await check_status()
            attempt += 1
            state = next_poll_state(attempt, status, self.max_attempts)
            logger.info("Media processing status %s (attempt %d/%d)", status, attempt, self.max_attempts)
            if state.is_terminal:
                return state
            await self.sleep(self.interval)
