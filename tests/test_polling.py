"""Unit tests for the media readiness state machine."""

import pytest

from calsnap.oracle.polling import MediaPoller, PollState, next_poll_state

pytestmark = pytest.mark.unit


class TestNextPollState:
    @pytest.mark.parametrize("attempt, status, expected", [
        (1, "PROCESSING", PollState.PENDING),
        (1, "ACTIVE", PollState.ACTIVE),
        (1, "FAILED", PollState.FAILED),
        (3, None, PollState.PENDING),
        (5, "PROCESSING", PollState.TIMED_OUT),
        (5, "ACTIVE", PollState.ACTIVE),
        (5, "FAILED", PollState.FAILED),
    ])
    def test_transitions(self, attempt, status, expected):
        assert next_poll_state(attempt, status, max_attempts=5) is expected

    def test_terminal_states(self):
        assert not PollState.PENDING.is_terminal
        assert all(state.is_terminal for state in (PollState.ACTIVE, PollState.FAILED, PollState.TIMED_OUT))


class TestMediaPoller:
    async def test_sleeps_between_checks_until_active(self):
        statuses = iter(["PROCESSING", None, "ACTIVE"])
        sleeps = []

        async def check():
            return next(statuses)

        async def fake_sleep(seconds):
            sleeps.append(seconds)

        state = await MediaPoller(max_attempts=10, interval=1.0, sleep=fake_sleep).wait(check)

        assert state is PollState.ACTIVE
        assert sleeps == [1.0, 1.0]

    async def test_times_out_after_ceiling(self):
        checks = []

        async def check():
            checks.append(1)
            return "PROCESSING"

        async def fake_sleep(seconds):
            return None

        state = await MediaPoller(max_attempts=30, sleep=fake_sleep).wait(check)

        assert state is PollState.TIMED_OUT
        assert len(checks) == 30

    async def test_failed_stops_immediately(self):
        async def check():
            return "FAILED"

        async def fake_sleep(seconds):
            raise AssertionError("should not sleep")

        assert await MediaPoller(max_attempts=3, sleep=fake_sleep).wait(check) is PollState.FAILED
