"""
Polling of a build-run until it reaches a terminal state.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from datetime import timedelta
from enum import Enum

from rebuilder.core.exceptions import ExecutionFailedError, WaitTimeoutError
from rebuilder.core.logging import get_logger
from rebuilder.models.resources import SUCCEEDED_CONDITION, BuildRun

logger = get_logger(__name__)

DEFAULT_POLL_INTERVAL = 10.0


class WaitState(Enum):
    """States of a build-run wait."""

    POLLING = "polling"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


def evaluate(build_run: BuildRun) -> WaitState:
    """Map a build-run's Succeeded condition to a wait state."""
    condition = build_run.get_condition(SUCCEEDED_CONDITION)
    if condition is None:
        return WaitState.POLLING

    if condition.status == "True":
        # status can flip before completionTime is written
        if build_run.completion_time is not None:
            return WaitState.SUCCEEDED
        return WaitState.POLLING

    if condition.status == "False":
        return WaitState.FAILED

    return WaitState.POLLING


class CompletionWaiter:
    """Waits for build-runs by re-fetching them at a fixed interval."""

    def __init__(
        self,
        fetch: Callable[[str, str], Awaitable[BuildRun]],
        interval: float = DEFAULT_POLL_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._fetch = fetch
        self._interval = interval
        self._clock = clock
        self._sleep = sleep

    async def wait(self, build_run: BuildRun, timeout: timedelta) -> BuildRun:
        """
        Poll ``build_run`` until it succeeds, fails or ``timeout`` elapses.

        The first check happens immediately.

        Returns:
            The build-run as last fetched, in its succeeded state

        Raises:
            ExecutionFailedError: If the Succeeded condition turns False
            WaitTimeoutError: If no terminal state is reached in time
            ClusterAPIError: If fetching the build-run fails
        """
        deadline = self._clock() + timeout.total_seconds()
        logger.info(f"Waiting up to {timeout} for build-run {build_run.name}")

        while True:
            build_run = await self._fetch(build_run.namespace, build_run.name)
            state = evaluate(build_run)

            if state is WaitState.SUCCEEDED:
                logger.info(f"Build-run {build_run.name} succeeded")
                return build_run

            if state is WaitState.FAILED:
                condition = build_run.get_condition(SUCCEEDED_CONDITION)
                raise ExecutionFailedError(build_run.name, condition.message, condition.reason)

            if self._clock() >= deadline:
                raise WaitTimeoutError(build_run.name, timeout)

            await self._sleep(self._interval)
