"""
Tracking of background rebuild tasks for graceful shutdown.
"""

import asyncio
from collections.abc import Coroutine
from typing import Any

from rebuilder.core.logging import get_logger

logger = get_logger(__name__)


class TaskTracker:
    """Set of in-flight background tasks, owned by the webhook server."""

    def __init__(self, limit: int | None = None):
        self._tasks: set[asyncio.Task] = set()
        self._slots = asyncio.Semaphore(limit) if limit else None

    async def _run(self, coro: Coroutine[Any, Any, Any]) -> Any:
        if self._slots is None:
            return await coro
        async with self._slots:
            return await coro

    def track(self, coro: Coroutine[Any, Any, Any], name: str | None = None) -> asyncio.Task:
        """Schedule ``coro`` as a tracked task."""
        task = asyncio.create_task(self._run(coro), name=name)
        self._tasks.add(task)
        task.add_done_callback(self.untrack)
        # a job cancelled while queued for a slot was never started
        task.add_done_callback(lambda _: coro.close())
        return task

    def untrack(self, task: asyncio.Task) -> None:
        """Forget a finished task, logging anything it raised."""
        self._tasks.discard(task)
        if task.cancelled():
            logger.warning(f"Background task {task.get_name()} was cancelled")
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Background task {task.get_name()} failed: {exc!r}")

    async def wait_all(self) -> None:
        """Wait until no task is tracked, including tasks added meanwhile."""
        while self._tasks:
            await asyncio.wait(set(self._tasks))

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, task: asyncio.Task) -> bool:
        return task in self._tasks
