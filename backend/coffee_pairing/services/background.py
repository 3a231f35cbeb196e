"""
Fire-and-forget task dispatch for side effects outside the pairing transaction.
"""
import asyncio
import logging
from typing import Coroutine, Any

logger = logging.getLogger(__name__)


class TaskDispatcher:
    """
    Schedules coroutines as asyncio tasks and logs their failures.

    Callers only learn that a task was submitted. A reference to each task is
    held until it finishes so it is not garbage collected mid-flight.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task] = set()

    def submit(self, coro: Coroutine[Any, Any, Any], description: str) -> asyncio.Task:
        task = asyncio.create_task(coro, name=description)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.warning(f"Background task cancelled: {task.get_name()}")
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Background task failed: {task.get_name()}: {exc}", exc_info=exc)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for every submitted task to finish. Failures are already logged."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


dispatcher = TaskDispatcher()
