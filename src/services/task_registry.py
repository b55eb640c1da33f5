import asyncio
import logging
from typing import Any, Coroutine

logger = logging.getLogger(__name__)


class TaskRegistry:
    """
    Tracks fire-and-forget background tasks so they can be drained.

    Failures inside a task are logged and swallowed; there is no caller left
    to report them to. The registry only exists to make outstanding work
    observable for shutdown and tests.
    """

    def __init__(self):
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        """Number of tasks that have not finished yet."""
        return len(self._tasks)

    async def _run(self, coro: Coroutine[Any, Any, Any], name: str) -> None:
        try:
            await coro
        except Exception as e:
            logger.error(f"Background task {name} failed: {str(e)}")

    def schedule(self, coro: Coroutine[Any, Any, Any], name: str | None = None) -> asyncio.Task:
        """Start a coroutine in the background without awaiting it."""
        task_name = name or getattr(coro, "__name__", "background-task")
        task = asyncio.create_task(self._run(coro, task_name), name=task_name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        logger.debug(f"Task {task_name} started in background ({len(self._tasks)} in flight)")
        return task

    async def drain(self) -> None:
        """Wait until every task currently in flight has settled."""
        if not self._tasks:
            return
        tasks = list(self._tasks)
        logger.info(f"Draining {len(tasks)} background task(s)")
        await asyncio.gather(*tasks, return_exceptions=True)


# Global task registry instance
task_registry = TaskRegistry()
