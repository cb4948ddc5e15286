"""
Ownership of fire-and-forget background tasks.

Gateway callbacks (auth state changes, realtime inserts) are synchronous,
so the async work they trigger runs as tasks. Each long-lived service owns
one BackgroundTasks and cancels it on close, so nothing applies a result
to a service that has already been torn down.
"""

import asyncio
import logging
from typing import Any, Coroutine, Optional

logger = logging.getLogger(__name__)


class BackgroundTasks:
    """A set of tasks that can be cancelled together."""

    def __init__(self, name: str = "background"):
        self._name = name
        self._tasks: set[asyncio.Task] = set()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Coroutine[Any, Any, Any], name: Optional[str] = None) -> Optional[asyncio.Task]:
        """
        Schedule a coroutine on the running loop.

        Returns:
            The created task, or None if the group is already closed.
        """
        if self._closed:
            coro.close()
            return None
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    async def wait(self) -> None:
        """Wait until every task spawned so far has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        """Cancel every outstanding task and refuse new ones."""
        self._closed = True
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(
                f"{self._name} task {task.get_name()} failed: {error!r}",
                exc_info=error,
            )
