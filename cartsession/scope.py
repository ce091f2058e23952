"""Task scope tied to a component's lifetime.

Work started through a scope is cancelled when the scope closes, and a
closed scope refuses new work. A load that resolves after teardown is
therefore never applied.
"""

import asyncio
from typing import Any, Coroutine, Optional

from cartsession.logging import get_logger

logger = get_logger(__name__)


class ScopeClosed(RuntimeError):
    """Raised when work is started on a closed scope."""


class TaskScope:
    """Owns a set of asyncio tasks and cancels them together."""

    def __init__(self, name: str = "scope"):
        self.name = name
        self._tasks: set[asyncio.Task] = set()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def spawn(self, coro: Coroutine[Any, Any, Any], name: Optional[str] = None) -> asyncio.Task:
        """Schedule a coroutine on the running loop under this scope."""
        if self._closed:
            coro.close()
            raise ScopeClosed(f"{self.name} is closed")
        task = asyncio.ensure_future(coro)
        if name:
            task.set_name(name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Task {task.get_name()} in {self.name} failed: {exc}", exc_info=exc)

    async def wait(self) -> None:
        """Wait until every task currently in the scope has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def aclose(self) -> None:
        """Cancel outstanding tasks and wait for them to unwind."""
        self._closed = True
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()

    def __len__(self) -> int:
        return len(self._tasks)
