"""
Task manager for the fire-and-forget remote calls of a device.

Keeps a reference to every task so none is garbage collected mid-flight,
logs tasks that die with an unexpected exception and cancels whatever is
still running on shutdown.
"""

import asyncio
import logging
from typing import Any, Coroutine, Set

_logger = logging.getLogger(__name__)


class TaskManager:
    """Manages asyncio tasks with proper lifecycle handling"""

    def __init__(self, name: str = "TaskManager"):
        self.name = name
        self._tasks: Set[asyncio.Task] = set()
        self._shutdown = False

    def create_task(self, coro: Coroutine[Any, Any, Any], name: str = "unnamed") -> asyncio.Task:
        """Create a tracked task"""
        if self._shutdown:
            coro.close()
            _logger.warning(f"{self.name}: Task '{name}' blocked - shutting down")
            raise RuntimeError(f"{self.name} is shutting down")

        task = asyncio.create_task(coro, name=f"{self.name}:{name}")
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

        _logger.debug(f"{self.name}: Created task '{name}' ({len(self._tasks)} active)")
        return task

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            _logger.error(
                f"{self.name}: Task '{task.get_name()}' failed: {error}",
                exc_info=error,
            )

    async def wait_all(self) -> None:
        """Wait until every tracked task has finished, including ones started meanwhile"""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def cancel_all(self, timeout: float = 5.0) -> None:
        """Cancel whatever is still running and wait up to `timeout` for it to unwind"""
        pending = [task for task in self._tasks if not task.done()]
        if not pending:
            self._tasks.clear()
            return

        _logger.info(
            f"{self.name}: Cancelling {len(pending)} task(s): "
            f"{', '.join(task.get_name() for task in pending)}"
        )
        for task in pending:
            task.cancel()

        _, still_running = await asyncio.wait(pending, timeout=timeout)
        if still_running:
            _logger.warning(
                f"{self.name}: {len(still_running)} task(s) ignored cancellation for {timeout}s"
            )
        self._tasks.clear()

    def get_active_count(self) -> int:
        """Get count of active tasks"""
        return len([task for task in self._tasks if not task.done()])

    async def shutdown(self) -> None:
        """Shutdown the task manager"""
        _logger.info(f"{self.name}: Shutting down")
        self._shutdown = True
        await self.cancel_all()

    def __len__(self) -> int:
        return self.get_active_count()
