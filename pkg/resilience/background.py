"""
Detached background tasks.

Side effects that must never fail the request that triggered them.
"""
import asyncio
from typing import Any, Coroutine, Optional

from pkg.logger.logger import get_logger


logger = get_logger(__name__)


class BackgroundTaskRunner:
    """
    Spawn-and-forget runner.

    Keeps a strong reference to every task until it finishes (the event loop
    only holds weak ones) and logs failures instead of propagating them.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        """Number of tasks still running."""
        return len(self._tasks)

    def spawn(
        self,
        coro: Coroutine[Any, Any, Any],
        name: Optional[str] = None,
    ) -> asyncio.Task:
        """
        Schedule ``coro`` without awaiting it.

        Args:
            coro: Coroutine to run.
            name: Task name, shown in failure logs.

        Returns:
            The scheduled task.
        """
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.debug("Background task cancelled", task=task.get_name())
            return
        error = task.exception()
        if error is not None:
            logger.error(
                "Background task failed",
                task=task.get_name(),
                error=repr(error),
                exc_info=(type(error), error, error.__traceback__),
            )

    async def drain(self, timeout: Optional[float] = None) -> None:
        """
        Wait for every pending task to finish.

        Args:
            timeout: Upper bound in seconds; tasks still running afterwards
                are cancelled.
        """
        while self._tasks:
            tasks = list(self._tasks)
            done, pending = await asyncio.wait(tasks, timeout=timeout)
            if pending:
                logger.warning("Cancelling unfinished background tasks", count=len(pending))
                for task in pending:
                    task.cancel()
                await asyncio.gather(*pending, return_exceptions=True)
                return
