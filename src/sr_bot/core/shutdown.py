"""Graceful shutdown handling."""

import asyncio
from typing import Set

from ..utils.logging import get_logger

logger = get_logger(__name__)


class ShutdownHandler:
    """Track in-flight pipeline tasks and stop them on shutdown."""

    def __init__(self):
        self._shutdown_event = asyncio.Event()
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def register_task(self, task: asyncio.Task) -> None:
        """Register a task to be cancelled on shutdown."""
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def wait_for_shutdown(self) -> None:
        """Wait for shutdown signal."""
        await self._shutdown_event.wait()

    def trigger_shutdown(self) -> None:
        """Trigger application shutdown."""
        logger.info("Triggering graceful shutdown")
        self._shutdown_event.set()

    async def cleanup(self) -> None:
        """Cancel registered tasks and wait for their cleanup to finish."""
        logger.info("Starting cleanup process", extra={"pending_tasks": len(self._tasks)})

        tasks = list(self._tasks)
        for task in tasks:
            if not task.done():
                task.cancel()

        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        logger.info("Cleanup complete")
