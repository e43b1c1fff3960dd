"""
Periodic autosave on the asyncio event loop.

The task runs a save callable at a fixed interval until it is stopped.
A failed write is logged and the loop carries on; the next tick retries
with whatever state is current then.
"""

import asyncio
import logging
from typing import Callable, Optional

from .errors import WriteError

logger = logging.getLogger(__name__)

AUTOSAVE_INTERVAL_SECONDS = 5.0


class AutosaveTask:
    """
    Cancellable periodic save.

    Example:
        >>> autosave = AutosaveTask(session.save)
        >>> autosave.start()        # inside a running event loop
        >>> ...
        >>> await autosave.stop()
    """

    def __init__(
        self,
        save: Callable[[], object],
        interval: float = AUTOSAVE_INTERVAL_SECONDS,
    ):
        self.save = save
        self.interval = interval
        self.ticks = 0
        self.failures = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the loop on the running event loop."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.debug("Autosave started (every %.1fs)", self.interval)

    async def stop(self) -> None:
        """Cancel the loop and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.debug("Autosave stopped after %d ticks", self.ticks)

    def tick(self) -> None:
        """Run one save; write failures are logged, never raised."""
        self.ticks += 1
        try:
            if self.save() is False:
                self.failures += 1
        except WriteError as e:
            self.failures += 1
            logger.warning("Autosave failed: %s", e)

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            self.tick()
