import asyncio
import logging
from typing import Awaitable, Callable, Optional

from .config import POLL_DELAY


class Poller:
    """Re-polls the tracker some time after each heart rate sample"""

    def __init__(self, write: Callable[[], Awaitable[None]], delay: float = POLL_DELAY,
                 log: Optional[logging.Logger] = None):
        self.write = write
        self.delay = delay
        self.log = log or logging.getLogger("Poller")
        self.polls_sent = 0
        self._kick = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self):
        if self._task is None:
            self._task = asyncio.create_task(self.run())

    def kick(self):
        """Arm the timer, restarting it if a poll is already pending."""
        self._kick.set()

    async def run(self):
        while True:
            await self._kick.wait()
            self._kick.clear()

            # Every kick within the delay restarts the timer
            while True:
                try:
                    await asyncio.wait_for(self._kick.wait(), self.delay)
                except asyncio.TimeoutError:
                    break
                self._kick.clear()

            try:
                await self.write()
            except Exception as e:
                self.log.error(f"Poll write failed, heart rate polling stopped: {e}")
                return

            self.polls_sent += 1
            self.log.debug(f"Poll sent ({self.polls_sent})")

    async def stop(self):
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
