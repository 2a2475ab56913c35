import asyncio
import contextlib
from typing import Any, Awaitable, Callable, Optional
from settings import POLL_INTERVAL_SECONDS, logger


class Poller:
    """Runs `fetch` now and then every `interval` seconds until stopped."""

    def __init__(self, fetch: Callable[[], Awaitable[Any]], interval: float = POLL_INTERVAL_SECONDS, name: str = "poller"):
        self.fetch = fetch
        self.interval = interval
        self.name = name
        self.runs = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name=self.name)
        logger.debug("Poller started", extra={"poller": self.name, "interval": self.interval})

    async def _loop(self) -> None:
        while True:
            try:
                await self.fetch()
                self.runs += 1
            except Exception as e:
                # Keep polling; the next tick may succeed
                logger.warning("Poll failed", extra={"poller": self.name, "error": str(e)})
            await asyncio.sleep(self.interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        task, self._task = self._task, None
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.debug("Poller stopped", extra={"poller": self.name, "runs": self.runs})
