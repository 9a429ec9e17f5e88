from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class PeriodicTrigger:
    """Runs an async callback at a fixed rate until stopped.

    Stopping never interrupts a running callback; the loop exits at the next
    wait, so an in-flight cycle always completes.
    """

    def __init__(
        self,
        name: str,
        interval_sec: float,
        callback: Callable[[], Awaitable[None]],
        *,
        initial_delay_sec: float = 0.0,
    ) -> None:
        if interval_sec <= 0:
            raise ValueError(f"interval_sec must be > 0, got {interval_sec}")
        self.name = name
        self.interval_sec = float(interval_sec)
        self.initial_delay_sec = max(0.0, float(initial_delay_sec))
        self._callback = callback
        self._stop_event: Optional[asyncio.Event] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> bool:
        if self.is_running:
            return False
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._run(self._stop_event), name=self.name)
        logger.info("Periodic trigger %s started (interval=%.3fs)", self.name, self.interval_sec)
        return True

    async def stop(self) -> None:
        task = self._task
        if task is None:
            return
        if self._stop_event is not None:
            self._stop_event.set()
        await task
        self._task = None
        logger.info("Periodic trigger %s stopped", self.name)

    async def _wait(self, stop_event: asyncio.Event, delay: float) -> bool:
        """Sleep for ``delay`` seconds; True when a stop was requested meanwhile."""
        try:
            await asyncio.wait_for(stop_event.wait(), timeout=max(0.0, delay))
            return True
        except asyncio.TimeoutError:
            return stop_event.is_set()

    async def _run(self, stop_event: asyncio.Event) -> None:
        loop = asyncio.get_running_loop()
        next_at = loop.time() + self.initial_delay_sec
        if self.initial_delay_sec and await self._wait(stop_event, self.initial_delay_sec):
            return
        while not stop_event.is_set():
            try:
                await self._callback()
            except Exception as exc:
                logger.exception("Periodic trigger %s callback failed: %s", self.name, exc)
            next_at += self.interval_sec
            delay = next_at - loop.time()
            if delay < 0:
                # Fell behind; resume from now instead of bursting to catch up.
                next_at = loop.time()
                delay = 0.0
            if await self._wait(stop_event, delay):
                return
