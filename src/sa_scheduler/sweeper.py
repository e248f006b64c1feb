"""Periodic trigger for the two lifecycle sweeps.

Every tick closes due auctions first and then breaches overdue contracts, so
a slot whose auction and contract both lapsed between ticks is handled in
order. A failing tick is logged and the loop keeps going.
"""

import asyncio
import contextlib
import logging

from src.sa_auction.engine.lifecycle import LifecycleEngine

logger = logging.getLogger(__name__)


class SweepScheduler:
    def __init__(self, engine: LifecycleEngine, interval_seconds: float = 60.0) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._engine = engine
        self._interval = interval_seconds
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            logger.warning("Sweep scheduler is already running")
            return
        logger.info("Starting sweep scheduler (every %.0fs)", self._interval)
        self._task = asyncio.create_task(self._loop(), name="lifecycle-sweeps")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Sweep scheduler stopped")

    async def run_once(self) -> None:
        closed = await self._engine.close_due_auctions()
        breached = await self._engine.breach_overdue_contracts()
        if closed.processed or closed.failed or breached.processed or breached.failed:
            logger.info(
                "Sweep tick: closed=%d close_failed=%d breached=%d breach_failed=%d",
                len(closed.processed),
                len(closed.failed),
                len(breached.processed),
                len(breached.failed),
            )

    async def _loop(self) -> None:
        while True:
            try:
                await self.run_once()
            except Exception:
                logger.exception("Sweep tick failed")
            await asyncio.sleep(self._interval)
