"""Process-wide ticking clock for the countdown board.

Runs as a single asyncio task on the caller's event loop. Each interval it
advances every armed countdown at once (`pipeline.advance()`), then hands
each expired sub-order to `pipeline.fire()` on a worker thread so that the
blocking backend request never holds up the loop or the next tick.
"""

import asyncio

import structlog

logger = structlog.get_logger(__name__)


class TickingClock:
    def __init__(self, pipeline, interval: float = 1.0):
        if interval <= 0:
            raise ValueError("Tick interval must be positive")
        self.pipeline = pipeline
        self.interval = interval
        self.ticks = 0
        self._task: asyncio.Task | None = None
        self._firing: set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def pending(self) -> int:
        """Automatic pickups still waiting on the backend."""
        return len(self._firing)

    def start(self) -> asyncio.Task:
        """Start ticking on the running event loop. Starting twice is a no-op."""
        if not self.running:
            self._task = asyncio.get_running_loop().create_task(self._run(), name="countdown-clock")
            logger.info("Countdown clock started", interval=self.interval)
        return self._task

    def cancel(self) -> None:
        """Stop ticking without waiting; pickups already sent are left to finish."""
        if self._task is None:
            return
        self._task.cancel()
        self._task = None
        logger.info("Countdown clock cancelled", ticks=self.ticks)

    async def stop(self) -> None:
        """Stop ticking and wait for pickups already sent to finish."""
        if self._task is None:
            return
        task, self._task = self._task, None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        if self._firing:
            await asyncio.gather(*self._firing, return_exceptions=True)
        logger.info("Countdown clock stopped", ticks=self.ticks)

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            self.ticks += 1
            for sub_order_id in self.pipeline.advance():
                self._fire(sub_order_id)

    def _fire(self, sub_order_id: str) -> None:
        task = asyncio.create_task(
            asyncio.to_thread(self.pipeline.fire, sub_order_id),
            name=f"pickup-{sub_order_id}",
        )
        self._firing.add(task)
        task.add_done_callback(self._fired)

    def _fired(self, task: asyncio.Task) -> None:
        self._firing.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Automatic pickup crashed", task=task.get_name(), error=str(exc))
