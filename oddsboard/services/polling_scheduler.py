"""Polling scheduler driving recurring odds update ticks"""
import asyncio
from typing import Optional, Set

from ..storage.models import MODE_API
from ..storage.selectors import (
    select_is_auto_update_enabled,
    select_matches_count,
    select_polling_interval,
    select_update_mode,
)
from ..storage.store import MatchStore
from ..utils.logger import setup_logger

logger = setup_logger(__name__)


class PollingScheduler:
    """Owns the single recurring update timer"""

    def __init__(self, store: MatchStore, trend_reset_delay: float = 2.0):
        """
        Initialize polling scheduler

        Args:
            store: Match store whose updates are driven
            trend_reset_delay: Seconds after a tick before trends reset to neutral
        """
        self.store = store
        self.trend_reset_delay = trend_reset_delay
        self.tick_count = 0
        self._task: Optional[asyncio.Task] = None
        self._in_flight: Set[asyncio.Task] = set()

    @property
    def is_running(self) -> bool:
        return self._task is not None

    def start(self):
        """
        Start the recurring timer

        Restarts if already running. Interval and update mode are read
        once here; call start() again to pick up changes.
        """
        if self._task is not None:
            self.stop()

        interval_ms = select_polling_interval(self.store.state)
        update_mode = select_update_mode(self.store.state)
        logger.info(f"Starting auto-updates with {update_mode} mode, interval: {interval_ms}ms")

        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run(interval_ms / 1000, update_mode))

    def stop(self):
        """Cancel the timer; in-flight fetches still complete"""
        if self._task is None:
            return
        self._task.cancel()
        self._task = None
        logger.info("Stopped auto-updates")

    async def _run(self, interval: float, update_mode: str):
        while True:
            await asyncio.sleep(interval)
            self._tick(update_mode)

    def _tick(self, update_mode: str):
        """Fire one poll tick"""
        state = self.store.state
        if not select_is_auto_update_enabled(state) or select_matches_count(state) == 0:
            logger.debug("Skipping tick: auto-update disabled or no matches")
            return

        self.tick_count += 1
        use_real_api = update_mode == MODE_API
        if use_real_api:
            self.store.increment_api_call_count()

        task = asyncio.create_task(self.store.fetch_updates(use_real_api))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

        asyncio.get_running_loop().call_later(self.trend_reset_delay, self.store.reset_trends)
