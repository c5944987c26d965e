"""Main entry point for the odds board"""
import asyncio
import signal
import sys
from typing import Optional

from .config import Config
from .services.events_fetcher import EventsFetcher
from .services.normalizer import EventNormalizer
from .services.polling_scheduler import PollingScheduler
from .services.update_generator import UpdateGenerator
from .storage.selectors import (
    select_api_call_count,
    select_can_retry,
    select_connection_status,
    select_hot_matches,
    select_matches_count,
    select_matches_error,
)
from .storage.store import MatchStore
from .utils.logger import setup_logger

logger = setup_logger(__name__)


class OddsBoard:
    """Main board orchestrator"""

    def __init__(self, config: Optional[Config] = None):
        """Initialize board components"""
        self.config = config or Config()
        self.running = False

        # Initialize services
        self.fetcher = EventsFetcher(
            url=self.config.events_url,
            timeout=self.config.request_timeout,
            retry_attempts=self.config.retry_attempts,
            retry_delay=self.config.retry_delay
        )
        self.normalizer = EventNormalizer(display_timezone=self.config.display_timezone)
        self.generator = UpdateGenerator(
            update_probability=self.config.update_probability,
            volatility=self.config.volatility
        )
        self.store = MatchStore(
            fetcher=self.fetcher,
            normalizer=self.normalizer,
            generator=self.generator,
            snapshot_path=self.config.snapshot_path,
            default_source=self.config.data_source,
            max_retries=self.config.max_retries,
            polling_interval=self.config.polling_interval_ms,
            update_mode=self.config.update_mode,
            trend_reset_delay=self.config.trend_reset_delay
        )
        self.scheduler = PollingScheduler(
            store=self.store,
            trend_reset_delay=self.config.trend_reset_delay
        )

    def _signal_handler(self, signum, frame):
        """Handle shutdown signals"""
        logger.info(f"Received signal {signum}, shutting down gracefully...")
        self.running = False

    async def start(self):
        """Start the board"""
        self.running = True
        logger.info("Starting odds board...")

        # Setup signal handlers for graceful shutdown
        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

        if self.config.data_source == "api":
            healthy = await asyncio.to_thread(self.fetcher.check_health)
            logger.info(f"Events endpoint health: {'ok' if healthy else 'unreachable'}")

        loaded = await self.load_with_retry()
        if not loaded:
            logger.error(f"Giving up on initial load: {select_matches_error(self.store.state)}")
            return

        self.scheduler.start()
        refresh_task = None
        if self.config.refresh_interval:
            refresh_task = asyncio.create_task(self._refresh_loop())

        try:
            # Run until stopped
            while self.running:
                await asyncio.sleep(self.config.polling_interval_ms / 1000)
                self._log_summary()
        finally:
            # Stop services
            logger.info("Stopping services...")
            self.scheduler.stop()
            if refresh_task:
                refresh_task.cancel()
            logger.info("Board stopped")

    async def load_with_retry(self) -> bool:
        """Run the initial load until it succeeds or retries run out"""
        while True:
            if await self.store.load_initial():
                return True
            if not self.running or not select_can_retry(self.store.state):
                return False
            delay = self.config.retry_delay * self.store.state.retry_count
            logger.warning(f"Initial load failed, retrying in {delay:.1f}s")
            await asyncio.sleep(delay)

    async def _refresh_loop(self):
        """Background loop for full collection refreshes"""
        logger.info("Starting refresh loop...")
        while self.running:
            try:
                await asyncio.sleep(self.config.refresh_interval * 60)
                if self.running:
                    await self.store.refresh_all()
            except asyncio.CancelledError:
                break

    def _log_summary(self):
        state = self.store.state
        logger.info(
            f"Board: {select_matches_count(state)} matches "
            f"({len(select_hot_matches(state))} hot), "
            f"status={select_connection_status(state)}, "
            f"api_calls={select_api_call_count(state)}"
        )
        error = select_matches_error(state)
        if error:
            logger.warning(f"Current error: {error}")


async def main():
    """Main entry point"""
    try:
        board = OddsBoard()
        await board.start()
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
