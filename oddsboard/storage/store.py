"""In-memory match store: state mutators and async load/update/refresh lifecycles"""
import asyncio
import json
import math
from pathlib import Path
from typing import Any, Iterable, List, Optional

from ..services.errors import FetchError, ValidationError
from ..services.events_fetcher import EventsFetcher
from ..services.normalizer import EventNormalizer
from ..services.update_generator import UpdateGenerator
from ..utils.logger import setup_logger
from ..utils.timezone import now_iso
from .models import (
    CONNECTION_STATUSES,
    ERROR_HISTORY_LIMIT,
    ErrorRecord,
    Match,
    MatchId,
    MODE_API,
    OddsDirective,
    OUTCOMES,
    STATUS_CONNECTED,
    STATUS_CONNECTING,
    STATUS_ERROR,
    StoreState,
    TREND_NEUTRAL,
    TRENDS,
    UPDATE_MODES,
    neutral_trends,
)
from .selectors import select_match_by_id

logger = setup_logger(__name__)

SOURCE_API = "api"
SOURCE_JSON = "json"


def _error_message(error: Exception) -> str:
    if isinstance(error, FetchError):
        return f"API Error: {error.message}"
    return str(error)


class MatchStore:
    """Single authority over the match collection and its status flags"""

    def __init__(
        self,
        fetcher: EventsFetcher,
        normalizer: EventNormalizer,
        generator: UpdateGenerator,
        snapshot_path: str = "data/matches.json",
        default_source: str = SOURCE_API,
        max_retries: int = 3,
        polling_interval: int = 5000,
        update_mode: str = MODE_API,
        mock_latency: float = 0.2,
        trend_reset_delay: float = 2.0
    ):
        """
        Initialize match store

        Args:
            fetcher: Events fetcher for the live feed
            normalizer: Normalizer for raw feed events
            generator: Update generator for poll ticks
            snapshot_path: Bundled snapshot used by the 'json' source
            default_source: Source used by load_initial() when none is given
            max_retries: Initial-load failures allowed before giving up
            polling_interval: Poll tick period in milliseconds
            update_mode: 'api' or 'mock'
            mock_latency: Simulated latency of a mock update, in seconds
            trend_reset_delay: Seconds before an interactive trend resets
        """
        self.fetcher = fetcher
        self.normalizer = normalizer
        self.generator = generator
        self.snapshot_path = Path(snapshot_path)
        self.default_source = default_source
        self.mock_latency = mock_latency
        self.trend_reset_delay = trend_reset_delay

        self.state = StoreState(max_retries=max_retries)
        self.set_update_mode(update_mode)
        self.set_polling_interval(polling_interval)

    # Mutators

    def apply_odds_update(self, match_id: MatchId, outcome: str, new_odds: float):
        """Set one outcome's odds; unknown matches are ignored"""
        match = self._find_writable(match_id, outcome)
        if match is None:
            return
        if not self._valid_odds(new_odds):
            logger.warning(f"Ignoring invalid odds {new_odds!r} for match {match_id}")
            return

        match.odds[outcome] = round(float(new_odds), 2)
        self.state.last_updated = now_iso()

    def apply_trend_update(self, match_id: MatchId, outcome: str, trend: str):
        """Set one outcome's trend indicator; unknown matches are ignored"""
        if trend not in TRENDS:
            logger.warning(f"Ignoring unknown trend {trend!r} for match {match_id}")
            return
        match = self._find_writable(match_id, outcome)
        if match is None:
            return
        match.trends[outcome] = trend

    def apply_batch(self, directives: Iterable[OddsDirective]):
        """Apply a list of directives as one state transition"""
        applied = 0
        for directive in directives:
            match = self._find_writable(directive.match_id, directive.outcome)
            if match is None or not self._valid_odds(directive.new_odds):
                continue
            match.odds[directive.outcome] = round(float(directive.new_odds), 2)
            if directive.trend in TRENDS:
                match.trends[directive.outcome] = directive.trend
            applied += 1

        self.state.last_updated = now_iso()
        logger.debug(f"Applied {applied} odds updates")

    def toggle_auto_update(self):
        self.state.is_auto_update_enabled = not self.state.is_auto_update_enabled
        logger.info(f"Auto-update {'enabled' if self.state.is_auto_update_enabled else 'disabled'}")

    def set_update_mode(self, mode: str):
        if mode not in UPDATE_MODES:
            raise ValueError(f"Invalid update mode: {mode}. Use 'api' or 'mock'.")
        self.state.update_mode = mode

    def set_polling_interval(self, interval_ms: int):
        if isinstance(interval_ms, bool) or not isinstance(interval_ms, int) or interval_ms <= 0:
            raise ValueError("Polling interval must be a positive number of milliseconds")
        self.state.polling_interval = interval_ms

    def reset_trends(self):
        """Set every outcome's trend back to neutral"""
        for match in self.state.matches:
            match.trends = neutral_trends()

    def record_error(self, message: str, kind: str = "general", details: Any = None):
        """Prepend an entry to the error history and make it the current error"""
        record = ErrorRecord(message=message, timestamp=now_iso(), kind=kind, details=details)
        self.state.error_history.insert(0, record)
        del self.state.error_history[ERROR_HISTORY_LIMIT:]
        self.state.error = record.message

    def clear_error(self):
        self.state.error = None

    def clear_error_history(self):
        self.state.error_history = []

    def increment_api_call_count(self):
        self.state.api_call_count += 1
        self.state.last_api_call = now_iso()

    def reset_api_call_count(self):
        self.state.api_call_count = 0
        self.state.last_api_call = None

    def set_connection_status(self, status: str):
        if status not in CONNECTION_STATUSES:
            raise ValueError(f"Invalid connection status: {status}")
        self.state.connection_status = status

    def increment_retry_count(self):
        self.state.retry_count += 1

    def reset_retry_count(self):
        self.state.retry_count = 0

    def set_loading_state(self, operation: str, loading: bool):
        if operation in self.state.loading_states:
            self.state.loading_states[operation] = loading

    def nudge_odds(self, match_id: MatchId, outcome: str):
        """
        Interactive tick on a single outcome

        Applies a simulated change with its trend, then resets that
        outcome's trend to neutral after `trend_reset_delay` seconds.
        Must be called from a running event loop.
        """
        match = self._find_writable(match_id, outcome)
        if match is None:
            return

        directive = self.generator.nudge(match, outcome)
        self.apply_odds_update(match_id, outcome, directive.new_odds)
        self.apply_trend_update(match_id, outcome, directive.trend)

        loop = asyncio.get_running_loop()
        loop.call_later(
            self.trend_reset_delay,
            self.apply_trend_update, match_id, outcome, TREND_NEUTRAL
        )

    # Async lifecycles

    async def load_initial(self, source: Optional[str] = None) -> bool:
        """
        Load the full match collection

        Args:
            source: 'api' (live feed) or 'json' (bundled snapshot);
                defaults to the store's configured source

        Returns:
            True if the load succeeded
        """
        source = source or self.default_source

        # pending
        self.state.loading = True
        self.set_loading_state("initial", True)
        self.state.connection_status = STATUS_CONNECTING
        self.state.error = None

        try:
            if source == SOURCE_API:
                logger.info("Loading matches from API...")
                matches = await self._fetch_matches()
            elif source == SOURCE_JSON:
                logger.info(f"Loading matches from {self.snapshot_path}...")
                matches = await asyncio.to_thread(self._read_snapshot)
            else:
                raise ValueError(f"Invalid data source: {source}. Use 'api' or 'json'.")
        except Exception as e:
            # rejected
            logger.error(f"Failed to load matches: {e}")
            self.state.loading = False
            self.set_loading_state("initial", False)
            self.state.connection_status = STATUS_ERROR
            self.record_error(_error_message(e) or "Failed to load matches", kind="api", details=self._details(e))
            self.state.retry_count += 1
            return False

        # fulfilled
        self.state.loading = False
        self.set_loading_state("initial", False)
        self.state.matches = matches
        self.state.last_updated = now_iso()
        self.state.connection_status = STATUS_CONNECTED
        self.state.error = None
        self.state.retry_count = 0
        logger.info(f"Successfully loaded {len(matches)} matches")
        return True

    async def fetch_updates(self, use_real_api: bool = True) -> bool:
        """
        Poll tick body: compute odds directives and apply them

        In live mode the feed is fetched and diffed against the current
        collection; if the fetch fails, simulated updates are used instead.

        Returns:
            True if updates were applied
        """
        # pending: no global loading flag for background polls
        self.state.error = None
        self.set_loading_state("updates", True)

        try:
            current = list(self.state.matches)
            if use_real_api and current:
                try:
                    fresh = await self._fetch_matches()
                    directives = self.generator.diff(current, fresh)
                except FetchError as e:
                    logger.warning(f"Failed to fetch real-time updates from API, using mock updates: {e}")
                    directives = self.generator.synthesize(current)
            else:
                await asyncio.sleep(self.mock_latency)
                directives = self.generator.synthesize(current)
        except Exception as e:
            # rejected
            logger.error(f"Failed to fetch updates: {e}")
            self.set_loading_state("updates", False)
            self.record_error(_error_message(e) or "Failed to fetch updates", kind="update", details=self._details(e))
            return False

        # fulfilled
        self.set_loading_state("updates", False)
        self.apply_batch(directives)
        self.state.error = None
        return True

    async def refresh_all(self) -> bool:
        """
        Replace the whole collection with fresh feed data

        Connection status and retry bookkeeping are left untouched.

        Returns:
            True if the refresh succeeded
        """
        # pending
        self.state.loading = True
        self.set_loading_state("refresh", True)
        self.state.error = None

        try:
            logger.info("Refreshing all matches from API...")
            matches = await self._fetch_matches()
        except Exception as e:
            # rejected
            logger.error(f"Failed to refresh matches: {e}")
            self.state.loading = False
            self.set_loading_state("refresh", False)
            self.record_error(_error_message(e) or "Failed to refresh matches", kind="refresh", details=self._details(e))
            return False

        # fulfilled
        self.state.loading = False
        self.set_loading_state("refresh", False)
        self.state.matches = matches
        self.state.last_updated = now_iso()
        self.state.error = None
        logger.info(f"Successfully refreshed {len(matches)} matches from API")
        return True

    # Helpers

    async def _fetch_matches(self) -> List[Match]:
        """Fetch the live feed off the event loop and normalize it"""
        raw_events = await asyncio.to_thread(self.fetcher.fetch_events)
        return self.normalizer.normalize_all(raw_events)

    def _read_snapshot(self) -> List[Match]:
        """Read and validate the bundled snapshot"""
        with open(self.snapshot_path, 'r', encoding='utf-8') as f:
            data = json.load(f)

        records = data.get('matches') if isinstance(data, dict) else None
        if not isinstance(records, list):
            records = []

        matches = []
        seen = set()
        for record in records:
            try:
                match = Match.from_record(record)
            except ValidationError as e:
                logger.debug(f"Invalid snapshot record: {e}")
                continue
            if match.id in seen:
                continue
            seen.add(match.id)
            matches.append(match)

        if len(matches) != len(records):
            logger.warning(f"{len(records) - len(matches)} invalid matches filtered out")
        return matches

    def _find_writable(self, match_id: MatchId, outcome: str) -> Optional[Match]:
        if outcome not in OUTCOMES:
            logger.warning(f"Ignoring unknown outcome {outcome!r}")
            return None
        return select_match_by_id(self.state, match_id)

    @staticmethod
    def _valid_odds(value: Any) -> bool:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return False
        if not math.isfinite(value):
            return False
        return round(float(value), 2) > 0

    @staticmethod
    def _details(error: Exception) -> Any:
        if isinstance(error, FetchError):
            return {'type': type(error).__name__, 'status': error.status}
        return {'type': type(error).__name__}
