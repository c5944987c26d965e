"""Normalizer converting raw feed events into Match records"""
import math
from typing import Any, Dict, List, Optional, Set

from ..storage.models import Match, OUTCOMES, is_valid_match_id, parse_flag
from ..utils.logger import setup_logger
from ..utils.timezone import format_display_time, now_iso
from .errors import ValidationError

logger = setup_logger(__name__)

REQUIRED_FIELDS = ("id", "homeTeam", "awayTeam", "odds")

# Upstream odds key for each outcome
ODDS_KEYS = {"home": "homeWin", "draw": "draw", "away": "awayWin"}

DEFAULT_TEAM = "Unknown Team"
DEFAULT_CATEGORY = "Sports"
DEFAULT_LEAGUE = "Unknown League"


def coerce_price(value: Any) -> Optional[float]:
    """
    Permissively coerce an upstream price to a float

    Accepts numbers and numeric strings. Booleans, NaN and infinities
    are rejected.

    Returns:
        Float value, or None if the value is not numeric
    """
    if isinstance(value, bool) or value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


class EventNormalizer:
    """Service for event validation and normalization"""

    def __init__(self, display_timezone: Optional[str] = None):
        """
        Initialize normalizer

        Args:
            display_timezone: Optional timezone name for the 'time' field;
                the system local timezone is used when omitted
        """
        self.display_timezone = display_timezone
        self.dropped_count = 0

    def normalize(self, raw_event: Any) -> Match:
        """
        Normalize a single raw event

        Args:
            raw_event: Event record as received from the feed

        Returns:
            Match object

        Raises:
            ValidationError: if the record is missing required fields or
                has invalid odds
        """
        if not isinstance(raw_event, dict):
            raise ValidationError("Event is not an object")

        missing = [key for key in REQUIRED_FIELDS if raw_event.get(key) is None]
        if missing:
            raise ValidationError(f"Event is missing required fields: {', '.join(missing)}")

        if not is_valid_match_id(raw_event["id"]):
            raise ValidationError("Event 'id' must be an integer or a string")

        odds = self._normalize_odds(raw_event["odds"])

        category = raw_event.get("category") or DEFAULT_CATEGORY
        league = raw_event.get("league") or DEFAULT_LEAGUE

        return Match(
            id=raw_event["id"],
            time=format_display_time(raw_event.get("date"), self.display_timezone),
            home_team=self._team_name(raw_event["homeTeam"]),
            away_team=self._team_name(raw_event["awayTeam"]),
            league=f"{category} / {league}",
            odds=odds,
            total_matches=self._bet_count(raw_event.get("betCount")),
            is_hot=parse_flag(raw_event.get("isHot")),
            last_updated=now_iso(),
        )

    def normalize_all(self, raw_events: Any) -> List[Match]:
        """
        Normalize a batch of raw events

        Invalid records and duplicate ids are skipped and counted; the
        batch itself never fails. The number of skipped records is kept
        in `dropped_count`.

        Args:
            raw_events: List of raw events from the feed

        Returns:
            List of valid matches, in feed order
        """
        if not isinstance(raw_events, list):
            logger.warning(f"Expected a list of events, got {type(raw_events).__name__}")
            self.dropped_count = 0
            return []

        matches = []
        seen: Set[Any] = set()
        dropped = 0

        for index, raw_event in enumerate(raw_events):
            try:
                match = self.normalize(raw_event)
            except ValidationError as e:
                dropped += 1
                logger.warning(f"Skipping event at index {index}: {e}")
                continue

            if match.id in seen:
                dropped += 1
                logger.debug(f"Deduplicated event {match.id}: {match.home_team} vs {match.away_team}")
                continue

            seen.add(match.id)
            matches.append(match)

        self.dropped_count = dropped
        logger.info(f"Normalized {len(matches)} of {len(raw_events)} events ({dropped} dropped)")
        return matches

    def _normalize_odds(self, raw_odds: Any) -> Dict[str, float]:
        """Validate and convert the upstream odds record"""
        if not isinstance(raw_odds, dict):
            raise ValidationError("Event odds is not an object")

        odds = {}
        for outcome in OUTCOMES:
            key = ODDS_KEYS[outcome]
            price = coerce_price(raw_odds.get(key))
            if price is None or round(price, 2) <= 0:
                raise ValidationError(f"Event odds '{key}' must be a positive number")
            odds[outcome] = round(price, 2)
        return odds

    def _team_name(self, value: Any) -> str:
        # Collapse whitespace the same way for every source
        name = ' '.join(str(value).split())
        return name or DEFAULT_TEAM

    def _bet_count(self, value: Any) -> int:
        count = coerce_price(value)
        if count is None or count < 0:
            return 0
        return int(count)
