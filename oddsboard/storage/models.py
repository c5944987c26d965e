"""Data models for matches, odds directives and error records"""
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from ..services.errors import ValidationError
from ..utils.timezone import now_iso

OUTCOMES = ("home", "draw", "away")

TREND_UP = "up"
TREND_DOWN = "down"
TREND_NEUTRAL = "neutral"
TRENDS = (TREND_UP, TREND_DOWN, TREND_NEUTRAL)

MODE_API = "api"
MODE_MOCK = "mock"
UPDATE_MODES = (MODE_API, MODE_MOCK)

STATUS_DISCONNECTED = "disconnected"
STATUS_CONNECTING = "connecting"
STATUS_CONNECTED = "connected"
STATUS_ERROR = "error"
CONNECTION_STATUSES = (STATUS_DISCONNECTED, STATUS_CONNECTING, STATUS_CONNECTED, STATUS_ERROR)

ERROR_HISTORY_LIMIT = 10

MatchId = Union[int, str]


def neutral_trends() -> Dict[str, str]:
    return {outcome: TREND_NEUTRAL for outcome in OUTCOMES}


def is_valid_match_id(value: Any) -> bool:
    """Match ids are non-bool ints or non-empty strings"""
    if isinstance(value, bool):
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return isinstance(value, int)


def parse_flag(value: Any) -> bool:
    """Read an upstream boolean; the strings 'true'/'false' are accepted"""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return False


@dataclass
class Match:
    """Represents one sports event with three-way odds"""
    id: MatchId
    time: str
    home_team: str
    away_team: str
    league: str
    odds: Dict[str, float]
    trends: Dict[str, str] = field(default_factory=neutral_trends)
    total_matches: int = 0
    is_hot: bool = False
    last_updated: str = field(default_factory=now_iso)

    def to_dict(self) -> Dict[str, Any]:
        """Presentation shape (camelCase keys)"""
        return {
            'id': self.id,
            'time': self.time,
            'homeTeam': self.home_team,
            'awayTeam': self.away_team,
            'league': self.league,
            'odds': dict(self.odds),
            'trends': dict(self.trends),
            'totalMatches': self.total_matches,
            'isHot': self.is_hot,
            'lastUpdated': self.last_updated,
        }

    @classmethod
    def from_record(cls, record: Any) -> "Match":
        """
        Build a match from a record already in presentation shape

        Used for the bundled snapshot, whose records mirror to_dict().

        Raises:
            ValidationError: if required fields or odds are missing or invalid
        """
        if not isinstance(record, dict):
            raise ValidationError("Match record is not an object")

        for key in ('id', 'homeTeam', 'awayTeam', 'odds'):
            if record.get(key) is None:
                raise ValidationError(f"Match record is missing '{key}'")

        if not is_valid_match_id(record['id']):
            raise ValidationError("Match 'id' must be an integer or a string")

        odds = record['odds']
        if not isinstance(odds, dict):
            raise ValidationError("Match odds is not an object")

        parsed_odds = {}
        for outcome in OUTCOMES:
            value = odds.get(outcome)
            if (isinstance(value, bool) or not isinstance(value, (int, float))
                    or not math.isfinite(value) or round(float(value), 2) <= 0):
                raise ValidationError(f"Match odds '{outcome}' must be a positive number")
            parsed_odds[outcome] = round(float(value), 2)

        trends = neutral_trends()
        raw_trends = record.get('trends')
        if isinstance(raw_trends, dict):
            for outcome in OUTCOMES:
                if raw_trends.get(outcome) in TRENDS:
                    trends[outcome] = raw_trends[outcome]

        try:
            total_matches = int(record.get('totalMatches') or 0)
        except (TypeError, ValueError):
            raise ValidationError("Match 'totalMatches' must be an integer")

        return cls(
            id=record['id'],
            time=str(record.get('time') or "TBD"),
            home_team=str(record['homeTeam']),
            away_team=str(record['awayTeam']),
            league=str(record.get('league') or "Sports / Unknown League"),
            odds=parsed_odds,
            trends=trends,
            total_matches=total_matches,
            is_hot=parse_flag(record.get('isHot', False)),
            last_updated=str(record.get('lastUpdated') or now_iso()),
        )


@dataclass
class OddsDirective:
    """Instruction to change one outcome's odds (and optionally trend) for one match"""
    match_id: MatchId
    outcome: str
    new_odds: float
    trend: Optional[str] = None


@dataclass
class ErrorRecord:
    """Entry in the store's error history"""
    message: str
    timestamp: str
    kind: str = "general"
    details: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'message': self.message,
            'timestamp': self.timestamp,
            'kind': self.kind,
            'details': self.details,
        }


def default_loading_states() -> Dict[str, bool]:
    return {'initial': False, 'updates': False, 'refresh': False}


@dataclass
class StoreState:
    """Process-wide board state; mutated only through MatchStore"""
    matches: List[Match] = field(default_factory=list)
    loading: bool = False
    loading_states: Dict[str, bool] = field(default_factory=default_loading_states)
    error: Optional[str] = None
    error_history: List[ErrorRecord] = field(default_factory=list)
    connection_status: str = STATUS_DISCONNECTED
    is_auto_update_enabled: bool = True
    update_mode: str = MODE_API
    polling_interval: int = 5000
    retry_count: int = 0
    max_retries: int = 3
    api_call_count: int = 0
    last_api_call: Optional[str] = None
    last_updated: Optional[str] = None
