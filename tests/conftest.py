import json
import random

import pytest
import requests

from oddsboard.services.events_fetcher import EventsFetcher
from oddsboard.services.normalizer import EventNormalizer
from oddsboard.services.update_generator import UpdateGenerator
from oddsboard.storage.models import Match
from oddsboard.storage.store import MatchStore


def make_response(status=200, body=None, raw=None):
    response = requests.Response()
    response.status_code = status
    if raw is not None:
        response._content = raw
    else:
        response._content = json.dumps(body if body is not None else []).encode()
    return response


class FakeSession:
    """Stands in for requests.Session; replays responses or raises exceptions"""

    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    def request(self, method, url, timeout=None):
        self.calls.append((method, url, timeout))
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class StubFetcher:
    """Returns queued payloads from fetch_events, raising queued exceptions"""

    def __init__(self, *payloads):
        self.payloads = list(payloads)
        self.calls = 0

    def fetch_events(self):
        self.calls += 1
        payload = self.payloads.pop(0) if len(self.payloads) > 1 else self.payloads[0]
        if isinstance(payload, Exception):
            raise payload
        return payload


def raw_event(event_id, home=1.5, draw=3.2, away=2.1, **extra):
    event = {
        "id": event_id,
        "date": "2025-05-17T18:30:00Z",
        "homeTeam": f"Home {event_id}",
        "awayTeam": f"Away {event_id}",
        "category": "Football",
        "league": "Premier League",
        "odds": {"homeWin": home, "draw": draw, "awayWin": away},
        "betCount": 100,
        "isHot": False,
    }
    event.update(extra)
    return event


def make_match(match_id, home=1.5, draw=3.2, away=2.1, is_hot=False):
    return Match(
        id=match_id,
        time="18:30 Sat 05/17",
        home_team=f"Home {match_id}",
        away_team=f"Away {match_id}",
        league="Football / Premier League",
        odds={"home": home, "draw": draw, "away": away},
        is_hot=is_hot,
    )


@pytest.fixture
def normalizer():
    return EventNormalizer(display_timezone="UTC")


@pytest.fixture
def generator():
    return UpdateGenerator(rng=random.Random(42))


@pytest.fixture
def make_store(normalizer, generator, tmp_path):
    def _make(fetcher=None, **kwargs):
        kwargs.setdefault("snapshot_path", str(tmp_path / "matches.json"))
        kwargs.setdefault("mock_latency", 0)
        return MatchStore(
            fetcher=fetcher or StubFetcher([]),
            normalizer=normalizer,
            generator=generator,
            **kwargs
        )
    return _make


@pytest.fixture
def no_sleep_fetcher():
    def _make(outcomes, **kwargs):
        delays = []
        fetcher = EventsFetcher(
            url="https://feed.test/events.json",
            session=FakeSession(outcomes),
            sleep=delays.append,
            **kwargs
        )
        return fetcher, delays
    return _make
