import pytest

from oddsboard.services.errors import ValidationError
from oddsboard.storage.models import Match, is_valid_match_id, parse_flag


def record(**overrides):
    base = {
        "id": 1,
        "homeTeam": "Arsenal",
        "awayTeam": "Chelsea",
        "odds": {"home": 1.85, "draw": 3.6, "away": 4.2},
    }
    base.update(overrides)
    return base


def test_from_record_defaults():
    match = Match.from_record(record())

    assert match.odds == {"home": 1.85, "draw": 3.6, "away": 4.2}
    assert match.trends == {"home": "neutral", "draw": "neutral", "away": "neutral"}
    assert match.is_hot is False
    assert match.time == "TBD"


@pytest.mark.parametrize("bad", [float("nan"), float("inf"), -float("inf"), 0, 0.001, "1.5", True])
def test_from_record_rejects_bad_odds(bad):
    with pytest.raises(ValidationError):
        Match.from_record(record(odds={"home": bad, "draw": 3.0, "away": 2.0}))


@pytest.mark.parametrize("bad_id", [[1], {"id": 1}, False, 2.5, ""])
def test_from_record_rejects_bad_ids(bad_id):
    with pytest.raises(ValidationError):
        Match.from_record(record(id=bad_id))


def test_from_record_hot_flag_string():
    assert Match.from_record(record(isHot="false")).is_hot is False
    assert Match.from_record(record(isHot="true")).is_hot is True


def test_helpers():
    assert is_valid_match_id(7) and is_valid_match_id("abc")
    assert not is_valid_match_id(None)
    assert parse_flag(" TRUE ") is True
    assert parse_flag("yes") is False
