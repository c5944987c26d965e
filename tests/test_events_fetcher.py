import pytest
import requests

from oddsboard.services.errors import (
    ClientError,
    FetchTimeoutError,
    NetworkError,
    SchemaError,
    ServerError,
)

from conftest import make_response, raw_event


def test_returns_event_list(no_sleep_fetcher):
    fetcher, delays = no_sleep_fetcher([make_response(200, [raw_event(1)])])

    events = fetcher.fetch_events()

    assert events == [raw_event(1)]
    assert delays == []
    assert fetcher.session.calls == [("GET", "https://feed.test/events.json", 10.0)]


def test_two_timeouts_then_success(no_sleep_fetcher):
    fetcher, delays = no_sleep_fetcher([
        requests.Timeout("read timed out"),
        requests.Timeout("read timed out"),
        make_response(200, [raw_event(1)]),
    ])

    events = fetcher.fetch_events()

    assert events == [raw_event(1)]
    assert delays == [1.0, 2.0]
    assert sum(delays) >= 3.0
    assert len(fetcher.session.calls) == 3


def test_gives_up_after_three_attempts(no_sleep_fetcher):
    fetcher, delays = no_sleep_fetcher([make_response(503)] * 5)

    with pytest.raises(ServerError) as exc_info:
        fetcher.fetch_events()

    assert exc_info.value.status == 503
    assert len(fetcher.session.calls) == 3
    assert delays == [1.0, 2.0]


def test_not_found_is_not_retried(no_sleep_fetcher):
    fetcher, delays = no_sleep_fetcher([make_response(404), make_response(200, [])])

    with pytest.raises(ClientError) as exc_info:
        fetcher.fetch_events()

    assert exc_info.value.status == 404
    assert exc_info.value.retryable is False
    assert delays == []
    assert len(fetcher.session.calls) == 1


def test_408_is_retried_as_timeout(no_sleep_fetcher):
    fetcher, delays = no_sleep_fetcher([make_response(408), make_response(200, [])])

    assert fetcher.fetch_events() == []
    assert delays == [1.0]


def test_network_error_is_retried(no_sleep_fetcher):
    fetcher, delays = no_sleep_fetcher([
        requests.ConnectionError("connection refused"),
        make_response(200, []),
    ])

    assert fetcher.fetch_events() == []
    assert delays == [1.0]


def test_persistent_timeout_surfaces_timeout_error(no_sleep_fetcher):
    fetcher, _ = no_sleep_fetcher([requests.Timeout()] * 3)
    with pytest.raises(FetchTimeoutError):
        fetcher.fetch_events()


def test_persistent_network_failure(no_sleep_fetcher):
    fetcher, _ = no_sleep_fetcher([requests.ConnectionError()] * 3)
    with pytest.raises(NetworkError):
        fetcher.fetch_events()


def test_object_body_is_schema_error(no_sleep_fetcher):
    fetcher, delays = no_sleep_fetcher([make_response(200, {"events": []})])

    with pytest.raises(SchemaError):
        fetcher.fetch_events()
    assert delays == []


def test_non_json_body_is_schema_error(no_sleep_fetcher):
    fetcher, delays = no_sleep_fetcher([make_response(200, raw=b"<html>oops</html>")])

    with pytest.raises(SchemaError):
        fetcher.fetch_events()
    assert len(fetcher.session.calls) == 1


def test_health_check_reports_without_raising(no_sleep_fetcher):
    fetcher, _ = no_sleep_fetcher([make_response(200), make_response(500)])

    assert fetcher.check_health() is True
    assert fetcher.check_health() is False
    assert [call[0] for call in fetcher.session.calls] == ["HEAD", "HEAD"]


def test_health_check_on_network_failure(no_sleep_fetcher):
    fetcher, _ = no_sleep_fetcher([requests.ConnectionError()])
    assert fetcher.check_health() is False


def test_fetch_event_by_id(no_sleep_fetcher):
    fetcher, _ = no_sleep_fetcher([make_response(200, [raw_event(1), raw_event(2)])] * 2)

    assert fetcher.fetch_event_by_id(2)["homeTeam"] == "Home 2"
    with pytest.raises(ClientError) as exc_info:
        fetcher.fetch_event_by_id(99)
    assert exc_info.value.status == 404
