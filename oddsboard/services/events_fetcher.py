"""Fetcher for the remote sports events feed"""
import time
from typing import Any, Callable, Dict, List, Optional
import requests

from ..utils.logger import setup_logger
from .errors import (
    ClientError,
    FetchError,
    FetchTimeoutError,
    NetworkError,
    SchemaError,
    ServerError,
)

logger = setup_logger(__name__)

DEFAULT_EVENTS_URL = (
    "https://gist.githubusercontent.com/kundan-iguru/"
    "94d1b58ca3d16376fda4bd7a0689a662/raw/events.json"
)


class EventsFetcher:
    """Fetcher for the events JSON endpoint with timeout and retry"""

    def __init__(
        self,
        url: str = DEFAULT_EVENTS_URL,
        timeout: float = 10.0,
        retry_attempts: int = 3,
        retry_delay: float = 1.0,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep
    ):
        """
        Initialize events fetcher

        Args:
            url: Events endpoint returning a JSON array
            timeout: Per-attempt timeout in seconds
            retry_attempts: Maximum number of attempts per request
            retry_delay: Base backoff in seconds; attempt n waits n * retry_delay
            session: Optional requests session (a new one is created if omitted)
            sleep: Function used for backoff delays
        """
        self.url = url
        self.timeout = timeout
        self.retry_attempts = max(1, retry_attempts)
        self.retry_delay = retry_delay
        self.session = session or requests.Session()
        self._sleep = sleep

    def fetch_events(self) -> List[Dict[str, Any]]:
        """
        Fetch the raw event list

        Returns:
            List of raw event records

        Raises:
            FetchError: subclass describing the failure
        """
        logger.info(f"Fetching sports events from {self.url}")
        data = self._request_with_retry("GET")

        if not isinstance(data, list):
            raise SchemaError("Invalid API response: expected array of events")

        logger.info(f"Successfully fetched {len(data)} sports events")
        return data

    def fetch_event_by_id(self, event_id: Any) -> Dict[str, Any]:
        """
        Fetch a single raw event by id

        Raises:
            ClientError: with status 404 if the feed has no such event
        """
        for event in self.fetch_events():
            if isinstance(event, dict) and event.get("id") == event_id:
                return event
        raise ClientError(f"Event with ID {event_id} not found", status=404)

    def check_health(self) -> bool:
        """
        Probe the endpoint with a single HEAD request

        Returns:
            True if the endpoint answered successfully
        """
        try:
            self._request_once("HEAD")
            return True
        except FetchError as e:
            logger.warning(f"API health check failed: {e}")
            return False

    def describe(self) -> Dict[str, Any]:
        """Return the fetcher configuration"""
        return {
            "url": self.url,
            "timeout": self.timeout,
            "retry_attempts": self.retry_attempts,
            "retry_delay": self.retry_delay,
        }

    def _request_with_retry(self, method: str) -> Any:
        """Run a request, retrying retryable failures with linear backoff"""
        last_error: Optional[FetchError] = None

        for attempt in range(1, self.retry_attempts + 1):
            try:
                return self._request_once(method)
            except FetchError as e:
                last_error = e
                if not e.retryable:
                    logger.error(f"Request failed with non-retryable error: {e}")
                    raise
                if attempt == self.retry_attempts:
                    logger.error(f"Request failed after {attempt} attempts: {e}")
                    raise

                delay = self.retry_delay * attempt
                logger.warning(
                    f"API request failed ({e}), retrying in {delay:.1f}s "
                    f"(attempt {attempt}/{self.retry_attempts})"
                )
                self._sleep(delay)

        raise last_error

    def _request_once(self, method: str) -> Any:
        """Perform one attempt and classify its failure"""
        try:
            response = self.session.request(method, self.url, timeout=self.timeout)
        except requests.Timeout as e:
            raise FetchTimeoutError("Request timeout", status=408, details=str(e)) from e
        except requests.RequestException as e:
            raise NetworkError(f"Network error: {e}", details=str(e)) from e

        status = response.status_code
        if status == 408:
            raise FetchTimeoutError("Request timeout", status=status)
        if 400 <= status < 500:
            raise ClientError(f"HTTP error! status: {status}", status=status)
        if status >= 500:
            raise ServerError(f"HTTP error! status: {status}", status=status)

        if method == "HEAD":
            return None

        try:
            return response.json()
        except ValueError as e:
            raise SchemaError("Invalid API response: body is not JSON", status=status) from e
