"""Error kinds raised by the fetcher and normalizer"""
from typing import Any, Optional


class ValidationError(ValueError):
    """Raw record does not have the shape of a match"""

    kind = "validation"


class FetchError(Exception):
    """Base class for failures while retrieving the event list"""

    kind = "network"
    retryable = True

    def __init__(self, message: str, status: Optional[int] = None, details: Any = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.details = details


class FetchTimeoutError(FetchError):
    """Attempt exceeded its timeout (or upstream answered 408)"""

    kind = "timeout"


class ClientError(FetchError):
    """4xx response other than 408; never retried"""

    kind = "client"
    retryable = False


class ServerError(FetchError):
    """5xx response"""

    kind = "server"


class NetworkError(FetchError):
    """Connection-level failure before any response arrived"""

    kind = "network"


class SchemaError(FetchError):
    """Response body is not a JSON array"""

    kind = "schema"
    retryable = False
