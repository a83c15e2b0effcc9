"""Exceptions for the market data sync engine.

Fetch-layer failures and engine contract violations live here so that the
fetcher, the models and the engine can all import them without cycles.
"""

from enum import Enum


class MarketSyncError(Exception):
    """Base exception for all market sync errors."""


class FetchErrorKind(str, Enum):
    """Why a single fetch round trip failed."""

    NETWORK = "network"
    HTTP_STATUS = "http_status"
    DECODE = "decode"
    EMPTY_RESULT = "empty_result"


class FetchError(MarketSyncError):
    """A market data fetch failed.

    Never escapes the engine: a failed refresh cycle stores the error on the
    published snapshot instead of raising it.
    """

    kind: FetchErrorKind

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self)!r})"


class NetworkError(FetchError):
    """Connection, transport or timeout failure before a response arrived."""

    kind = FetchErrorKind.NETWORK


class HttpStatusError(FetchError):
    """Upstream answered with a non-success status code."""

    kind = FetchErrorKind.HTTP_STATUS

    def __init__(self, status_code: int, message: str = "") -> None:
        self.status_code = status_code
        super().__init__(message or f"upstream returned HTTP {status_code}")

    def __repr__(self) -> str:
        return f"HttpStatusError({self.status_code})"


class DecodeError(FetchError):
    """Response body is not the expected list of market objects."""

    kind = FetchErrorKind.DECODE


class EmptyResultError(FetchError):
    """Response was well-formed but contained zero records.

    Treated as a failure: the engine keeps the previous entries.
    """

    kind = FetchErrorKind.EMPTY_RESULT


class EngineStateError(MarketSyncError):
    """Raised when an engine operation is not allowed in its current state."""


class EngineStoppedError(EngineStateError):
    """Raised when an operation is requested on a stopped engine.

    Stopped is terminal: build a new engine instead of restarting.
    """
