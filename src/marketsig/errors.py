"""Exception types raised by marketsig."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .market.models import FetchStatus


class MarketSigError(Exception):
    """Base class for marketsig errors."""


class ConfigError(MarketSigError, ValueError):
    """Configuration file or environment could not be turned into settings."""


class TransportError(MarketSigError):
    """The HTTP request failed before a response envelope could be read.

    Covers connection failures, timeouts, non-2xx statuses and bodies that
    are not JSON.
    """

    def __init__(self, message: str, *, status: int | None = None):
        super().__init__(message)
        self.status = status


class MarketDataError(MarketSigError):
    """Raised by ``RetrievalResult.unwrap`` when a retrieval did not succeed."""

    def __init__(self, message: str, *, status: FetchStatus):
        super().__init__(message)
        self.status = status
