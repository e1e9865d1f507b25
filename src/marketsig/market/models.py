"""Response envelope, retrieval results and endpoint descriptions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Generic, TypeVar

from pydantic import BaseModel, StrictInt

from ..errors import MarketDataError

T = TypeVar("T")

SUCCESS_CODE = 200


class ResponseEnvelope(BaseModel):
    """The ``{code, data}`` wrapper shared by every API response."""

    # "200" or 200.0 is not a success code
    code: StrictInt
    data: Any = None

    model_config = {"extra": "allow"}

    @property
    def succeeded(self) -> bool:
        return self.code == SUCCESS_CODE


class FetchStatus(str, Enum):
    OK = "ok"
    APPLICATION_ERROR = "application_error"
    MALFORMED = "malformed"
    REQUEST_ERROR = "request_error"
    TRANSPORT_ERROR = "transport_error"


@dataclass(frozen=True, slots=True)
class RetrievalResult(Generic[T]):
    """Outcome of a market data retrieval.

    ``value`` is always usable: the payload on success, the endpoint's empty
    default otherwise. ``status`` and ``reason`` tell stricter callers what
    went wrong.
    """

    value: T
    status: FetchStatus = FetchStatus.OK
    reason: str | None = None
    signed: bool = True

    @property
    def ok(self) -> bool:
        return self.status is FetchStatus.OK

    def unwrap(self) -> T:
        """Return ``value`` or raise ``MarketDataError`` if the retrieval failed."""
        if not self.ok:
            raise MarketDataError(self.reason or self.status.value, status=self.status)
        return self.value


class PayloadShape(str, Enum):
    LIST = "list"
    OBJECT = "object"

    def matches(self, data: Any) -> bool:
        if self is PayloadShape.LIST:
            return isinstance(data, list)
        return isinstance(data, dict)


@dataclass(frozen=True, slots=True)
class Endpoint:
    """A market data endpoint with its expected payload and fallback."""

    name: str
    path: str
    shape: PayloadShape
    fallback_factory: Callable[[], Any]
    max_limit: int | None = None
    default_limit: int | None = None

    def fallback(self) -> Any:
        return self.fallback_factory()


def _empty_depth() -> dict[str, list]:
    return {"asks": [], "bids": []}


def _none() -> None:
    return None


KLINE = Endpoint("kline", "/market/kline", PayloadShape.LIST, list, max_limit=1000, default_limit=500)
TICKER = Endpoint("ticker", "/market/ticker", PayloadShape.OBJECT, _none)
DEPTH = Endpoint("depth", "/market/depth", PayloadShape.OBJECT, _empty_depth, max_limit=1000, default_limit=100)
TRADES = Endpoint("trades", "/market/trades", PayloadShape.LIST, list, max_limit=100, default_limit=20)

KLINE_INTERVALS = frozenset({"1m", "5m", "15m", "30m", "1h", "4h", "1d", "1w", "1M"})
