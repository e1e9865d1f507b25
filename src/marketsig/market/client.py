"""Signed market data retrieval."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from ..credentials import Credential, CredentialProvider
from ..signing.canonical import Clock, sign_params
from ..transport import HttpTransport
from .models import (
    DEPTH,
    KLINE,
    KLINE_INTERVALS,
    TICKER,
    TRADES,
    Endpoint,
    FetchStatus,
    ResponseEnvelope,
    RetrievalResult,
)

logger = logging.getLogger(__name__)


class MarketDataClient:
    """Fetches candles, tickers, depth and trades over a signed GET API.

    None of the ``fetch_*`` methods raise: failures are logged and the
    endpoint's empty default is returned inside a ``RetrievalResult`` whose
    ``status`` records what happened.
    """

    def __init__(
        self,
        transport: HttpTransport,
        credentials: CredentialProvider,
        *,
        clock: Clock | None = None,
        api_prefix: str = "/api/v1",
    ):
        self.transport = transport
        self.credentials = credentials
        self.clock = clock
        self.api_prefix = "/" + api_prefix.strip("/") if api_prefix.strip("/") else ""

    async def __aenter__(self) -> "MarketDataClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def fetch_kline_history(
        self,
        symbol: str,
        interval: str,
        start: int | None = None,
        end: int | None = None,
        limit: int | None = KLINE.default_limit,
    ) -> RetrievalResult[list]:
        """Fetch candlestick history.

        Args:
            symbol: Trading pair, e.g. ``BTCUSDT``
            interval: Candle period (1m, 5m, 15m, 30m, 1h, 4h, 1d, 1w, 1M)
            start: Range start, ms since epoch (sent as ``from``)
            end: Range end, ms since epoch (sent as ``to``)
            limit: Number of candles, at most 1000

        Returns:
            Result whose value is the candle list, or ``[]`` on failure
        """
        if not isinstance(interval, str) or interval not in KLINE_INTERVALS:
            logger.warning("Unrecognized kline interval %r for %s", interval, symbol)
        params = {
            "symbol": symbol,
            "interval": interval,
            "from": start,
            "to": end,
            "limit": limit,
        }
        return await self._fetch(KLINE, params)

    async def fetch_24h_ticker(self, symbol: str) -> RetrievalResult[dict | None]:
        """Fetch 24 hour rolling statistics; value is ``None`` on failure."""
        return await self._fetch(TICKER, {"symbol": symbol})

    async def fetch_market_depth(
        self,
        symbol: str,
        limit: int | None = DEPTH.default_limit,
    ) -> RetrievalResult[dict]:
        """Fetch order book depth; value is ``{"asks": [], "bids": []}`` on failure."""
        params = {"symbol": symbol, "limit": limit}
        return await self._fetch(DEPTH, params)

    async def fetch_recent_trades(
        self,
        symbol: str,
        limit: int | None = TRADES.default_limit,
    ) -> RetrievalResult[list]:
        """Fetch the latest public trades; value is ``[]`` on failure."""
        params = {"symbol": symbol, "limit": limit}
        return await self._fetch(TRADES, params)

    async def close(self) -> None:
        await self.transport.close()

    def _current_credential(self) -> Credential | None:
        try:
            return self.credentials.current()
        except Exception as e:
            logger.error("Credential lookup failed, request will be unsigned: %s", e)
            return None

    async def _fetch(self, endpoint: Endpoint, params: dict[str, Any]) -> RetrievalResult[Any]:
        try:
            if endpoint.max_limit is not None:
                params["limit"] = _clamp_limit(endpoint, params.get("limit"))
            signed = sign_params(params, self._current_credential(), clock=self.clock)
        except Exception as e:
            logger.error("%s request for %s could not be built: %s", endpoint.name, params.get("symbol"), e)
            return _failure(endpoint, FetchStatus.REQUEST_ERROR, str(e) or type(e).__name__, False)

        url = f"{self.api_prefix}{endpoint.path}"

        try:
            raw = await self.transport.request(url=url, method="GET", params=signed.query())
        except Exception as e:
            logger.error("%s request for %s failed: %s", endpoint.name, params.get("symbol"), e)
            return _failure(endpoint, FetchStatus.TRANSPORT_ERROR, str(e) or type(e).__name__, signed.signed)

        try:
            envelope = ResponseEnvelope.model_validate(raw)
        except ValidationError as e:
            logger.error("%s response for %s is not a valid envelope: %s", endpoint.name, params.get("symbol"), e)
            return _failure(endpoint, FetchStatus.MALFORMED, "response is not a {code, data} envelope", signed.signed)

        if not envelope.succeeded:
            logger.error(
                "%s request for %s rejected with code %s",
                endpoint.name,
                params.get("symbol"),
                envelope.code,
            )
            return _failure(endpoint, FetchStatus.APPLICATION_ERROR, f"server returned code {envelope.code}", signed.signed)

        if not endpoint.shape.matches(envelope.data):
            logger.error(
                "%s response for %s has %s payload, expected %s",
                endpoint.name,
                params.get("symbol"),
                type(envelope.data).__name__,
                endpoint.shape.value,
            )
            return _failure(endpoint, FetchStatus.MALFORMED, f"expected {endpoint.shape.value} payload", signed.signed)

        return RetrievalResult(envelope.data, FetchStatus.OK, None, signed.signed)


def _clamp_limit(endpoint: Endpoint, limit: Any) -> int:
    if limit is None:
        return endpoint.default_limit
    try:
        value = int(limit)
    except (TypeError, ValueError, OverflowError):
        logger.warning("%s limit %r is not a number, using %s", endpoint.name, limit, endpoint.default_limit)
        return endpoint.default_limit
    clamped = max(1, min(value, endpoint.max_limit))
    if clamped != value:
        logger.warning("%s limit %s out of range, using %s", endpoint.name, limit, clamped)
    return clamped


def _failure(endpoint: Endpoint, status: FetchStatus, reason: str, signed: bool) -> RetrievalResult[Any]:
    return RetrievalResult(endpoint.fallback(), status, reason, signed)
