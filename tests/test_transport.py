"""Tests for the aiohttp transport with mocked HTTP responses."""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from marketsig.errors import TransportError
from marketsig.transport import AiohttpTransport, ProxyConfig


def create_async_response(status=200, json_data=None):
    """Create a mock async response."""
    resp = AsyncMock()
    resp.status = status
    resp.json = AsyncMock(return_value=json_data if json_data is not None else {})
    resp.__aenter__ = AsyncMock(return_value=resp)
    resp.__aexit__ = AsyncMock(return_value=None)
    return resp


def create_transport(resp=None, side_effect=None, **kwargs):
    transport = AiohttpTransport("https://api.example.com/", **kwargs)
    mock_session = MagicMock()
    if side_effect is not None:
        mock_session.request = MagicMock(side_effect=side_effect)
    else:
        mock_session.request = MagicMock(return_value=resp)
    transport._ensure_session = AsyncMock(return_value=mock_session)
    return transport, mock_session


class TestAiohttpTransport:
    """Tests for AiohttpTransport.request."""

    @pytest.mark.asyncio
    async def test_successful_get(self):
        envelope = {"code": 200, "data": [1, 2, 3]}
        transport, session = create_transport(create_async_response(200, envelope))

        data = await transport.request(
            url="/api/v1/market/trades", method="get", params={"symbol": "BTCUSDT"}
        )

        assert data == envelope
        args, kwargs = session.request.call_args
        assert args == ("GET", "https://api.example.com/api/v1/market/trades")
        assert kwargs["params"] == {"symbol": "BTCUSDT"}
        assert kwargs["proxy"] is None
        assert kwargs["proxy_auth"] is None

    @pytest.mark.asyncio
    async def test_application_error_envelope_is_returned(self):
        """Non-200 envelope codes are the client's concern, not the transport's."""
        envelope = {"code": 500, "data": None, "msg": "internal"}
        transport, _ = create_transport(create_async_response(200, envelope))

        assert await transport.request(url="/x", method="GET", params={}) == envelope

    @pytest.mark.asyncio
    async def test_absolute_url_kept(self):
        transport, session = create_transport(create_async_response(200, {"code": 200}))

        await transport.request(url="https://other.example.com/ping", method="GET", params={})

        assert session.request.call_args.args[1] == "https://other.example.com/ping"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [400, 404, 500, 503])
    async def test_http_error_status(self, status):
        transport, _ = create_transport(create_async_response(status, {"code": status}))

        with pytest.raises(TransportError) as exc_info:
            await transport.request(url="/x", method="GET", params={})
        assert exc_info.value.status == status

    @pytest.mark.asyncio
    async def test_connection_error(self):
        transport, _ = create_transport(side_effect=aiohttp.ClientConnectionError("refused"))

        with pytest.raises(TransportError, match="refused"):
            await transport.request(url="/x", method="GET", params={})

    @pytest.mark.asyncio
    async def test_timeout(self):
        transport, _ = create_transport(side_effect=asyncio.TimeoutError(), timeout=2.5)

        with pytest.raises(TransportError, match="timed out after 2.5s"):
            await transport.request(url="/x", method="GET", params={})

    @pytest.mark.asyncio
    async def test_non_json_body(self):
        resp = create_async_response(200)
        resp.json = AsyncMock(side_effect=json.JSONDecodeError("Expecting value", "<html>", 0))
        transport, _ = create_transport(resp)

        with pytest.raises(TransportError, match="non-JSON"):
            await transport.request(url="/x", method="GET", params={})

    @pytest.mark.asyncio
    async def test_non_object_body(self):
        transport, _ = create_transport(create_async_response(200, [1, 2]))

        with pytest.raises(TransportError, match="expected an object"):
            await transport.request(url="/x", method="GET", params={})

    @pytest.mark.asyncio
    async def test_proxy_passed(self):
        proxy = ProxyConfig(url="http://127.0.0.1:8080", username="us@r", password="p:ss/word")
        transport, session = create_transport(create_async_response(200, {"code": 200}), proxy=proxy)

        await transport.request(url="/x", method="GET", params={})

        kwargs = session.request.call_args.kwargs
        assert kwargs["proxy"] == "http://127.0.0.1:8080"
        assert kwargs["proxy_auth"] == aiohttp.BasicAuth("us@r", "p:ss/word")

    @pytest.mark.asyncio
    async def test_session_lifecycle(self):
        transport = AiohttpTransport("https://api.example.com", timeout=5)

        session = await transport._ensure_session()
        assert await transport._ensure_session() is session
        assert session.timeout.total == 5

        await transport.close()
        assert session.closed
        assert transport.session is None

    @pytest.mark.asyncio
    async def test_close_without_session(self):
        transport = AiohttpTransport("https://api.example.com")
        await transport.close()


class TestProxyConfig:
    """Tests for ProxyConfig."""

    def test_no_url(self):
        proxy = ProxyConfig()
        assert proxy.url is None
        assert proxy.auth is None

    def test_url_without_auth(self):
        proxy = ProxyConfig(url="http://proxy:3128")
        assert proxy.url == "http://proxy:3128"
        assert proxy.auth is None

    def test_credentials_kept_out_of_url(self):
        """Special characters in credentials need no escaping in a header."""
        proxy = ProxyConfig(url="http://proxy:3128", username="u@corp", password="a:b@c")
        assert proxy.url == "http://proxy:3128"
        assert proxy.auth.login == "u@corp"
        assert proxy.auth.password == "a:b@c"

    def test_repr_hides_password(self):
        proxy = ProxyConfig(url="http://proxy:3128", username="u", password="hunter2")
        assert "hunter2" not in repr(proxy)
