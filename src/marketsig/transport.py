"""HTTP transport used by the market data client."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Protocol

import aiohttp

from .errors import TransportError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ProxyConfig:
    """Outbound HTTP proxy. Credentials travel as Proxy-Authorization, never in the URL."""

    url: str | None = None
    username: str | None = None
    password: str | None = field(default=None, repr=False)

    @property
    def auth(self) -> aiohttp.BasicAuth | None:
        if not self.url or not self.username:
            return None
        return aiohttp.BasicAuth(self.username, self.password or "")


class HttpTransport(Protocol):
    """Protocol for the HTTP capability the client depends on."""

    async def request(self, *, url: str, method: str, params: Mapping[str, str]) -> Mapping[str, Any]:
        """Execute a request and return the decoded JSON body.

        Args:
            url: Path relative to the transport's base URL, or an absolute URL
            method: HTTP method
            params: Query parameters

        Returns:
            Decoded response envelope

        Raises:
            TransportError: On network failure, timeout, non-2xx status or a
                body that is not a JSON object
        """
        ...

    async def close(self) -> None:
        """Release network resources."""
        ...


class AiohttpTransport:
    """``HttpTransport`` backed by a lazily created ``aiohttp.ClientSession``."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        proxy: ProxyConfig | None = None,
        user_agent: str = "marketsig/1.0",
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.proxy = proxy or ProxyConfig()
        self.user_agent = user_agent
        self.session: aiohttp.ClientSession | None = None

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self.session is None:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers={"User-Agent": self.user_agent},
            )
        return self.session

    def _build_url(self, url: str) -> str:
        if url.startswith(("http://", "https://")):
            return url
        return f"{self.base_url}/{url.lstrip('/')}"

    async def request(self, *, url: str, method: str, params: Mapping[str, str]) -> Mapping[str, Any]:
        session = await self._ensure_session()
        full_url = self._build_url(url)

        try:
            async with session.request(
                method.upper(),
                full_url,
                params=dict(params),
                proxy=self.proxy.url or None,
                proxy_auth=self.proxy.auth,
            ) as resp:
                if resp.status < 200 or resp.status >= 300:
                    raise TransportError(f"{method.upper()} {url} returned HTTP {resp.status}", status=resp.status)
                data = await resp.json(content_type=None)
        except aiohttp.ClientError as exc:
            raise TransportError(f"{method.upper()} {url} failed: {exc}") from exc
        except asyncio.TimeoutError as exc:
            raise TransportError(f"{method.upper()} {url} timed out after {self.timeout}s") from exc
        except json.JSONDecodeError as exc:
            raise TransportError(f"{method.upper()} {url} returned a non-JSON body") from exc

        if not isinstance(data, Mapping):
            raise TransportError(f"{method.upper()} {url} returned {type(data).__name__}, expected an object")

        logger.debug("%s %s -> %s", method.upper(), url, data.get("code"))
        return data

    async def close(self) -> None:
        """Close connections."""
        if self.session:
            await self.session.close()
            self.session = None
