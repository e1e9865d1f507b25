from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .credentials import SessionCredentialProvider
from .market.client import MarketDataClient
from .signing.canonical import Clock
from .transport import AiohttpTransport, HttpTransport, ProxyConfig

if TYPE_CHECKING:
    from .settings import Settings


@dataclass(slots=True)
class AppContainer:
    settings: "Settings"
    credentials: SessionCredentialProvider
    transport: HttpTransport
    client: MarketDataClient


def build_transport(settings: "Settings") -> AiohttpTransport:
    proxy = None
    if settings.proxy.enabled and settings.proxy.url:
        proxy = ProxyConfig(
            url=settings.proxy.url,
            username=settings.proxy.username,
            password=settings.proxy.password.get_secret_value() if settings.proxy.password else None,
        )
    return AiohttpTransport(
        settings.api.base_url,
        timeout=settings.api.timeout_seconds,
        proxy=proxy,
        user_agent=settings.api.user_agent,
    )


def build_container(
    settings: "Settings",
    *,
    transport: HttpTransport | None = None,
    user_secret: str | None = None,
    clock: Clock | None = None,
) -> AppContainer:
    """Wire credentials, transport and the market data client from settings."""
    credentials = SessionCredentialProvider(settings.api.public_api_secret)
    if user_secret:
        credentials.login(user_secret)

    transport = transport or build_transport(settings)
    client = MarketDataClient(
        transport,
        credentials,
        clock=clock,
        api_prefix=settings.api.api_prefix,
    )
    return AppContainer(
        settings=settings,
        credentials=credentials,
        transport=transport,
        client=client,
    )
