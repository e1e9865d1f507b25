"""marketsig: signed market data client."""

from .credentials import Credential, CredentialProvider, CredentialScope, SessionCredentialProvider
from .market import FetchStatus, MarketDataClient, RetrievalResult
from .settings import Settings
from .signing import canonicalize, sign, sign_message, sign_params, verify

__all__ = [
    "Credential",
    "CredentialProvider",
    "CredentialScope",
    "SessionCredentialProvider",
    "FetchStatus",
    "MarketDataClient",
    "RetrievalResult",
    "Settings",
    "canonicalize",
    "sign",
    "sign_message",
    "sign_params",
    "verify",
]
