"""Market data retrieval."""

from .client import MarketDataClient
from .models import Endpoint, FetchStatus, ResponseEnvelope, RetrievalResult

__all__ = [
    "MarketDataClient",
    "Endpoint",
    "FetchStatus",
    "ResponseEnvelope",
    "RetrievalResult",
]
