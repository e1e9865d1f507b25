"""Canonical parameter serialization and HMAC-SHA256 signing.

The canonical form must match the server byte for byte:

1. drop parameters whose value is ``None``
2. sort the remaining keys by code point
3. join ``key=value`` pairs with ``&``, percent-encoding each value the way
   JavaScript's ``encodeURIComponent`` does
4. HMAC-SHA256 the UTF-8 string with the secret, lowercase hex digest
"""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
import math
import time
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable
from urllib.parse import quote

from pydantic import SecretStr

from ..credentials import Credential

logger = logging.getLogger(__name__)

# Characters encodeURIComponent leaves untouched besides alphanumerics.
_URI_COMPONENT_SAFE = "-_.!~*'()"

Clock = Callable[[], int]


def now_ms() -> int:
    return int(time.time() * 1000)


def stringify_value(value: Any) -> str:
    """Render a parameter value the way it appears on the wire."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return _format_float(value)
    # Containers are sent as sorted compact JSON. This is not what the web
    # client produced (String([1, 2]) is "1,2", objects become
    # "[object Object]"), so signatures over nested values only match
    # servers that serialize them the same way.
    if isinstance(value, (Mapping, list, tuple)):
        return json.dumps(value, separators=(",", ":"), sort_keys=True, ensure_ascii=False)
    return str(value)


def _format_float(value: float) -> str:
    """Format a float like JavaScript's Number#toString."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0:
        return "0"

    # repr gives the shortest round-tripping digits, as JS does
    _, digit_tuple, exponent = Decimal(repr(abs(value))).as_tuple()
    digits = "".join(map(str, digit_tuple)).rstrip("0")
    exponent += len(digit_tuple) - len(digits)
    k = len(digits)
    n = exponent + k
    sign = "-" if value < 0 else ""

    if k <= n <= 21:
        return sign + digits + "0" * (n - k)
    if 0 < n <= 21:
        return sign + digits[:n] + "." + digits[n:]
    if -6 < n <= 0:
        return sign + "0." + "0" * -n + digits

    mantissa = digits[0] + ("." + digits[1:] if k > 1 else "")
    e = n - 1
    return f"{sign}{mantissa}e{'+' if e >= 0 else '-'}{abs(e)}"


def canonicalize(params: Mapping[str, Any]) -> str:
    """Serialize ``params`` into the reproducible string that gets signed."""
    pairs = []
    for key in sorted(k for k, v in params.items() if v is not None):
        encoded = quote(stringify_value(params[key]), safe=_URI_COMPONENT_SAFE)
        pairs.append(f"{key}={encoded}")
    return "&".join(pairs)


def _secret_bytes(secret: str | SecretStr | Credential | None) -> bytes | None:
    if isinstance(secret, Credential):
        secret = secret.secret
    if isinstance(secret, SecretStr):
        secret = secret.get_secret_value()
    if not secret:
        return None
    return secret.encode()


def sign(params: Mapping[str, Any], secret: str | SecretStr | Credential | None) -> str:
    """Return the hex HMAC-SHA256 signature of ``params``.

    Returns an empty string when no secret is available so the caller can
    still send an unsigned request.
    """
    key = _secret_bytes(secret)
    if key is None:
        logger.warning("No signing secret available, sending unsigned request")
        return ""
    return hmac.new(key, canonicalize(params).encode(), hashlib.sha256).hexdigest()


@dataclass(frozen=True, slots=True)
class SignedParams:
    """Parameters with the injected timestamp and their signature."""

    params: dict[str, Any]
    timestamp: int
    signature: str

    @property
    def signed(self) -> bool:
        return bool(self.signature)

    def query(self) -> dict[str, str]:
        """Outbound query parameters, stringified exactly as they were signed."""
        query = {key: stringify_value(value) for key, value in self.params.items()}
        query["timestamp"] = str(self.timestamp)
        query["signature"] = self.signature
        return query


def sign_params(
    params: Mapping[str, Any],
    credential: Credential | None,
    *,
    clock: Clock | None = None,
) -> SignedParams:
    """Inject a millisecond ``timestamp`` into ``params`` and sign the result."""
    clean = {key: value for key, value in params.items() if value is not None}
    timestamp = int((clock or now_ms)())
    signature = sign({**clean, "timestamp": timestamp}, credential)
    return SignedParams(clean, timestamp, signature)
