"""Server response verification and outbound socket message signing."""

from __future__ import annotations

import hmac
import logging
from collections.abc import Mapping
from typing import Any

from ..credentials import Credential
from .canonical import Clock, now_ms, sign

logger = logging.getLogger(__name__)

SIGNATURE_FIELD = "signature"


def verify(
    payload: Mapping[str, Any] | None,
    claimed_signature: str | None,
    credential: Credential | None,
) -> bool:
    """Check that ``claimed_signature`` matches ``payload`` under ``credential``.

    The payload's own ``signature`` field is excluded before recomputing.
    Missing input never raises; it simply fails verification.
    """
    if not isinstance(payload, Mapping) or not payload:
        return False
    if not isinstance(claimed_signature, str) or not claimed_signature:
        return False

    rest = {key: value for key, value in payload.items() if key != SIGNATURE_FIELD}
    expected = sign(rest, credential)
    if not expected:
        return False

    valid = hmac.compare_digest(expected.encode(), claimed_signature.encode())
    if not valid:
        logger.warning("Signature mismatch on payload with keys %s", sorted(map(str, rest)))
    return valid


def sign_message(
    message: Mapping[str, Any] | None,
    credential: Credential | None,
    *,
    clock: Clock | None = None,
) -> Mapping[str, Any] | None:
    """Return a copy of a socket message with ``timestamp`` and ``signature`` added."""
    if not message:
        return message

    stamped: dict[str, Any] = {**message, "timestamp": int((clock or now_ms)())}
    stamped[SIGNATURE_FIELD] = sign(stamped, credential)
    return stamped
