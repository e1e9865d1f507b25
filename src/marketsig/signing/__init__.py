"""Request and message signing."""

from .canonical import SignedParams, canonicalize, sign, sign_params, stringify_value
from .verify import sign_message, verify

__all__ = [
    "SignedParams",
    "canonicalize",
    "sign",
    "sign_params",
    "sign_message",
    "stringify_value",
    "verify",
]
