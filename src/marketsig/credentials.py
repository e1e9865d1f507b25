"""Credential values and the providers that resolve them per call."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from pydantic import SecretStr

from .logging import forget_secret, register_secret

logger = logging.getLogger(__name__)


class CredentialScope(str, Enum):
    """Tier a secret belongs to."""

    USER = "user"
    PUBLIC = "public"


@dataclass(frozen=True, slots=True)
class Credential:
    """A signing secret scoped to the authenticated user or the public tier.

    The secret is held as ``SecretStr`` so that ``repr`` and log output never
    reveal it; only the signer unwraps it.
    """

    scope: CredentialScope
    secret: SecretStr

    @classmethod
    def user(cls, secret: str | SecretStr) -> "Credential":
        return cls(CredentialScope.USER, _as_secret(secret))

    @classmethod
    def public(cls, secret: str | SecretStr) -> "Credential":
        return cls(CredentialScope.PUBLIC, _as_secret(secret))

    @property
    def is_empty(self) -> bool:
        return not self.secret.get_secret_value()


def _as_secret(secret: str | SecretStr) -> SecretStr:
    return secret if isinstance(secret, SecretStr) else SecretStr(secret)


class CredentialProvider(Protocol):
    """Supplies the credential active at call time."""

    def current(self) -> Credential | None:
        """Return the active credential, or None when no secret is configured."""
        ...


class StaticCredentialProvider:
    """Always returns the same credential."""

    def __init__(self, credential: Credential | None):
        self._credential = credential

    def current(self) -> Credential | None:
        return self._credential


class SessionCredentialProvider:
    """Resolves the user secret while logged in, the public secret otherwise.

    ``login`` and ``logout`` replace a single attribute, so readers on other
    tasks always see either the old or the new credential.
    """

    def __init__(self, public_secret: str | SecretStr | None = None):
        self._public: Credential | None = None
        if public_secret is not None:
            public = Credential.public(public_secret)
            if not public.is_empty:
                register_secret(public.secret)
                self._public = public
        self._user: Credential | None = None

    @property
    def authenticated(self) -> bool:
        return self._user is not None

    def login(self, user_secret: str | SecretStr) -> None:
        credential = Credential.user(user_secret)
        if credential.is_empty:
            raise ValueError("user secret must not be empty")
        register_secret(credential.secret)
        self._user = credential
        logger.info("Switched to user-scoped signing credential")

    def logout(self) -> None:
        user, self._user = self._user, None
        if user is not None:
            forget_secret(user.secret)
        logger.info("Switched to public signing credential")

    def current(self) -> Credential | None:
        user = self._user
        if user is not None:
            return user
        return self._public
