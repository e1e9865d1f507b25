"""Log handler setup with secret redaction.

Every handler installed here carries ``secret_filter``, which replaces any
registered signing secret in the formatted message with ``***``. Credential
providers register secrets when they start using them.
"""

from __future__ import annotations

import logging
import logging.handlers
import os

from pydantic import SecretStr

from .settings import LogSettings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
LOG_FILENAME = "marketsig.log"
REDACTED = "***"


class SecretRedactingFilter(logging.Filter):
    """Masks registered secrets in log records before a handler emits them."""

    def __init__(self) -> None:
        super().__init__()
        self._secrets: frozenset[str] = frozenset()

    def register(self, secret: str | SecretStr | None) -> None:
        value = _plain(secret)
        if value:
            self._secrets = self._secrets | {value}

    def forget(self, secret: str | SecretStr | None) -> None:
        value = _plain(secret)
        if value:
            self._secrets = self._secrets - {value}

    def filter(self, record: logging.LogRecord) -> bool:
        secrets = self._secrets
        if not secrets:
            return True
        message = record.getMessage()
        redacted = message
        # longest first so a secret containing another is masked whole
        for secret in sorted(secrets, key=len, reverse=True):
            redacted = redacted.replace(secret, REDACTED)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def _plain(secret: str | SecretStr | None) -> str | None:
    if isinstance(secret, SecretStr):
        return secret.get_secret_value()
    return secret


secret_filter = SecretRedactingFilter()

# handlers installed by configure_logging, replaced on reconfiguration
_installed: list[logging.Handler] = []


def register_secret(secret: str | SecretStr | None) -> None:
    secret_filter.register(secret)


def forget_secret(secret: str | SecretStr | None) -> None:
    secret_filter.forget(secret)


def _resolve_level(configured: str) -> int:
    name = os.environ.get("MARKETSIG_LOG_LEVEL", configured).upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def configure_logging(settings: LogSettings | None = None) -> None:
    """Install a console handler and, when ``settings.directory`` is set, a rotating file.

    ``MARKETSIG_LOG_LEVEL`` overrides ``settings.level``. Calling this again
    replaces the handlers from the previous call and leaves others alone.
    """
    settings = settings or LogSettings()
    level = _resolve_level(settings.level)

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if settings.directory is not None:
        settings.directory.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.handlers.RotatingFileHandler(
            settings.directory / LOG_FILENAME,
            maxBytes=settings.max_bytes,
            backupCount=settings.backup_count,
            encoding="utf-8",
        ))

    root = logging.getLogger()
    for handler in _installed:
        root.removeHandler(handler)
        handler.close()
    _installed.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        handler.addFilter(secret_filter)
        root.addHandler(handler)
        _installed.append(handler)
    root.setLevel(level)
