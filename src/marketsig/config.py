"""Settings loading: a YAML file, then ``MARKETSIG_*`` environment overrides.

``MARKETSIG_API__TIMEOUT_SECONDS=3`` sets ``api.timeout_seconds``. Values are
parsed as YAML scalars, except secrets and passwords which are kept verbatim.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import ValidationError

from .errors import ConfigError
from .settings import Settings

logger = logging.getLogger(__name__)

ENV_PREFIX = "MARKETSIG_"
DEFAULT_CONFIG = "config.yml"

# read directly by load_settings / configure_logging, not settings keys
_RESERVED = frozenset({"CONFIG", "LOG_LEVEL"})
_VERBATIM_SUFFIXES = ("secret", "password")


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.is_file():
        logger.debug("No config file at %s, using defaults", path)
        return {}
    try:
        loaded = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"Config file {path} is not valid YAML: {exc}") from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"Config root must be a mapping, got: {type(loaded)!r}")
    return loaded


def _coerce(raw: str) -> Any:
    try:
        return yaml.safe_load(raw)
    except yaml.YAMLError:
        return raw


def env_overrides(environ: Mapping[str, str], *, prefix: str = ENV_PREFIX) -> dict[str, Any]:
    """Collect ``PREFIX_SECTION__KEY`` variables into a nested mapping."""
    overrides: dict[str, Any] = {}
    for name, raw in environ.items():
        if not name.startswith(prefix) or name[len(prefix):] in _RESERVED:
            continue
        path = [part.lower() for part in name[len(prefix):].split("__") if part]
        if not path:
            continue

        node = overrides
        for part in path[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = node[part] = {}
            node = child
        node[path[-1]] = raw if path[-1].endswith(_VERBATIM_SUFFIXES) else _coerce(raw)
    return overrides


def _merge(base: dict[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in overrides.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            merged[key] = _merge(current, value)
        else:
            merged[key] = value
    return merged


def load_settings(
    config_path: str | Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """Load settings from ``config_path`` (or ``MARKETSIG_CONFIG``, or ./config.yml).

    Raises:
        ConfigError: The file is not a YAML mapping or the merged values fail validation
    """
    if environ is None:
        environ = os.environ
    path = Path(config_path or environ.get(f"{ENV_PREFIX}CONFIG", DEFAULT_CONFIG))

    data = _merge(_read_yaml(path), env_overrides(environ))
    try:
        return Settings.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration ({path}): {exc}") from exc
