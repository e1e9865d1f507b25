from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, SecretStr, field_validator


class ProxySettings(BaseModel):
    enabled: bool = False
    url: str | None = None
    username: str | None = None
    password: SecretStr | None = None

    model_config = {"extra": "forbid"}


class ApiSettings(BaseModel):
    base_url: str = "https://api.example.com"
    api_prefix: str = "/api/v1"
    timeout_seconds: float = Field(default=10.0, gt=0)
    user_agent: str = "marketsig/1.0"
    public_api_secret: SecretStr | None = None

    model_config = {"extra": "forbid"}

    @field_validator("base_url")
    @classmethod
    def _absolute_http_url(cls, value: str) -> str:
        value = value.strip().rstrip("/")
        scheme, sep, host = value.partition("://")
        if not sep or scheme.lower() not in {"http", "https"} or not host:
            raise ValueError("base_url must be an absolute http(s) URL")
        return value

    @field_validator("api_prefix")
    @classmethod
    def _path_prefix(cls, value: str) -> str:
        stripped = value.strip().strip("/")
        if "://" in stripped or any(c in stripped for c in "?# "):
            raise ValueError("api_prefix must be a plain path such as /api/v1")
        return f"/{stripped}" if stripped else ""


class LogSettings(BaseModel):
    level: str = "INFO"
    directory: Path | None = None
    max_bytes: int = Field(default=10 * 1024 * 1024, gt=0)
    backup_count: int = Field(default=5, ge=0)

    model_config = {"extra": "forbid"}


class Settings(BaseModel):
    env: str = "dev"
    api: ApiSettings = Field(default_factory=ApiSettings)
    proxy: ProxySettings = Field(default_factory=ProxySettings)
    log: LogSettings = Field(default_factory=LogSettings)

    model_config = {"extra": "forbid"}

    def redacted(self) -> dict[str, Any]:
        data = self.model_dump(mode="json")
        api = data.get("api")
        if isinstance(api, dict) and api.get("public_api_secret") is not None:
            api["public_api_secret"] = "***"
        proxy = data.get("proxy")
        if isinstance(proxy, dict) and proxy.get("password") is not None:
            proxy["password"] = "***"
        return data
