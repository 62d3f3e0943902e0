"""Configuration management for larkslim.

This module provides configuration models and loading functionality using Pydantic
for validation and type safety.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_DOTENV_LOADED = False

DEFAULT_BASE_URL = "https://open.feishu.cn/open-apis"


def _load_env_once() -> None:
    """Load environment variables from a .env file exactly once."""

    global _DOTENV_LOADED
    if not _DOTENV_LOADED:
        load_dotenv()
        _DOTENV_LOADED = True


def _expand_env_vars(data: Any) -> Any:
    """Recursively expand environment variables in configuration data."""

    if isinstance(data, str):
        return os.path.expandvars(data)
    if isinstance(data, dict):
        return {key: _expand_env_vars(value) for key, value in data.items()}
    if isinstance(data, list):
        return [_expand_env_vars(item) for item in data]
    return data


class APIConfig(BaseModel):
    """Configuration for the outbound open API client."""

    app_id: str | None = Field(default=None, description="Lark application ID")
    app_secret: SecretStr | None = Field(default=None, description="Lark application secret")
    timeout: float = Field(default=10.0, gt=0.0, description="HTTP request timeout in seconds")
    base_url: str = Field(default=DEFAULT_BASE_URL, description="Open API origin and prefix")
    token_skew: float = Field(
        default=30.0,
        ge=0.0,
        description="Treat access tokens as expired this many seconds early",
    )

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        value = value.strip()
        if not value.startswith(("http://", "https://")):
            raise ValueError("base_url must start with http:// or https://")
        return value.rstrip("/")

    def secret_value(self) -> str | None:
        """Return the plain app secret, if configured."""
        return self.app_secret.get_secret_value() if self.app_secret else None


class ServerConfig(BaseModel):
    """Configuration for the inbound webhook receiver."""

    host: str = Field(default="0.0.0.0", description="Bind host")
    port: int = Field(default=8080, ge=1, le=65535, description="Bind port")
    cards_path: str = Field(default="/cards/", description="Card callback path")
    events_path: str = Field(default="/events/", description="Event callback path")
    health_path: str = Field(default="/204/", description="No-content health probe path")
    encryption_key: str | None = Field(
        default=None,
        description="Event encryption key; enables AES decryption of event bodies",
    )
    verification_token: str | None = Field(
        default=None,
        description="Event verification token; enables token and signature checks",
    )

    @field_validator("cards_path", "events_path", "health_path")
    @classmethod
    def ensure_leading_slash(cls, value: str) -> str:
        if not value.startswith("/"):
            raise ValueError("Route paths must start with '/'")
        return value

    @model_validator(mode="after")
    def validate_distinct_paths(self) -> ServerConfig:
        paths = [self.cards_path, self.events_path, self.health_path]
        if len(set(paths)) != len(paths):
            raise ValueError("cards_path, events_path and health_path must differ")
        return self


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format",
    )
    log_file: str | None = Field(default=None, description="Log file path")
    max_bytes: int = Field(default=10485760, description="Max log file size (10MB)")
    backup_count: int = Field(default=5, description="Number of backup files")

    @field_validator("level")
    @classmethod
    def normalise_level(cls, value: str) -> str:
        level = (value or "INFO").strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unsupported log level: {level}")
        return level


class LarkConfig(BaseSettings):
    """Main configuration for larkslim."""

    model_config = SettingsConfigDict(
        env_prefix="LARK_",
        env_nested_delimiter="__",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api: APIConfig = Field(default_factory=APIConfig, description="Open API client settings")
    server: ServerConfig = Field(
        default_factory=ServerConfig, description="Webhook receiver settings"
    )
    logging: LoggingConfig = Field(default_factory=LoggingConfig, description="Logging settings")

    @model_validator(mode="before")
    @classmethod
    def _apply_credential_env(cls, data: Any) -> Any:
        """Fill the credential from ``LARK_APP_ID`` / ``LARK_APP_SECRET`` when unset."""

        if not isinstance(data, dict):
            return data
        api = data.get("api")
        if isinstance(api, BaseModel):
            api = api.model_dump()
        api = dict(api or {})
        if not api.get("app_id") and os.environ.get("LARK_APP_ID"):
            api["app_id"] = os.environ["LARK_APP_ID"]
        if not api.get("app_secret") and os.environ.get("LARK_APP_SECRET"):
            api["app_secret"] = os.environ["LARK_APP_SECRET"]
        data["api"] = api
        return data

    @classmethod
    def from_yaml(cls, path: str | Path) -> LarkConfig:
        """Load configuration from a YAML file."""

        _load_env_once()
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, encoding="utf-8") as handle:
            try:
                config_data = yaml.safe_load(handle)
            except yaml.YAMLError as exc:
                raise ValueError(f"Invalid YAML in config file: {exc}") from exc

        if not config_data:
            config_data = {}

        config_data = _expand_env_vars(config_data)
        return cls(**config_data)

    @classmethod
    def from_env(cls) -> LarkConfig:
        """Load configuration from the environment (and ``.env``) only."""

        _load_env_once()
        return cls()
