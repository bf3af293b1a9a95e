"""Configuration loading with environment variable substitution."""

import json
import os
import re
from enum import Enum
from pathlib import Path
from typing import Any
from urllib.parse import parse_qs, unquote, urlsplit

import yaml
from pydantic import BaseModel, Field, model_validator

from callstore.exceptions import ConfigError

ENV_VAR_PATTERN = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)\}")

URL_EXAMPLE = "s3://access_key:secret_key@s3.example.com/us-east-1/my_bucket?ssl=true"


def substitute_env_vars(value: Any) -> Any:
    """Recursively substitute ${VAR_NAME} patterns with environment variables."""
    if isinstance(value, str):
        def replace(match: re.Match[str]) -> str:
            var_name = match.group(1)
            env_value = os.environ.get(var_name)
            if env_value is None:
                raise ConfigError(f"Environment variable {var_name} is not set")
            return env_value

        return ENV_VAR_PATTERN.sub(replace, value)
    elif isinstance(value, dict):
        return {k: substitute_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [substitute_env_vars(v) for v in value]
    return value


def parse_store_url(url: str) -> dict[str, Any]:
    """Parse a store URL into storage settings.

    Supported forms::

        memory://
        s3://access_key:secret_key@host/region/bucket?ssl=true

    Credentials must be URL encoded if they contain unsafe characters.

    Raises:
        ConfigError: If the scheme is unknown or region/bucket are missing
    """
    parts = urlsplit(url)
    if parts.scheme == "memory":
        return {"backend": "memory"}
    if parts.scheme != "s3":
        raise ConfigError(f"unsupported store url scheme {parts.scheme!r}, e.g. {URL_EXAMPLE}")

    segments = parts.path.split("/", 2)
    if len(segments) < 3:
        raise ConfigError(f"must provide region and bucket name in the path of the s3 url, e.g. {URL_EXAMPLE}")
    region, bucket = segments[1], segments[2]
    if not region:
        raise ConfigError(f"must provide a non-empty region in the s3 url, e.g. {URL_EXAMPLE}")
    if not bucket:
        raise ConfigError(f"must provide a non-empty bucket name in the s3 url, e.g. {URL_EXAMPLE}")

    use_ssl = parse_qs(parts.query).get("ssl", ["false"])[0] == "true"
    scheme = "https" if use_ssl else "http"
    return {
        "backend": "s3",
        "endpoint": f"{scheme}://{parts.netloc.rsplit('@', 1)[-1]}" if parts.netloc else None,
        "region": region,
        "bucket": bucket,
        "access_key": unquote(parts.username) if parts.username else None,
        "secret_key": unquote(parts.password) if parts.password else None,
        "use_ssl": use_ssl,
    }


class MarkerFailurePolicy(str, Enum):
    """What an insert does when the path marker cannot be written."""

    RAISE = "raise"  # surface the failure, the call itself is already stored
    LOG = "log"  # log an error and report success


class StorageConfig(BaseModel):
    """Object store backend configuration."""

    backend: str = "memory"  # memory | s3
    url: str | None = None  # Overrides the fields below when set
    # Backend-specific settings
    bucket: str | None = None
    endpoint: str | None = None
    region: str | None = None
    access_key: str | None = None
    secret_key: str | None = None
    use_ssl: bool = True
    max_workers: int = 16  # Thread pool for blocking SDK calls

    @model_validator(mode="before")
    @classmethod
    def _expand_url(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("url"):
            return {**data, **parse_store_url(data["url"])}
        return data

    def backend_kwargs(self) -> dict[str, Any]:
        """Settings passed to the backend constructor."""
        return self.model_dump(exclude={"backend", "url"}, exclude_none=True)


class IndexConfig(BaseModel):
    """Path index (marker) settings."""

    marker_failure_policy: MarkerFailurePolicy = MarkerFailurePolicy.RAISE


class ListingConfig(BaseModel):
    """Call listing settings."""

    default_per_page: int = Field(default=30, ge=1)
    max_per_page: int = Field(default=100, ge=1)
    time_seek: bool = True  # Prune scans using the time embedded in call ids


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: str = "INFO"
    format: str = "json"  # json | text


class ServerConfig(BaseModel):
    """HTTP server configuration."""

    host: str = "0.0.0.0"
    port: int = 8080


class Config(BaseModel):
    """Main configuration for callstore."""

    storage: StorageConfig = Field(default_factory=StorageConfig)
    index: IndexConfig = Field(default_factory=IndexConfig)
    listing: ListingConfig = Field(default_factory=ListingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)

    @classmethod
    def from_file(cls, path: str | Path) -> "Config":
        """Load configuration from a YAML or JSON file."""
        path = Path(path)
        with path.open() as f:
            if path.suffix in (".yaml", ".yml"):
                data = yaml.safe_load(f) or {}
            else:
                data = json.load(f)

        data = substitute_env_vars(data)
        return cls.model_validate(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Config":
        """Load configuration from a dictionary."""
        data = substitute_env_vars(data)
        return cls.model_validate(data)
