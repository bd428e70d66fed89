"""Configuration module for mapstatic.

Defines the configuration models, YAML parsing, and the process-wide default
configuration that supplies an access token to snapshots created without one.
"""

import os
import sys
import typing as t

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from mapstatic.attachment.constants import DEFAULT_MAX_ATTACHMENT_SIZE

ACCESS_TOKEN_ENV_VAR = "MAPBOX_ACCESS_TOKEN"


class StrictBaseModel(BaseModel):
    """Base model with immutable (frozen) configuration."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class TelemetryConfig(StrictBaseModel):
    """OpenTelemetry configuration for request tracing.

    Attributes:
        enabled: Enable or disable telemetry tracing
        endpoint: OTLP endpoint URL (e.g., http://localhost:4317)
        console_export: Export traces to console for debugging
        timeout: Timeout in seconds for exporter (default: 10)
        service_name: Reported service name
        deployment_environment: Deployment environment (e.g., production, staging, dev)
    """

    enabled: bool = Field(default=False, alias="enabled")
    endpoint: t.Optional[str] = Field(default=None, alias="endpoint")
    console_export: bool = Field(default=False, alias="console_export")
    timeout: int = Field(default=10, alias="timeout", gt=0)
    service_name: str = Field(default="mapstatic", alias="service_name")
    deployment_environment: t.Optional[str] = Field(default=None, alias="deployment_environment")

    @field_validator("endpoint")
    @classmethod
    def validate_endpoint(cls, v: t.Optional[str]) -> t.Optional[str]:
        """Validate endpoint URL format."""
        if v is None:
            return v

        from urllib.parse import urlparse

        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.hostname:
            raise ValueError(f"Invalid endpoint: '{v}'. Must be http(s)://host[:port]")

        return v


class Config(StrictBaseModel):
    """Client configuration.

    Attributes:
        access_token: Default access token for Static API requests
        host: Static API host; the public API host when omitted
        timeout: Request timeout in seconds; the transport default when omitted
        media_max_size: Largest notification media payload accepted, in bytes
        bundle_directory: Directory searched for bundled media resources
        shared_directory: Directory holding group-scoped shared state files
        telemetry: OpenTelemetry configuration
    """

    access_token: t.Optional[str] = Field(default=None, alias="ACCESS_TOKEN")
    host: t.Optional[str] = Field(default=None, alias="HOST")
    timeout: t.Optional[float] = Field(default=None, alias="TIMEOUT", gt=0)
    media_max_size: int = Field(
        default=DEFAULT_MAX_ATTACHMENT_SIZE, alias="MEDIA_MAX_SIZE", gt=0
    )
    bundle_directory: t.Optional[str] = Field(default=None, alias="BUNDLE_DIRECTORY")
    shared_directory: t.Optional[str] = Field(default=None, alias="SHARED_DIRECTORY")
    telemetry: TelemetryConfig = Field(default_factory=TelemetryConfig, alias="TELEMETRY")

    @field_validator("access_token", "host")
    @classmethod
    def empty_as_none(cls, v: t.Optional[str]) -> t.Optional[str]:
        """Treat empty strings as unset."""
        return v or None

    @classmethod
    def parse_yaml(cls, path: str) -> "Config":
        """Parse configuration from YAML file.

        Args:
            path: Path to YAML configuration file

        Returns:
            Validated Config instance

        Raises:
            SystemExit: If config file is not found
        """
        try:
            with open(path, "r") as f:
                return cls.model_validate(yaml.safe_load(f) or {})
        except FileNotFoundError:
            print(f"Config file not found: {path}", file=sys.stderr)
            raise SystemExit(1)


_default_config: Config = Config()


def configure(config: Config) -> None:
    """Install ``config`` as the process-wide default. Call once at startup."""
    global _default_config
    _default_config = config


def set_default_access_token(access_token: t.Optional[str]) -> None:
    """Replace only the default access token of the process-wide configuration."""
    configure(_default_config.model_copy(update={"access_token": access_token or None}))


def get_config() -> Config:
    """Return the process-wide default configuration."""
    return _default_config


def get_default_access_token() -> t.Optional[str]:
    """Return the configured default token, falling back to the environment."""
    return _default_config.access_token or os.environ.get(ACCESS_TOKEN_ENV_VAR) or None
