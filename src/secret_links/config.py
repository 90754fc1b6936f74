"""
Configuration management for the Secret Links SDK.

Options are resolved once, when the SDK is created, using Pydantic Settings:
explicit keyword arguments win over ``SECRET_LINKS_*`` environment variables,
which win over the defaults below.
"""

from collections.abc import Callable
from typing import Any

import httpx
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError
from .models import LinkType

MIN_INTERVAL_MS = 1000
DEFAULT_PING_INTERVAL_MS = 10000
DEFAULT_WEBHOOK_INTERVAL_MS = 60000


def _split_csv(v: Any, field_name: str) -> list[Any]:
    if v is None:
        return []
    if isinstance(v, str):
        return [item.strip() for item in v.split(",") if item.strip()]
    if isinstance(v, list | tuple | set):
        return list(v)
    raise ValueError(f"{field_name} must be a string or list, got {type(v)}")


class ValidationOptions(BaseModel):
    """Extra rules a link must satisfy before it can be listened to."""

    allowed_domains: str | list[str] = Field(
        default_factory=list,
        description="Allowed link domains (comma-separated). Empty allows all.",
    )
    allowed_link_types: str | list[LinkType] = Field(
        default_factory=list,
        description="Allowed link types (comma-separated). Empty allows all.",
    )
    require_password: bool = Field(
        default=False, description="Only accept password-protected links"
    )

    @field_validator("allowed_domains", mode="before")
    @classmethod
    def parse_allowed_domains(cls, v: Any) -> list[str]:
        """Parse allowed domains from comma-separated string or list."""
        return _split_csv(v, "allowed_domains")

    @field_validator("allowed_link_types", mode="before")
    @classmethod
    def parse_allowed_link_types(cls, v: Any) -> list[str]:
        """Parse allowed link types from comma-separated string or list."""
        return [
            item.value if isinstance(item, LinkType) else str(item).lower()
            for item in _split_csv(v, "allowed_link_types")
        ]


class LoggingOptions(BaseSettings):
    """Logging settings, readable without the rest of the SDK options."""

    model_config = SettingsConfigDict(
        env_prefix="SECRET_LINKS_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    log_level: str = Field(default="INFO", description="Log level")
    log_format: str = Field(default="console", description="Log format")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed_levels:
            raise ValueError(f"Invalid log level: {v}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format."""
        if v not in {"json", "console"}:
            raise ValueError(f"Invalid log format: {v}")
        return v


class SDKOptions(LoggingOptions):
    """Options for a ``SecretLinksSDK`` instance."""

    polling_endpoint: str = Field(..., description="Backend polling endpoint URL")
    api_key: str | None = Field(
        default=None, description="Bearer token sent to the polling endpoint"
    )
    ping_interval_ms: int = Field(
        default=DEFAULT_PING_INTERVAL_MS,
        ge=MIN_INTERVAL_MS,
        description="Base polling interval for ping links in milliseconds",
    )
    webhook_interval_ms: int = Field(
        default=DEFAULT_WEBHOOK_INTERVAL_MS,
        ge=MIN_INTERVAL_MS,
        description="Base polling interval for webhook links in milliseconds",
    )
    request_timeout_seconds: float = Field(
        default=30.0, gt=0, description="Timeout for a single poll request"
    )
    debug: bool = Field(default=False, description="Log every poll cycle")
    validation: ValidationOptions = Field(default_factory=ValidationOptions)
    on_error: Callable[[Exception], None] | None = Field(
        default=None,
        exclude=True,
        description="Fallback handler for listeners without their own on_error",
    )

    @field_validator("polling_endpoint")
    @classmethod
    def validate_polling_endpoint(cls, v: str) -> str:
        """Validate that the polling endpoint is an absolute URL."""
        try:
            url = httpx.URL(v)
        except httpx.InvalidURL as e:
            raise ValueError("polling_endpoint must be a valid URL") from e
        if not url.scheme or not url.host:
            raise ValueError("polling_endpoint must be a valid URL")
        return v

    def interval_for(self, link_type: LinkType) -> int:
        """Get the base polling interval for a link type."""
        if link_type is LinkType.WEBHOOK:
            return self.webhook_interval_ms
        return self.ping_interval_ms


def load_options(options: SDKOptions | None = None, **fields: Any) -> SDKOptions:
    """
    Resolve SDK options, failing fast on invalid values.

    Args:
        options: Already built options; used as-is when given
        **fields: ``SDKOptions`` fields used when ``options`` is not given

    Returns:
        Validated options

    Raises:
        ConfigurationError: If a field is missing or invalid
    """
    if options is not None:
        if fields:
            raise ConfigurationError(
                "Pass either an SDKOptions instance or option fields, not both"
            )
        return options

    try:
        return SDKOptions(**fields)
    except ValidationError as e:
        raise _configuration_error("Invalid SDK options", e) from e


def load_logging_options(**fields: Any) -> LoggingOptions:
    """
    Resolve logging settings. Fields that are None fall back to the
    ``SECRET_LINKS_LOG_*`` environment variables, then to the defaults.

    Raises:
        ConfigurationError: If a value is invalid
    """
    given = {name: value for name, value in fields.items() if value is not None}
    try:
        return LoggingOptions(**given)
    except ValidationError as e:
        raise _configuration_error("Invalid logging options", e) from e


def _configuration_error(prefix: str, e: ValidationError) -> ConfigurationError:
    problems = [
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in e.errors()
    ]
    return ConfigurationError(
        f"{prefix}: " + "; ".join(problems), context={"errors": problems}
    )
