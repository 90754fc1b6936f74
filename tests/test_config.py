"""
Tests for SDK option loading and validation.
"""

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from secret_links.config import (
    SDKOptions,
    ValidationOptions,
    load_logging_options,
    load_options,
)
from secret_links.exceptions import ConfigurationError
from secret_links.models import LinkType


class TestLoadOptions:
    """Test load_options."""

    def test_defaults(self):
        """Test defaults are resolved at construction."""
        options = load_options(polling_endpoint="https://example.com/api/poll")

        assert options.polling_endpoint == "https://example.com/api/poll"
        assert options.api_key is None
        assert options.ping_interval_ms == 10000
        assert options.webhook_interval_ms == 60000
        assert options.debug is False
        assert options.validation == ValidationOptions()

    def test_missing_polling_endpoint(self):
        """Test a missing endpoint fails fast."""
        with pytest.raises(ConfigurationError, match="polling_endpoint") as exc_info:
            load_options()

        assert exc_info.value.code == "CONFIGURATION_ERROR"

    @pytest.mark.parametrize("endpoint", ["not-a-url", "/api/poll", ""])
    def test_invalid_polling_endpoint(self, endpoint):
        """Test relative or malformed endpoints are rejected."""
        with pytest.raises(ConfigurationError, match="must be a valid URL"):
            load_options(polling_endpoint=endpoint)

    def test_non_string_polling_endpoint(self):
        """Test a non-string endpoint is rejected."""
        with pytest.raises(ConfigurationError, match="polling_endpoint"):
            load_options(polling_endpoint=12345)

    @pytest.mark.parametrize("field", ["ping_interval_ms", "webhook_interval_ms"])
    def test_interval_below_minimum(self, field):
        """Test intervals below one second are rejected."""
        with pytest.raises(ConfigurationError, match=field):
            load_options(polling_endpoint="https://example.com/api/poll", **{field: 999})

    def test_interval_at_minimum(self):
        """Test one second is the smallest accepted interval."""
        options = load_options(
            polling_endpoint="https://example.com/api/poll",
            ping_interval_ms=1000,
            webhook_interval_ms=1000,
        )

        assert options.ping_interval_ms == 1000
        assert options.webhook_interval_ms == 1000

    def test_prebuilt_options_returned(self):
        """Test an SDKOptions instance is used as-is."""
        options = SDKOptions(polling_endpoint="https://example.com/api/poll")

        assert load_options(options) is options

    def test_prebuilt_options_and_fields_conflict(self):
        """Test options and keyword fields cannot be mixed."""
        options = SDKOptions(polling_endpoint="https://example.com/api/poll")

        with pytest.raises(ConfigurationError):
            load_options(options, debug=True)

    def test_options_from_environment(self):
        """Test options can come from SECRET_LINKS_* variables."""
        with patch.dict(
            os.environ,
            {
                "SECRET_LINKS_POLLING_ENDPOINT": "https://env.example.com/poll",
                "SECRET_LINKS_API_KEY": "env-key",
                "SECRET_LINKS_PING_INTERVAL_MS": "5000",
                "SECRET_LINKS_DEBUG": "true",
            },
        ):
            options = load_options()

        assert options.polling_endpoint == "https://env.example.com/poll"
        assert options.api_key == "env-key"
        assert options.ping_interval_ms == 5000
        assert options.debug is True

    def test_keyword_fields_override_environment(self):
        """Test explicit fields win over the environment."""
        with patch.dict(
            os.environ,
            {"SECRET_LINKS_POLLING_ENDPOINT": "https://env.example.com/poll"},
        ):
            options = load_options(polling_endpoint="https://kw.example.com/poll")

        assert options.polling_endpoint == "https://kw.example.com/poll"

    def test_interval_for_link_type(self):
        """Test interval lookup per link type."""
        options = load_options(
            polling_endpoint="https://example.com/api/poll",
            ping_interval_ms=5000,
            webhook_interval_ms=30000,
        )

        assert options.interval_for(LinkType.PING) == 5000
        assert options.interval_for(LinkType.WEBHOOK) == 30000

    def test_invalid_log_level(self):
        """Test log level validation."""
        with pytest.raises(ConfigurationError, match="Invalid log level"):
            load_options(polling_endpoint="https://example.com/api/poll", log_level="LOUD")

    def test_log_level_normalized(self):
        """Test log level is upper-cased."""
        options = load_options(
            polling_endpoint="https://example.com/api/poll", log_level="debug"
        )

        assert options.log_level == "DEBUG"

    def test_log_settings_from_environment(self):
        """Test SDK options read the shared logging variables."""
        with patch.dict(
            os.environ,
            {
                "SECRET_LINKS_POLLING_ENDPOINT": "https://env.example.com/poll",
                "SECRET_LINKS_LOG_FORMAT": "json",
            },
        ):
            options = load_options()

        assert options.log_format == "json"


class TestLoadLoggingOptions:
    """Test logging settings resolution."""

    def test_no_endpoint_needed(self):
        """Test logging settings resolve without SDK options."""
        options = load_logging_options()

        assert options.log_level == "INFO"
        assert options.log_format == "console"

    def test_none_falls_back_to_environment(self):
        """Test unset fields come from SECRET_LINKS_LOG_*."""
        with patch.dict(os.environ, {"SECRET_LINKS_LOG_LEVEL": "error"}):
            options = load_logging_options(log_level=None, log_format="json")

        assert options.log_level == "ERROR"
        assert options.log_format == "json"

    def test_invalid_format(self):
        """Test invalid values become configuration errors."""
        with pytest.raises(ConfigurationError, match="Invalid logging options"):
            load_logging_options(log_format="xml")


class TestValidationOptions:
    """Test ValidationOptions parsing."""

    def test_defaults_allow_everything(self):
        """Test empty rules by default."""
        validation = ValidationOptions()

        assert validation.allowed_domains == []
        assert validation.allowed_link_types == []
        assert validation.require_password is False

    def test_comma_separated_values(self):
        """Test comma-separated strings are split."""
        validation = ValidationOptions(
            allowed_domains="a.example.com, b.example.com",
            allowed_link_types="ping,WEBHOOK",
        )

        assert validation.allowed_domains == ["a.example.com", "b.example.com"]
        assert validation.allowed_link_types == [LinkType.PING, LinkType.WEBHOOK]

    def test_enum_values(self):
        """Test LinkType members are accepted."""
        validation = ValidationOptions(allowed_link_types=[LinkType.WEBHOOK])

        assert validation.allowed_link_types == [LinkType.WEBHOOK]

    def test_unknown_link_type(self):
        """Test unknown link types are rejected."""
        with pytest.raises(ValidationError):
            ValidationOptions(allowed_link_types=["carrier-pigeon"])

    def test_nested_in_sdk_options(self):
        """Test validation rules can be passed as a dict."""
        options = load_options(
            polling_endpoint="https://example.com/api/poll",
            validation={"require_password": True},
        )

        assert options.validation.require_password is True
