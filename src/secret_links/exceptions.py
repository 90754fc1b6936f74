"""
Custom exceptions for the Secret Links SDK.

Configuration, link validation and poller state errors propagate to callers.
Poll errors never escape a poll cycle; they are handed to ``on_error``
callbacks instead.
"""

from typing import Any


class SecretLinksError(Exception):
    """Base exception for Secret Links SDK errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.code = code or "SECRET_LINKS_ERROR"
        self.context = context or {}


class ConfigurationError(SecretLinksError):
    """Exception for invalid SDK options."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message, "CONFIGURATION_ERROR", context)


class InvalidLinkError(SecretLinksError):
    """Exception for malformed links or links rejected by validation rules."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message, "INVALID_LINK", context)


class PollerStateError(SecretLinksError):
    """Exception for illegal poller lifecycle transitions."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message, "POLLER_STATE_ERROR", context)


class PollError(SecretLinksError):
    """Base exception for failures inside a single poll cycle."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, code or "POLL_ERROR", context)


class PollTransportError(PollError):
    """Exception for network level failures while polling."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message, "POLL_TRANSPORT_ERROR", context)


class PollHTTPError(PollError):
    """Exception for non-2xx responses from the polling endpoint."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, "POLL_HTTP_ERROR", context)
        self.status_code = status_code


class PollResponseError(PollError):
    """Exception for response bodies that are not a valid poll response."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message, "POLL_RESPONSE_ERROR", context)


class ServerReportedError(PollError):
    """Exception for errors reported in the ``error`` field of a poll response."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message, "SERVER_REPORTED_ERROR", context)
