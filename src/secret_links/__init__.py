"""
Secret Links SDK

Listen to Secret Links (ping and webhook channels) by polling a backend
endpoint, with adaptive intervals and many concurrent listeners per SDK.
"""

__version__ = "1.0.0"

from .config import SDKOptions, ValidationOptions
from .exceptions import (
    ConfigurationError,
    InvalidLinkError,
    PollError,
    SecretLinksError,
)
from .links import generate_client_id, parse_link
from .models import (
    LinkCallbacks,
    LinkInfo,
    LinkStatus,
    LinkType,
    ListenerStatus,
    PayloadData,
    PollRequest,
    PollResponse,
)
from .polling import AdaptiveInterval, LinkPoller
from .sdk import SecretLinksSDK

__all__ = [
    "SecretLinksSDK",
    "LinkPoller",
    "AdaptiveInterval",
    "SDKOptions",
    "ValidationOptions",
    "LinkCallbacks",
    "LinkInfo",
    "LinkStatus",
    "LinkType",
    "ListenerStatus",
    "PayloadData",
    "PollRequest",
    "PollResponse",
    "SecretLinksError",
    "ConfigurationError",
    "InvalidLinkError",
    "PollError",
    "parse_link",
    "generate_client_id",
]
