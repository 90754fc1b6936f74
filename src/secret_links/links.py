"""
Link URL parsing for the Secret Links SDK.

Turns a link URL into a ``LinkInfo`` descriptor. Parsing is pure and never
raises: anything that does not look like a link yields an invalid descriptor.
"""

import re
import secrets
import string
import time
from typing import Any

import httpx

from .models import LinkInfo, LinkType

DEFAULT_DOMAIN = "secret.annai.ai"

_TOKEN = r"[a-zA-Z0-9_-]{16,64}"
_SECRET_LINKS_PATTERN = re.compile(
    rf"^https://secret\.annai\.ai/link/({_TOKEN})(\?.*)?(#.*)?$"
)
_CUSTOM_DOMAIN_PATTERN = re.compile(rf"^https://([^/]+)/link/({_TOKEN})(\?.*)?(#.*)?$")

# Tokens up to this length are treated as ping links
PING_TOKEN_MAX_LENGTH = 24

_BASE36 = string.digits + string.ascii_lowercase


def parse_link(url: Any) -> LinkInfo:
    """
    Parse a Secret Links URL.

    Args:
        url: Link URL, e.g. ``https://secret.annai.ai/link/<token>?password=x#key``

    Returns:
        LinkInfo with ``is_valid`` set to whether the URL is a well-formed link
    """
    if not url or not isinstance(url, str):
        return LinkInfo(is_valid=False)

    match = _SECRET_LINKS_PATTERN.match(url)
    if match:
        domain = DEFAULT_DOMAIN
        token = match.group(1)
    else:
        match = _CUSTOM_DOMAIN_PATTERN.match(url)
        if not match:
            return LinkInfo(is_valid=False)
        domain = match.group(1)
        token = match.group(2)

    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL:
        return LinkInfo(is_valid=False)

    has_password = "password" in parsed.params
    has_encryption = bool(parsed.fragment)

    return LinkInfo(
        is_valid=True,
        token=token,
        link_type=detect_link_type(token),
        has_password=has_password,
        has_encryption=has_encryption,
        domain=domain,
        password=(parsed.params.get("password") or None) if has_password else None,
        encryption_key=parsed.fragment if has_encryption else None,
    )


def detect_link_type(token: str) -> LinkType:
    """Guess the link type from the token shape."""
    # Heuristic only; the endpoint never confirms the type
    if len(token) <= PING_TOKEN_MAX_LENGTH:
        return LinkType.PING
    return LinkType.WEBHOOK


def generate_client_id() -> str:
    """Generate a client identifier of the form ``sdk-<ms>-<base36>``."""
    suffix = "".join(secrets.choice(_BASE36) for _ in range(11))
    return f"sdk-{int(time.time() * 1000)}-{suffix}"


def redact_token(token: str) -> str:
    """Shorten a token for logs and status snapshots."""
    return f"{token[:8]}..."
