"""
Data models for the Secret Links SDK.

Wire records exchanged with the polling endpoint are pydantic models whose
JSON field names are camelCase, matching the endpoint contract.
"""

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class LinkType(str, Enum):
    """Kind of channel a link represents."""

    PING = "ping"
    WEBHOOK = "webhook"


class LinkStatus(str, Enum):
    """Lifecycle state of a link as reported by the polling endpoint."""

    ACTIVE = "active"
    EXPIRED = "expired"
    EXHAUSTED = "exhausted"
    DELETED = "deleted"

    @property
    def is_terminal(self) -> bool:
        """Check if polling must permanently stop for this status."""
        return self is not LinkStatus.ACTIVE


class WireModel(BaseModel):
    """Base model using camelCase names on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict using wire names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class LinkInfo(WireModel):
    """Parsed and validated description of a link URL."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    is_valid: bool
    token: str = ""
    link_type: LinkType = Field(default=LinkType.PING, alias="type")
    has_password: bool = False
    has_encryption: bool = False
    domain: str = ""
    password: str | None = None
    encryption_key: str | None = None


class PayloadMetadata(WireModel):
    """Delivery metadata attached to a payload."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="allow"
    )

    source: str
    user_agent: str | None = None
    ip_address: str | None = None


class PayloadData(WireModel):
    """Content delivered through a link."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="allow"
    )

    link_type: LinkType = Field(alias="type")
    timestamp: int
    data: Any = None
    metadata: PayloadMetadata | None = None


class PollRequest(WireModel):
    """Body sent to the polling endpoint on every cycle."""

    token: str
    link_type: LinkType = Field(alias="type")
    password: str | None = None
    client_id: str
    timestamp: int
    last_seen: int | None = None


class PollResponse(WireModel):
    """Body returned by the polling endpoint."""

    has_new_content: bool
    payload: PayloadData | None = None
    next_poll_in: float | None = Field(default=None, allow_inf_nan=False)
    error: str | None = None
    link_status: LinkStatus


PayloadCallback = Callable[[PayloadData, LinkInfo], None]
ErrorCallback = Callable[[Exception, LinkInfo], None]
StatusCallback = Callable[[LinkStatus, LinkInfo], None]


@dataclass
class LinkCallbacks:
    """Event handlers for one listener. Missing handlers drop the event."""

    on_payload: PayloadCallback | None = None
    on_error: ErrorCallback | None = None
    on_status_change: StatusCallback | None = None


@dataclass(frozen=True)
class ListenerStatus:
    """Read-only snapshot of a poller."""

    is_running: bool
    current_interval_ms: float
    consecutive_empty: int
    client_id: str
    token: str
    link_type: LinkType
    listener_id: str | None = None
