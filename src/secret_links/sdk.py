"""
Public entry point of the Secret Links SDK.

SecretLinksSDK validates links, owns the listener table and creates one
LinkPoller per listener.
"""

import time
from collections.abc import Callable
from typing import Any

import httpx
import structlog

from .config import SDKOptions, ValidationOptions, load_options
from .exceptions import InvalidLinkError
from .links import parse_link, redact_token
from .models import LinkCallbacks, LinkInfo, ListenerStatus
from .polling.poller import LinkPoller

logger = structlog.get_logger(__name__)


def _log_error(error: Exception) -> None:
    logger.error(
        "Listener error", error=str(error), error_type=type(error).__name__
    )


class SecretLinksSDK:
    """
    Listen to Secret Links through a caller-supplied polling endpoint.

    Example:
        sdk = SecretLinksSDK(polling_endpoint="https://example.com/api/poll")
        listener_id = await sdk.start_listening(url, LinkCallbacks(on_payload=show))
        ...
        sdk.stop_listening(listener_id)
    """

    def __init__(
        self,
        options: SDKOptions | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        **option_fields: Any,
    ):
        """
        Initialize the SDK.

        Args:
            options: Prebuilt options
            transport: Optional httpx transport used by every poller
            **option_fields: ``SDKOptions`` fields, used when ``options`` is None

        Raises:
            ConfigurationError: If the options are missing or invalid
        """
        self.options = load_options(options, **option_fields)
        self.transport = transport
        self.on_error: Callable[[Exception], None] = self.options.on_error or _log_error
        self.debug = self.options.debug
        self.validation: ValidationOptions = self.options.validation

        self.active_listeners: dict[str, LinkPoller] = {}
        self.listener_counter = 0

        self._trace(
            "SDK initialized",
            polling_endpoint=self.options.polling_endpoint,
            ping_interval_ms=self.options.ping_interval_ms,
            webhook_interval_ms=self.options.webhook_interval_ms,
            has_api_key=bool(self.options.api_key),
        )

    async def __aenter__(self) -> "SecretLinksSDK":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.stop_all()

    def validate_link(self, url: str) -> LinkInfo:
        """
        Validate and parse a Secret Links URL.

        Args:
            url: The Secret Links URL to validate

        Returns:
            LinkInfo; ``is_valid`` is False for malformed URLs and for links
            rejected by the validation rules
        """
        link_info = parse_link(url)

        if not link_info.is_valid:
            self._trace("Link validation failed", url=url)
            return link_info

        rejection = self._apply_validation_rules(link_info)
        if rejection:
            self._trace("Custom validation failed", url=url, error=rejection)
            return link_info.model_copy(update={"is_valid": False})

        self._trace(
            "Link validated successfully",
            token=redact_token(link_info.token),
            link_type=link_info.link_type.value,
            domain=link_info.domain,
            has_password=link_info.has_password,
        )
        return link_info

    async def start_listening(
        self, link_url: str, callbacks: LinkCallbacks | None = None
    ) -> str:
        """
        Start listening to a Secret Links URL.

        The first poll happens before this returns.

        Args:
            link_url: The Secret Links URL to listen to
            callbacks: Event handlers for this listener

        Returns:
            Listener ID for managing this listener

        Raises:
            InvalidLinkError: If the URL is malformed or rejected
        """
        link_info = self.validate_link(link_url)
        if not link_info.is_valid:
            raise InvalidLinkError("Invalid Secret Link URL")

        callbacks = callbacks or LinkCallbacks()

        self.listener_counter += 1
        listener_id = f"listener-{int(time.time() * 1000)}-{self.listener_counter}"

        poller = LinkPoller(
            link_info,
            endpoint=self.options.polling_endpoint,
            base_interval_ms=self.options.interval_for(link_info.link_type),
            callbacks=LinkCallbacks(
                on_payload=callbacks.on_payload,
                on_error=callbacks.on_error or self._default_error_handler,
                on_status_change=callbacks.on_status_change,
            ),
            api_key=self.options.api_key,
            debug=self.debug,
            timeout_seconds=self.options.request_timeout_seconds,
            transport=self.transport,
            on_terminated=lambda _: self._forget(listener_id),
        )

        self.active_listeners[listener_id] = poller

        try:
            await poller.start()
        except BaseException:
            poller.stop()
            self.active_listeners.pop(listener_id, None)
            raise

        logger.info(
            "Started listening to link",
            listener_id=listener_id,
            token=redact_token(link_info.token),
            link_type=link_info.link_type.value,
        )
        return listener_id

    def stop_listening(self, listener_id: str) -> None:
        """
        Stop listening to a specific link. Unknown IDs are ignored.

        Args:
            listener_id: The listener ID returned from start_listening
        """
        poller = self.active_listeners.pop(listener_id, None)
        if poller is None:
            self._trace("Listener not found", listener_id=listener_id)
            return

        poller.stop()
        logger.info("Stopped listening", listener_id=listener_id)

    def stop_all(self) -> None:
        """Stop all active listeners."""
        count = len(self.active_listeners)
        for poller in self.active_listeners.values():
            poller.stop()
        self.active_listeners.clear()

        logger.info("Stopped all listeners", count=count)

    def get_listener_status(self, listener_id: str) -> ListenerStatus | None:
        """Get the status of a listener, or None if it is unknown."""
        poller = self.active_listeners.get(listener_id)
        return poller.get_status(listener_id) if poller else None

    def get_all_listener_statuses(self) -> list[ListenerStatus]:
        """Get the status of every active listener."""
        return [
            poller.get_status(listener_id)
            for listener_id, poller in self.active_listeners.items()
        ]

    def get_active_listener_count(self) -> int:
        """Get the number of active listeners."""
        return len(self.active_listeners)

    def is_listening(self) -> bool:
        """Check if any listener is active."""
        return bool(self.active_listeners)

    def _default_error_handler(self, error: Exception, link_info: LinkInfo) -> None:
        self.on_error(error)

    def _forget(self, listener_id: str) -> None:
        """Drop a listener whose poller stopped on a terminal link status."""
        if self.active_listeners.pop(listener_id, None) is not None:
            logger.info("Listener terminated by link status", listener_id=listener_id)

    def _apply_validation_rules(self, link_info: LinkInfo) -> str | None:
        """Return a rejection reason, or None if the link passes all rules."""
        allowed_domains = self.validation.allowed_domains
        if allowed_domains and link_info.domain not in allowed_domains:
            return (
                f"Domain {link_info.domain} is not allowed. "
                f"Allowed domains: {', '.join(allowed_domains)}"
            )

        allowed_types = self.validation.allowed_link_types
        if allowed_types and link_info.link_type not in allowed_types:
            return (
                f"Link type {link_info.link_type.value} is not allowed. "
                f"Allowed types: {', '.join(t.value for t in allowed_types)}"
            )

        if self.validation.require_password and not link_info.has_password:
            return "Password-protected links are required"

        return None

    def _trace(self, event: str, **kwargs: Any) -> None:
        if self.debug:
            logger.debug(event, **kwargs)
