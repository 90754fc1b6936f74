"""
Poll loop for a single link.

A LinkPoller repeatedly posts a poll request to the configured endpoint,
hands results to the listener callbacks and re-arms a one-shot timer for the
next cycle. Only a terminal link status ends the loop on its own; transport
and server errors are reported and polling continues with backoff.
"""

import asyncio
import inspect
import time
from collections.abc import Callable
from enum import Enum
from typing import Any

import httpx
import structlog
from pydantic import ValidationError

from .. import __version__
from ..exceptions import (
    PollerStateError,
    PollHTTPError,
    PollResponseError,
    PollTransportError,
    ServerReportedError,
)
from ..links import generate_client_id, redact_token
from ..models import (
    LinkCallbacks,
    LinkInfo,
    LinkStatus,
    ListenerStatus,
    PollRequest,
    PollResponse,
)
from .adaptive import AdaptiveInterval

logger = structlog.get_logger(__name__)

USER_AGENT = f"SecretLinksSDK/{__version__}"


def _now_ms() -> int:
    return int(time.time() * 1000)


class PollerState(str, Enum):
    """Lifecycle of a LinkPoller. A stopped poller is never restarted."""

    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


class LinkPoller:
    """
    Polls the endpoint for one link until stopped or the link terminates.

    All work happens on the event loop that called ``start()``; the network
    exchange is the only suspension point inside a cycle, besides awaiting
    coroutine callbacks.
    """

    def __init__(
        self,
        link_info: LinkInfo,
        endpoint: str,
        base_interval_ms: float,
        callbacks: LinkCallbacks | None = None,
        api_key: str | None = None,
        debug: bool = False,
        timeout_seconds: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
        on_terminated: Callable[["LinkPoller"], None] | None = None,
    ):
        """
        Initialize the poller.

        Args:
            link_info: Valid link descriptor to poll for
            endpoint: Polling endpoint URL
            base_interval_ms: Interval used after activity
            callbacks: Listener event handlers
            api_key: Bearer token for the polling endpoint
            debug: Log every cycle
            timeout_seconds: Timeout for a single poll request
            transport: Optional httpx transport, e.g. for testing
            on_terminated: Called once if the link reaches a terminal status
        """
        self.link_info = link_info
        self.endpoint = endpoint
        self.api_key = api_key
        self.callbacks = callbacks or LinkCallbacks()
        self.debug = debug
        self.timeout_seconds = timeout_seconds
        self.transport = transport
        self.on_terminated = on_terminated

        self.client_id = generate_client_id()
        self.adaptive = AdaptiveInterval(link_info.token, base_interval_ms, debug)
        self.state = PollerState.IDLE
        self.last_seen: int | None = None

        self._timer: asyncio.TimerHandle | None = None
        self._cycle_task: asyncio.Task[None] | None = None

        self._trace(
            "Created poller",
            link_type=link_info.link_type.value,
            domain=link_info.domain,
            has_password=link_info.has_password,
            client_id=self.client_id,
        )

    @property
    def is_running(self) -> bool:
        """Check if the poller is running."""
        return self.state is PollerState.RUNNING

    @property
    def redacted_token(self) -> str:
        return redact_token(self.link_info.token)

    async def start(self) -> None:
        """Start polling and run the first cycle immediately."""
        if self.state is PollerState.RUNNING:
            logger.warning("Poller already running", token=self.redacted_token)
            return
        if self.state is PollerState.STOPPED:
            raise PollerStateError(
                "A stopped poller cannot be restarted",
                context={"client_id": self.client_id},
            )

        self.state = PollerState.RUNNING
        self.adaptive.reset()
        logger.info(
            "Starting poller",
            token=self.redacted_token,
            link_type=self.link_info.link_type.value,
        )

        await self._poll()

    def stop(self) -> None:
        """Stop polling. Safe to call more than once."""
        if self.state is not PollerState.RUNNING:
            return

        self.state = PollerState.STOPPED
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

        logger.info("Stopped poller", token=self.redacted_token)

    def get_status(self, listener_id: str | None = None) -> ListenerStatus:
        """Get a snapshot of the poller state."""
        return ListenerStatus(
            is_running=self.is_running,
            current_interval_ms=self.adaptive.current_interval_ms,
            consecutive_empty=self.adaptive.consecutive_empty,
            client_id=self.client_id,
            token=self.redacted_token,
            link_type=self.link_info.link_type,
            listener_id=listener_id,
        )

    async def _poll(self) -> None:
        """Run one poll cycle."""
        if not self.is_running:
            return

        try:
            response = await self._request()
        except Exception as e:
            # A stopped poller drops the result of an in-flight request
            if self.is_running:
                await self._handle_failure(e)
            return

        if self.is_running:
            await self._handle_response(response)

    async def _request(self) -> PollResponse:
        """Send one poll request and decode the response."""
        poll_request = PollRequest(
            token=self.link_info.token,
            link_type=self.link_info.link_type,
            password=self.link_info.password,
            client_id=self.client_id,
            timestamp=_now_ms(),
            last_seen=self.last_seen,
        )
        headers = {"Content-Type": "application/json", "User-Agent": USER_AGENT}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        self._trace(
            "Polling endpoint",
            endpoint=self.endpoint,
            link_type=self.link_info.link_type.value,
        )

        try:
            async with httpx.AsyncClient(
                transport=self.transport, timeout=self.timeout_seconds
            ) as client:
                response = await client.post(
                    self.endpoint, json=poll_request.to_wire(), headers=headers
                )
        except httpx.HTTPError as e:
            raise PollTransportError(
                f"Poll request failed: {e}", context={"endpoint": self.endpoint}
            ) from e

        if not response.is_success:
            raise PollHTTPError(
                f"HTTP {response.status_code}: {response.reason_phrase}",
                status_code=response.status_code,
            )

        try:
            result = PollResponse.model_validate_json(response.content)
        except ValidationError as e:
            raise PollResponseError(
                "Malformed poll response",
                context={"errors": [error["msg"] for error in e.errors()]},
            ) from e

        self._trace(
            "Poll response received",
            has_new_content=result.has_new_content,
            link_status=result.link_status.value,
            next_poll_in=result.next_poll_in,
        )
        return result

    async def _handle_response(self, response: PollResponse) -> None:
        if response.has_new_content and response.payload is not None:
            self.last_seen = _now_ms()
            await self._dispatch("on_payload", response.payload, self.link_info)
            if not self.is_running:
                return
            self._trace(
                "Payload delivered to callback",
                payload_type=response.payload.link_type.value,
                timestamp=response.payload.timestamp,
            )

        if response.link_status is not LinkStatus.ACTIVE:
            logger.info(
                "Link status changed",
                status=response.link_status.value,
                token=self.redacted_token,
            )
            await self._dispatch(
                "on_status_change", response.link_status, self.link_info
            )
            if not self.is_running:
                return
            if response.link_status.is_terminal:
                self._terminate()
                return

        if response.error:
            logger.warning(
                "Server returned error",
                error=response.error,
                token=self.redacted_token,
            )
            await self._dispatch(
                "on_error",
                ServerReportedError(f"Server error: {response.error}"),
                self.link_info,
            )
            if not self.is_running:
                return

        self.adaptive.adjust(response.has_new_content, response.next_poll_in)
        self._schedule_next_poll()

    async def _handle_failure(self, error: Exception) -> None:
        logger.warning(
            "Poll failed",
            error=str(error),
            error_type=type(error).__name__,
            token=self.redacted_token,
        )
        await self._dispatch("on_error", error, self.link_info)
        if not self.is_running:
            return

        # Failures count as empty cycles so a failing backend gets polled less
        self.adaptive.adjust(False)
        self._schedule_next_poll()

    def _terminate(self) -> None:
        if not self.is_running:
            return
        self.stop()
        if self.on_terminated is not None:
            self.on_terminated(self)

    async def _dispatch(self, name: str, *args: Any) -> None:
        """Invoke a listener callback; callback failures never escape the cycle."""
        callback = getattr(self.callbacks, name)
        if callback is None:
            return

        try:
            result = callback(*args)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception(
                "Listener callback failed", callback=name, token=self.redacted_token
            )

    def _schedule_next_poll(self) -> None:
        if not self.is_running:
            return

        interval_ms = self.adaptive.current_interval_ms
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(interval_ms / 1000, self._on_timer)
        self._trace("Next poll scheduled", interval_ms=interval_ms)

    def _on_timer(self) -> None:
        self._timer = None
        if not self.is_running:
            return
        self._cycle_task = asyncio.create_task(self._poll())

    def _trace(self, event: str, **kwargs: Any) -> None:
        if self.debug:
            logger.debug(event, token=self.redacted_token, **kwargs)
