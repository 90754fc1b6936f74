"""
Adaptive polling interval for a single link.

Polls fast after activity, backs off after repeated empty cycles and always
follows the interval suggested by the polling endpoint when one is given.
"""

import structlog

from ..links import redact_token

logger = structlog.get_logger(__name__)


class AdaptiveInterval:
    """Tracks the polling cadence of one link."""

    BACKOFF_MULTIPLIER = 1.5
    MAX_INTERVAL_MS = 300_000  # 5 minutes
    MIN_INTERVAL_MS = 1000
    EMPTY_CYCLES_BEFORE_BACKOFF = 3

    def __init__(self, token: str, base_interval_ms: float, debug: bool = False):
        self.token = token
        self.base_interval_ms = base_interval_ms
        self.current_interval_ms = base_interval_ms
        self.consecutive_empty = 0
        self.debug = debug

    def adjust(self, has_new_content: bool, next_poll_in: float | None = None) -> None:
        """Update the interval after a poll cycle."""
        if next_poll_in is not None and next_poll_in > 0:
            self.current_interval_ms = max(next_poll_in, self.MIN_INTERVAL_MS)
            self._trace(
                "Using server-suggested interval",
                interval_ms=self.current_interval_ms,
            )
            return

        if has_new_content:
            self.current_interval_ms = self.base_interval_ms
            self.consecutive_empty = 0
            self._trace(
                "Reset to base interval after activity",
                interval_ms=self.current_interval_ms,
            )
            return

        self.consecutive_empty += 1
        if self.consecutive_empty < self.EMPTY_CYCLES_BEFORE_BACKOFF:
            return

        old_interval = self.current_interval_ms
        self.current_interval_ms = min(
            self.current_interval_ms * self.BACKOFF_MULTIPLIER, self.MAX_INTERVAL_MS
        )
        if old_interval != self.current_interval_ms:
            self._trace(
                "Backing off polling interval",
                old_interval_ms=old_interval,
                interval_ms=self.current_interval_ms,
                consecutive_empty=self.consecutive_empty,
            )

    def reset(self) -> None:
        """Return to the base interval and forget empty cycles."""
        self.current_interval_ms = self.base_interval_ms
        self.consecutive_empty = 0
        self._trace("Reset polling interval to base", interval_ms=self.base_interval_ms)

    def _trace(self, event: str, **kwargs: object) -> None:
        if self.debug:
            logger.debug(event, token=redact_token(self.token), **kwargs)
