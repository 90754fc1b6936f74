"""
Polling engine for the Secret Links SDK.

This package contains the per-link poll loop and its adaptive interval.
"""

from .adaptive import AdaptiveInterval
from .poller import LinkPoller, PollerState

__all__ = ["AdaptiveInterval", "LinkPoller", "PollerState"]
