"""
Pytest configuration and fixtures for Secret Links SDK tests.
"""

import asyncio
import json
import os
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from secret_links.links import parse_link
from secret_links.models import LinkCallbacks, LinkInfo

PING_LINK = "https://secret.annai.ai/link/abc123def456ghi789"
WEBHOOK_LINK = "https://secret.annai.ai/link/abcdefghijklmnopqrstuvwxyz0123"
POLL_ENDPOINT = "https://x/poll"


class FakeEndpoint:
    """Polling endpoint backed by httpx.MockTransport."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.responses: list[httpx.Response | Exception] = []
        self.gate: asyncio.Event | None = None
        self.received = asyncio.Event()
        self.transport = httpx.MockTransport(self.handler)

    def reply(
        self,
        has_new_content: bool = False,
        link_status: str = "active",
        **fields: Any,
    ) -> None:
        body = {"hasNewContent": has_new_content, "linkStatus": link_status, **fields}
        self.responses.append(httpx.Response(200, json=body))

    def reply_raw(self, status_code: int, content: bytes = b"") -> None:
        self.responses.append(httpx.Response(status_code, content=content))

    def fail(self, error: Exception) -> None:
        self.responses.append(error)

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        self.received.set()
        if self.gate is not None:
            await self.gate.wait()

        if not self.responses:
            return httpx.Response(
                200, json={"hasNewContent": False, "linkStatus": "active"}
            )
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def bodies(self) -> list[dict[str, Any]]:
        return [json.loads(request.content) for request in self.requests]


class FakeTimer:
    def __init__(self, delay: float, callback: Callable[..., None], args: tuple):
        self.delay = delay
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeTimers:
    """Replaces ``call_later`` on the running loop so time can be advanced by hand."""

    def __init__(self, monkeypatch: pytest.MonkeyPatch) -> None:
        self.monkeypatch = monkeypatch
        self.scheduled: list[FakeTimer] = []

    def install(self) -> "FakeTimers":
        loop = asyncio.get_running_loop()
        self.monkeypatch.setattr(loop, "call_later", self.call_later)
        return self

    def call_later(
        self, delay: float, callback: Callable[..., None], *args: Any, context: Any = None
    ) -> FakeTimer:
        timer = FakeTimer(delay, callback, args)
        self.scheduled.append(timer)
        return timer

    @property
    def pending(self) -> list[FakeTimer]:
        return [timer for timer in self.scheduled if not timer.cancelled]

    @property
    def delays(self) -> list[float]:
        return [timer.delay for timer in self.scheduled]

    async def advance(self) -> None:
        """Fire the oldest pending timer and wait for the cycle it started."""
        assert self.pending, "no pending timer"
        timer = self.pending[0]
        self.scheduled.remove(timer)
        timer.callback(*timer.args)

        current = asyncio.current_task()
        others = [task for task in asyncio.all_tasks() if task is not current]
        await asyncio.gather(*others)


class Recorder:
    """Collects listener callback invocations."""

    def __init__(self) -> None:
        self.payloads: list[tuple[Any, LinkInfo]] = []
        self.errors: list[tuple[Exception, LinkInfo]] = []
        self.statuses: list[tuple[Any, LinkInfo]] = []

    @property
    def callbacks(self) -> LinkCallbacks:
        return LinkCallbacks(
            on_payload=lambda payload, info: self.payloads.append((payload, info)),
            on_error=lambda error, info: self.errors.append((error, info)),
            on_status_change=lambda status, info: self.statuses.append((status, info)),
        )


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep SDK settings and proxies from the environment out of tests."""
    for name in list(os.environ):
        if name.upper().startswith("SECRET_LINKS_") or name.upper() in {
            "HTTP_PROXY",
            "HTTPS_PROXY",
            "ALL_PROXY",
        }:
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def endpoint() -> FakeEndpoint:
    """Fake polling endpoint."""
    return FakeEndpoint()


@pytest.fixture
def fake_timers(monkeypatch: pytest.MonkeyPatch) -> FakeTimers:
    """Fake timers; call ``install()`` inside the test coroutine."""
    return FakeTimers(monkeypatch)


@pytest.fixture
def recorder() -> Recorder:
    """Callback recorder."""
    return Recorder()


@pytest.fixture
def ping_link_info() -> LinkInfo:
    """Parsed ping link."""
    return parse_link(PING_LINK)


@pytest.fixture
def sample_payload() -> dict[str, Any]:
    """Sample payload in wire format."""
    return {
        "type": "ping",
        "timestamp": 1700000000000,
        "data": {"message": "Hello from the other side"},
        "metadata": {"source": "web", "userAgent": "Mozilla/5.0"},
    }
