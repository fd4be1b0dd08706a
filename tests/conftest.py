"""Shared test fixtures for wsrouter."""

from __future__ import annotations

import json
import threading
from collections.abc import Callable
from typing import Any

import pytest

from wsrouter.core.coordinator import Coordinator
from wsrouter.core.registry import SubscriptionRegistry
from wsrouter.transport.base import TransportError, TransportEvents


# ---------------------------------------------------------------------------
# Fake transport: records calls and lets tests drive events by hand
# ---------------------------------------------------------------------------


class FakeTransport:
    """In-memory stand-in for a socket transport."""

    def __init__(
        self,
        url: str,
        events: TransportEvents,
        *,
        auto_open: bool = True,
        fail_open: bool = False,
        open_error: BaseException | None = None,
    ) -> None:
        self.url = url
        self.events = events
        self.auto_open = auto_open
        self.fail_open = fail_open
        self.open_error = open_error
        self.open_calls = 0
        self.close_calls = 0
        self.writes: list[str] = []
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self) -> None:
        self.open_calls += 1
        if self.fail_open:
            raise TransportError("simulated open failure")
        if self.open_error is not None:
            raise self.open_error
        if self.auto_open:
            self.simulate_open()

    def close(self) -> None:
        self.close_calls += 1
        self._open = False

    def write(self, text: str) -> None:
        self.writes.append(text)

    # -- driving events ------------------------------------------------

    def simulate_open(self) -> None:
        self._open = True
        self.events.on_open()

    def simulate_close(
        self, code: int = 1000, reason: str = "", was_clean: bool = True
    ) -> None:
        self._open = False
        self.events.on_close(code, reason, was_clean)

    def simulate_text(self, text: str) -> None:
        self.events.on_text_message(text)


class FakeTransportFactory:
    """Transport factory that remembers every transport it built."""

    def __init__(self, **transport_kwargs: Any) -> None:
        self.transport_kwargs = transport_kwargs
        self.created: list[FakeTransport] = []

    def __call__(self, url: str, events: TransportEvents) -> FakeTransport:
        transport = FakeTransport(url, events, **self.transport_kwargs)
        self.created.append(transport)
        return transport

    @property
    def last(self) -> FakeTransport:
        return self.created[-1]


class RecordingEvents:
    """TransportEvents sink that records callbacks and signals key ones."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.opened = threading.Event()
        self.closed = threading.Event()
        self.errors: list[BaseException] = []

    def on_open(self) -> None:
        self.calls.append(("open", ()))
        self.opened.set()

    def on_close(self, code: int, reason: str, was_clean: bool) -> None:
        self.calls.append(("close", (code, reason, was_clean)))
        self.closed.set()

    def on_error(self, error: BaseException) -> None:
        self.calls.append(("error", (error,)))
        self.errors.append(error)

    def on_text_message(self, text: str) -> None:
        self.calls.append(("text", (text,)))

    def on_binary_message(self, data: bytes) -> None:
        self.calls.append(("binary", (data,)))


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def transport_factory() -> FakeTransportFactory:
    """Provide a factory producing auto-opening fake transports."""
    return FakeTransportFactory()


@pytest.fixture
def make_transport_factory() -> Callable[..., FakeTransportFactory]:
    """Factory fixture: a FakeTransportFactory with custom transport options."""

    def _factory(**transport_kwargs: Any) -> FakeTransportFactory:
        return FakeTransportFactory(**transport_kwargs)

    return _factory


@pytest.fixture
def coordinator(transport_factory: FakeTransportFactory) -> Coordinator:
    """Provide a Coordinator wired to the fake transport factory."""
    return Coordinator(transport_factory=transport_factory)


@pytest.fixture
def registry() -> SubscriptionRegistry:
    """Provide an empty SubscriptionRegistry."""
    return SubscriptionRegistry()


@pytest.fixture
def recording_events() -> RecordingEvents:
    """Provide a TransportEvents sink that records every callback."""
    return RecordingEvents()


@pytest.fixture
def make_inbound_text() -> Callable[..., str]:
    """Factory fixture: build inbound wire text for an identifier."""

    def _factory(identifier: str = "ping", data: Any = None, **extra: Any) -> str:
        envelope: dict[str, Any] = {
            "identifier": identifier,
            "data": {"n": 1} if data is None else data,
        }
        envelope.update(extra)
        return json.dumps(envelope)

    return _factory


@pytest.fixture
def recorder() -> Callable[..., Any]:
    """Factory fixture: a handler that appends payloads to a list."""

    def _factory(sink: list[Any], tag: str | None = None) -> Callable[[dict], None]:
        def _handler(payload: dict) -> None:
            sink.append(payload if tag is None else (tag, payload))

        return _handler

    return _factory
