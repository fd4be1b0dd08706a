"""Coordinator — one transport, many topics.

Owns a single transport handle and a :class:`SubscriptionRegistry`.
Outbound ``send`` calls are encoded and written to the transport; inbound
text frames are decoded and dispatched to the handlers subscribed to the
envelope's identifier.

Every failure degrades to "log and drop": an invalid URL makes
``connect`` a no-op, unroutable inbound text is ignored, unserializable
outbound content is never written.  No public method raises.
"""

from __future__ import annotations

import functools
import logging
import threading
from typing import Any, Callable
from urllib.parse import urlsplit

from pydantic import AnyUrl, TypeAdapter, ValidationError

from wsrouter.config import RouterConfig, config
from wsrouter.core import codec
from wsrouter.core.registry import Handler, SubscriptionRegistry
from wsrouter.models.connection import VALID_TRANSITIONS, ConnectionState
from wsrouter.transport.base import Transport, TransportError, TransportFactory
from wsrouter.transport.websocket import WebSocketTransport

logger = logging.getLogger(__name__)

_URL_ADAPTER: TypeAdapter[AnyUrl] = TypeAdapter(AnyUrl)


class InvalidURLError(ValueError):
    """Raised by :func:`validate_url` for an unusable endpoint."""


def validate_url(url: str, allowed_schemes: tuple[str, ...] = ("ws", "wss")) -> str:
    """Return *url* unchanged if it is an absolute URL we can connect to."""
    try:
        parsed = _URL_ADAPTER.validate_python(url)
    except ValidationError as exc:
        raise InvalidURLError(f"Not a valid URL: {url!r}") from exc

    if parsed.scheme not in allowed_schemes:
        raise InvalidURLError(
            f"Unsupported scheme {parsed.scheme!r} in {url!r} "
            f"(expected one of {', '.join(allowed_schemes)})"
        )
    # AnyUrl reads "ws:///path" as host "path"; check the raw authority too.
    if not parsed.host or not urlsplit(url).netloc:
        raise InvalidURLError(f"URL has no host: {url!r}")
    return url


class _ConnectionEvents:
    """Event sink handed to one transport.

    Tagged with the connection generation it was created for, so events
    from a transport that has since been replaced are ignored.
    """

    def __init__(self, coordinator: Coordinator, generation: int) -> None:
        self._coordinator = coordinator
        self._generation = generation

    def on_open(self) -> None:
        self._coordinator._handle_open(self._generation)

    def on_close(self, code: int, reason: str, was_clean: bool) -> None:
        self._coordinator._handle_close(self._generation, code, reason, was_clean)

    def on_error(self, error: BaseException) -> None:
        self._coordinator._handle_error(self._generation, error)

    def on_text_message(self, text: str) -> None:
        self._coordinator._handle_text(self._generation, text)

    def on_binary_message(self, data: bytes) -> None:
        self._coordinator._handle_binary(self._generation, data)


class Coordinator:
    """Topic router over a single persistent connection.

    Parameters
    ----------
    transport_factory:
        Builds a transport for ``(url, events)``.  Defaults to
        :class:`WebSocketTransport`.
    settings:
        Defaults to the module-level ``config``.
    registry:
        Pre-populated registry to adopt; a fresh one by default.

    Usage
    -----
    >>> coordinator = Coordinator()
    >>> coordinator.subscribe("ping", lambda payload: print(payload))
    >>> coordinator.connect("wss://example.test/socket")
    >>> coordinator.send({"n": 1}, "ping")
    """

    def __init__(
        self,
        transport_factory: TransportFactory | None = None,
        *,
        settings: RouterConfig | None = None,
        registry: SubscriptionRegistry | None = None,
    ) -> None:
        self._settings = settings or config
        self._factory = transport_factory or self._websocket_factory
        self._registry = registry if registry is not None else SubscriptionRegistry()
        self._state = ConnectionState.DISCONNECTED
        self._transport: Transport | None = None
        self._url: str | None = None
        self._generation = 0
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state == ConnectionState.CONNECTED

    @property
    def url(self) -> str | None:
        """URL of the current transport, if any."""
        return self._url

    @property
    def registry(self) -> SubscriptionRegistry:
        return self._registry

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    def connect(self, url: str) -> None:
        """Open a transport to *url*, replacing any existing one.

        An invalid URL is ignored: no transport is built and the state is
        left untouched.
        """
        try:
            validate_url(url, self._settings.allowed_schemes)
        except InvalidURLError as exc:
            logger.debug("connect ignored: %s", exc)
            return

        previous: Transport | None = None
        transport: Transport | None = None
        try:
            with self._lock:
                previous = self._swap_transport(None)
                events = _ConnectionEvents(self, self._generation)
                try:
                    transport = self._factory(url, events)
                except TransportError as exc:
                    logger.warning("Could not create transport for %s: %s", url, exc)
                except Exception:
                    logger.exception("Transport factory failed for %s", url)

                if transport is None:
                    self._transition(ConnectionState.DISCONNECTED)
                else:
                    self._transport = transport
                    self._url = url
                    self._transition(ConnectionState.CONNECTING)
        finally:
            # Outside the lock: closing may wait on a thread that delivers events.
            self._close_quietly(previous)

        if transport is None:
            return

        logger.info("Connecting to %s", url)
        try:
            transport.open()
            return
        except TransportError as exc:
            logger.warning("Could not open connection to %s: %s", url, exc)
        except Exception:
            logger.exception("Could not open connection to %s", url)

        with self._lock:
            if self._transport is transport:
                self._swap_transport(None)
                self._transition(ConnectionState.DISCONNECTED)

    def disconnect(self) -> None:
        """Close and forget the current transport, if any."""
        with self._lock:
            transport = self._swap_transport(None)
            if transport is None:
                return
            self._transition(ConnectionState.DISCONNECTED)

        self._close_quietly(transport)
        logger.info("Disconnected from %s", self._url)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def subscribe(
        self,
        identifier: str,
        handler: Handler,
        override_existing: bool = False,
    ) -> Handler:
        """Route messages for *identifier* to *handler*.

        Works in any connection state; subscriptions outlive disconnects.
        Returns *handler* unchanged.
        """
        self._registry.register(identifier, handler, override_existing)
        return handler

    def on(
        self, identifier: str, override_existing: bool = False
    ) -> Callable[[Handler], Handler]:
        """Decorator form of :meth:`subscribe`."""
        return functools.partial(
            self.subscribe, identifier, override_existing=override_existing
        )

    def send(self, content: Any, route: str) -> bool:
        """Encode *content* for *route* and hand it to the transport.

        Returns ``True`` if the frame was handed to the transport.  The
        write is attempted whatever the connection state; delivery is the
        transport's responsibility and nothing is queued.
        """
        result = codec.encode(content, route)
        if not result.ok:
            logger.warning("Dropped message for route %r: %s", route, result.error)
            return False

        transport = self._transport
        if transport is None:
            logger.warning(
                "Dropped message for route %r: connect() has not been called", route
            )
            return False

        logger.debug("Sending message: %s", result.value)
        try:
            transport.write(result.value)
        except TransportError as exc:
            logger.warning("Write for route %r failed: %s", route, exc)
            return False
        return True

    # ------------------------------------------------------------------
    # Context manager
    # ------------------------------------------------------------------

    def __enter__(self) -> Coordinator:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.disconnect()

    def __repr__(self) -> str:
        return (
            f"Coordinator(url={self._url!r}, state={self._state.value}, "
            f"subscriptions={len(self._registry)})"
        )

    # ------------------------------------------------------------------
    # Transport events
    # ------------------------------------------------------------------

    def _is_current(self, generation: int) -> bool:
        if generation != self._generation:
            logger.debug("Ignoring event from replaced transport (gen %d)", generation)
            return False
        return True

    def _handle_open(self, generation: int) -> None:
        with self._lock:
            if not self._is_current(generation):
                return
            self._transition(ConnectionState.CONNECTED)
        logger.info("WebSocket did connect to %s", self._url)

    def _handle_close(
        self, generation: int, code: int, reason: str, was_clean: bool
    ) -> None:
        with self._lock:
            if not self._is_current(generation):
                return
            self._transition(ConnectionState.DISCONNECTED)
        logger.info(
            "WebSocket did disconnect from %s (code=%d, reason=%r, clean=%s)",
            self._url,
            code,
            reason,
            was_clean,
        )

    def _handle_error(self, generation: int, error: BaseException) -> None:
        if generation != self._generation:
            return
        logger.warning("Transport error on %s: %s", self._url, error)

    def _handle_text(self, generation: int, text: str) -> None:
        if not self._is_current(generation):
            return
        logger.debug("Did receive text: %s", text)

        result = codec.decode(text)
        if not result.ok:
            logger.debug("Dropped inbound message: %s", result.error)
            return

        envelope = result.value
        self._registry.dispatch(envelope.identifier, envelope.data)

    def _handle_binary(self, generation: int, data: bytes) -> None:
        if generation != self._generation:
            return
        logger.debug("Did receive %d bytes of binary data (not routed)", len(data))

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _websocket_factory(self, url: str, events: _ConnectionEvents) -> Transport:
        return WebSocketTransport(url, events, settings=self._settings)

    def _swap_transport(self, transport: Transport | None) -> Transport | None:
        """Install *transport* and start a new generation.  Caller holds the lock."""
        previous = self._transport
        self._transport = transport
        self._generation += 1
        return previous

    def _transition(self, new_state: ConnectionState) -> None:
        if new_state not in VALID_TRANSITIONS[self._state]:
            logger.debug(
                "Ignoring transition %s -> %s", self._state.value, new_state.value
            )
            return
        self._state = new_state

    @staticmethod
    def _close_quietly(transport: Transport | None) -> None:
        if transport is None:
            return
        try:
            transport.close()
        except TransportError as exc:
            logger.warning("Error closing transport: %s", exc)
        except Exception:
            logger.exception("Unexpected error closing transport")


@functools.lru_cache(maxsize=None)
def shared_coordinator() -> Coordinator:
    """Process-wide Coordinator for callers that want one access point."""
    return Coordinator()
