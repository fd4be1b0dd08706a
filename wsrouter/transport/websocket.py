"""WebSocket transport — wraps the ``websockets`` synchronous client.

The handshake and the receive loop run on a dedicated daemon reader
thread, so ``open()`` returns immediately and every event (open, frames,
close) is delivered on that thread.  ``write()`` may be called from any
thread; writes are serialized by a lock.

Nothing is buffered: a write while the socket is not open is dropped and
reported through ``on_error``.  Reconnection is the caller's business.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

from websockets.exceptions import (
    ConnectionClosed,
    ConnectionClosedOK,
    WebSocketException,
)
from websockets.sync.client import ClientConnection, connect

from wsrouter.config import RouterConfig, config
from wsrouter.transport.base import TransportError, TransportEvents

logger = logging.getLogger(__name__)

# Close code reported when no close frame was exchanged (RFC 6455 §7.4.1).
ABNORMAL_CLOSURE = 1006


class WebSocketTransport:
    """Text-frame transport over one WebSocket connection.

    Parameters
    ----------
    url:
        ``ws://`` or ``wss://`` endpoint.
    events:
        Sink receiving lifecycle and message callbacks.
    settings:
        Timeouts and limits; defaults to the module-level ``config``.
    connect_kwargs:
        Extra keyword arguments forwarded to
        ``websockets.sync.client.connect`` (e.g. ``ssl``, ``additional_headers``).
    """

    def __init__(
        self,
        url: str,
        events: TransportEvents,
        *,
        settings: RouterConfig | None = None,
        **connect_kwargs: Any,
    ) -> None:
        self._url = url
        self._events = events
        self._settings = settings or config
        self._connect_kwargs = connect_kwargs
        self._connection: ClientConnection | None = None
        self._reader: threading.Thread | None = None
        self._write_lock = threading.Lock()
        self._closing = threading.Event()

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def url(self) -> str:
        return self._url

    @property
    def is_open(self) -> bool:
        """``True`` between a completed handshake and the end of the connection."""
        return self._connection is not None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def open(self) -> None:
        """Start the reader thread, which performs the handshake.

        Raises
        ------
        TransportError
            If this transport is already running.
        """
        if self._reader is not None and self._reader.is_alive():
            raise TransportError(f"Transport for {self._url} is already open")

        self._closing.clear()
        self._reader = threading.Thread(
            target=self._run,
            name=f"wsrouter-reader[{self._url}]",
            daemon=True,
        )
        self._reader.start()

    def write(self, text: str) -> None:
        """Send one text frame, or drop it and report via ``on_error``."""
        connection = self._connection
        if connection is None:
            logger.warning(
                "WebSocketTransport.write: %s is not open — frame dropped.",
                self._url,
            )
            self._events.on_error(TransportError(f"{self._url} is not open"))
            return

        try:
            with self._write_lock:
                connection.send(text)
        except (ConnectionClosed, WebSocketException, OSError) as exc:
            logger.warning(
                "WebSocketTransport.write: send to %s failed (%s) — frame dropped.",
                self._url,
                exc,
            )
            self._events.on_error(exc)
            return

        logger.debug("WebSocketTransport.write: sent %d chars.", len(text))

    def close(self) -> None:
        """Close the connection and wait for the reader thread to finish."""
        self._closing.set()

        connection = self._connection
        if connection is not None:
            connection.close()

        reader = self._reader
        if reader is not None and reader is not threading.current_thread():
            reader.join(timeout=self._settings.close_timeout)
            if reader.is_alive():
                logger.warning(
                    "WebSocketTransport.close: reader for %s did not stop within %.1fs.",
                    self._url,
                    self._settings.close_timeout,
                )

    def __repr__(self) -> str:
        state = "open" if self.is_open else "closed"
        return f"WebSocketTransport(url={self._url!r}, state={state})"

    # ------------------------------------------------------------------
    # Internal: reader thread
    # ------------------------------------------------------------------

    def _run(self) -> None:
        try:
            connection = connect(
                self._url,
                open_timeout=self._settings.open_timeout,
                close_timeout=self._settings.close_timeout,
                ping_interval=self._settings.ping_interval,
                max_size=self._settings.max_message_size,
                **self._connect_kwargs,
            )
        except (WebSocketException, OSError, TimeoutError) as exc:
            logger.warning("WebSocketTransport: connecting to %s failed: %s", self._url, exc)
            self._events.on_error(exc)
            self._events.on_close(ABNORMAL_CLOSURE, str(exc), False)
            return

        self._connection = connection
        if self._closing.is_set():
            # close() arrived while the handshake was in flight.
            connection.close()
        else:
            logger.debug("WebSocketTransport: handshake with %s complete.", self._url)
            self._events.on_open()

        code, reason, was_clean = ABNORMAL_CLOSURE, "", False
        try:
            while True:
                message = connection.recv()
                if isinstance(message, str):
                    self._events.on_text_message(message)
                else:
                    self._events.on_binary_message(message)
        except ConnectionClosed as exc:
            frame = exc.rcvd or exc.sent
            if frame is not None:
                code, reason = frame.code, frame.reason
            was_clean = isinstance(exc, ConnectionClosedOK)
        except Exception as exc:
            logger.exception("WebSocketTransport: reader for %s crashed.", self._url)
            connection.close()
            self._events.on_error(exc)
            reason = f"{type(exc).__name__}: {exc}"
        finally:
            self._connection = None

        logger.debug(
            "WebSocketTransport: %s closed (code=%d, clean=%s).", self._url, code, was_clean
        )
        self._events.on_close(code, reason, was_clean)
