"""Transport interface.

This is the (small) contract a transport must follow so the Coordinator
can stay independent of any particular socket library.  A transport is
bound to one URL and one event sink when it is built; it reports every
lifecycle change and every inbound frame through that sink.
"""

from __future__ import annotations

from typing import Callable, Protocol, runtime_checkable


class TransportError(RuntimeError):
    """Raised when a transport-level operation fails synchronously."""


class TransportEvents(Protocol):
    """Callbacks a transport invokes, possibly from its own thread."""

    def on_open(self) -> None: ...

    def on_close(self, code: int, reason: str, was_clean: bool) -> None: ...

    def on_error(self, error: BaseException) -> None: ...

    def on_text_message(self, text: str) -> None: ...

    def on_binary_message(self, data: bytes) -> None: ...


@runtime_checkable
class Transport(Protocol):
    """Minimal contract for a text-frame transport."""

    def open(self) -> None:
        """Start connecting; completion is reported via ``on_open``."""

    def close(self) -> None:
        """Tear down the connection; completion is reported via ``on_close``."""

    def write(self, text: str) -> None:
        """Send one text frame.  Failures are reported via ``on_error``."""

    @property
    def is_open(self) -> bool:
        """Whether the connection is currently established."""


# Builds a transport bound to a URL and an event sink.
TransportFactory = Callable[[str, TransportEvents], Transport]
