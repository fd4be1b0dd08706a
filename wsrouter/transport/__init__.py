"""Transport layer — the contract and the WebSocket implementation."""

from wsrouter.transport.base import (
    Transport,
    TransportError,
    TransportEvents,
    TransportFactory,
)
from wsrouter.transport.websocket import WebSocketTransport

__all__ = [
    "Transport",
    "TransportError",
    "TransportEvents",
    "TransportFactory",
    "WebSocketTransport",
]
