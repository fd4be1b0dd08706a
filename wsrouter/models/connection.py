"""Connection lifecycle model for the Coordinator."""

from __future__ import annotations

from enum import Enum


class ConnectionState(str, Enum):
    """Lifecycle of the single transport owned by a Coordinator."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


# DISCONNECTED is re-entrant: connect() may start over after a close.
# CONNECTING -> CONNECTING covers connect() being called again mid-handshake.
VALID_TRANSITIONS: dict[ConnectionState, set[ConnectionState]] = {
    ConnectionState.DISCONNECTED: {ConnectionState.CONNECTING},
    ConnectionState.CONNECTING: {
        ConnectionState.CONNECTING,
        ConnectionState.CONNECTED,
        ConnectionState.DISCONNECTED,
    },
    ConnectionState.CONNECTED: {
        ConnectionState.CONNECTING,
        ConnectionState.DISCONNECTED,
    },
}
