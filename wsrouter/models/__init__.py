"""wsrouter data models — Pydantic v2, frozen."""

from wsrouter.models.connection import VALID_TRANSITIONS, ConnectionState
from wsrouter.models.envelopes import InboundEnvelope, OutboundEnvelope, Payload

__all__ = [
    # connection
    "ConnectionState",
    "VALID_TRANSITIONS",
    # envelopes
    "Payload",
    "OutboundEnvelope",
    "InboundEnvelope",
]
