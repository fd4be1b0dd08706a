"""Wire envelopes for the topic router.

Outbound messages are wrapped as ``{"data": ..., "route": ...}``.  Inbound
frames are only routable when they carry ``{"identifier": ..., "data": {...}}``.
Both are frozen Pydantic models; the inbound model is strict so that a
numeric identifier or a list payload never slips through by coercion.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, StrictStr

# Arbitrary JSON object delivered to subscription handlers.
Payload = dict[str, Any]


class OutboundEnvelope(BaseModel):
    """A message pushed to the server on a named route."""

    model_config = ConfigDict(frozen=True)

    data: Any = None
    route: str


class InboundEnvelope(BaseModel):
    """A routable message received from the server.

    Unknown top-level fields are ignored.
    """

    model_config = ConfigDict(frozen=True, strict=True, extra="ignore")

    identifier: StrictStr
    data: Payload
