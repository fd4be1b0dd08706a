"""Envelope codec — JSON text in, routable envelopes out (and back).

Neither direction raises.  Both return a :class:`CodecResult` carrying
either the value or a human-readable reason, so the caller decides how a
failure is logged and dropped.

Outbound serialization is canonical:
- sorted keys
- no whitespace separators (",", ":")
- ensure_ascii=True
- NaN / Infinity rejected
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pydantic import ValidationError

from wsrouter.models.envelopes import InboundEnvelope, OutboundEnvelope

T = TypeVar("T")


@dataclass(frozen=True)
class CodecResult(Generic[T]):
    """Outcome of an encode/decode: exactly one of value/error is set."""

    value: T | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> CodecResult[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, reason: str) -> CodecResult[T]:
        return cls(error=reason)


def canonical_json(obj: Any) -> str:
    """Produce canonical JSON text — deterministic, sorted, compact."""
    return json.dumps(
        obj,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=True,
        allow_nan=False,
    )


def encode(content: Any, route: str) -> CodecResult[str]:
    """Wrap *content* for *route* and serialize it to wire text."""
    try:
        envelope = OutboundEnvelope(data=content, route=route)
    except ValidationError as exc:
        return CodecResult.failure(f"Invalid outbound envelope: {exc}")

    # Not model_dump(): dataclasses and models are not wire values.
    wire = {"data": envelope.data, "route": envelope.route}
    try:
        return CodecResult.success(canonical_json(wire))
    except (TypeError, ValueError, RecursionError) as exc:
        return CodecResult.failure(f"Content is not JSON-serializable: {exc}")


def decode(text: str | bytes) -> CodecResult[InboundEnvelope]:
    """Parse wire text into an :class:`InboundEnvelope`.

    Any top-level JSON value is accepted by the parser, but only objects
    with a string ``identifier`` and an object ``data`` are routable.
    """
    if isinstance(text, (bytes, bytearray)):
        try:
            text = bytes(text).decode("utf-8")
        except UnicodeDecodeError as exc:
            return CodecResult.failure(f"Invalid UTF-8: {exc}")

    # ValueError also covers int literals over the interpreter's digit limit.
    try:
        parsed = json.loads(text)
    except (ValueError, RecursionError) as exc:
        return CodecResult.failure(f"Invalid JSON: {exc}")

    if not isinstance(parsed, dict):
        return CodecResult.failure(
            f"Envelope must be a JSON object, got {type(parsed).__name__}"
        )

    try:
        return CodecResult.success(InboundEnvelope.model_validate(parsed))
    except ValidationError as exc:
        fields = ", ".join(
            ".".join(str(part) for part in err["loc"]) for err in exc.errors()
        )
        return CodecResult.failure(f"Envelope is not routable ({fields})")
