"""SubscriptionRegistry — ordered identifier -> handler bindings.

Every inbound payload is delivered to each handler registered under its
identifier, in registration order.  An identifier with no handlers is an
expected outcome: it is logged once and otherwise ignored.  Handler
failures are logged but do not prevent delivery to remaining handlers.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from typing import Callable

from wsrouter.models.envelopes import Payload

logger = logging.getLogger(__name__)

Handler = Callable[[Payload], None]


@dataclass(frozen=True)
class Subscription:
    """A binding from a routing identifier to a handler."""

    identifier: str
    handler: Handler


class SubscriptionRegistry:
    """Routes payloads to the handlers subscribed to an identifier.

    Reads and writes are serialized by a lock so that the transport's
    delivery thread and caller code can share one registry.  Handlers
    run outside the lock and may subscribe from inside a callback.

    Usage
    -----
    >>> registry = SubscriptionRegistry()
    >>> registry.register("ping", print)
    >>> registry.dispatch("ping", {"n": 1})
    {'n': 1}
    1
    """

    def __init__(self) -> None:
        self._subscriptions: list[Subscription] = []
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(
        self,
        identifier: str,
        handler: Handler,
        override_existing: bool = False,
    ) -> None:
        """Bind *handler* to *identifier*.

        With ``override_existing`` the first entry already bound to
        *identifier* gets the new handler, keeping its position.  In every
        other case the binding is appended, even if the identifier is
        already present.
        """
        with self._lock:
            if override_existing:
                for index, subscription in enumerate(self._subscriptions):
                    if subscription.identifier == identifier:
                        self._subscriptions[index] = replace(
                            subscription, handler=handler
                        )
                        logger.info("Replaced subscription to %r", identifier)
                        return

            self._subscriptions.append(Subscription(identifier, handler))

        logger.info("Subscribed to %r", identifier)

    def clear(self) -> None:
        """Drop every subscription."""
        with self._lock:
            self._subscriptions.clear()

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def handlers_for(self, identifier: str) -> list[Handler]:
        """Return the handlers bound to *identifier*, in registry order."""
        with self._lock:
            return [
                s.handler for s in self._subscriptions if s.identifier == identifier
            ]

    @property
    def subscriptions(self) -> tuple[Subscription, ...]:
        """Snapshot of every binding, in registry order."""
        with self._lock:
            return tuple(self._subscriptions)

    @property
    def identifiers(self) -> list[str]:
        """Distinct identifiers in first-registration order."""
        with self._lock:
            return list(dict.fromkeys(s.identifier for s in self._subscriptions))

    def __contains__(self, identifier: object) -> bool:
        with self._lock:
            return any(s.identifier == identifier for s in self._subscriptions)

    def __len__(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def dispatch(self, identifier: str, payload: Payload) -> int:
        """Deliver *payload* to every handler bound to *identifier*.

        Returns the number of handlers invoked.  A handler that raises is
        still counted; the exception is logged and delivery continues.
        """
        handlers = self.handlers_for(identifier)

        if not handlers:
            logger.warning(
                "No subscriptions found for message with identifier %r", identifier
            )
            return 0

        for handler in handlers:
            try:
                handler(payload)
            except Exception:  # noqa: BLE001
                logger.exception("Handler for %r failed", identifier)

        return len(handlers)
