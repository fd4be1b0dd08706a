"""wsrouter: topic-based message routing over a single WebSocket connection.

Many logical topics share one persistent connection:
  - Outbound messages are wrapped as ``{"data": ..., "route": ...}``
  - Inbound ``{"identifier": ..., "data": {...}}`` envelopes are dispatched
    to every handler subscribed to that identifier
  - Malformed or unroutable traffic is logged and dropped, never raised
"""

__version__ = "0.1.0"

from wsrouter.core.coordinator import Coordinator, shared_coordinator
from wsrouter.core.registry import SubscriptionRegistry

__all__ = ["Coordinator", "SubscriptionRegistry", "shared_coordinator", "__version__"]
