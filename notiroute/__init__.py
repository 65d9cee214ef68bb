"""notiroute: event-driven notification routing and delivery.

Events are matched against priority-ordered routing rules, rendered into
per-channel notification requests and dispatched concurrently to channel
senders.  Every entity lives in a lock-striped in-memory store, and failed
deliveries can be retried with exponential backoff or escalated to a
dead-letter table.
"""

__version__ = "0.1.0"
__description__ = "Event-driven notification routing and delivery orchestration"

from notiroute.core.orchestrator import DeliveryOrchestrator
from notiroute.core.store import NotificationStore
from notiroute.routing.engine import RoutingEngine
from notiroute.cli.app import app as cli

__all__ = [
    "DeliveryOrchestrator",
    "NotificationStore",
    "RoutingEngine",
    "cli",
    "__version__",
]
