"""notiroute data models — all Pydantic v2, all frozen (immutable)."""

from notiroute.models.events import Event, Priority
from notiroute.models.notifications import (
    VALID_TRANSITIONS,
    DeliveryStatus,
    InvalidTransitionError,
    NotificationChannel,
    NotificationRequest,
    NotificationStatus,
)
from notiroute.models.routing import EventPredicate, RoutingRule

__all__ = [
    # events
    "Event",
    "Priority",
    # notifications
    "NotificationChannel",
    "NotificationStatus",
    "NotificationRequest",
    "DeliveryStatus",
    "InvalidTransitionError",
    "VALID_TRANSITIONS",
    # routing
    "EventPredicate",
    "RoutingRule",
]
