"""Push notification channel sender (simulated FCM/APNS delivery)."""

from __future__ import annotations

from notiroute.channels._simulation import SimulatedSender
from notiroute.models.notifications import NotificationChannel


class PushSender(SimulatedSender):
    """Simulates push delivery: 50-150 ms latency, 8% failure rate."""

    CHANNEL = NotificationChannel.PUSH
    DEFAULT_LATENCY = (0.05, 0.15)
    DEFAULT_FAILURE_RATE = 0.08
    ERRORS = (
        "Device token expired or invalid",
        "Push service temporarily unavailable",
        "Message payload too large",
        "Invalid push registration token",
        "Push notification quota exceeded",
        "Device not reachable (offline)",
        "Application not installed on device",
    )
    STATUS = "Push notification service ready - FCM/APNS connected"
