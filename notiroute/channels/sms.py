"""SMS channel sender (simulated gateway delivery)."""

from __future__ import annotations

from notiroute.channels._simulation import SimulatedSender
from notiroute.models.notifications import NotificationChannel, NotificationRequest

_PREVIEW_LENGTH = 50


class SmsSender(SimulatedSender):
    """Simulates SMS delivery: 50-150 ms latency, 15% failure rate."""

    CHANNEL = NotificationChannel.SMS
    DEFAULT_LATENCY = (0.05, 0.15)
    DEFAULT_FAILURE_RATE = 0.15
    ERRORS = (
        "SMS gateway rate limit exceeded",
        "Invalid phone number format",
        "Carrier blocked the message",
        "Insufficient SMS credits",
        "Network timeout error",
        "Recipient phone is unreachable",
    )
    STATUS = "SMS gateway connected - Ready to send"

    def describe(self, request: NotificationRequest) -> str:
        return f"message={truncate(request.message)!r}"


def truncate(message: str, limit: int = _PREVIEW_LENGTH) -> str:
    """Shorten *message* to *limit* characters with a trailing ellipsis."""
    if len(message) <= limit:
        return message
    return message[: limit - 3] + "..."
