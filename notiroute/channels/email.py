"""Email channel sender (simulated SMTP delivery)."""

from __future__ import annotations

from notiroute.channels._simulation import SimulatedSender
from notiroute.models.notifications import NotificationChannel


class EmailSender(SimulatedSender):
    """Simulates email delivery: 100-300 ms latency, 10% failure rate."""

    CHANNEL = NotificationChannel.EMAIL
    DEFAULT_LATENCY = (0.1, 0.3)
    DEFAULT_FAILURE_RATE = 0.10
    ERRORS = (
        "SMTP server temporarily unavailable",
        "Invalid recipient email address",
        "Message rejected by spam filter",
        "Connection timeout to email server",
        "Daily sending limit exceeded",
    )
    STATUS = "Email service ready - SMTP connected"
