"""Shared behavior for the simulated channel senders.

Each simulated sender sleeps for a random latency, then fails with a
provider-style error at a configured rate.  The sleep waits on a
``threading.Event`` so a shutdown interrupts it immediately.
"""

from __future__ import annotations

import logging
import random
import threading

from notiroute.channels import ChannelSendError, DeliveryInterrupted
from notiroute.models.notifications import NotificationChannel, NotificationRequest

logger = logging.getLogger(__name__)


class SimulatedSender:
    """Base class for simulated senders.

    Subclasses set ``CHANNEL``, ``DEFAULT_LATENCY``, ``DEFAULT_FAILURE_RATE``,
    ``ERRORS`` and ``STATUS``.

    Parameters
    ----------
    failure_rate:
        Probability in ``[0, 1]`` that a send raises ``ChannelSendError``.
    latency:
        ``(min_seconds, max_seconds)`` range for the simulated send time.
        ``(0, 0)`` disables the delay.
    rng:
        Random source; pass a seeded ``random.Random`` for repeatable runs.
    stop_event:
        Set to interrupt in-flight sends.
    """

    CHANNEL: NotificationChannel
    DEFAULT_LATENCY: tuple[float, float] = (0.0, 0.0)
    DEFAULT_FAILURE_RATE: float = 0.0
    ERRORS: tuple[str, ...] = ("Delivery failed",)
    STATUS: str = "Ready"

    def __init__(
        self,
        failure_rate: float | None = None,
        latency: tuple[float, float] | None = None,
        *,
        rng: random.Random | None = None,
        stop_event: threading.Event | None = None,
    ) -> None:
        rate = self.DEFAULT_FAILURE_RATE if failure_rate is None else failure_rate
        if not 0.0 <= rate <= 1.0:
            raise ValueError(f"failure_rate must be within [0, 1], got {rate}")
        low, high = self.DEFAULT_LATENCY if latency is None else latency
        if low < 0 or high < low:
            raise ValueError(f"invalid latency range: ({low}, {high})")
        self._failure_rate = rate
        self._latency = (low, high)
        self._rng = rng or random.Random()
        self._rng_lock = threading.Lock()
        self._stop = stop_event or threading.Event()
        self.sent_count = 0

    @property
    def channel_type(self) -> NotificationChannel:
        return self.CHANNEL

    def bind_stop_event(self, stop_event: threading.Event) -> None:
        """Share the orchestrator's shutdown flag with this sender."""
        self._stop = stop_event

    def send(self, request: NotificationRequest) -> bool:
        label = self.CHANNEL.value
        logger.info("Sending %s to %s: %s", label, request.recipient, self.describe(request))

        with self._rng_lock:
            delay = self._rng.uniform(*self._latency)
            roll = self._rng.random()
            error = self._rng.choice(self.ERRORS)

        if self._stop.wait(delay):
            raise DeliveryInterrupted(f"{label} sending interrupted")

        if roll < self._failure_rate:
            logger.warning("%s failed to %s - %s", label, request.recipient, error)
            raise ChannelSendError(error)

        with self._rng_lock:
            self.sent_count += 1
        logger.info("%s sent successfully to %s", label, request.recipient)
        return True

    def status(self) -> str:
        return self.STATUS

    def describe(self, request: NotificationRequest) -> str:
        """Short log description of the outgoing message."""
        return f"subject={request.subject!r}"
