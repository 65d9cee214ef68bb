"""Builds the standard set of simulated senders from configuration."""

from __future__ import annotations

import random
import threading

from notiroute.channels._simulation import SimulatedSender
from notiroute.channels.email import EmailSender
from notiroute.channels.push import PushSender
from notiroute.channels.sms import SmsSender
from notiroute.config import ServiceConfig


def default_senders(
    config: ServiceConfig | None = None,
    *,
    rng: random.Random | None = None,
    stop_event: threading.Event | None = None,
) -> list[SimulatedSender]:
    """Return Email, SMS and Push senders configured from *config*.

    WEBHOOK deliberately has no sender; requests routed there fail with a
    missing-handler reason.
    """
    config = config or ServiceConfig()
    latency = None if config.simulate_latency else (0.0, 0.0)
    shared = {"latency": latency, "rng": rng, "stop_event": stop_event}
    return [
        EmailSender(config.email_failure_rate, **shared),
        SmsSender(config.sms_failure_rate, **shared),
        PushSender(config.push_failure_rate, **shared),
    ]
