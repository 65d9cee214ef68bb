"""Helpers shared by the commands that spin up an orchestrator."""

from __future__ import annotations

import random

import typer

from notiroute.channels.registry import default_senders
from notiroute.config import config
from notiroute.core.orchestrator import DeliveryOrchestrator


def build_orchestrator(
    *,
    instant: bool = False,
    seed: int | None = None,
    failure_rate: float | None = None,
) -> DeliveryOrchestrator:
    """Create an orchestrator from the global config plus CLI overrides."""
    overrides: dict[str, object] = {}
    if instant:
        overrides["simulate_latency"] = False
    if failure_rate is not None:
        overrides.update(
            email_failure_rate=failure_rate,
            sms_failure_rate=failure_rate,
            push_failure_rate=failure_rate,
        )
    service_config = config.model_copy(update=overrides)
    rng = random.Random(seed) if seed is not None else None
    return DeliveryOrchestrator(
        senders=default_senders(service_config, rng=rng),
        config=service_config,
    )


def parse_fields(fields: list[str] | None) -> dict[str, str]:
    """Turn repeated ``key=value`` options into a payload dictionary."""
    payload: dict[str, str] = {}
    for item in fields or []:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"expected key=value, got {item!r}", param_hint="--field")
        payload[key] = value
    return payload
