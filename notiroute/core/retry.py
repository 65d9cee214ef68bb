"""Retry support layered on the orchestrator's requeue/dead-letter hooks.

``RetryPolicy`` computes exponential backoff with jitter::

    delay = min(base * 2 ** retry_count, max_delay) +/- jitter_ratio * delay

``RetrySweeper`` makes one pass over the FAILED requests each time
``sweep()`` is called.  It does not run on a timer; callers decide when to
sweep.  Per request it either requeues (backoff elapsed), defers (backoff
still running) or escalates to dead letter (attempts exhausted, or no
sender exists for the channel so retrying cannot help).  A request whose
requeued attempt is still running is always deferred.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from notiroute.config import ServiceConfig
from notiroute.models.notifications import NotificationRequest, NotificationStatus

if TYPE_CHECKING:
    from notiroute.core.orchestrator import DeliveryOrchestrator

logger = logging.getLogger(__name__)


class RetryPolicy(BaseModel):
    """Backoff parameters for failed deliveries."""

    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(default=3, ge=0)
    base_delay: float = Field(default=1.0, ge=0)
    max_delay: float = Field(default=60.0, ge=0)
    jitter_ratio: float = Field(default=0.1, ge=0, le=1)

    @classmethod
    def from_config(cls, config: ServiceConfig) -> RetryPolicy:
        return cls(
            max_attempts=config.retry_max_attempts,
            base_delay=config.retry_base_delay_seconds,
            max_delay=config.retry_max_delay_seconds,
            jitter_ratio=config.retry_jitter_ratio,
        )

    def compute_delay(self, retry_count: int, rng: random.Random | None = None) -> float:
        """Seconds to wait before attempt number ``retry_count + 1``."""
        delay = min(self.base_delay * (2 ** retry_count), self.max_delay)
        if self.jitter_ratio:
            spread = delay * self.jitter_ratio
            delay += (rng or random).uniform(-spread, spread)
        return max(delay, 0.0)

    def is_exhausted(self, request: NotificationRequest) -> bool:
        return request.retry_count >= self.max_attempts


class SweepReport(BaseModel):
    """Request ids handled by a single ``RetrySweeper.sweep`` pass."""

    model_config = ConfigDict(frozen=True)

    requeued: list[str] = []
    dead_lettered: list[str] = []
    deferred: list[str] = []

    @property
    def total(self) -> int:
        return len(self.requeued) + len(self.dead_lettered) + len(self.deferred)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RetrySweeper:
    """Requeues or dead-letters FAILED requests according to a policy.

    Parameters
    ----------
    orchestrator:
        Supplies the store and the ``requeue``/``dead_letter`` operations.
    policy:
        Backoff policy.  Built from the orchestrator's config if omitted.
    clock:
        Returns the current aware UTC time; injectable for tests.
    rng:
        Jitter source.
    """

    def __init__(
        self,
        orchestrator: DeliveryOrchestrator,
        policy: RetryPolicy | None = None,
        *,
        clock: Callable[[], datetime] = _utcnow,
        rng: random.Random | None = None,
    ) -> None:
        self._orchestrator = orchestrator
        self.policy = policy or RetryPolicy.from_config(orchestrator.config)
        self._clock = clock
        self._rng = rng or random.Random()

    def next_attempt_at(self, request: NotificationRequest) -> datetime:
        """When *request* becomes eligible for its next attempt."""
        anchor = request.last_retry_at or request.created_at
        delay = self.policy.compute_delay(request.retry_count, self._rng)
        return anchor + timedelta(seconds=delay)

    def sweep(self) -> SweepReport:
        """One pass over FAILED requests.

        Requests whose requeued attempt is still running, or whose backoff
        has not elapsed, are reported as deferred.
        """
        requeued: list[str] = []
        dead_lettered: list[str] = []
        deferred: list[str] = []
        now = self._clock()

        for request in self._orchestrator.store.failed_requests():
            if request.status != NotificationStatus.FAILED:
                continue

            if self._orchestrator.is_in_flight(request.request_id):
                deferred.append(request.request_id)
                continue

            if not self._orchestrator.has_sender(request.channel) or self.policy.is_exhausted(
                request
            ):
                if self._orchestrator.dead_letter(request.request_id) is not None:
                    dead_lettered.append(request.request_id)
                continue

            if self.next_attempt_at(request) > now:
                deferred.append(request.request_id)
                continue

            if self._orchestrator.requeue(request.request_id) is not None:
                requeued.append(request.request_id)

        report = SweepReport(
            requeued=requeued, dead_lettered=dead_lettered, deferred=deferred
        )
        logger.info(
            "Retry sweep: %d requeued, %d dead-lettered, %d deferred",
            len(requeued),
            len(dead_lettered),
            len(deferred),
        )
        return report
