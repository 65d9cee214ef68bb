"""Unit tests for RetryPolicy backoff and the RetrySweeper."""

from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone

import pytest

from notiroute.config import ServiceConfig
from notiroute.core.retry import RetryPolicy, RetrySweeper, SweepReport
from notiroute.models.notifications import NotificationChannel, NotificationStatus

EMAIL = NotificationChannel.EMAIL
WEBHOOK = NotificationChannel.WEBHOOK


def _far_future() -> datetime:
    return datetime.now(timezone.utc) + timedelta(days=1)


# ---------------------------------------------------------------------------
# RetryPolicy
# ---------------------------------------------------------------------------


class TestRetryPolicy:
    @pytest.mark.parametrize("retry_count, expected", [(0, 1.0), (1, 2.0), (3, 8.0), (10, 60.0)])
    def test_exponential_backoff_capped(self, retry_count, expected):
        policy = RetryPolicy(base_delay=1.0, max_delay=60.0, jitter_ratio=0.0)
        assert policy.compute_delay(retry_count) == expected

    def test_jitter_stays_within_ratio(self):
        policy = RetryPolicy(base_delay=10.0, jitter_ratio=0.2)
        rng = random.Random(3)
        for _ in range(100):
            assert 8.0 <= policy.compute_delay(0, rng) <= 12.0

    def test_delay_never_negative(self):
        policy = RetryPolicy(base_delay=0.0, jitter_ratio=1.0)
        assert policy.compute_delay(0, random.Random(0)) == 0.0

    def test_is_exhausted(self, make_request):
        policy = RetryPolicy(max_attempts=2)
        assert not policy.is_exhausted(make_request(retry_count=1))
        assert policy.is_exhausted(make_request(retry_count=2))

    def test_from_config(self):
        config = ServiceConfig(
            retry_max_attempts=5,
            retry_base_delay_seconds=0.5,
            retry_max_delay_seconds=10.0,
            retry_jitter_ratio=0.0,
        )
        assert RetryPolicy.from_config(config) == RetryPolicy(
            max_attempts=5, base_delay=0.5, max_delay=10.0, jitter_ratio=0.0
        )


class TestSweepReport:
    def test_total(self):
        report = SweepReport(requeued=["a"], dead_lettered=["b", "c"], deferred=[])
        assert report.total == 3
        assert SweepReport().total == 0


# ---------------------------------------------------------------------------
# RetrySweeper
# ---------------------------------------------------------------------------


@pytest.fixture
def failing_setup(make_orchestrator, make_rule, make_sender, make_event):
    """Orchestrator whose only EMAIL delivery has failed once."""
    sender = make_sender(EMAIL, result=False)
    orchestrator = make_orchestrator([make_rule()], [sender])
    event = make_event()
    orchestrator.handle_event(event)
    assert orchestrator.drain(timeout=5)
    (request,) = orchestrator.store.requests_for_event(event.event_id)
    assert request.status == NotificationStatus.FAILED
    return orchestrator, sender, request


class TestRetrySweeper:
    def test_requeues_when_backoff_elapsed(self, failing_setup):
        orchestrator, sender, request = failing_setup
        sender.result = True
        sweeper = RetrySweeper(orchestrator, RetryPolicy(jitter_ratio=0.0), clock=_far_future)

        report = sweeper.sweep()
        assert report.requeued == [request.request_id]
        assert orchestrator.drain(timeout=5)

        stored = orchestrator.store.get_request(request.request_id)
        assert stored.status == NotificationStatus.SENT
        assert stored.retry_count == 1

    def test_defers_while_backoff_running(self, failing_setup):
        orchestrator, _, request = failing_setup
        policy = RetryPolicy(base_delay=60.0, jitter_ratio=0.0)
        sweeper = RetrySweeper(orchestrator, policy, clock=lambda: request.created_at)

        report = sweeper.sweep()
        assert report.deferred == [request.request_id]
        assert report.requeued == []
        assert orchestrator.store.get_request(request.request_id).retry_count == 0

    def test_next_attempt_anchors_on_last_retry(self, failing_setup):
        orchestrator, _, request = failing_setup
        sweeper = RetrySweeper(orchestrator, RetryPolicy(base_delay=2.0, jitter_ratio=0.0))
        assert sweeper.next_attempt_at(request) == request.created_at + timedelta(seconds=2)

        retried = request.with_retry()
        assert sweeper.next_attempt_at(retried) == retried.last_retry_at + timedelta(seconds=4)

    def test_dead_letters_after_max_attempts(self, failing_setup):
        orchestrator, _, request = failing_setup
        policy = RetryPolicy(max_attempts=2, base_delay=0.0, jitter_ratio=0.0)
        sweeper = RetrySweeper(orchestrator, policy, clock=_far_future)

        for _ in range(policy.max_attempts):
            assert sweeper.sweep().requeued == [request.request_id]
            assert orchestrator.drain(timeout=5)

        report = sweeper.sweep()
        assert report.dead_lettered == [request.request_id]
        stored = orchestrator.store.get_request(request.request_id)
        assert stored.status == NotificationStatus.DEAD_LETTER
        assert stored.retry_count == 2
        assert stored.failure_reason == "handler returned false"
        assert orchestrator.store.dead_letter_count == 1

    def test_missing_sender_goes_straight_to_dead_letter(
        self, make_orchestrator, make_rule, make_event
    ):
        orchestrator = make_orchestrator([make_rule(channels=[WEBHOOK])])
        event = make_event()
        orchestrator.handle_event(event)
        assert orchestrator.drain(timeout=5)

        report = RetrySweeper(orchestrator, clock=_far_future).sweep()
        assert len(report.dead_lettered) == 1
        assert report.requeued == []

    def test_dead_letter_entries_are_skipped(self, failing_setup):
        orchestrator, _, request = failing_setup
        orchestrator.dead_letter(request.request_id)
        report = RetrySweeper(orchestrator, clock=_far_future).sweep()
        assert report.total == 0

    def test_policy_defaults_from_orchestrator_config(self, make_orchestrator, service_config):
        sweeper = RetrySweeper(make_orchestrator())
        assert sweeper.policy.max_attempts == service_config.retry_max_attempts
