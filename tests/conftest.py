"""Shared test fixtures for notiroute."""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator
from typing import Any

import pytest

from notiroute.config import ServiceConfig
from notiroute.core.orchestrator import DeliveryOrchestrator
from notiroute.core.store import NotificationStore
from notiroute.models.events import Event
from notiroute.models.notifications import NotificationChannel, NotificationRequest
from notiroute.models.routing import RoutingRule
from notiroute.routing.engine import RoutingEngine

# ---------------------------------------------------------------------------
# Test senders
# ---------------------------------------------------------------------------


class StubSender:
    """A channel sender with a scripted outcome.

    Records every request it receives.  When *gate* is given, each send
    blocks until the gate is set (or five seconds pass).
    """

    def __init__(
        self,
        channel: NotificationChannel,
        *,
        result: bool = True,
        error: Exception | None = None,
        gate: threading.Event | None = None,
    ):
        self._channel = channel
        self.result = result
        self.error = error
        self.gate = gate
        self.received: list[NotificationRequest] = []
        self._lock = threading.Lock()

    @property
    def channel_type(self) -> NotificationChannel:
        return self._channel

    def send(self, request: NotificationRequest) -> bool:
        if self.gate is not None:
            self.gate.wait(5)
        with self._lock:
            self.received.append(request)
        if self.error is not None:
            raise self.error
        return self.result

    def status(self) -> str:
        return f"{self._channel.value} stub ready"


# ---------------------------------------------------------------------------
# Core fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def service_config() -> ServiceConfig:
    """Config with latency disabled and a small worker pool."""
    return ServiceConfig(simulate_latency=False, max_workers=4, shard_count=4)


@pytest.fixture
def store() -> NotificationStore:
    """Provide a fresh NotificationStore with a few shards."""
    return NotificationStore(shard_count=4)


@pytest.fixture
def engine() -> RoutingEngine:
    """Provide an empty RoutingEngine."""
    return RoutingEngine()


@pytest.fixture
def default_engine() -> RoutingEngine:
    """Provide a RoutingEngine loaded with the standard rules."""
    return RoutingEngine.with_default_rules()


# ---------------------------------------------------------------------------
# Factories shared across test modules
# ---------------------------------------------------------------------------


@pytest.fixture
def make_event() -> Callable[..., Event]:
    """Factory fixture: build an Event with sensible defaults."""

    def _factory(
        event_type: str = "USER_REGISTERED",
        recipient: str = "user@example.com",
        **overrides: Any,
    ) -> Event:
        return Event(event_type=event_type, recipient=recipient, **overrides)

    return _factory


@pytest.fixture
def make_request() -> Callable[..., NotificationRequest]:
    """Factory fixture: build a PENDING NotificationRequest."""

    def _factory(
        event_id: str = "evt-001",
        channel: NotificationChannel = NotificationChannel.EMAIL,
        recipient: str = "user@example.com",
        **overrides: Any,
    ) -> NotificationRequest:
        return NotificationRequest(
            event_id=event_id,
            channel=channel,
            recipient=recipient,
            subject=overrides.pop("subject", "Subject"),
            message=overrides.pop("message", "Message"),
            **overrides,
        )

    return _factory


@pytest.fixture
def make_rule() -> Callable[..., RoutingRule]:
    """Factory fixture: build a RoutingRule matching one event type."""

    def _factory(
        event_type: str = "USER_REGISTERED",
        channels: list[NotificationChannel] | None = None,
        priority: int = 1,
        name: str | None = None,
        message: str = "Hello {name}",
        subject: str = "Hi {name}",
    ) -> RoutingRule:
        return RoutingRule.create(
            name or f"{event_type} rule",
            lambda event: event.event_type == event_type,
            channels or [NotificationChannel.EMAIL],
            message,
            subject,
            priority,
        )

    return _factory


@pytest.fixture
def make_sender() -> Callable[..., StubSender]:
    """Factory fixture: build a StubSender for one channel."""

    def _factory(channel: NotificationChannel, **kwargs: Any) -> StubSender:
        return StubSender(channel, **kwargs)

    return _factory


@pytest.fixture
def make_orchestrator(
    service_config: ServiceConfig,
) -> Iterator[Callable[..., DeliveryOrchestrator]]:
    """Factory fixture: build an orchestrator, shut down after the test.

    Defaults to an empty store, the given rules (or none) and no senders.
    """
    created: list[DeliveryOrchestrator] = []

    def _factory(
        rules: list[RoutingRule] | None = None,
        senders: list[Any] | None = None,
        *,
        engine: RoutingEngine | None = None,
        store: NotificationStore | None = None,
        config: ServiceConfig | None = None,
    ) -> DeliveryOrchestrator:
        orchestrator = DeliveryOrchestrator(
            routing_engine=engine or RoutingEngine(rules or []),
            store=store or NotificationStore(shard_count=4),
            senders=senders if senders is not None else [],
            config=config or service_config,
        )
        created.append(orchestrator)
        return orchestrator

    yield _factory

    for orchestrator in created:
        orchestrator.shutdown(wait=False, cancel_pending=True)
