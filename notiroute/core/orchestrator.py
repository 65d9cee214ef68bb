"""Delivery orchestrator — the central coordinator for notiroute.

The DeliveryOrchestrator wires together the RoutingEngine, the
NotificationStore and the registered channel senders.  Events are
persisted, routed into per-channel requests, and every request is
dispatched on its own worker task so a slow or failing channel never
delays its siblings.

Outcome mapping for a delivery attempt:

- no sender registered     -> FAILED "no handler available for channel X"
- sender returns True      -> SENT
- sender returns False     -> FAILED "handler returned false"
- sender interrupted       -> FAILED "delivery interrupted: ..."
- sender raises "X"        -> FAILED "X"

Each attempt ends in exactly one ``update_request`` call.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterable
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor
from concurrent.futures import wait as wait_for
from enum import Enum
from typing import Any

from notiroute.channels import ChannelSender, DeliveryInterrupted
from notiroute.channels.registry import default_senders
from notiroute.config import ServiceConfig
from notiroute.core.store import NotificationStore
from notiroute.models.events import Event
from notiroute.models.notifications import (
    DeliveryStatus,
    InvalidTransitionError,
    NotificationChannel,
    NotificationRequest,
    NotificationStatus,
)
from notiroute.routing.engine import RoutingEngine

logger = logging.getLogger(__name__)

NO_HANDLER_REASON = "no handler available for channel {channel}"
HANDLER_FALSE_REASON = "handler returned false"
INTERRUPTED_REASON = "delivery interrupted: {detail}"
CANCELLED_REASON = "delivery cancelled before dispatch"


class ProcessingOutcome(str, Enum):
    """Terminal outcome of ``handle_event``."""

    ROUTED = "Event processed successfully"
    UNROUTED = "No matching routing rules"
    ERROR = "Error"


def _is_deliverable(request: NotificationRequest) -> bool:
    if request.status == NotificationStatus.PENDING:
        return True
    return request.status == NotificationStatus.FAILED and request.retry_count > 0


class DeliveryOrchestrator:
    """Routes events and dispatches the resulting notification requests.

    Parameters
    ----------
    routing_engine:
        Rule engine.  Defaults to one loaded with the standard rules.
    store:
        Entity store.  A fresh in-memory store is created if omitted.
    senders:
        Channel senders, one per channel.  Defaults to the simulated
        Email, SMS and Push senders built from *config*.
    config:
        Service configuration.  Uses defaults (plus env overrides) if not
        provided.
    """

    def __init__(
        self,
        routing_engine: RoutingEngine | None = None,
        store: NotificationStore | None = None,
        senders: Iterable[ChannelSender] | None = None,
        *,
        config: ServiceConfig | None = None,
    ) -> None:
        self.config = config or ServiceConfig()
        self.routing_engine = routing_engine or RoutingEngine.with_default_rules()
        self.store = store or NotificationStore(self.config.shard_count)

        # Shutdown flag shared with the default senders
        self._stop = threading.Event()
        if senders is None:
            senders = default_senders(self.config, stop_event=self._stop)

        self._senders: dict[NotificationChannel, ChannelSender] = {}
        for sender in senders:
            channel = sender.channel_type
            if channel in self._senders:
                raise ValueError(f"Duplicate sender registered for channel {channel.value}")
            bind = getattr(sender, "bind_stop_event", None)
            if bind is not None:
                bind(self._stop)
            self._senders[channel] = sender

        self._executor = ThreadPoolExecutor(
            max_workers=self.config.max_workers,
            thread_name_prefix="notiroute",
        )
        self._closed = False
        self._pending: set[Future[Any]] = set()
        self._pending_lock = threading.Lock()
        # Request ids with a requeued attempt still in flight
        self._in_flight: set[str] = set()
        self._in_flight_lock = threading.Lock()

        logger.info(
            "DeliveryOrchestrator initialized with %d channel senders: %s",
            len(self._senders),
            [c.value for c in self._senders],
        )

    # ------------------------------------------------------------------
    # Event processing
    # ------------------------------------------------------------------

    def process_event(self, event: Event) -> Future[str]:
        """Process *event* on a worker; the future resolves to the outcome text.

        The future completes once the event is routed and its requests are
        submitted.  It does not wait for the deliveries themselves.  After
        shutdown the event is still stored and the future resolves to
        ``"Error: orchestrator shut down"``.
        """
        if not self._closed:
            try:
                return self._submit(self.handle_event, event)
            except RuntimeError:
                # Executor closed between the check and the submit
                pass
        logger.warning("Event %s received after shutdown", event.event_id)
        self.store.save_event(event)
        future: Future[str] = Future()
        future.set_result(f"{ProcessingOutcome.ERROR.value}: orchestrator shut down")
        return future

    def handle_event(self, event: Event) -> str:
        """Persist, route and dispatch *event* synchronously.

        Never raises: unexpected failures are logged and returned as
        ``"Error: <message>"``.  The event stays stored regardless.
        """
        logger.info(
            "Processing event %s of type %s for recipient %s",
            event.event_id,
            event.event_type,
            event.recipient,
        )
        try:
            self.store.save_event(event)
            requests = self.routing_engine.route_event(event)

            if not requests:
                logger.warning(
                    "No notification requests generated for event %s of type %s",
                    event.event_id,
                    event.event_type,
                )
                return ProcessingOutcome.UNROUTED.value

            for request in requests:
                self.store.save_request(request)
                self.deliver_notification(request)

            logger.info(
                "Processed %d notification requests for event %s",
                len(requests),
                event.event_id,
            )
            return ProcessingOutcome.ROUTED.value
        except Exception as exc:  # noqa: BLE001
            logger.exception("Error processing event %s", event.event_id)
            return f"{ProcessingOutcome.ERROR.value}: {exc}"

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    def deliver_notification(self, request: NotificationRequest) -> Future[None]:
        """Dispatch *request* to its channel sender on a worker task.

        Only PENDING requests and requeued FAILED requests can be attempted.
        Anything else is logged and the returned future carries the
        ``InvalidTransitionError``; the store is left untouched.
        """
        if not _is_deliverable(request):
            error = InvalidTransitionError(
                f"Request {request.request_id} cannot be delivered from status "
                f"{request.status.value} with {request.retry_count} retries"
            )
            logger.error("%s", error)
            rejected: Future[None] = Future()
            rejected.set_exception(error)
            return rejected
        if self._closed:
            return self._interrupted_future(request)

        def _on_done(fut: Future[None]) -> None:
            if fut.cancelled():
                logger.warning("Delivery of %s cancelled before dispatch", request.request_id)
                self.store.update_request(request.mark_failed(CANCELLED_REASON))
            self._release(request.request_id)

        try:
            return self._submit(self._deliver, request, on_done=_on_done)
        except RuntimeError:
            # Executor closed between the check and the submit
            return self._interrupted_future(request)

    def _deliver(self, request: NotificationRequest) -> None:
        logger.debug(
            "Attempting delivery of %s via %s",
            request.request_id,
            request.channel.value,
        )

        if self._stop.is_set():
            self._interrupt(request, "orchestrator shut down")
            return

        sender = self._senders.get(request.channel)
        if sender is None:
            reason = NO_HANDLER_REASON.format(channel=request.channel.value)
            logger.error("No sender found for channel %s", request.channel.value)
            self.store.update_request(request.mark_failed(reason))
            return

        try:
            success = sender.send(request)
        except DeliveryInterrupted as exc:
            logger.warning("Delivery of %s interrupted: %s", request.request_id, exc)
            updated = request.mark_failed(INTERRUPTED_REASON.format(detail=exc))
        except Exception as exc:  # noqa: BLE001
            reason = str(exc) or type(exc).__name__
            logger.warning(
                "Failed to deliver %s via %s - %s",
                request.request_id,
                request.channel.value,
                reason,
            )
            updated = request.mark_failed(reason)
        else:
            if success:
                logger.info(
                    "Delivered %s via %s", request.request_id, request.channel.value
                )
                updated = request.mark_sent()
            else:
                logger.warning("Sender returned false for %s", request.request_id)
                updated = request.mark_failed(HANDLER_FALSE_REASON)

        self.store.update_request(updated)

    def _interrupt(self, request: NotificationRequest, detail: str) -> NotificationRequest:
        updated = request.mark_failed(INTERRUPTED_REASON.format(detail=detail))
        self.store.update_request(updated)
        return updated

    # ------------------------------------------------------------------
    # Retry extension points
    # ------------------------------------------------------------------

    def requeue(self, request_id: str) -> Future[None] | None:
        """Resubmit a FAILED request for another delivery attempt.

        Increments ``retry_count`` and stamps ``last_retry_at`` before the
        attempt.  Returns ``None`` if the request is unknown, not FAILED, or
        already has a requeued attempt in flight.
        """
        with self._in_flight_lock:
            if request_id in self._in_flight:
                logger.debug("Request %s already has a retry in flight", request_id)
                return None
            retried = self.store.transition_request(
                request_id,
                lambda current: (
                    current.with_retry()
                    if current.status == NotificationStatus.FAILED
                    else None
                ),
            )
            if retried is None:
                logger.debug("Request %s is not eligible for requeue", request_id)
                return None
            self._in_flight.add(request_id)

        logger.info(
            "Requeued %s via %s (attempt %d)",
            request_id,
            retried.channel.value,
            retried.retry_count,
        )
        return self.deliver_notification(retried)

    def dead_letter(self, request_id: str) -> NotificationRequest | None:
        """Escalate a FAILED request to the dead-letter table.

        Returns the escalated request, or ``None`` if it was not FAILED or
        a requeued attempt is still in flight.
        """
        with self._in_flight_lock:
            if request_id in self._in_flight:
                return None
            escalated = self.store.transition_request(
                request_id,
                lambda current: (
                    current.mark_dead_letter()
                    if current.status == NotificationStatus.FAILED
                    else None
                ),
            )
        if escalated is None:
            return None
        self.store.save_dead_letter(escalated)
        return escalated

    def is_in_flight(self, request_id: str) -> bool:
        """Whether a requeued attempt for *request_id* has not finished yet."""
        with self._in_flight_lock:
            return request_id in self._in_flight

    def has_sender(self, channel: NotificationChannel) -> bool:
        return channel in self._senders

    @property
    def available_channels(self) -> list[NotificationChannel]:
        return list(self._senders)

    # ------------------------------------------------------------------
    # Status queries
    # ------------------------------------------------------------------

    def get_delivery_status(self, event_id: str) -> DeliveryStatus | None:
        """Return one status for the event, or ``None`` if it is unknown.

        An event with no requests yet reports a PENDING placeholder;
        otherwise the first stored request's status is returned.
        """
        if self.store.get_event(event_id) is None:
            return None
        requests = self.store.requests_for_event(event_id)
        if not requests:
            return DeliveryStatus.for_event(event_id, NotificationStatus.PENDING)
        return DeliveryStatus.from_request(requests[0])

    def get_all_delivery_statuses(self, event_id: str) -> list[DeliveryStatus]:
        if self.store.get_event(event_id) is None:
            return []
        return [
            DeliveryStatus.from_request(r)
            for r in self.store.requests_for_event(event_id)
        ]

    def get_failed_deliveries(self) -> list[DeliveryStatus]:
        return [DeliveryStatus.from_request(r) for r in self.store.failed_requests()]

    def get_service_stats(self) -> dict[str, Any]:
        return {
            "eventsProcessed": self.store.event_count,
            "totalRequests": self.store.request_count,
            "notificationsSent": self.store.successful_delivery_count,
            "failedDeliveries": self.store.failed_delivery_count,
            "deadLetterCount": self.store.dead_letter_count,
            "availableChannels": [c.value for c in self._senders],
            "routingRules": self.routing_engine.rule_count,
        }

    def get_health_info(self) -> dict[str, Any]:
        """Nested readiness structure: service, channels, routing, statistics."""
        return {
            "service": {
                "status": "stopped" if self._closed else "healthy",
                "channelsAvailable": len(self._senders),
                "routingRulesActive": self.routing_engine.rule_count,
                "storageType": type(self.store).__name__,
            },
            "channels": {
                channel.value: sender.status()
                for channel, sender in self._senders.items()
            },
            "routing": self.routing_engine.get_routing_stats(),
            "statistics": self.get_service_stats(),
        }

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def drain(self, timeout: float | None = None) -> bool:
        """Block until every submitted task has finished.

        Processing tasks submit deliveries of their own, so this waits
        until the pending set stays empty.  Returns ``False`` on timeout.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            with self._pending_lock:
                pending = set(self._pending)
            if not pending:
                return True
            remaining = None if deadline is None else deadline - time.monotonic()
            if remaining is not None and remaining <= 0:
                return False
            wait_for(pending, timeout=remaining, return_when=FIRST_COMPLETED)

    def shutdown(self, wait: bool = True, cancel_pending: bool = False) -> None:
        """Stop accepting work.

        With ``cancel_pending`` queued deliveries are cancelled and in-flight
        sends are interrupted; each affected request gets a single FAILED
        write.  Otherwise outstanding work is drained first.
        """
        if cancel_pending:
            self._closed = True
            self._stop.set()
            self._executor.shutdown(wait=wait, cancel_futures=True)
        else:
            if wait:
                self.drain()
            self._closed = True
            self._executor.shutdown(wait=wait)
        logger.info("DeliveryOrchestrator shut down (%s)", self.store.storage_stats())

    def __enter__(self) -> DeliveryOrchestrator:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _submit(
        self,
        fn: Callable[..., Any],
        *args: Any,
        on_done: Callable[[Future[Any]], None] | None = None,
    ) -> Future[Any]:
        future = self._executor.submit(fn, *args)
        with self._pending_lock:
            self._pending.add(future)
        # on_done runs before the future leaves the pending set, so drain()
        # observes its store writes
        if on_done is not None:
            future.add_done_callback(on_done)
        future.add_done_callback(self._forget)
        return future

    def _forget(self, future: Future[Any]) -> None:
        with self._pending_lock:
            self._pending.discard(future)

    def _release(self, request_id: str) -> None:
        with self._in_flight_lock:
            self._in_flight.discard(request_id)

    def _interrupted_future(self, request: NotificationRequest) -> Future[None]:
        self._interrupt(request, "orchestrator shut down")
        self._release(request.request_id)
        future: Future[None] = Future()
        future.set_result(None)
        return future
