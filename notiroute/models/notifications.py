"""Notification request models — per-channel delivery records and status views."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from notiroute.models.events import Priority


class NotificationChannel(str, Enum):
    """Delivery channels a routing rule can target."""

    EMAIL = "EMAIL"
    SMS = "SMS"
    PUSH = "PUSH"
    WEBHOOK = "WEBHOOK"


class NotificationStatus(str, Enum):
    """Delivery lifecycle of a single notification request."""

    PENDING = "PENDING"
    SENT = "SENT"
    FAILED = "FAILED"
    DEAD_LETTER = "DEAD_LETTER"


# PENDING is only ever an initial state.  FAILED -> SENT/FAILED happens
# solely on a requeued attempt (retry_count already incremented).
VALID_TRANSITIONS: dict[NotificationStatus, set[NotificationStatus]] = {
    NotificationStatus.PENDING: {NotificationStatus.SENT, NotificationStatus.FAILED},
    NotificationStatus.FAILED: {
        NotificationStatus.SENT,
        NotificationStatus.FAILED,
        NotificationStatus.DEAD_LETTER,
    },
    NotificationStatus.SENT: set(),  # terminal
    NotificationStatus.DEAD_LETTER: set(),  # terminal
}


class InvalidTransitionError(ValueError):
    """Raised when a request is moved to a status its lifecycle forbids."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NotificationRequest(BaseModel):
    """One rendered, channel-specific delivery attempt derived from an event.

    Instances are frozen.  Every state change returns a new copy which the
    orchestrator publishes to the store under the same ``request_id``.
    """

    model_config = ConfigDict(frozen=True)

    request_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    event_id: str
    channel: NotificationChannel
    recipient: str = Field(min_length=1)
    subject: str = ""
    message: str = ""
    priority: Priority = Priority.MEDIUM
    created_at: datetime = Field(default_factory=_utcnow)
    status: NotificationStatus = NotificationStatus.PENDING
    retry_count: int = Field(default=0, ge=0)
    last_retry_at: datetime | None = None
    failure_reason: str | None = None

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _check_transition(self, target: NotificationStatus) -> None:
        if target not in VALID_TRANSITIONS[self.status]:
            raise InvalidTransitionError(
                f"Request {self.request_id}: cannot move from "
                f"{self.status.value} to {target.value}"
            )
        if (
            self.status == NotificationStatus.FAILED
            and target != NotificationStatus.DEAD_LETTER
            and self.retry_count == 0
        ):
            raise InvalidTransitionError(
                f"Request {self.request_id}: a failed request must be "
                "requeued before it can be delivered again"
            )

    def mark_sent(self) -> NotificationRequest:
        """Return a copy recording a successful delivery."""
        self._check_transition(NotificationStatus.SENT)
        return self.model_copy(
            update={"status": NotificationStatus.SENT, "failure_reason": None}
        )

    def mark_failed(self, reason: str) -> NotificationRequest:
        """Return a copy recording a failed delivery with *reason*."""
        if not reason:
            raise ValueError("A failed request must carry a failure reason")
        self._check_transition(NotificationStatus.FAILED)
        return self.model_copy(
            update={"status": NotificationStatus.FAILED, "failure_reason": reason}
        )

    def with_retry(self) -> NotificationRequest:
        """Return a copy prepared for another delivery attempt.

        Only FAILED requests can be retried.  The status stays FAILED until
        the new attempt records its own outcome.
        """
        if self.status != NotificationStatus.FAILED:
            raise InvalidTransitionError(
                f"Request {self.request_id}: only FAILED requests can be "
                f"retried (status is {self.status.value})"
            )
        return self.model_copy(
            update={
                "retry_count": self.retry_count + 1,
                "last_retry_at": _utcnow(),
            }
        )

    def mark_dead_letter(self) -> NotificationRequest:
        """Return a copy escalated to the dead-letter state."""
        self._check_transition(NotificationStatus.DEAD_LETTER)
        return self.model_copy(update={"status": NotificationStatus.DEAD_LETTER})


class DeliveryStatus(BaseModel):
    """Read-only status view returned to the status boundary."""

    model_config = ConfigDict(frozen=True)

    event_id: str
    request_id: str | None = None
    channel: NotificationChannel | None = None
    status: NotificationStatus
    retry_count: int = 0
    created_at: datetime = Field(default_factory=_utcnow)
    last_attempt_at: datetime | None = None
    failure_reason: str | None = None

    @classmethod
    def from_request(cls, request: NotificationRequest) -> DeliveryStatus:
        return cls(
            event_id=request.event_id,
            request_id=request.request_id,
            channel=request.channel,
            status=request.status,
            retry_count=request.retry_count,
            created_at=request.created_at,
            last_attempt_at=request.last_retry_at,
            failure_reason=request.failure_reason,
        )

    @classmethod
    def for_event(cls, event_id: str, status: NotificationStatus) -> DeliveryStatus:
        """Placeholder status for an event with no requests yet."""
        return cls(event_id=event_id, status=status)
