"""Channel sender protocol and errors for notiroute delivery.

All senders implement the ``ChannelSender`` protocol: a ``channel_type``
property, a ``send(request)`` method and a ``status()`` diagnostic.  The
orchestrator holds one sender per channel, built once at startup.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from notiroute.models.notifications import NotificationChannel, NotificationRequest


class ChannelSendError(RuntimeError):
    """Raised by a sender when delivery fails; the message is the reason."""


class DeliveryInterrupted(ChannelSendError):
    """Raised when a delivery is cancelled or interrupted mid-send."""


@runtime_checkable
class ChannelSender(Protocol):
    """Protocol every channel sender must implement.

    Attributes
    ----------
    channel_type : NotificationChannel
        The single channel this sender delivers over.
    """

    @property
    def channel_type(self) -> NotificationChannel:
        """Return the channel this sender handles."""
        ...

    def send(self, request: NotificationRequest) -> bool:
        """Attempt delivery of *request*.

        Returns ``True`` on success and ``False`` for a plain negative
        result.  May instead raise with a human-readable reason.
        """
        ...

    def status(self) -> str:
        """Return a human-readable readiness string (diagnostic only)."""
        ...


__all__ = ["ChannelSendError", "ChannelSender", "DeliveryInterrupted"]
