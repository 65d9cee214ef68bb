"""Routing rule model — predicate to channels-and-templates mapping."""

from __future__ import annotations

from collections.abc import Callable

from pydantic import BaseModel, ConfigDict, Field

from notiroute.models.events import Event, Priority
from notiroute.models.notifications import NotificationChannel

EventPredicate = Callable[[Event], bool]


class RoutingRule(BaseModel):
    """A single routing rule.

    ``condition`` must be a pure, deterministic predicate.  Higher
    ``priority`` wins the template when several rules match the same
    event; every matching rule contributes its channels.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    condition: EventPredicate
    channels: tuple[NotificationChannel, ...] = Field(min_length=1)
    message_template: str
    subject_template: str
    priority: int = 1

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    @classmethod
    def for_event_type(
        cls,
        event_type: str,
        name: str,
        channels: list[NotificationChannel],
        message_template: str,
        subject_template: str,
    ) -> RoutingRule:
        """Match a single event type at the baseline priority of 1."""
        return cls(
            name=name,
            condition=lambda event: event.event_type == event_type,
            channels=tuple(channels),
            message_template=message_template,
            subject_template=subject_template,
            priority=1,
        )

    @classmethod
    def for_priority(
        cls,
        priority: Priority,
        name: str,
        channels: list[NotificationChannel],
        message_template: str,
        subject_template: str,
        rule_priority: int,
    ) -> RoutingRule:
        """Match every event carrying the given business *priority*."""
        return cls(
            name=name,
            condition=lambda event: event.priority == priority,
            channels=tuple(channels),
            message_template=message_template,
            subject_template=subject_template,
            priority=rule_priority,
        )

    @classmethod
    def for_high_priority(
        cls,
        channels: list[NotificationChannel],
        message_template: str,
        subject_template: str,
    ) -> RoutingRule:
        """Match HIGH and CRITICAL events at rule priority 10."""
        return cls(
            name="High Priority Events",
            condition=lambda event: event.priority in (Priority.HIGH, Priority.CRITICAL),
            channels=tuple(channels),
            message_template=message_template,
            subject_template=subject_template,
            priority=10,
        )

    @classmethod
    def create(
        cls,
        name: str,
        condition: EventPredicate,
        channels: list[NotificationChannel],
        message_template: str,
        subject_template: str,
        priority: int,
    ) -> RoutingRule:
        return cls(
            name=name,
            condition=condition,
            channels=tuple(channels),
            message_template=message_template,
            subject_template=subject_template,
            priority=priority,
        )
