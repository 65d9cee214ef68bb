"""RoutingEngine — maps events to rendered, per-channel notification requests.

Every matching rule contributes its channels; only the highest-priority
matching rule contributes the message and subject templates.  The active
rule set is an immutable tuple, kept sorted by descending priority with
ties in insertion order, and replaced wholesale on every addition so
concurrent readers always iterate a fully sorted snapshot.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from typing import Any

from notiroute.models.events import Event
from notiroute.models.notifications import NotificationChannel, NotificationRequest
from notiroute.models.routing import RoutingRule
from notiroute.routing.templates import render_template

logger = logging.getLogger(__name__)


class RoutingEngine:
    """Priority-ordered rule matcher and template renderer.

    ``route_event`` only reads the published rule snapshot, so it is safe
    to call from any number of threads without external locking.

    Parameters
    ----------
    rules:
        Initial rules, in insertion order.
    """

    def __init__(self, rules: Iterable[RoutingRule] | None = None) -> None:
        self._write_lock = threading.Lock()
        self._inserted: tuple[RoutingRule, ...] = ()  # insertion order
        self._rules: tuple[RoutingRule, ...] = ()  # priority order
        for rule in rules or ():
            self.add_rule(rule)

    @classmethod
    def with_default_rules(cls) -> RoutingEngine:
        """Build an engine loaded with the standard startup rules."""
        from notiroute.routing.default_rules import DEFAULT_RULES

        engine = cls(DEFAULT_RULES)
        logger.info("Initialized %d routing rules", engine.rule_count)
        for rule in engine.get_rules():
            logger.debug("  Rule: %s (priority: %d)", rule.name, rule.priority)
        return engine

    # ------------------------------------------------------------------
    # Rule management
    # ------------------------------------------------------------------

    def add_rule(self, rule: RoutingRule) -> None:
        """Add *rule* and publish a new sorted snapshot."""
        with self._write_lock:
            inserted = self._inserted + (rule,)
            # sorted() is stable, so equal priorities keep insertion order
            self._rules = tuple(sorted(inserted, key=lambda r: -r.priority))
            self._inserted = inserted
        logger.info("Added routing rule %r with priority %d", rule.name, rule.priority)

    def get_rules(self) -> tuple[RoutingRule, ...]:
        """Return the active rules, highest priority first.

        The returned tuple is a snapshot; later additions do not affect it.
        """
        return self._rules

    @property
    def rule_count(self) -> int:
        return len(self._rules)

    # ------------------------------------------------------------------
    # Routing
    # ------------------------------------------------------------------

    def route_event(self, event: Event) -> list[NotificationRequest]:
        """Return one rendered request per channel selected for *event*.

        Returns an empty list when no rule matches.
        """
        logger.debug(
            "Routing event %s of type %s for recipient %s",
            event.event_id,
            event.event_type,
            event.recipient,
        )

        rules = self._rules
        selected: dict[NotificationChannel, None] = {}
        chosen: RoutingRule | None = None

        for rule in rules:
            if not self._matches(rule, event):
                continue
            logger.debug("Rule %r matched event %s", rule.name, event.event_id)
            selected.update(dict.fromkeys(rule.channels))
            if chosen is None:
                chosen = rule

        if chosen is None:
            logger.warning(
                "No routing rules matched event %s of type %s",
                event.event_id,
                event.event_type,
            )
            return []

        message = render_template(chosen.message_template, event)
        subject = render_template(chosen.subject_template, event)

        requests = [
            NotificationRequest(
                event_id=event.event_id,
                channel=channel,
                recipient=event.recipient,
                subject=subject,
                message=message,
                priority=event.priority,
            )
            for channel in selected
        ]
        logger.info(
            "Generated %d notification requests for event %s -> %s",
            len(requests),
            event.event_id,
            [c.value for c in selected],
        )
        return requests

    @staticmethod
    def _matches(rule: RoutingRule, event: Event) -> bool:
        try:
            return bool(rule.condition(event))
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "Rule %r raised while evaluating event %s: %s",
                rule.name,
                event.event_id,
                exc,
            )
            return False

    # ------------------------------------------------------------------
    # Stats
    # ------------------------------------------------------------------

    def get_routing_stats(self) -> dict[str, Any]:
        """Rule count, rule names in insertion order, and channel coverage."""
        inserted = self._inserted
        coverage = {channel for rule in inserted for channel in rule.channels}
        return {
            "totalRules": len(inserted),
            "ruleNames": [rule.name for rule in inserted],
            "channelCoverage": sorted(c.value for c in coverage),
        }
