"""Unit tests for the RoutingEngine — matching, merging, rendering, stats."""

from __future__ import annotations

from notiroute.models.events import Priority
from notiroute.models.notifications import NotificationChannel, NotificationStatus
from notiroute.models.routing import RoutingRule
from notiroute.routing.default_rules import DEFAULT_RULES
from notiroute.routing.engine import RoutingEngine

EMAIL = NotificationChannel.EMAIL
SMS = NotificationChannel.SMS
PUSH = NotificationChannel.PUSH


class TestRuleManagement:
    def test_rules_sorted_by_descending_priority(self, engine, make_rule):
        engine.add_rule(make_rule("A", priority=1, name="low"))
        engine.add_rule(make_rule("B", priority=9, name="high"))
        engine.add_rule(make_rule("C", priority=5, name="mid"))
        assert [r.name for r in engine.get_rules()] == ["high", "mid", "low"]

    def test_equal_priority_keeps_insertion_order(self, engine, make_rule):
        for name in ("first", "second", "third"):
            engine.add_rule(make_rule(priority=3, name=name))
        assert [r.name for r in engine.get_rules()] == ["first", "second", "third"]

    def test_get_rules_is_idempotent_snapshot(self, engine, make_rule):
        engine.add_rule(make_rule(name="one"))
        first = engine.get_rules()
        assert engine.get_rules() == first
        assert isinstance(first, tuple)

        engine.add_rule(make_rule(name="two"))
        assert len(first) == 1
        assert engine.rule_count == 2

    def test_constructor_rules(self, make_rule):
        engine = RoutingEngine([make_rule(name="a"), make_rule(name="b", priority=2)])
        assert [r.name for r in engine.get_rules()] == ["b", "a"]

    def test_default_rules_loaded(self, default_engine):
        assert default_engine.rule_count == len(DEFAULT_RULES) == 8
        assert default_engine.get_rules()[0].name == "High Priority Events"
        assert default_engine.get_rules()[1].name == "Security Alert"


class TestRouteEvent:
    def test_channel_union_with_highest_priority_template(self, engine, make_event):
        """Rule A (p1, EMAIL) + rule B (p9, SMS) gives both channels, B's text."""
        engine.add_rule(
            RoutingRule.create("A", lambda e: True, [EMAIL], "from A", "subject A", 1)
        )
        engine.add_rule(
            RoutingRule.create("B", lambda e: True, [SMS], "from B", "subject B", 9)
        )
        requests = engine.route_event(make_event())
        assert {r.channel for r in requests} == {EMAIL, SMS}
        assert all(r.message == "from B" for r in requests)
        assert all(r.subject == "subject B" for r in requests)

    def test_duplicate_channels_collapse(self, engine, make_event, make_rule):
        engine.add_rule(make_rule(channels=[EMAIL, SMS], priority=2))
        engine.add_rule(make_rule(channels=[SMS, PUSH], priority=1))
        requests = engine.route_event(make_event())
        assert [r.channel for r in requests] == [EMAIL, SMS, PUSH]

    def test_channel_order_is_first_seen(self, engine, make_event, make_rule):
        engine.add_rule(make_rule(channels=[PUSH], priority=1))
        engine.add_rule(make_rule(channels=[SMS, EMAIL], priority=5))
        channels = [r.channel for r in engine.route_event(make_event())]
        assert channels == [SMS, EMAIL, PUSH]
        assert [r.channel for r in engine.route_event(make_event())] == channels

    def test_requests_are_pending_and_carry_event_data(self, engine, make_event, make_rule):
        engine.add_rule(make_rule(channels=[EMAIL, SMS]))
        event = make_event(recipient="ada@example.com", priority=Priority.HIGH)
        requests = engine.route_event(event)
        assert len({r.request_id for r in requests}) == 2
        for r in requests:
            assert r.event_id == event.event_id
            assert r.recipient == "ada@example.com"
            assert r.priority == Priority.HIGH
            assert r.status == NotificationStatus.PENDING
            assert r.retry_count == 0

    def test_template_rendering(self, engine, make_event, make_rule):
        engine.add_rule(make_rule(message="Welcome {name}!", subject="Hi {name}"))
        (request,) = engine.route_event(make_event(payload={"name": "Ada"}))
        assert request.message == "Welcome Ada!"
        assert request.subject == "Hi Ada"

    def test_no_match_returns_empty(self, engine, make_event, make_rule):
        engine.add_rule(make_rule("ORDER_SHIPPED"))
        assert engine.route_event(make_event("SOMETHING_ELSE")) == []

    def test_empty_engine_returns_empty(self, engine, make_event):
        assert engine.route_event(make_event()) == []

    def test_raising_predicate_is_a_non_match(self, engine, make_event):
        def explode(event):
            raise KeyError("missing")

        engine.add_rule(RoutingRule.create("bad", explode, [PUSH], "bad", "bad", 100))
        engine.add_rule(RoutingRule.create("good", lambda e: True, [EMAIL], "ok", "ok", 1))
        requests = engine.route_event(make_event())
        assert [r.channel for r in requests] == [EMAIL]
        assert requests[0].message == "ok"

    def test_malformed_payload_never_raises(self, engine, make_event):
        engine.add_rule(
            RoutingRule.create(
                "needs amount",
                lambda e: e.payload["amount"] > 100,
                [EMAIL],
                "big {amount}",
                "s",
                1,
            )
        )
        assert engine.route_event(make_event(payload={"amount": "not a number"})) == []
        assert engine.route_event(make_event(payload={})) == []


class TestDefaultRules:
    def test_password_reset(self, default_engine, make_event):
        url = "https://example.com/reset/xyz"
        requests = default_engine.route_event(
            make_event("PASSWORD_RESET", payload={"resetUrl": url})
        )
        assert len(requests) == 1
        assert requests[0].channel == EMAIL
        assert url in requests[0].message

    def test_user_registered(self, default_engine, make_event):
        requests = default_engine.route_event(
            make_event("USER_REGISTERED", payload={"name": "Ada"})
        )
        assert [r.channel for r in requests] == [EMAIL, SMS]
        assert requests[0].subject == "Welcome to our platform, Ada!"

    def test_high_priority_template_wins(self, default_engine, make_event):
        event = make_event(
            "PAYMENT_COMPLETED",
            priority=Priority.HIGH,
            payload={"message": "Chargeback", "amount": "5"},
        )
        requests = default_engine.route_event(event)
        assert {r.channel for r in requests} == {EMAIL, SMS}
        assert requests[0].message == "URGENT: Chargeback - Please take immediate action."
        assert requests[0].subject == "Urgent Notification"

    def test_security_alert_outranks_event_type_rules(self, default_engine, make_event):
        requests = default_engine.route_event(
            make_event("SECURITY_ALERT", payload={"alertType": "Brute force"})
        )
        assert requests[0].subject == "Security Alert - Brute force"

    def test_low_priority_catch_all(self, default_engine, make_event):
        event = make_event(
            "NEWSLETTER",
            priority=Priority.LOW,
            payload={"message": "News", "subject": "May"},
        )
        (request,) = default_engine.route_event(event)
        assert request.channel == EMAIL
        assert request.message == "News"
        assert request.subject == "Update: May"

    def test_unknown_medium_event_unrouted(self, default_engine, make_event):
        assert default_engine.route_event(make_event("UNKNOWN")) == []


class TestRoutingStats:
    def test_stats_shape(self, engine, make_rule):
        engine.add_rule(make_rule(name="second", priority=1, channels=[SMS]))
        engine.add_rule(make_rule(name="first", priority=9, channels=[EMAIL, SMS]))
        stats = engine.get_routing_stats()
        assert stats["totalRules"] == 2
        assert stats["ruleNames"] == ["second", "first"]
        assert stats["channelCoverage"] == ["EMAIL", "SMS"]

    def test_default_coverage(self, default_engine):
        assert default_engine.get_routing_stats()["channelCoverage"] == ["EMAIL", "SMS"]
