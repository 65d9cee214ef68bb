"""Placeholder substitution for rule templates.

Templates use ``{name}`` tokens.  Payload keys are substituted first,
then the fixed event fields.  Tokens with no matching value are left in
place verbatim; rendering never raises.

Examples
--------
>>> from notiroute.models.events import Event
>>> event = Event(event_type="ORDER_SHIPPED", recipient="a@b.c",
...               payload={"orderId": 42})
>>> render_template("Order #{orderId} for {recipient} {unknown}", event)
'Order #42 for a@b.c {unknown}'
"""

from __future__ import annotations

from notiroute.models.events import Event


def event_fields(event: Event) -> dict[str, str]:
    """Return the fixed placeholders available to every template."""
    return {
        "eventType": event.event_type,
        "recipient": event.recipient,
        "timestamp": event.timestamp.isoformat(),
        "eventId": event.event_id,
    }


def render_template(template: str, event: Event) -> str:
    """Render *template* against *event*'s payload and fixed fields."""
    result = template
    for key, value in event.payload.items():
        result = result.replace("{" + str(key) + "}", str(value))
    for key, value in event_fields(event).items():
        result = result.replace("{" + key + "}", value)
    return result
