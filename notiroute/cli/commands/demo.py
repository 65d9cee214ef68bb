"""``notiroute demo`` — push a burst of sample events through the system.

Submits one event per standard rule (plus one that matches nothing),
waits for the deliveries, optionally runs retry sweeps over whatever
failed, and finishes with the health panel.
"""

from __future__ import annotations

import time

import typer
from rich.console import Console
from rich.panel import Panel

from notiroute.cli.commands._runtime import build_orchestrator
from notiroute.core.retry import RetryPolicy, RetrySweeper
from notiroute.models.events import Event, Priority
from notiroute.monitor.renderer import StatusRenderer

console = Console()


def sample_events(recipient: str) -> list[Event]:
    """One event per standard rule, plus an event no rule matches."""
    return [
        Event(
            event_type="USER_REGISTERED",
            recipient=recipient,
            payload={"name": "Ada", "email": recipient},
        ),
        Event(
            event_type="PAYMENT_COMPLETED",
            recipient=recipient,
            payload={"amount": "42.00", "transactionId": "TXN-5521"},
        ),
        Event(
            event_type="ORDER_SHIPPED",
            recipient=recipient,
            payload={
                "orderId": "ORD-1001",
                "deliveryDate": "Friday",
                "trackingUrl": "https://example.com/track/ORD-1001",
            },
        ),
        Event(
            event_type="PASSWORD_RESET",
            recipient=recipient,
            payload={"resetUrl": "https://example.com/reset/abc123"},
        ),
        Event(
            event_type="ACCOUNT_VERIFICATION",
            recipient=recipient,
            payload={"verificationCode": "493021"},
        ),
        Event(
            event_type="SECURITY_ALERT",
            recipient=recipient,
            priority=Priority.CRITICAL,
            payload={
                "alertType": "Unrecognized login",
                "message": "New login from an unrecognized device",
            },
        ),
        Event(
            event_type="WEEKLY_DIGEST",
            recipient=recipient,
            priority=Priority.LOW,
            payload={"message": "Your weekly summary is ready", "subject": "Weekly digest"},
        ),
        Event(event_type="UNMAPPED_EVENT", recipient=recipient),
    ]


def demo_cmd(
    recipient: str = typer.Option(
        "demo@example.com",
        "--recipient",
        "-r",
        help="Recipient used for every sample event.",
    ),
    retry: bool = typer.Option(
        True,
        "--retry/--no-retry",
        help="Run retry sweeps over failed deliveries.",
    ),
    instant: bool = typer.Option(
        False,
        "--instant",
        help="Skip the simulated channel latency.",
    ),
    seed: int = typer.Option(
        None,
        "--seed",
        help="Seed for the simulated senders' random source.",
    ),
    failure_rate: float = typer.Option(
        None,
        "--failure-rate",
        min=0.0,
        max=1.0,
        help="Override the failure rate of every simulated sender.",
    ),
) -> None:
    """Run sample traffic through routing, delivery and retry."""
    orchestrator = build_orchestrator(instant=instant, seed=seed, failure_rate=failure_rate)
    renderer = StatusRenderer(console=console)

    console.print()
    console.print(
        Panel(
            "[bold]notiroute demo[/bold]\n\n"
            "Routing sample events to their channels and delivering them\n"
            "through the simulated Email, SMS and Push senders.",
            border_style="cyan",
            padding=(1, 2),
        )
    )

    started = time.monotonic()
    events = sample_events(recipient)
    futures = [(event, orchestrator.process_event(event)) for event in events]
    for event, future in futures:
        console.print(f"[cyan]>>>[/cyan] [bold]{event.event_type}[/bold]: {future.result()}")
    orchestrator.drain()

    if retry:
        # Zero backoff so every failed request is eligible on each pass
        policy = RetryPolicy(
            max_attempts=orchestrator.config.retry_max_attempts,
            base_delay=0.0,
            jitter_ratio=0.0,
        )
        sweeper = RetrySweeper(orchestrator, policy)
        for attempt in range(policy.max_attempts + 1):
            report = sweeper.sweep()
            if report.total == 0:
                break
            console.print(
                f"[yellow]Retry sweep {attempt + 1}:[/yellow] "
                f"{len(report.requeued)} requeued, "
                f"{len(report.dead_lettered)} dead-lettered"
            )
            orchestrator.drain()

    console.print()
    for event in events:
        statuses = orchestrator.get_all_delivery_statuses(event.event_id)
        if statuses:
            renderer.print_statuses(statuses, title=event.event_type)

    renderer.print_health(orchestrator.get_health_info())
    orchestrator.shutdown()

    stats = orchestrator.get_service_stats()
    console.print(
        Panel(
            "\n".join([
                "[bold green]Demo complete[/bold green]",
                "",
                f"[bold]Events:[/bold]       {stats['eventsProcessed']}",
                f"[bold]Requests:[/bold]     {stats['totalRequests']}",
                f"[bold]Sent:[/bold]         {stats['notificationsSent']}",
                f"[bold]Dead letter:[/bold]  {stats['deadLetterCount']}",
                f"[bold]Elapsed:[/bold]      {time.monotonic() - started:.2f}s",
            ]),
            title="[bold]Demo Summary[/bold]",
            border_style="green",
            padding=(1, 2),
        )
    )
