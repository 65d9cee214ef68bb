"""``notiroute send EVENT_TYPE RECIPIENT`` — route and deliver one event.

Builds the event from the command line, processes it through a fresh
orchestrator, waits for every delivery to finish and prints the
per-channel results.
"""

from __future__ import annotations

import typer
from rich.console import Console

from notiroute.cli.commands._runtime import build_orchestrator, parse_fields
from notiroute.core.orchestrator import ProcessingOutcome
from notiroute.models.events import Event, Priority
from notiroute.monitor.renderer import StatusRenderer

console = Console()


def send_cmd(
    event_type: str = typer.Argument(..., help="Event type, e.g. USER_REGISTERED."),
    recipient: str = typer.Argument(..., help="Recipient address or identifier."),
    priority: Priority = typer.Option(
        Priority.MEDIUM,
        "--priority",
        "-p",
        case_sensitive=False,
        help="Event priority.",
    ),
    fields: list[str] = typer.Option(
        None,
        "--field",
        "-f",
        help="Payload entry as key=value.  Repeatable.",
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
    timeout: float = typer.Option(
        30.0,
        "--timeout",
        "-t",
        help="Seconds to wait for deliveries to finish.",
    ),
) -> None:
    """Route one event and show how each channel delivery ended.

    Exits with status 1 when no rule matched or processing failed.
    """
    event = Event(
        event_type=event_type,
        recipient=recipient,
        priority=priority,
        payload=parse_fields(fields),
    )
    orchestrator = build_orchestrator(instant=instant, seed=seed, failure_rate=failure_rate)
    renderer = StatusRenderer(console=console)

    try:
        outcome = orchestrator.process_event(event).result()
        if not orchestrator.drain(timeout):
            console.print(f"[yellow]Deliveries still running after {timeout:.1f}s[/yellow]")

        style = "green" if outcome == ProcessingOutcome.ROUTED.value else "bold red"
        console.print(f"[bold]Event:[/bold] {event.event_id}")
        console.print(f"[bold]Outcome:[/bold] [{style}]{outcome}[/{style}]")

        statuses = orchestrator.get_all_delivery_statuses(event.event_id)
        if statuses:
            renderer.print_statuses(statuses, title=f"{event.event_type} -> {recipient}")
    finally:
        orchestrator.shutdown(wait=False, cancel_pending=True)

    if outcome != ProcessingOutcome.ROUTED.value:
        raise typer.Exit(code=1)
