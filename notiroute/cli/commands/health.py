"""``notiroute health`` — show readiness of a freshly built orchestrator."""

from __future__ import annotations

import typer
from rich.console import Console

from notiroute.cli.commands._runtime import build_orchestrator
from notiroute.monitor.renderer import StatusRenderer

console = Console()


def health_cmd(
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print the raw health structure as JSON.",
    ),
) -> None:
    """Report channel readiness, routing rules and store counters."""
    orchestrator = build_orchestrator(instant=True)
    try:
        health = orchestrator.get_health_info()
    finally:
        orchestrator.shutdown()

    if as_json:
        console.print_json(data=health)
    else:
        StatusRenderer(console=console).print_health(health)
