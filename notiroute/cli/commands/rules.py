"""``notiroute rules`` — list the standard routing rules."""

from __future__ import annotations

from rich.console import Console

from notiroute.monitor.renderer import StatusRenderer
from notiroute.routing.engine import RoutingEngine

console = Console()


def rules_cmd() -> None:
    """Show the startup rule set in evaluation order."""
    engine = RoutingEngine.with_default_rules()
    StatusRenderer(console=console).print_rules(engine.get_rules())

    stats = engine.get_routing_stats()
    console.print(
        f"[bold]{stats['totalRules']}[/bold] rules covering "
        f"{', '.join(stats['channelCoverage'])}"
    )
