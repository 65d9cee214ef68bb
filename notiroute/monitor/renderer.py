"""Rich terminal renderer for notiroute health and delivery status.

Color scheme
------------
- green     : SENT
- red       : FAILED
- yellow    : PENDING
- magenta   : DEAD_LETTER
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from notiroute.models.notifications import DeliveryStatus, NotificationStatus
from notiroute.models.routing import RoutingRule

# ---------------------------------------------------------------------------
# Status -> Rich style mapping
# ---------------------------------------------------------------------------

_STATUS_STYLES: dict[NotificationStatus, str] = {
    NotificationStatus.SENT: "bold green",
    NotificationStatus.FAILED: "bold red",
    NotificationStatus.PENDING: "yellow",
    NotificationStatus.DEAD_LETTER: "bold magenta",
}


class StatusRenderer:
    """Renders orchestrator status structures as Rich output.

    Parameters
    ----------
    console:
        Rich Console instance.  A new one is created if not provided.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    def render_health(self, health: dict[str, Any]) -> Panel:
        """Render the nested structure from ``get_health_info()``."""
        service = health.get("service", {})
        stats = health.get("statistics", {})

        channels = Table(show_header=True, header_style="bold cyan", expand=True)
        channels.add_column("Channel", style="cyan", min_width=10)
        channels.add_column("Status")
        for name, status in sorted(health.get("channels", {}).items()):
            channels.add_row(name, status)

        state = service.get("status", "unknown")
        state_markup = (
            f"[green]{state}[/green]" if state == "healthy" else f"[bold red]{state}[/bold red]"
        )
        summary = "  |  ".join([
            f"[bold]Status:[/bold] {state_markup}",
            f"[bold]Rules:[/bold] {service.get('routingRulesActive', 0)}",
            f"[bold]Events:[/bold] {stats.get('eventsProcessed', 0)}",
            f"[bold]Sent:[/bold] {stats.get('notificationsSent', 0)}",
            f"[bold]Failed:[/bold] {stats.get('failedDeliveries', 0)}",
            f"[bold]Dead letter:[/bold] {stats.get('deadLetterCount', 0)}",
        ])

        return Panel(
            Group(channels, Text(""), Text.from_markup(summary)),
            title="[bold]notiroute health[/bold]",
            subtitle=f"storage: {service.get('storageType', '-')}",
            border_style="blue",
            padding=(1, 2),
        )

    # ------------------------------------------------------------------
    # Delivery statuses
    # ------------------------------------------------------------------

    def render_statuses(
        self, statuses: Iterable[DeliveryStatus], *, title: str = "Deliveries"
    ) -> Table:
        table = Table(title=title, show_header=True, header_style="bold cyan", expand=True)
        table.add_column("Event", style="dim", max_width=12, no_wrap=True)
        table.add_column("Channel", min_width=8)
        table.add_column("Status", justify="center", min_width=12)
        table.add_column("Retries", justify="right", width=8)
        table.add_column("Reason")

        for status in statuses:
            table.add_row(
                status.event_id[:12],
                status.channel.value if status.channel else "-",
                Text(
                    status.status.value.replace("_", " "),
                    style=_STATUS_STYLES.get(status.status, ""),
                ),
                str(status.retry_count),
                Text(status.failure_reason) if status.failure_reason else Text("-", style="dim"),
            )
        return table

    # ------------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------------

    def render_rules(self, rules: Iterable[RoutingRule]) -> Table:
        table = Table(title="Routing rules", show_header=True, header_style="bold cyan")
        table.add_column("#", style="dim", justify="right", width=4)
        table.add_column("Priority", justify="right", width=8)
        table.add_column("Name", style="cyan")
        table.add_column("Channels")
        for i, rule in enumerate(rules):
            table.add_row(
                str(i),
                str(rule.priority),
                rule.name,
                ", ".join(c.value for c in rule.channels),
            )
        return table

    # ------------------------------------------------------------------
    # Standalone print
    # ------------------------------------------------------------------

    def print_health(self, health: dict[str, Any]) -> None:
        self.console.print(self.render_health(health))

    def print_statuses(
        self, statuses: Iterable[DeliveryStatus], *, title: str = "Deliveries"
    ) -> None:
        self.console.print(self.render_statuses(statuses, title=title))

    def print_rules(self, rules: Iterable[RoutingRule]) -> None:
        self.console.print(self.render_rules(rules))
