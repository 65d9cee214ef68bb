"""Main Typer application — imports and registers all CLI commands.

Entry point: ``notiroute`` (configured via pyproject.toml console_scripts).
"""

from __future__ import annotations

import typer

from notiroute.cli.commands.demo import demo_cmd
from notiroute.cli.commands.health import health_cmd
from notiroute.cli.commands.rules import rules_cmd
from notiroute.cli.commands.send import send_cmd
from notiroute.config import config, configure_logging

app = typer.Typer(
    name="notiroute",
    help="notiroute: event-driven notification routing and delivery.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="send", help="Route and deliver a single event.")(send_cmd)
app.command(name="demo", help="Run sample events through routing, delivery and retry.")(demo_cmd)
app.command(name="rules", help="List the standard routing rules.")(rules_cmd)
app.command(name="health", help="Show channel readiness and service counters.")(health_cmd)


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        None,
        "--log-level",
        help="Logging level (defaults to NOTIROUTE_LOG_LEVEL).",
    ),
) -> None:
    """Configure logging before any command runs."""
    configure_logging(log_level or config.log_level)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
