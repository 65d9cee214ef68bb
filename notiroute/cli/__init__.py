"""notiroute CLI — Typer-based command-line interface.

Provides the ``notiroute`` command with subcommands for sending a single
event, running a demo traffic burst, listing routing rules and checking
service health.

All output uses Rich for formatted terminal display.
"""
