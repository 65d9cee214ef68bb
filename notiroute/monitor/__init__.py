"""notiroute status monitor — Rich rendering of health and delivery status.

The monitor never keeps state of its own.  Every render takes the
structures returned by the orchestrator's status operations.

Modules
-------
renderer
    ``StatusRenderer`` turns health dictionaries, delivery statuses and
    routing rules into Rich renderables for terminal display.
"""
