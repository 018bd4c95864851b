"""
Observability and replay for the dice resolution engine.

Records resolutions and modifier faults, and replays recorded sessions to
confirm they still reproduce seed for seed.
"""

from dre.observability.run_log import (
    EventType,
    LogEvent,
    ModifierFaultEvent,
    ResolutionEvent,
    RunLog,
    get_run_log,
    reset_run_log,
)

__all__ = [
    "EventType",
    "LogEvent",
    "ModifierFaultEvent",
    "ResolutionEvent",
    "RunLog",
    "get_run_log",
    "reset_run_log",
]
