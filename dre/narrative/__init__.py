"""
Narrative text, terminal formatting and telemetry snapshots for outcomes.
"""

from dre.narrative.output import (
    OutputSection,
    TerminalOutput,
    batch_outputs,
    commentary_for,
    format_modifier_breakdown,
    format_outcome,
    generate_narrative,
    result_icon,
    telemetry_snapshot,
)

__all__ = [
    "OutputSection",
    "TerminalOutput",
    "batch_outputs",
    "commentary_for",
    "format_modifier_breakdown",
    "format_outcome",
    "generate_narrative",
    "result_icon",
    "telemetry_snapshot",
]
