"""
Dice resolution engine.

Deterministic action resolution for a space-exploration game: seeded
substreams, dice, weighted tables, pluggable modifier sources, a
resolution pipeline with critical overrides, and an analytic odds preview
that agrees with it.
"""

from dre.data_models import ActionContext, ActionType, ResolutionOutcome, ResultTier
from dre.preview.odds import preview_combat_hit, preview_odds
from dre.resolution.engine import ResolutionEngine, resolve

__version__ = "0.1.0"

__all__ = [
    "ActionContext",
    "ActionType",
    "ResolutionEngine",
    "ResolutionOutcome",
    "ResultTier",
    "preview_combat_hit",
    "preview_odds",
    "resolve",
]
