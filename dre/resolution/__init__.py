"""
Resolution pipeline: action profiles, tier grading and the engine.
"""

from dre.resolution.actions import (
    ACTION_PROFILES,
    ActionProfile,
    UnknownActionError,
    classify_tier,
    coerce_action_type,
    get_profile,
    resolve_target,
)
from dre.resolution.engine import ResolutionEngine, get_engine, reset_engine, resolve

__all__ = [
    "ACTION_PROFILES",
    "ActionProfile",
    "ResolutionEngine",
    "UnknownActionError",
    "classify_tier",
    "coerce_action_type",
    "get_engine",
    "get_profile",
    "reset_engine",
    "resolve",
    "resolve_target",
]
