"""
Odds preview.

Computes the probability of every result tier analytically, without
consuming any randomness. It reads the same action profiles, modifier
registry and difficulty table as the resolution engine, and applies the
same critical-override rule: a natural 1 and a natural 20 are each worth
exactly 5% whatever the modifiers, and only the eighteen faces 2..19 are
split by arithmetic.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Optional, Sequence, Union

from dre.data_models import ActionContext, ActionType, ResultTier
from dre.resolution.actions import (
    ActionProfile,
    coerce_action_type,
    difficulty_label,
    get_profile,
    opposed_bonus,
    resolve_target,
)
from dre.resolution.engine import ResolutionEngine, get_engine

logger = logging.getLogger(__name__)

FACE_PERCENT = 5  # one d20 face
NON_CRITICAL_FACES = range(2, 20)

DEFAULT_RECOMMENDED_CHANCE = 65

# (minimum success chance, label), best first
SUMMARY_BUCKETS = [
    (95, "Almost Certain"),
    (75, "Very Likely"),
    (60, "Likely"),
    (50, "Even Odds"),
    (35, "Unlikely"),
    (20, "Very Unlikely"),
]
SUMMARY_FLOOR = "Nearly Impossible"


@dataclass
class OddsReport:
    """Tier probabilities (percent) for one action and context."""
    action_type: ActionType
    difficulty: Optional[str]
    target_difficulty: float
    modifier_total: int
    modifier_breakdown: dict[str, int] = field(default_factory=dict)
    needed_roll: float = 0
    probabilities: dict[str, float] = field(default_factory=dict)
    success_chance: float = 0
    fail_chance: float = 0
    summary: str = ""
    opposed: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "action_type": self.action_type.value,
            "difficulty": self.difficulty,
            "target_difficulty": self.target_difficulty,
            "modifier_total": self.modifier_total,
            "modifier_breakdown": dict(self.modifier_breakdown),
            "needed_roll": self.needed_roll,
            "probabilities": dict(self.probabilities),
            "success_chance": self.success_chance,
            "fail_chance": self.fail_chance,
            "summary": self.summary,
            "opposed": self.opposed,
        }


@dataclass
class HitOddsReport:
    """Hit chance of a combat attack against the target's evasion."""
    target_evasion: int
    modifier_total: int
    modifier_breakdown: dict[str, int] = field(default_factory=dict)
    needed_roll: int = 0
    probabilities: dict[str, float] = field(default_factory=dict)
    hit_chance: float = 0
    miss_chance: float = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "target_evasion": self.target_evasion,
            "modifier_total": self.modifier_total,
            "modifier_breakdown": dict(self.modifier_breakdown),
            "needed_roll": self.needed_roll,
            "probabilities": dict(self.probabilities),
            "hit_chance": self.hit_chance,
            "miss_chance": self.miss_chance,
        }


@dataclass
class OddsComparison:
    """One option of a what-if comparison."""
    index: int
    label: str
    odds: OddsReport


@dataclass
class DifficultyRecommendation:
    """Difficulty label whose success chance is closest to the requested one."""
    recommended: str
    expected_success_chance: float
    target_success_chance: float
    options: list[tuple[str, OddsReport, float]] = field(default_factory=list)  # (label, odds, delta)


# =============================================================================
# BAND ARITHMETIC
# =============================================================================


def passing_faces(needed_roll: int) -> int:
    """Number of non-critical faces (2..19) that reach the needed roll."""
    if needed_roll <= 2:
        return len(NON_CRITICAL_FACES)
    if needed_roll >= 20:
        return 0
    return 20 - needed_roll


def partial_faces(needed_roll: int, partial_band: int) -> int:
    """Non-critical faces that miss the needed roll by at most the band."""
    if partial_band <= 0:
        return 0
    return sum(1 for face in NON_CRITICAL_FACES if needed_roll - partial_band <= face < needed_roll)


def tier_percentages(needed_roll: int, partial_band: int = 0) -> dict[str, float]:
    """Percent chance of each tier for a single fixed target."""
    success = passing_faces(needed_roll) * FACE_PERCENT
    partial = partial_faces(needed_roll, partial_band) * FACE_PERCENT
    return {
        ResultTier.CRITICAL_SUCCESS.value: FACE_PERCENT,
        ResultTier.SUCCESS.value: success,
        ResultTier.PARTIAL.value: partial,
        ResultTier.FAIL.value: len(NON_CRITICAL_FACES) * FACE_PERCENT - success - partial,
        ResultTier.CRITICAL_FAIL.value: FACE_PERCENT,
    }


def _format_percent(value: float) -> str:
    return f"{value:g}%"


def summarize_odds(success_chance: float, modifier_total: int) -> str:
    """Qualitative label such as 'Likely (60%) [+3]'."""
    if modifier_total > 0:
        mod_text = f"+{modifier_total}"
    elif modifier_total < 0:
        mod_text = str(modifier_total)
    else:
        mod_text = "±0"

    label = SUMMARY_FLOOR
    for minimum, bucket in SUMMARY_BUCKETS:
        if success_chance >= minimum:
            label = bucket
            break
    return f"{label} ({_format_percent(success_chance)}) [{mod_text}]"


# =============================================================================
# PREVIEWS
# =============================================================================


def _opposed_percentages(modifier_total: int, bonus: int, partial_band: int) -> tuple[dict[str, float], float]:
    """Average the single-target bands over the enemy's twenty faces."""
    totals = {tier.value: 0.0 for tier in ResultTier}
    for enemy_face in range(1, 21):
        needed = enemy_face + bonus - modifier_total
        for tier, percent in tier_percentages(needed, partial_band).items():
            totals[tier] += percent
    averaged = {tier: value / 20 for tier, value in totals.items()}
    mean_target = 10.5 + bonus
    return averaged, mean_target


def preview_odds(
    action_type: Union[ActionType, str],
    context: Optional[ActionContext] = None,
    engine: Optional[ResolutionEngine] = None,
) -> OddsReport:
    """
    Preview tier probabilities for an action.

    Args:
        action_type: ActionType or its string value
        context: Action context (an empty context when omitted)
        engine: Engine whose modifier registry and difficulty table to use

    Raises:
        UnknownActionError: If the action type is unknown
        UnknownDifficultyError: If the context names an unknown difficulty
    """
    action_type = coerce_action_type(action_type)
    profile = get_profile(action_type)
    context = context if context is not None else ActionContext()
    engine = engine or get_engine()

    modifiers = engine.registry.aggregate(action_type, context)

    if profile.opposed:
        probabilities, target = _opposed_percentages(modifiers.total, opposed_bonus(context), profile.partial_band)
        difficulty = None
    else:
        target = resolve_target(profile, context, engine.difficulty_table, engine.default_difficulty)
        probabilities = tier_percentages(target - modifiers.total, profile.partial_band)
        difficulty = _difficulty_for_report(profile, context, engine)

    success_chance = probabilities["critical_success"] + probabilities["success"]
    fail_chance = probabilities["fail"] + probabilities["critical_fail"]

    return OddsReport(
        action_type=action_type,
        difficulty=difficulty,
        target_difficulty=target,
        modifier_total=modifiers.total,
        modifier_breakdown=dict(modifiers.breakdown),
        needed_roll=target - modifiers.total,
        probabilities=probabilities,
        success_chance=success_chance,
        fail_chance=fail_chance,
        summary=summarize_odds(success_chance, modifiers.total),
        opposed=profile.opposed,
    )


def _difficulty_for_report(profile: ActionProfile, context: ActionContext, engine: ResolutionEngine) -> Optional[str]:
    if profile.action_type in (ActionType.COMBAT_ATTACK, ActionType.COMBAT_FLEE, ActionType.COMBAT_REPAIR):
        return None
    return difficulty_label(profile, context, engine.default_difficulty)


def preview_combat_hit(context: Optional[ActionContext] = None, engine: Optional[ResolutionEngine] = None) -> HitOddsReport:
    """Hit chance of a combat attack; the same band logic as preview_odds."""
    report = preview_odds(ActionType.COMBAT_ATTACK, context, engine)
    probabilities = report.probabilities
    return HitOddsReport(
        target_evasion=int(report.target_difficulty),
        modifier_total=report.modifier_total,
        modifier_breakdown=report.modifier_breakdown,
        needed_roll=int(report.needed_roll),
        probabilities={
            "critical_success": probabilities["critical_success"],
            "hit": probabilities["success"],
            "miss": probabilities["fail"],
            "critical_fail": probabilities["critical_fail"],
        },
        hit_chance=report.success_chance,
        miss_chance=report.fail_chance,
    )


def compare_odds(
    action_type: Union[ActionType, str],
    contexts: Sequence[ActionContext],
    labels: Optional[Sequence[str]] = None,
    engine: Optional[ResolutionEngine] = None,
) -> list[OddsComparison]:
    """Preview several what-if contexts side by side."""
    comparisons = []
    for index, context in enumerate(contexts):
        label = labels[index] if labels and index < len(labels) else f"Option {index + 1}"
        comparisons.append(OddsComparison(index=index, label=label, odds=preview_odds(action_type, context, engine)))
    return comparisons


def _with_difficulty(context: ActionContext, label: str) -> ActionContext:
    updated = replace(context, difficulty=label)
    if updated.mission is not None:
        updated.mission = replace(updated.mission, difficulty=label)
    return updated


def recommend_difficulty(
    action_type: Union[ActionType, str],
    context: Optional[ActionContext] = None,
    target_success_chance: float = DEFAULT_RECOMMENDED_CHANCE,
    engine: Optional[ResolutionEngine] = None,
) -> DifficultyRecommendation:
    """
    Find the difficulty label whose success chance is closest to the target.

    Ties go to the easier label.
    """
    engine = engine or get_engine()
    context = context if context is not None else ActionContext()

    options = []
    for label in engine.difficulty_table.labels():
        odds = preview_odds(action_type, _with_difficulty(context, label), engine)
        options.append((label, odds, abs(odds.success_chance - target_success_chance)))

    best = min(options, key=lambda option: option[2])
    logger.debug(f"Recommended difficulty {best[0]!r} for {target_success_chance}% success")
    return DifficultyRecommendation(
        recommended=best[0],
        expected_success_chance=best[1].success_chance,
        target_success_chance=target_success_chance,
        options=options,
    )


# =============================================================================
# MONTE CARLO CROSS-CHECK
# =============================================================================


def empirical_odds(
    action_type: Union[ActionType, str],
    context: Optional[ActionContext] = None,
    runs: int = 100_000,
    seed_prefix: str = "sim",
    engine: Optional[ResolutionEngine] = None,
) -> dict[str, float]:
    """
    Resolve the action `runs` times with seeds "<prefix>-0", "<prefix>-1", ...
    and return the observed percentage of each tier plus success_chance.
    """
    if runs < 1:
        raise ValueError(f"runs must be positive, got {runs}")
    engine = engine or get_engine()
    counts = {tier.value: 0 for tier in ResultTier}
    for i in range(runs):
        outcome = engine.resolve(action_type, context, f"{seed_prefix}-{i}")
        counts[outcome.tier.value] += 1

    observed = {tier: count * 100 / runs for tier, count in counts.items()}
    observed["success_chance"] = observed["critical_success"] + observed["success"]
    return observed
