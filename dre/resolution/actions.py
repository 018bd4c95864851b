"""
Action profiles and the tier ladder.

Every action type shares one resolution core; what differs is captured
here: where the target number comes from, whether the action has a
partial band, and whether the check is opposed by an enemy roll.
Both the resolution pipeline and the odds preview read these profiles,
so the two can never disagree about targets or tiers.
"""

from dataclasses import dataclass
from typing import Optional, Union

from dre.data_models import ActionContext, ActionType, ResultTier
from dre.tables.table_types import DifficultyTable


class UnknownActionError(ValueError):
    """Raised for an action type the engine does not know."""
    pass


PRIMARY_DIE = 20

# Combat defaults when the context carries no target.
DEFAULT_EVASION = 12
FLEE_BASE_TARGET = 15
REPAIR_TARGET_EMERGENCY = 14
REPAIR_TARGET_CALM = 10

# Targets come from evasion, encounter duration or the emergency flag.
COMBAT_TARGETED_ACTIONS = frozenset({
    ActionType.COMBAT_ATTACK,
    ActionType.COMBAT_FLEE,
    ActionType.COMBAT_REPAIR,
})


@dataclass(frozen=True)
class ActionProfile:
    """How one action type derives its target and grades its result."""
    action_type: ActionType
    # Difficulty label used when the context gives none; None means the
    # engine-wide default.
    default_difficulty: Optional[str] = None
    # Points below target still graded as a partial success (0 = no band).
    partial_band: int = 0
    # Opposed checks compare against an enemy d20 instead of a table target.
    opposed: bool = False
    description: str = ""

    @property
    def uses_difficulty(self) -> bool:
        """Whether the target comes from the difficulty table."""
        return not self.opposed and self.action_type not in COMBAT_TARGETED_ACTIONS


ACTION_PROFILES: dict[ActionType, ActionProfile] = {
    ActionType.MINING: ActionProfile(
        ActionType.MINING, description="Extract ore while dodging debris",
    ),
    ActionType.SCAVENGING: ActionProfile(
        ActionType.SCAVENGING, description="Search wreckage for salvage",
    ),
    ActionType.DERELICT: ActionProfile(
        ActionType.DERELICT, default_difficulty="hard", description="Board and investigate a derelict",
    ),
    ActionType.AWAY_TEAM: ActionProfile(
        ActionType.AWAY_TEAM, default_difficulty="hard", partial_band=3,
        description="Send a team to the surface",
    ),
    ActionType.COMBAT_INITIATE: ActionProfile(
        ActionType.COMBAT_INITIATE, opposed=True, description="Roll initiative against the enemy",
    ),
    ActionType.COMBAT_ATTACK: ActionProfile(
        ActionType.COMBAT_ATTACK, description="Fire on the target",
    ),
    ActionType.COMBAT_FLEE: ActionProfile(
        ActionType.COMBAT_FLEE, description="Break off and escape",
    ),
    ActionType.COMBAT_REPAIR: ActionProfile(
        ActionType.COMBAT_REPAIR, description="Patch a damaged system",
    ),
    ActionType.MISSION_COMPLETION: ActionProfile(
        ActionType.MISSION_COMPLETION, partial_band=3, description="Turn in a mission",
    ),
}


def coerce_action_type(action_type: Union[ActionType, str]) -> ActionType:
    """
    Accept an ActionType or its string value.

    Raises:
        UnknownActionError: If the value names no action type
    """
    if isinstance(action_type, ActionType):
        return action_type
    try:
        return ActionType(action_type)
    except ValueError:
        known = ", ".join(a.value for a in ActionType)
        raise UnknownActionError(f"Unknown action type {action_type!r}; expected one of {known}") from None


def get_profile(action_type: Union[ActionType, str]) -> ActionProfile:
    action_type = coerce_action_type(action_type)
    try:
        return ACTION_PROFILES[action_type]
    except KeyError:
        raise UnknownActionError(f"No profile for action type {action_type.value!r}") from None


def difficulty_label(profile: ActionProfile, context: ActionContext, default_difficulty: str = "normal") -> str:
    """The difficulty label in force for a table-targeted action."""
    if profile.action_type == ActionType.MISSION_COMPLETION and context.mission is not None:
        return context.mission.difficulty
    return context.difficulty or profile.default_difficulty or default_difficulty


def resolve_target(
    profile: ActionProfile,
    context: ActionContext,
    difficulty_table: DifficultyTable,
    default_difficulty: str = "normal",
) -> int:
    """
    Target number for a non-opposed action.

    Raises:
        UnknownDifficultyError: If the difficulty label is not in the table
        ValueError: If called for an opposed action
    """
    if profile.opposed:
        raise ValueError(f"{profile.action_type.value} is opposed; its target comes from the enemy roll")

    combat = context.combat
    if profile.action_type == ActionType.COMBAT_ATTACK:
        if combat is not None and combat.target is not None:
            return combat.target.evasion
        return DEFAULT_EVASION
    if profile.action_type == ActionType.COMBAT_FLEE:
        duration = combat.duration if combat is not None else 0
        return FLEE_BASE_TARGET + duration // 2
    if profile.action_type == ActionType.COMBAT_REPAIR:
        emergency = combat.emergency if combat is not None else True
        return REPAIR_TARGET_EMERGENCY if emergency else REPAIR_TARGET_CALM

    return difficulty_table.target_for(difficulty_label(profile, context, default_difficulty))


def opposed_bonus(context: ActionContext) -> int:
    """Flat bonus added to the enemy's opposed d20."""
    if context.combat is not None and context.combat.target is not None:
        return context.combat.target.initiative
    return 0


def classify_tier(natural: int, total: int, target: int, partial_band: int = 0, sides: int = PRIMARY_DIE) -> ResultTier:
    """
    Grade a check.

    A natural 1 is always a critical failure and a natural maximum always a
    critical success, whatever the total.
    """
    if natural == 1:
        return ResultTier.CRITICAL_FAIL
    if natural == sides:
        return ResultTier.CRITICAL_SUCCESS
    if total >= target:
        return ResultTier.SUCCESS
    if partial_band and total >= target - partial_band:
        return ResultTier.PARTIAL
    return ResultTier.FAIL
