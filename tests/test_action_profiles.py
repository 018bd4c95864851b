"""
Tests for action profiles, target lookup and tier classification.
"""

import pytest

from dre.data_models import ActionContext, ActionType, CombatState, CombatTarget, MissionDefinition, ResultTier
from dre.resolution.actions import (
    ACTION_PROFILES,
    UnknownActionError,
    classify_tier,
    coerce_action_type,
    difficulty_label,
    get_profile,
    opposed_bonus,
    resolve_target,
)
from dre.tables.table_types import DifficultyTable, UnknownDifficultyError


class TestClassifyTier:
    """Tests for the tier ladder."""

    def test_natural_one_overrides_total(self):
        """Test that a natural 1 fails critically whatever the total."""
        assert classify_tier(1, 40, 10) == ResultTier.CRITICAL_FAIL

    def test_natural_twenty_overrides_total(self):
        """Test that a natural 20 succeeds critically whatever the total."""
        assert classify_tier(20, -5, 25) == ResultTier.CRITICAL_SUCCESS

    def test_meeting_target_succeeds(self):
        """Test that equalling the target is a success."""
        assert classify_tier(12, 15, 15) == ResultTier.SUCCESS
        assert classify_tier(12, 14, 15) == ResultTier.FAIL

    def test_partial_band(self):
        """Test the partial band just below the target."""
        assert classify_tier(10, 15, 18, partial_band=3) == ResultTier.PARTIAL
        assert classify_tier(10, 14, 18, partial_band=3) == ResultTier.FAIL

    def test_no_partial_without_band(self):
        """Test that actions without a band never grade partial."""
        assert classify_tier(10, 17, 18) == ResultTier.FAIL


class TestProfiles:
    """Tests for profile lookup."""

    def test_every_action_has_a_profile(self):
        """Test that each action type is covered."""
        assert set(ACTION_PROFILES) == set(ActionType)

    def test_string_action_types(self):
        """Test coercion from string values."""
        assert coerce_action_type("combat_flee") is ActionType.COMBAT_FLEE
        assert get_profile("away_team").partial_band == 3

    def test_unknown_action(self):
        """Test that an unknown action raises UnknownActionError."""
        with pytest.raises(UnknownActionError):
            coerce_action_type("teleport")
        assert issubclass(UnknownActionError, ValueError)

    def test_only_initiative_is_opposed(self):
        """Test that the initiative roll is the only opposed check."""
        assert [p.action_type for p in ACTION_PROFILES.values() if p.opposed] == [ActionType.COMBAT_INITIATE]

    def test_combat_actions_ignore_difficulty(self):
        """Test which actions take their target from the difficulty table."""
        table_targeted = {p.action_type for p in ACTION_PROFILES.values() if p.uses_difficulty}
        assert table_targeted == {
            ActionType.MINING, ActionType.SCAVENGING, ActionType.DERELICT,
            ActionType.AWAY_TEAM, ActionType.MISSION_COMPLETION,
        }


class TestTargets:
    """Tests for target number lookup."""

    def test_context_difficulty(self):
        """Test that the context's label selects the target."""
        profile = get_profile(ActionType.MINING)
        assert resolve_target(profile, ActionContext(difficulty="easy"), DifficultyTable()) == 10

    def test_engine_default_difficulty(self):
        """Test that a missing label falls back to the engine default."""
        profile = get_profile(ActionType.MINING)
        assert resolve_target(profile, ActionContext(), DifficultyTable(), "hard") == 18

    def test_profile_default_difficulty(self):
        """Test that derelicts default to hard."""
        profile = get_profile(ActionType.DERELICT)
        assert difficulty_label(profile, ActionContext()) == "hard"
        assert resolve_target(profile, ActionContext(), DifficultyTable()) == 18

    def test_mission_difficulty(self):
        """Test that mission completion uses the mission's own difficulty."""
        profile = get_profile(ActionType.MISSION_COMPLETION)
        context = ActionContext(difficulty="easy", mission=MissionDefinition("m1", difficulty="deadly"))
        assert resolve_target(profile, context, DifficultyTable()) == 22

    def test_unknown_difficulty(self):
        """Test that an unknown label raises."""
        profile = get_profile(ActionType.MINING)
        with pytest.raises(UnknownDifficultyError):
            resolve_target(profile, ActionContext(difficulty="legendary"), DifficultyTable())

    def test_attack_targets_evasion(self):
        """Test that attacks roll against the target's evasion."""
        profile = get_profile(ActionType.COMBAT_ATTACK)
        context = ActionContext(combat=CombatState(target=CombatTarget(evasion=16)))
        assert resolve_target(profile, context, DifficultyTable()) == 16
        assert resolve_target(profile, ActionContext(), DifficultyTable()) == 12

    def test_flee_gets_harder_over_time(self):
        """Test that fleeing gets harder the longer combat lasts."""
        profile = get_profile(ActionType.COMBAT_FLEE)
        assert resolve_target(profile, ActionContext(), DifficultyTable()) == 15
        assert resolve_target(profile, ActionContext(combat=CombatState(duration=5)), DifficultyTable()) == 17

    def test_repair_targets(self):
        """Test emergency and calm repair targets."""
        profile = get_profile(ActionType.COMBAT_REPAIR)
        assert resolve_target(profile, ActionContext(), DifficultyTable()) == 14
        calm = ActionContext(combat=CombatState(emergency=False))
        assert resolve_target(profile, calm, DifficultyTable()) == 10

    def test_opposed_has_no_fixed_target(self):
        """Test that opposed actions refuse a table target."""
        with pytest.raises(ValueError):
            resolve_target(get_profile(ActionType.COMBAT_INITIATE), ActionContext(), DifficultyTable())

    def test_opposed_bonus(self):
        """Test that the enemy's initiative is its opposed bonus."""
        context = ActionContext(combat=CombatState(target=CombatTarget(initiative=3)))
        assert opposed_bonus(context) == 3
        assert opposed_bonus(ActionContext()) == 0
