"""
Resolution pipeline.

resolve(action_type, context, seed) is the single entry point for
randomized resolution:

1. Derive the primary substream from (seed, action type) and roll a d20.
2. Aggregate modifiers and look up the target number.
3. Grade the result; natural 1 and natural 20 override the arithmetic.
4. Run the action's secondary rolls, each on its own substream labelled
   "<action_type>/<roll name>", and assemble the consequences.

The engine never mutates the context or any game state; applying the
consequences is the caller's job.
"""

import logging
import math
from typing import Callable, Optional, Union

from dre.data_models import (
    ActionContext,
    ActionType,
    Consequences,
    LootItem,
    ResolutionOutcome,
    ResultTier,
    SecondaryRoll,
)
from dre.dice.dice_roller import roll_d6, roll_d10, roll_d12, roll_d20, roll_d100, roll_notation
from dre.modifiers.registry import ModifierRegistry, get_default_registry
from dre.observability.run_log import RunLog
from dre.rng.substream import RandomSource, make_stream
from dre.tables.table_manager import TableManager, get_table_manager
from dre.tables.table_types import DifficultyTable, select_weighted
from dre.resolution.actions import (
    PRIMARY_DIE,
    ActionProfile,
    classify_tier,
    coerce_action_type,
    get_profile,
    opposed_bonus,
    resolve_target,
)

logger = logging.getLogger(__name__)


StreamFactory = Callable[[str, str], RandomSource]

# Mining hazards above this much damage break the mining tool.
TOOL_DAMAGE_THRESHOLD = 30

WEAPON_HEAT_PER_SHOT = 15
FLEE_FUEL_COST = 2
REPAIR_PER_MARGIN_POINT = 3


class _RollContext:
    """Per-call state shared by the secondary-roll handlers."""

    def __init__(self, engine: "ResolutionEngine", action_type: ActionType, seed: str,
                 context: ActionContext, tier: ResultTier, margin: int):
        self.engine = engine
        self.action_type = action_type
        self.seed = seed
        self.context = context
        self.tier = tier
        self.margin = margin
        self.rolls: dict[str, SecondaryRoll] = {}
        self.consequences = Consequences()

    def stream(self, name: str) -> RandomSource:
        return self.engine._stream_factory(self.seed, f"{self.action_type.value}/{name}")

    def table_roll(self, name: str, table_id: str) -> SecondaryRoll:
        entry = self.engine.tables.roll_table(table_id, self.stream(name))
        secondary = SecondaryRoll(name=name, die="table", entry=entry, detail={"table_id": table_id})
        self.rolls[name] = secondary
        return secondary

    def die_roll(self, name: str, die: str, roller: Callable[[RandomSource], int]) -> SecondaryRoll:
        secondary = SecondaryRoll(name=name, die=die, roll=roller(self.stream(name)))
        self.rolls[name] = secondary
        return secondary

    def injure_crew(self) -> Optional[str]:
        """Pick one available crew member as a casualty."""
        available = self.context.available_crew()
        if not available:
            return None
        stream = self.stream("casualty")
        member = available[min(int(stream() * len(available)), len(available) - 1)]
        self.rolls["casualty"] = SecondaryRoll(name="casualty", die="pick", detail={"crew": member.name})
        self.consequences.injured_crew.append(member.name)
        return member.name


class ResolutionEngine:
    """
    Resolves actions against content tables and modifier sources.

    Usage:
        engine = ResolutionEngine()
        outcome = engine.resolve("mining", ActionContext(difficulty="easy"), "seed-42")
    """

    def __init__(
        self,
        table_manager: Optional[TableManager] = None,
        registry: Optional[ModifierRegistry] = None,
        difficulty_table: Optional[DifficultyTable] = None,
        stream_factory: StreamFactory = make_stream,
        run_log: Optional[RunLog] = None,
        default_difficulty: str = "normal",
    ):
        self.tables = table_manager or get_table_manager()
        self.registry = registry if registry is not None else get_default_registry()
        self.difficulty_table = difficulty_table or self.tables.difficulty
        self.default_difficulty = default_difficulty
        self.run_log = run_log
        self._stream_factory = stream_factory

        self._handlers: dict[ActionType, Callable[[_RollContext], None]] = {
            ActionType.MINING: self._resolve_mining,
            ActionType.SCAVENGING: self._resolve_scavenging,
            ActionType.DERELICT: self._resolve_derelict,
            ActionType.AWAY_TEAM: self._resolve_away_team,
            ActionType.COMBAT_INITIATE: self._resolve_combat_initiate,
            ActionType.COMBAT_ATTACK: self._resolve_combat_attack,
            ActionType.COMBAT_FLEE: self._resolve_combat_flee,
            ActionType.COMBAT_REPAIR: self._resolve_combat_repair,
            ActionType.MISSION_COMPLETION: self._resolve_mission_completion,
        }

    # =========================================================================
    # ENTRY POINT
    # =========================================================================

    def resolve(
        self,
        action_type: Union[ActionType, str],
        context: Optional[ActionContext] = None,
        seed: str = "",
    ) -> ResolutionOutcome:
        """
        Resolve one action.

        Args:
            action_type: ActionType or its string value
            context: Action context (an empty context when omitted)
            seed: Seed text; the same seed and context always give the same outcome

        Returns:
            ResolutionOutcome with tier, rolls and consequences

        Raises:
            UnknownActionError: If the action type is unknown
            UnknownDifficultyError: If the context names an unknown difficulty
        """
        action_type = coerce_action_type(action_type)
        profile = get_profile(action_type)
        context = context if context is not None else ActionContext()
        seed = str(seed)

        primary = self._stream_factory(seed, action_type.value)
        natural = roll_d20(primary).value

        modifiers = self.registry.aggregate(action_type, context)
        if modifiers.faults and self.run_log is not None:
            for name, error in modifiers.faults.items():
                self.run_log.log_modifier_fault(name, action_type.value, error)

        total = natural + modifiers.total
        target, opposed_roll = self._target(profile, context, seed)
        tier = classify_tier(natural, total, target, profile.partial_band, PRIMARY_DIE)
        margin = total - target

        rc = _RollContext(self, action_type, seed, context, tier, margin)
        if opposed_roll is not None:
            rc.rolls[opposed_roll.name] = opposed_roll
        self._handlers[action_type](rc)

        outcome = ResolutionOutcome(
            action_type=action_type,
            tier=tier,
            natural_roll=natural,
            total_roll=total,
            target_difficulty=target,
            margin=margin,
            modifier_total=modifiers.total,
            modifier_breakdown=dict(modifiers.breakdown),
            secondary_rolls=rc.rolls,
            consequences=rc.consequences,
            seed=seed,
        )

        logger.debug(
            f"{action_type.value} seed={seed!r}: d20={natural} {modifiers.total:+d} = {total} "
            f"vs {target} -> {tier.value}"
        )
        if self.run_log is not None:
            self.run_log.log_resolution(outcome, context)
        return outcome

    def _target(self, profile: ActionProfile, context: ActionContext, seed: str) -> tuple[int, Optional[SecondaryRoll]]:
        if not profile.opposed:
            return resolve_target(profile, context, self.difficulty_table, self.default_difficulty), None

        stream = self._stream_factory(seed, f"{profile.action_type.value}/enemy")
        enemy_natural = roll_d20(stream).value
        bonus = opposed_bonus(context)
        enemy_roll = SecondaryRoll(
            name="enemy", die="d20", roll=enemy_natural,
            detail={"bonus": bonus, "total": enemy_natural + bonus},
        )
        return enemy_natural + bonus, enemy_roll

    # =========================================================================
    # EXPLORATION ACTIONS
    # =========================================================================

    def _resolve_mining(self, rc: _RollContext) -> None:
        c = rc.consequences
        hazard = rc.table_roll("hazard", "mining_hazards").entry
        c.damage_taken = hazard.get("damage", 0)
        if c.damage_taken > TOOL_DAMAGE_THRESHOLD:
            c.status_effects.append("Tool Damaged")

        if rc.tier.is_success:
            stream = rc.stream("yield")
            yield_roll = roll_d10(stream)
            quality = select_weighted(self.tables.get_table("mining_yield_quality").entries, stream)
            quantity = max(1, math.floor(yield_roll * quality.get("multiplier", 1.0)))
            if rc.tier == ResultTier.CRITICAL_SUCCESS:
                quantity *= 2
            rc.rolls["yield"] = SecondaryRoll(
                name="yield", die="d10", roll=yield_roll, entry=quality,
                detail={"multiplier": quality.get("multiplier", 1.0), "quantity": quantity},
            )
            loot_type = rc.table_roll("loot", "mining_loot_types").entry
            c.loot_gained.append(LootItem(item=loot_type.display, quality=quality.display, quantity=quantity))

        c.risk_delta = 0.15
        c.morale_delta = 1 if rc.tier.is_success else -1

    def _resolve_scavenging(self, rc: _RollContext) -> None:
        c = rc.consequences
        trap = rc.table_roll("trap", "scavenging_traps").entry
        c.damage_taken = trap.get("damage", 0)

        detection = rc.die_roll("detection", "d100", roll_d100)
        detected = detection.roll <= trap.get("detection", 0)
        detection.detail["detected"] = detected
        c.details["detected"] = detected

        if trap.get("crew_injury"):
            c.status_effects.append("Crew Injured")
            rc.injure_crew()

        if rc.tier.is_success:
            quality = rc.table_roll("loot_quality", "scavenging_loot_quality").entry
            loot_type = rc.table_roll("loot", "scavenging_loot_types").entry
            c.loot_gained.append(LootItem(item=loot_type.display, quality=quality.display))

        c.risk_delta = 0.3 if detected else 0.1
        c.morale_delta = 1 if rc.tier.is_success else 0

    def _resolve_derelict(self, rc: _RollContext) -> None:
        c = rc.consequences
        structure = rc.table_roll("structure", "derelict_structure").entry
        discovery = rc.table_roll("discovery", "derelict_discoveries").entry
        ambush = rc.table_roll("ambush", "derelict_ambush").entry

        c.damage_taken = structure.get("damage", 0)
        if structure.get("abort"):
            c.status_effects.append("Mission Aborted")
        if rc.tier.is_success and discovery.value != "nothing":
            c.loot_gained.append(LootItem(item=discovery.display))
        if ambush.get("combat"):
            c.combat_triggered = True
            c.combat_difficulty = ambush.get("difficulty")

        c.risk_delta = 0.4 if c.combat_triggered else 0.2
        c.morale_delta = 2 if rc.tier.is_success else -1

    def _resolve_away_team(self, rc: _RollContext) -> None:
        c = rc.consequences
        hazard = rc.table_roll("hazard", "away_team_hazards").entry
        discovery = rc.table_roll("discovery", "away_team_discoveries").entry

        c.damage_taken = hazard.get("damage", 0)
        if hazard.get("crew_injury"):
            c.status_effects.append("Crew Critically Injured")
            rc.injure_crew()
        elif hazard.get("status_effect"):
            c.status_effects.append(hazard.get("status_effect"))

        # A partial result still brings something back.
        if rc.tier.at_least(ResultTier.PARTIAL) and discovery.value != "nothing":
            c.loot_gained.append(LootItem(item=discovery.display))

        c.risk_delta = 0.25
        if rc.tier.is_success:
            c.morale_delta = 2
        elif rc.tier == ResultTier.PARTIAL:
            c.morale_delta = 0
        else:
            c.morale_delta = -2

    # =========================================================================
    # COMBAT ACTIONS
    # =========================================================================

    def _resolve_combat_initiate(self, rc: _RollContext) -> None:
        c = rc.consequences
        player_first = rc.tier.is_success
        c.details["player_goes_first"] = player_first
        c.details["initiative_order"] = ["player", "enemy"] if player_first else ["enemy", "player"]
        c.risk_delta = 0.05

    def _resolve_combat_attack(self, rc: _RollContext) -> None:
        c = rc.consequences
        combat = rc.context.combat
        weapon = combat.weapon if combat is not None else None
        target = combat.target if combat is not None else None
        hit = rc.tier.is_success

        enemy_damage = 0
        if hit:
            weapon_type = weapon.type if weapon is not None else "laser"
            weapon_tier = weapon.tier if weapon is not None else 1
            notation = self.tables.damage_notation(weapon_type, weapon_tier)
            damage = roll_notation(notation, rc.stream("damage"))
            raw = damage.total * 2 if rc.tier == ResultTier.CRITICAL_SUCCESS else damage.total
            rc.rolls["damage"] = SecondaryRoll(
                name="damage", die=notation, roll=damage.total,
                detail={"rolls": damage.rolls, "raw_total": damage.raw_total, "modifier": damage.modifier,
                        "critical": rc.tier == ResultTier.CRITICAL_SUCCESS},
            )

            defense = rc.die_roll("defense", "d12", roll_d12)
            absorption = min(defense.roll, target.shields if target is not None else 0)
            defense.detail["absorption"] = absorption
            enemy_damage = max(0, raw - absorption)

        status_roll = rc.die_roll("status", "d6", roll_d6)
        status = self.tables.status_effect(status_roll.roll)
        status_roll.entry = status
        # Stacks with the natural-20 doubling above.
        if status.value == "critical_hit" and hit:
            enemy_damage *= status.get("multiplier", 1)
        if status.value != "none":
            c.status_effects.append(status.display)

        c.details["hit"] = hit
        c.details["enemy_damage"] = enemy_damage
        c.details["weapon_heat"] = WEAPON_HEAT_PER_SHOT
        c.risk_delta = 0.05
        c.morale_delta = 1 if hit else 0

    def _resolve_combat_flee(self, rc: _RollContext) -> None:
        c = rc.consequences
        escaped = rc.tier.is_success
        c.details["combat_ended"] = escaped
        c.details["fuel_consumed"] = FLEE_FUEL_COST if escaped else 0
        if escaped:
            c.status_effects.append("Damaged Engines")
        c.risk_delta = 0.8 if escaped else 0.1
        c.morale_delta = -1 if escaped else 0

    def _resolve_combat_repair(self, rc: _RollContext) -> None:
        c = rc.consequences
        combat = rc.context.combat
        repair = 0
        if rc.tier.is_success:
            repair = (max(rc.margin, 0) + 1) * REPAIR_PER_MARGIN_POINT
            if rc.tier == ResultTier.CRITICAL_SUCCESS:
                repair *= 2
        c.details["system_repaired"] = combat.target_system if combat is not None else "hull"
        c.details["repair_value"] = repair
        c.details["turn_skipped"] = True

    # =========================================================================
    # MISSIONS
    # =========================================================================

    def _resolve_mission_completion(self, rc: _RollContext) -> None:
        c = rc.consequences
        mission = rc.context.mission
        if mission is None:
            c.morale_delta = 3 if rc.tier.is_success else -2
            return

        profile = self.tables.reward_profile(mission.reward_profile)
        multiplier = profile.multiplier_for(rc.tier)
        c.details["reward_multiplier"] = multiplier
        for reward in mission.base_rewards:
            quantity = math.floor(reward.quantity * multiplier)
            if quantity > 0:
                c.loot_gained.append(LootItem(item=reward.item, quantity=quantity))

        if profile.grants_bonus(rc.tier) and mission.bonus_pool:
            bonus = select_weighted(mission.bonus_pool, rc.stream("bonus"))
            rc.rolls["bonus"] = SecondaryRoll(name="bonus", die="table", entry=bonus)
            c.loot_gained.append(LootItem(item=bonus.display))
            c.details["bonus_reward"] = bonus.display

        if rc.tier.is_success:
            c.story_unlock = True
            if mission.story_flag:
                c.unlocked_flags.append(mission.story_flag)

        c.risk_delta = mission.duration * 0.1
        if rc.tier.is_success:
            c.morale_delta = 3
        elif rc.tier == ResultTier.PARTIAL:
            c.morale_delta = 0
        else:
            c.morale_delta = -2


# Global engine instance
_engine: Optional[ResolutionEngine] = None


def get_engine() -> ResolutionEngine:
    """Get the global engine (packaged tables, default modifier sources)."""
    global _engine
    if _engine is None:
        _engine = ResolutionEngine()
    return _engine


def reset_engine() -> None:
    global _engine
    _engine = None


def resolve(action_type: Union[ActionType, str], context: Optional[ActionContext] = None, seed: str = "") -> ResolutionOutcome:
    """Resolve an action with the global engine."""
    return get_engine().resolve(action_type, context, seed)
