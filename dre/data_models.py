"""
Shared data structures for the dice resolution engine.

Action contexts are built fresh by game logic for every call; outcomes are
returned to the caller, which decides how to apply them to persistent state.
No structure in this module is shared between independent resolution calls.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


# =============================================================================
# ENUMS
# =============================================================================


class ActionType(str, Enum):
    """Action shapes understood by the resolution pipeline."""
    MINING = "mining"
    SCAVENGING = "scavenging"
    DERELICT = "derelict"
    AWAY_TEAM = "away_team"
    COMBAT_INITIATE = "combat_initiate"
    COMBAT_ATTACK = "combat_attack"
    COMBAT_FLEE = "combat_flee"
    COMBAT_REPAIR = "combat_repair"
    MISSION_COMPLETION = "mission_completion"


class ResultTier(str, Enum):
    """Graded result of a resolution, worst to best."""
    CRITICAL_FAIL = "critical_fail"
    FAIL = "fail"
    PARTIAL = "partial"
    SUCCESS = "success"
    CRITICAL_SUCCESS = "critical_success"

    @property
    def rank(self) -> int:
        """Position on the ladder (0 = critical fail)."""
        return _TIER_ORDER.index(self)

    @property
    def is_success(self) -> bool:
        return self in (ResultTier.SUCCESS, ResultTier.CRITICAL_SUCCESS)

    def at_least(self, other: "ResultTier") -> bool:
        return self.rank >= ResultTier(other).rank


_TIER_ORDER = [
    ResultTier.CRITICAL_FAIL,
    ResultTier.FAIL,
    ResultTier.PARTIAL,
    ResultTier.SUCCESS,
    ResultTier.CRITICAL_SUCCESS,
]


class ContextSection(str, Enum):
    """Named sections of an ActionContext that modifier sources may read."""
    DIFFICULTY = "difficulty"
    SHIP = "ship"
    CREW = "crew"
    ATTRIBUTES = "attributes"
    SKILLS = "skills"
    RESEARCH = "research"
    ENVIRONMENT = "environment"
    RISK = "risk"
    COMBAT = "combat"
    MISSION = "mission"


class CrewRole(str, Enum):
    """Crew / assistant roles that grant action bonuses."""
    ENGINEER = "engineer"
    FABRICATOR = "fabricator"
    RESEARCHER = "researcher"
    MEDIC = "medic"
    TACTICAL = "tactical"
    NAVIGATOR = "navigator"


class Personality(str, Enum):
    """Personality traits that shade crew bonuses."""
    RECKLESS = "reckless"
    CAUTIOUS = "cautious"
    AGGRESSIVE = "aggressive"
    LOGICAL = "logical"


# =============================================================================
# WEIGHTED TABLE ENTRIES
# =============================================================================


@dataclass
class WeightedEntry:
    """
    One row of a weighted table.

    `data` holds entry-specific numbers (damage, multiplier, detection
    percent, flags) exactly as authored in the table file.
    """
    value: Any
    weight: float
    label: str = ""
    data: dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    @property
    def display(self) -> str:
        return self.label or str(self.value)

    def to_dict(self) -> dict[str, Any]:
        result = {"value": self.value, "weight": self.weight}
        if self.label:
            result["label"] = self.label
        result.update(self.data)
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WeightedEntry":
        extra = {k: v for k, v in data.items() if k not in ("value", "weight", "label")}
        return cls(
            value=data["value"],
            weight=data.get("weight", 1),
            label=data.get("label", ""),
            data=extra,
        )


# =============================================================================
# ACTION CONTEXT SECTIONS
# =============================================================================


@dataclass
class ShipComponent:
    """An installed ship component."""
    type: str
    tier: int = 0
    health: float = 1.0  # 0.0 destroyed .. 1.0 pristine
    upgraded: bool = False

    def effective_tier(self) -> int:
        """Tier after damage: half tier below 50% health, nothing when destroyed."""
        if self.health <= 0:
            return 0
        if self.health < 0.5:
            return self.tier // 2
        return self.tier


@dataclass
class ShipState:
    """Ship / vehicle condition."""
    components: list[ShipComponent] = field(default_factory=list)
    hull: Optional[int] = None
    max_hull: Optional[int] = None

    def find_component(self, component_type: str) -> Optional[ShipComponent]:
        for component in self.components:
            if component.type == component_type:
                return component
        return None

    def hull_fraction(self) -> Optional[float]:
        if self.hull is None or not self.max_hull:
            return None
        return self.hull / self.max_hull


@dataclass
class CrewMember:
    """Crew member or AI assistant."""
    name: str
    role: str
    personality: Optional[str] = None
    tier: int = 1
    docked: bool = True
    injured: bool = False

    @property
    def is_available(self) -> bool:
        """Only docked, uninjured crew contribute."""
        return self.docked and not self.injured


@dataclass
class Environment:
    """Where the action takes place."""
    radiation: Optional[str] = None    # low, medium, high
    zone: Optional[str] = None         # static, dark, quiet
    atmosphere: Optional[str] = None   # hostile, thin, breathable
    stability: Optional[str] = None    # stable, unstable
    hazards: list[str] = field(default_factory=list)


@dataclass
class RiskState:
    """Accumulated risk and fatigue."""
    wake: Optional[float] = None          # 0.0 .. 1.0
    time_elapsed: Optional[float] = None  # hours
    fatigue: Optional[float] = None       # 0 .. 100


@dataclass
class Weapon:
    """Weapon used for a combat attack."""
    type: str = "laser"
    tier: int = 1


@dataclass
class CombatTarget:
    """Opposing ship statistics."""
    name: str = "Hostile"
    evasion: int = 12
    shields: int = 0
    hull: int = 50
    initiative: int = 0


@dataclass
class CombatState:
    """Combat situation for the combat action types."""
    weapon: Optional[Weapon] = None
    target: Optional[CombatTarget] = None
    range: Optional[str] = None     # short, medium, long
    duration: int = 0               # rounds elapsed
    target_system: str = "hull"     # system being repaired
    emergency: bool = True          # repair under fire


@dataclass
class RewardItem:
    """A fixed reward line of a mission."""
    item: str
    quantity: int = 1


@dataclass
class MissionDefinition:
    """Mission being completed: fixed baseline rewards plus a bonus pool."""
    mission_id: str
    name: str = ""
    reward_profile: str = "standard"  # standard, high_risk, story
    difficulty: str = "normal"
    base_rewards: list[RewardItem] = field(default_factory=list)
    bonus_pool: list[WeightedEntry] = field(default_factory=list)
    duration: float = 0.0
    story_flag: Optional[str] = None


# =============================================================================
# ACTION CONTEXT
# =============================================================================


@dataclass
class ActionContext:
    """
    Everything a resolution may look at, grouped into optional sections.

    Each modifier source declares which sections it reads and must cope
    with any of them being absent.
    """
    difficulty: Optional[str] = None
    ship: Optional[ShipState] = None
    crew: list[CrewMember] = field(default_factory=list)
    attributes: dict[str, int] = field(default_factory=dict)
    skills: dict[str, int] = field(default_factory=dict)
    research: set[str] = field(default_factory=set)
    environment: Optional[Environment] = None
    risk: Optional[RiskState] = None
    combat: Optional[CombatState] = None
    mission: Optional[MissionDefinition] = None

    def available_crew(self) -> list[CrewMember]:
        return [member for member in self.crew if member.is_available]

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-compatible dictionary."""
        data: dict[str, Any] = {}
        if self.difficulty is not None:
            data["difficulty"] = self.difficulty
        if self.ship is not None:
            data["ship"] = {
                "components": [vars(c).copy() for c in self.ship.components],
                "hull": self.ship.hull,
                "max_hull": self.ship.max_hull,
            }
        if self.crew:
            data["crew"] = [vars(m).copy() for m in self.crew]
        if self.attributes:
            data["attributes"] = dict(self.attributes)
        if self.skills:
            data["skills"] = dict(self.skills)
        if self.research:
            data["research"] = sorted(self.research)
        if self.environment is not None:
            env = vars(self.environment).copy()
            env["hazards"] = list(self.environment.hazards)
            data["environment"] = env
        if self.risk is not None:
            data["risk"] = vars(self.risk).copy()
        if self.combat is not None:
            combat = {
                "range": self.combat.range,
                "duration": self.combat.duration,
                "target_system": self.combat.target_system,
                "emergency": self.combat.emergency,
            }
            if self.combat.weapon is not None:
                combat["weapon"] = vars(self.combat.weapon).copy()
            if self.combat.target is not None:
                combat["target"] = vars(self.combat.target).copy()
            data["combat"] = combat
        if self.mission is not None:
            mission = self.mission
            data["mission"] = {
                "mission_id": mission.mission_id,
                "name": mission.name,
                "reward_profile": mission.reward_profile,
                "difficulty": mission.difficulty,
                "base_rewards": [vars(r).copy() for r in mission.base_rewards],
                "bonus_pool": [e.to_dict() for e in mission.bonus_pool],
                "duration": mission.duration,
                "story_flag": mission.story_flag,
            }
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ActionContext":
        """Build a context from a dictionary (e.g. loaded JSON)."""
        ship = None
        if data.get("ship") is not None:
            ship_data = data["ship"]
            ship = ShipState(
                components=[ShipComponent(**c) for c in ship_data.get("components", [])],
                hull=ship_data.get("hull"),
                max_hull=ship_data.get("max_hull"),
            )

        environment = None
        if data.get("environment") is not None:
            environment = Environment(**data["environment"])

        risk = None
        if data.get("risk") is not None:
            risk = RiskState(**data["risk"])

        combat = None
        if data.get("combat") is not None:
            combat_data = dict(data["combat"])
            weapon = combat_data.pop("weapon", None)
            target = combat_data.pop("target", None)
            combat = CombatState(
                weapon=Weapon(**weapon) if weapon is not None else None,
                target=CombatTarget(**target) if target is not None else None,
                **combat_data,
            )

        mission = None
        if data.get("mission") is not None:
            mission_data = dict(data["mission"])
            rewards = mission_data.pop("base_rewards", [])
            pool = mission_data.pop("bonus_pool", [])
            mission = MissionDefinition(
                base_rewards=[RewardItem(**r) for r in rewards],
                bonus_pool=[
                    WeightedEntry.from_dict(e if isinstance(e, dict) else {"value": e})
                    for e in pool
                ],
                **mission_data,
            )

        return cls(
            difficulty=data.get("difficulty"),
            ship=ship,
            crew=[CrewMember(**m) for m in data.get("crew", [])],
            attributes=dict(data.get("attributes", {})),
            skills=dict(data.get("skills", {})),
            research=set(data.get("research", [])),
            environment=environment,
            risk=risk,
            combat=combat,
            mission=mission,
        )


# =============================================================================
# OUTCOMES
# =============================================================================


@dataclass
class DiceResult:
    """Result of a dice roll with full information."""
    notation: str
    rolls: list[int]
    raw_total: int
    modifier: int
    total: int

    def __str__(self) -> str:
        if self.modifier > 0:
            return f"{self.notation}: {self.rolls} + {self.modifier} = {self.total}"
        elif self.modifier < 0:
            return f"{self.notation}: {self.rolls} - {abs(self.modifier)} = {self.total}"
        return f"{self.notation}: {self.rolls} = {self.total}"


@dataclass
class SecondaryRoll:
    """A named roll made after the primary check, on its own substream."""
    name: str
    die: str                      # "d12", "2d8+2", "table", ...
    roll: Optional[int] = None
    entry: Optional[WeightedEntry] = None
    detail: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "die": self.die,
            "roll": self.roll,
            "entry": self.entry.to_dict() if self.entry else None,
            "detail": dict(self.detail),
        }


@dataclass
class LootItem:
    """Loot gained from a resolution."""
    item: str
    quality: Optional[str] = None
    quantity: int = 1


@dataclass
class Consequences:
    """What happened as a result of the action, for the caller to apply."""
    loot_gained: list[LootItem] = field(default_factory=list)
    damage_taken: int = 0
    status_effects: list[str] = field(default_factory=list)
    risk_delta: float = 0.0
    morale_delta: int = 0
    unlocked_flags: list[str] = field(default_factory=list)
    story_unlock: bool = False
    combat_triggered: bool = False
    combat_difficulty: Optional[str] = None
    injured_crew: list[str] = field(default_factory=list)
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "loot_gained": [vars(item).copy() for item in self.loot_gained],
            "damage_taken": self.damage_taken,
            "status_effects": list(self.status_effects),
            "risk_delta": self.risk_delta,
            "morale_delta": self.morale_delta,
            "unlocked_flags": list(self.unlocked_flags),
            "story_unlock": self.story_unlock,
            "combat_triggered": self.combat_triggered,
            "combat_difficulty": self.combat_difficulty,
            "injured_crew": list(self.injured_crew),
            "details": dict(self.details),
        }


@dataclass
class ResolutionOutcome:
    """Full result of one resolve() call."""
    action_type: ActionType
    tier: ResultTier
    natural_roll: int
    total_roll: int
    target_difficulty: int
    margin: int
    modifier_total: int = 0
    modifier_breakdown: dict[str, int] = field(default_factory=dict)
    secondary_rolls: dict[str, SecondaryRoll] = field(default_factory=dict)
    consequences: Consequences = field(default_factory=Consequences)
    seed: str = ""

    @property
    def success(self) -> bool:
        return self.tier.is_success

    def to_dict(self) -> dict[str, Any]:
        return {
            "action_type": self.action_type.value,
            "tier": self.tier.value,
            "natural_roll": self.natural_roll,
            "total_roll": self.total_roll,
            "target_difficulty": self.target_difficulty,
            "margin": self.margin,
            "modifier_total": self.modifier_total,
            "modifier_breakdown": dict(self.modifier_breakdown),
            "secondary_rolls": {k: v.to_dict() for k, v in self.secondary_rolls.items()},
            "consequences": self.consequences.to_dict(),
            "seed": self.seed,
        }
