"""
Built-in modifier sources.

Each source reads one or two ActionContext sections, returns 0 when the
section is missing or the action type is not one it cares about, and is
otherwise a plain lookup of bonus tables.
"""

from dre.data_models import ActionContext, ActionType, ContextSection
from dre.modifiers.registry import ModifierSource


# =============================================================================
# SHIP
# =============================================================================


def _component_tier(context: ActionContext, component_type: str) -> int:
    component = context.ship.find_component(component_type)
    return component.effective_tier() if component else 0


def ship_modifier(action_type: ActionType, context: ActionContext) -> int:
    """Component tiers (reduced by component damage) plus a hull damage penalty."""
    if context.ship is None:
        return 0

    modifier = 0
    if action_type == ActionType.MINING:
        modifier += _component_tier(context, "mining_laser")
        modifier += _component_tier(context, "scanner") // 2
    elif action_type == ActionType.SCAVENGING:
        modifier += _component_tier(context, "scanner")
        cargo = context.ship.find_component("cargo_hold")
        if cargo and cargo.upgraded:
            modifier += 1
    elif action_type == ActionType.DERELICT:
        modifier += _component_tier(context, "scanner")
        modifier += _component_tier(context, "hull") // 2
    elif action_type == ActionType.COMBAT_ATTACK:
        combat = context.combat
        if combat and combat.weapon:
            modifier += combat.weapon.tier
        modifier += _component_tier(context, "targeting")
        modifier += _component_tier(context, "weapons_array")
        if combat and combat.range == "long":
            modifier -= 2
        elif combat and combat.range == "medium":
            modifier -= 1
    elif action_type == ActionType.COMBAT_INITIATE:
        modifier += _component_tier(context, "navigation")
    elif action_type == ActionType.COMBAT_FLEE:
        modifier += _component_tier(context, "engine") * 2
        modifier += _component_tier(context, "navigation")
    elif action_type == ActionType.COMBAT_REPAIR:
        modifier += _component_tier(context, "fabricator")
        modifier += _component_tier(context, "repair_bay") * 2

    hull_fraction = context.ship.hull_fraction()
    if hull_fraction is not None:
        if hull_fraction < 0.3:
            modifier -= 3
        elif hull_fraction < 0.5:
            modifier -= 2
        elif hull_fraction < 0.7:
            modifier -= 1

    return modifier


# =============================================================================
# CREW
# =============================================================================


# action -> role -> bonus per crew member
_ROLE_BONUSES: dict[ActionType, dict[str, int]] = {
    ActionType.MINING: {"engineer": 1, "fabricator": 1},
    ActionType.SCAVENGING: {"researcher": 2, "engineer": 1},
    ActionType.DERELICT: {"engineer": 2, "researcher": 1, "medic": 1},
    ActionType.AWAY_TEAM: {"medic": 3, "engineer": 2, "researcher": 1},
    ActionType.COMBAT_ATTACK: {"tactical": 3, "engineer": 1},
    ActionType.COMBAT_INITIATE: {"navigator": 2, "tactical": 1},
    ActionType.COMBAT_FLEE: {"navigator": 3, "engineer": 1},
    ActionType.MISSION_COMPLETION: {"tactical": 2, "engineer": 1, "researcher": 1, "navigator": 1},
}

# personality -> action -> bonus
_PERSONALITY_BONUSES: dict[str, dict[ActionType, int]] = {
    "reckless": {
        ActionType.MINING: 2,
        ActionType.SCAVENGING: 2,
        ActionType.COMBAT_FLEE: -2,
    },
    "cautious": {
        ActionType.MINING: -1,
        ActionType.SCAVENGING: -1,
        ActionType.DERELICT: 1,
        ActionType.AWAY_TEAM: 1,
    },
    "aggressive": {
        ActionType.COMBAT_ATTACK: 2,
        ActionType.COMBAT_FLEE: -3,
    },
}

# Logical crew are steady: +1 to everything.
_LOGICAL_BONUS = 1


def crew_modifier(action_type: ActionType, context: ActionContext) -> int:
    """Bonuses from docked, uninjured crew by role and personality."""
    modifier = 0
    for member in context.available_crew():
        if action_type == ActionType.COMBAT_REPAIR:
            # Repairs scale with the crew member's tier.
            if member.role == "engineer":
                modifier += member.tier * 2
            elif member.role == "fabricator":
                modifier += member.tier
        else:
            modifier += _ROLE_BONUSES.get(action_type, {}).get(member.role, 0)

        if member.personality == "logical":
            modifier += _LOGICAL_BONUS
        elif member.personality:
            modifier += _PERSONALITY_BONUSES.get(member.personality, {}).get(action_type, 0)
    return modifier


# =============================================================================
# ATTRIBUTES
# =============================================================================


# Each term is (section, key, flat bonus); the modifier is the floored mean.
_ATTRIBUTE_BLENDS: dict[ActionType, list[tuple[str, str, int]]] = {
    ActionType.MINING: [
        ("attr", "logic", 1), ("skill", "engineering", 1), ("attr", "resilience", 0),
    ],
    ActionType.SCAVENGING: [
        ("attr", "acuity", 1), ("attr", "insight", 0), ("skill", "scavenging", 1),
    ],
    ActionType.DERELICT: [
        ("attr", "insight", 1), ("attr", "logic", 0),
        ("skill", "engineering", 0), ("skill", "hacking", 0),
    ],
    ActionType.AWAY_TEAM: [
        ("attr", "resilience", 1), ("attr", "insight", 0),
        ("skill", "survival", 1), ("skill", "medicine", 0),
    ],
    ActionType.COMBAT_INITIATE: [
        ("attr", "reflexes", 1), ("attr", "insight", 0), ("skill", "piloting", 0),
    ],
    ActionType.COMBAT_ATTACK: [
        ("attr", "reflexes", 1), ("skill", "gunnery", 1), ("skill", "piloting", 0),
    ],
    ActionType.COMBAT_FLEE: [
        ("skill", "piloting", 1), ("attr", "reflexes", 0), ("attr", "resilience", 0),
    ],
    ActionType.COMBAT_REPAIR: [
        ("skill", "engineering", 1), ("attr", "logic", 1), ("attr", "kinetics", 0),
    ],
    ActionType.MISSION_COMPLETION: [
        ("attr", "presence", 0), ("attr", "insight", 0), ("attr", "logic", 0),
    ],
}


def _number(value) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return value


def attribute_modifier(action_type: ActionType, context: ActionContext) -> int:
    """Innate attributes blended with related skills (floored average)."""
    terms = _ATTRIBUTE_BLENDS.get(action_type)
    if not terms:
        return 0
    values = []
    for section, key, bonus in terms:
        source = context.attributes if section == "attr" else context.skills
        values.append(_number(source.get(key)) + bonus)
    return int(sum(values) // len(values))


# =============================================================================
# RESEARCH
# =============================================================================


RESEARCH_BONUSES: dict[ActionType, dict[str, int]] = {
    ActionType.MINING: {"efficient_mining": 3, "advanced_lasers": 2, "mineral_scanning": 1},
    ActionType.SCAVENGING: {"advanced_scanning": 2, "salvage_protocols": 2, "container_bypass": 1},
    ActionType.DERELICT: {"structural_analysis": 2, "hazard_detection": 2, "advanced_scanning": 1},
    ActionType.AWAY_TEAM: {"environmental_suits": 3, "medical_protocols": 2, "survival_training": 1},
    ActionType.COMBAT_ATTACK: {"combat_tactics": 2, "weapon_calibration": 2, "targeting_algorithms": 1},
    ActionType.COMBAT_INITIATE: {"tactical_prediction": 2, "combat_tactics": 1},
    ActionType.COMBAT_FLEE: {"evasive_maneuvers": 3, "emergency_jump": 2},
    ActionType.COMBAT_REPAIR: {"rapid_repair": 3, "nanobots": 2},
    ActionType.MISSION_COMPLETION: {"mission_planning": 2, "risk_assessment": 1},
}


def research_modifier(action_type: ActionType, context: ActionContext) -> int:
    """Bonuses from unlocked research."""
    bonuses = RESEARCH_BONUSES.get(action_type, {})
    return sum(bonus for research_id, bonus in bonuses.items() if research_id in context.research)


# =============================================================================
# SKILLS
# =============================================================================


SKILL_FOR_ACTION: dict[ActionType, str] = {
    ActionType.MINING: "mining",
    ActionType.SCAVENGING: "scavenging",
    ActionType.COMBAT_ATTACK: "combat",
    ActionType.COMBAT_INITIATE: "combat",
    ActionType.COMBAT_FLEE: "navigation",
    ActionType.COMBAT_REPAIR: "engineering",
}


def skill_modifier(action_type: ActionType, context: ActionContext) -> int:
    """The action's governing skill plus half of luck, which helps everything."""
    modifier = 0
    skill = SKILL_FOR_ACTION.get(action_type)
    if skill:
        modifier += int(_number(context.skills.get(skill)))
    modifier += int(_number(context.skills.get("luck")) // 2)
    return modifier


# =============================================================================
# ENVIRONMENT
# =============================================================================


def environment_modifier(action_type: ActionType, context: ActionContext) -> int:
    """Radiation, zone, hazards, stability and atmosphere."""
    env = context.environment
    if env is None:
        return 0

    modifier = 0
    if env.radiation == "high":
        modifier -= 2
        if action_type == ActionType.AWAY_TEAM:
            modifier -= 1
    elif env.radiation == "medium":
        modifier -= 1

    if env.zone == "static":
        # Harder to target, better finds.
        if action_type in (ActionType.SCAVENGING, ActionType.DERELICT):
            modifier += 3
        if action_type == ActionType.COMBAT_ATTACK:
            modifier -= 3
    elif env.zone == "dark":
        modifier -= 2
    elif env.zone == "quiet":
        if action_type in (ActionType.SCAVENGING, ActionType.MINING):
            modifier -= 1

    if "asteroid_field" in env.hazards:
        if action_type == ActionType.COMBAT_FLEE:
            modifier -= 2
        if action_type == ActionType.MINING:
            modifier += 1

    if env.stability == "unstable" and action_type in (ActionType.MINING, ActionType.DERELICT):
        modifier -= 1

    if action_type == ActionType.AWAY_TEAM and env.atmosphere:
        modifier += {"hostile": -3, "thin": -1, "breathable": 2}.get(env.atmosphere, 0)

    return modifier


# =============================================================================
# CONSEQUENCES
# =============================================================================


def consequence_modifier(action_type: ActionType, context: ActionContext) -> int:
    """Penalties from accumulated wake, elapsed time and fatigue."""
    risk = context.risk
    if risk is None:
        return 0

    modifier = 0
    if risk.wake is not None:
        if risk.wake > 0.8:
            modifier -= 3
        elif risk.wake > 0.6:
            modifier -= 2
        elif risk.wake > 0.4:
            modifier -= 1

    if risk.time_elapsed is not None:
        if risk.time_elapsed > 10:
            modifier -= 2
        elif risk.time_elapsed > 6:
            modifier -= 1

    if risk.fatigue is not None:
        if risk.fatigue > 80:
            modifier -= 3
        elif risk.fatigue > 60:
            modifier -= 2
        elif risk.fatigue > 40:
            modifier -= 1

    return modifier


DEFAULT_SOURCES = [
    ModifierSource("ship", 1, ship_modifier, (ContextSection.SHIP, ContextSection.COMBAT),
                   "Ship components and hull condition"),
    ModifierSource("crew", 2, crew_modifier, (ContextSection.CREW,),
                   "Crew roles and personalities"),
    ModifierSource("attributes", 3, attribute_modifier, (ContextSection.ATTRIBUTES, ContextSection.SKILLS),
                   "Attribute and skill blend"),
    ModifierSource("research", 4, research_modifier, (ContextSection.RESEARCH,),
                   "Unlocked research"),
    ModifierSource("skills", 5, skill_modifier, (ContextSection.SKILLS,),
                   "Governing skill and luck"),
    ModifierSource("environment", 6, environment_modifier, (ContextSection.ENVIRONMENT,),
                   "Radiation, zone and atmosphere"),
    ModifierSource("consequence", 7, consequence_modifier, (ContextSection.RISK,),
                   "Wake, time pressure and fatigue"),
]
