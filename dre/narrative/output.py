"""
Display formatting for resolution outcomes.

Pure functions of the outcome: the same outcome always formats to the same
output, and nothing here reads the clock or any randomness.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from dre.data_models import ActionType, ResolutionOutcome, ResultTier


@dataclass
class OutputSection:
    """One block of display text."""
    kind: str           # result, roll, modifiers, consequences
    content: str
    color: str
    severity: str = "info"

    def to_dict(self) -> dict[str, str]:
        return {"kind": self.kind, "content": self.content, "color": self.color, "severity": self.severity}


@dataclass
class TerminalOutput:
    """Display-ready rendering of one outcome."""
    action_type: str
    tier: str
    icon: str
    narrative: str
    commentary: str
    sections: list[OutputSection] = field(default_factory=list)
    animation: Optional[dict[str, Any]] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "action_type": self.action_type,
            "tier": self.tier,
            "icon": self.icon,
            "narrative": self.narrative,
            "commentary": self.commentary,
            "sections": [s.to_dict() for s in self.sections],
            "animation": self.animation,
        }

    def render(self) -> str:
        return "\n\n".join([self.narrative] + [s.content for s in self.sections[1:]] + [f'"{self.commentary}"'])


TIER_ICONS = {
    ResultTier.CRITICAL_SUCCESS: "★",
    ResultTier.SUCCESS: "✓",
    ResultTier.PARTIAL: "~",
    ResultTier.FAIL: "✗",
    ResultTier.CRITICAL_FAIL: "☠",
}

TIER_COLORS = {
    ResultTier.CRITICAL_SUCCESS: "#00ff88",
    ResultTier.SUCCESS: "#34e0ff",
    ResultTier.PARTIAL: "#ffaa00",
    ResultTier.FAIL: "#ff6b6b",
    ResultTier.CRITICAL_FAIL: "#ff1a1a",
}

TIER_SEVERITY = {
    ResultTier.CRITICAL_SUCCESS: "good",
    ResultTier.SUCCESS: "good",
    ResultTier.PARTIAL: "warning",
    ResultTier.FAIL: "bad",
    ResultTier.CRITICAL_FAIL: "critical",
}

ROLL_COLOR = "#34e0ff"
MODIFIER_COLOR = "#888888"
CONSEQUENCE_COLOR = "#ffaa00"

HEADINGS = {
    ActionType.MINING: "MINING OPERATION",
    ActionType.SCAVENGING: "SCAVENGING",
    ActionType.DERELICT: "DERELICT INVESTIGATION",
    ActionType.AWAY_TEAM: "AWAY TEAM MISSION",
    ActionType.COMBAT_INITIATE: "COMBAT INITIATED",
    ActionType.COMBAT_ATTACK: "WEAPONS FIRE",
    ActionType.COMBAT_FLEE: "ATTEMPTING ESCAPE",
    ActionType.COMBAT_REPAIR: "EMERGENCY REPAIRS",
    ActionType.MISSION_COMPLETION: "MISSION COMPLETE",
}

# (action, tier) -> first narrative line
RESULT_LINES = {
    ActionType.MINING: {
        ResultTier.CRITICAL_SUCCESS: "Perfect extraction.",
        ResultTier.SUCCESS: "Mining laser penetrated the asteroid core.",
    },
    ActionType.SCAVENGING: {
        ResultTier.CRITICAL_SUCCESS: "Pristine components found!",
        ResultTier.SUCCESS: "Salvageable items located.",
    },
    ActionType.DERELICT: {
        ResultTier.CRITICAL_SUCCESS: "Major discovery!",
        ResultTier.SUCCESS: "Investigation successful.",
    },
    ActionType.AWAY_TEAM: {
        ResultTier.CRITICAL_SUCCESS: "Exceptional performance.",
        ResultTier.SUCCESS: "Mission objectives completed.",
        ResultTier.PARTIAL: "Partial success. Some objectives met.",
    },
    ActionType.COMBAT_INITIATE: {
        ResultTier.CRITICAL_SUCCESS: "You have the initiative!",
        ResultTier.SUCCESS: "You have the initiative!",
    },
    ActionType.COMBAT_ATTACK: {
        ResultTier.CRITICAL_SUCCESS: "CRITICAL HIT!",
        ResultTier.SUCCESS: "Direct hit!",
    },
    ActionType.COMBAT_FLEE: {
        ResultTier.CRITICAL_SUCCESS: "Emergency jump initiated! Hostile lost in the surge wake.",
        ResultTier.SUCCESS: "Emergency jump initiated! Hostile lost in the surge wake.",
    },
    ActionType.COMBAT_REPAIR: {
        ResultTier.CRITICAL_SUCCESS: "Repairs successful.",
        ResultTier.SUCCESS: "Repairs successful.",
    },
    ActionType.MISSION_COMPLETION: {
        ResultTier.CRITICAL_SUCCESS: "OUTSTANDING SUCCESS!",
        ResultTier.SUCCESS: "Mission objectives achieved.",
        ResultTier.PARTIAL: "Partial success.",
    },
}

FAILURE_LINES = {
    ActionType.MINING: "Failed to extract usable material.",
    ActionType.SCAVENGING: "Nothing of value found.",
    ActionType.DERELICT: "Investigation yielded nothing.",
    ActionType.AWAY_TEAM: "Mission failed.",
    ActionType.COMBAT_INITIATE: "Enemy moves first!",
    ActionType.COMBAT_ATTACK: "Miss!",
    ActionType.COMBAT_FLEE: "Failed to disengage! Enemy maintains pursuit.",
    ActionType.COMBAT_REPAIR: "Repair attempt failed!",
    ActionType.MISSION_COMPLETION: "Mission failed.",
}

# Crew commentary keyed by (action, tier); falls back per action, then globally.
COMMENTARY = {
    (ActionType.MINING, ResultTier.CRITICAL_SUCCESS): "Exceptional extraction, Captain. Efficiency exceeded projections.",
    (ActionType.MINING, ResultTier.SUCCESS): "Ore secured. Proceeding to cargo bay.",
    (ActionType.MINING, ResultTier.FAIL): "Mining operation unsuccessful. Recommend repositioning.",
    (ActionType.MINING, ResultTier.CRITICAL_FAIL): "Laser misalignment. We lost the seam entirely.",
    (ActionType.SCAVENGING, ResultTier.CRITICAL_SUCCESS): "Remarkable find, Captain. These components are pristine.",
    (ActionType.SCAVENGING, ResultTier.SUCCESS): "Salvage recovered. Quality is acceptable.",
    (ActionType.SCAVENGING, ResultTier.FAIL): "Nothing of value detected in this debris field.",
    (ActionType.DERELICT, ResultTier.SUCCESS): "Derelict secured. Logging everything we found.",
    (ActionType.DERELICT, ResultTier.FAIL): "This hulk has been picked clean.",
    (ActionType.AWAY_TEAM, ResultTier.SUCCESS): "Away team reporting in. Objectives complete.",
    (ActionType.AWAY_TEAM, ResultTier.PARTIAL): "We got some of it, Captain. Not all.",
    (ActionType.AWAY_TEAM, ResultTier.FAIL): "Pulling the team out. Conditions are too hostile.",
    (ActionType.COMBAT_INITIATE, ResultTier.SUCCESS): "We have the jump on them.",
    (ActionType.COMBAT_INITIATE, ResultTier.FAIL): "They're faster than projected. Brace.",
    (ActionType.COMBAT_ATTACK, ResultTier.CRITICAL_SUCCESS): "Direct hit! Enemy shields critical!",
    (ActionType.COMBAT_ATTACK, ResultTier.SUCCESS): "Target struck. Damage confirmed.",
    (ActionType.COMBAT_ATTACK, ResultTier.FAIL): "Shot wide. Recalculating firing solution.",
    (ActionType.COMBAT_FLEE, ResultTier.SUCCESS): "Jump successful. We've cleared the combat zone.",
    (ActionType.COMBAT_FLEE, ResultTier.FAIL): "Unable to disengage. Enemy maintains lock.",
    (ActionType.COMBAT_REPAIR, ResultTier.SUCCESS): "Patch holding. Systems coming back online.",
    (ActionType.COMBAT_REPAIR, ResultTier.FAIL): "Couldn't seal it. Trying again next cycle.",
    (ActionType.MISSION_COMPLETION, ResultTier.SUCCESS): "Contract fulfilled. Payment is on its way.",
    (ActionType.MISSION_COMPLETION, ResultTier.FAIL): "The client is not pleased, Captain.",
}
DEFAULT_COMMENTARY = "Action resolved, Captain."

ANIMATION_MS = 1500


def result_icon(tier: ResultTier) -> str:
    return TIER_ICONS.get(ResultTier(tier), "•")


def commentary_for(action_type: ActionType, tier: ResultTier) -> str:
    """Canned crew line for an (action, tier) pair."""
    line = COMMENTARY.get((action_type, tier))
    if line:
        return line
    # Critical tiers borrow the plain tier's line.
    if tier == ResultTier.CRITICAL_SUCCESS:
        line = COMMENTARY.get((action_type, ResultTier.SUCCESS))
    elif tier == ResultTier.CRITICAL_FAIL:
        line = COMMENTARY.get((action_type, ResultTier.FAIL))
    return line or DEFAULT_COMMENTARY


def format_modifier_breakdown(breakdown: dict[str, int]) -> str:
    lines = ["Modifiers:"]
    if not breakdown:
        lines.append("  none")
    for source, value in breakdown.items():
        lines.append(f"  {source}: {value:+d}")
    return "\n".join(lines)


def _tier_label(tier: ResultTier) -> str:
    return tier.value.replace("_", " ").upper()


def generate_narrative(outcome: ResolutionOutcome) -> str:
    """Multi-line story text for an outcome."""
    action = outcome.action_type
    tier = outcome.tier
    c = outcome.consequences
    rolls = outcome.secondary_rolls

    lines = [HEADINGS[action]]
    result_line = RESULT_LINES[action].get(tier, FAILURE_LINES[action])
    lines.append(f"{result_icon(tier)} {result_line}")

    if action == ActionType.COMBAT_INITIATE:
        enemy = rolls.get("enemy")
        if enemy is not None:
            lines.append(f"Your roll: {outcome.total_roll} vs Enemy: {enemy.detail.get('total', enemy.roll)}")
    elif action == ActionType.COMBAT_ATTACK:
        damage = rolls.get("damage")
        if damage is not None:
            lines.append(f"Damage: {c.details.get('enemy_damage', 0)} ({damage.die})")
        status = rolls.get("status")
        if status is not None and status.entry is not None:
            if status.entry.value == "critical_hit" and c.details.get("hit"):
                lines.append("DEVASTATING CRITICAL! Damage multiplied!")
            elif status.entry.value == "weapon_jammed":
                lines.append("WEAPON JAMMED! Repairs needed.")
    elif action == ActionType.COMBAT_REPAIR:
        if tier.is_success:
            lines.append(f"Restored {c.details.get('repair_value', 0)} integrity to {c.details.get('system_repaired', 'hull')}.")
    elif action == ActionType.MISSION_COMPLETION:
        if c.loot_gained:
            lines.append("Rewards:")
            lines.extend(f"  • {item.item} x{item.quantity}" for item in c.loot_gained)
        if "bonus_reward" in c.details:
            lines.append(f"BONUS: {c.details['bonus_reward']}")
        if c.story_unlock:
            lines.append("Story progression unlocked!")
    else:
        for item in c.loot_gained:
            quality = f" ({item.quality})" if item.quality else ""
            lines.append(f"Recovered: {item.item}{quality}")
        for name in ("hazard", "trap", "structure"):
            roll = rolls.get(name)
            if roll is not None and roll.entry is not None and roll.entry.get("damage", 0) > 0:
                lines.append(f"⚠ {roll.entry.display}: {roll.entry.get('damage')} damage")
        if c.details.get("detected"):
            lines.append("WARNING: Alarm triggered. Hostiles may be inbound.")
        if c.combat_triggered:
            ambush = rolls.get("ambush")
            label = ambush.entry.display if ambush is not None and ambush.entry is not None else "Hostiles"
            lines.append(f"HOSTILE CONTACT: {label} detected!")
        for name in c.injured_crew:
            lines.append(f"CRITICAL: {name} injured!")

    if action == ActionType.COMBAT_FLEE and "Damaged Engines" in c.status_effects:
        lines.append("Engine stress detected. Repairs recommended.")

    return "\n".join(lines)


def _consequence_lines(outcome: ResolutionOutcome) -> list[str]:
    c = outcome.consequences
    lines = []
    if c.loot_gained:
        lines.append("Loot:")
        for item in c.loot_gained:
            lines.append(f"  • {item.item} x{item.quantity}")
    if c.damage_taken > 0:
        lines.append(f"Damage Taken: {c.damage_taken}")
    if c.status_effects:
        lines.append(f"Status: {', '.join(c.status_effects)}")
    if c.risk_delta:
        lines.append(f"Wake: +{c.risk_delta * 100:.0f}%")
    if c.unlocked_flags:
        lines.append(f"Unlocked: {', '.join(c.unlocked_flags)}")
    return lines


def format_outcome(
    outcome: ResolutionOutcome,
    show_modifiers: bool = True,
    show_rolls: bool = True,
    animated: bool = True,
) -> TerminalOutput:
    """Build the display structure for one outcome."""
    tier = outcome.tier
    icon = result_icon(tier)
    sections = [
        OutputSection("result", f"{icon} {_tier_label(tier)}", TIER_COLORS[tier], TIER_SEVERITY[tier]),
    ]

    if show_rolls:
        sections.append(OutputSection(
            "roll",
            f"Roll: {outcome.total_roll} vs {outcome.target_difficulty} ({outcome.margin:+d})",
            ROLL_COLOR,
        ))

    if show_modifiers:
        sections.append(OutputSection("modifiers", format_modifier_breakdown(outcome.modifier_breakdown), MODIFIER_COLOR))

    consequence_lines = _consequence_lines(outcome)
    if consequence_lines:
        severity = "warning" if outcome.consequences.damage_taken > 0 else "info"
        sections.append(OutputSection("consequences", "\n".join(consequence_lines), CONSEQUENCE_COLOR, severity))

    animation = None
    if animated:
        animation = {
            "type": "dice_roll",
            "die": "d20",
            "natural": outcome.natural_roll,
            "result": outcome.total_roll,
            "duration_ms": ANIMATION_MS,
        }

    return TerminalOutput(
        action_type=outcome.action_type.value,
        tier=tier.value,
        icon=icon,
        narrative=generate_narrative(outcome),
        commentary=commentary_for(outcome.action_type, tier),
        sections=sections,
        animation=animation,
    )


def batch_outputs(outcomes: list[ResolutionOutcome]) -> list[TerminalOutput]:
    return [format_outcome(outcome) for outcome in outcomes]


def telemetry_snapshot(outcome: ResolutionOutcome) -> dict[str, Any]:
    """Compact record handed to an external telemetry sink."""
    return {
        "action_type": outcome.action_type.value,
        "tier": outcome.tier.value,
        "total_roll": outcome.total_roll,
        "loot": [vars(item).copy() for item in outcome.consequences.loot_gained],
        "damage": outcome.consequences.damage_taken,
    }
