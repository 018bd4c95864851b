"""
Table management for the dice resolution engine.

Loads every content table (weighted outcome tables, difficulty targets,
combat damage and status tables, mission reward profiles) once from JSON,
validates it, and gives the resolution pipeline read-only access.
Content designers edit the JSON files; resolution code never embeds tables.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from dre.data_models import CombatTarget, ResultTier, WeightedEntry
from dre.rng.substream import RandomSource
from dre.tables.table_types import (
    DifficultyTable,
    TableValidationError,
    WeightedTable,
    select_weighted,
)

logger = logging.getLogger(__name__)

DEFAULT_TABLES_DIR = Path(__file__).parent / "data"

# Fallback when a weapon type has no damage entry.
DEFAULT_DAMAGE_NOTATION = "1d6"
MAX_WEAPON_TIER = 3

# Weighted tables the resolution pipeline draws from.
REQUIRED_TABLE_IDS = (
    "mining_yield_quality", "mining_hazards", "mining_loot_types",
    "scavenging_loot_quality", "scavenging_traps", "scavenging_loot_types",
    "derelict_discoveries", "derelict_structure", "derelict_ambush",
    "away_team_hazards", "away_team_discoveries",
)
DEFAULT_REWARD_PROFILE = "standard"


@dataclass
class RewardProfile:
    """Loot multiplier per tier and the tiers that earn a bonus-pool roll."""
    name: str
    multipliers: dict[ResultTier, float] = field(default_factory=dict)
    bonus_tiers: set[ResultTier] = field(default_factory=set)

    def multiplier_for(self, tier: ResultTier) -> float:
        return self.multipliers.get(tier, 0.0)

    def grants_bonus(self, tier: ResultTier) -> bool:
        return tier in self.bonus_tiers


class TableManager:
    """
    Central manager for all content tables.

    Handles loading, validation and lookup. Load problems from every file
    are collected and raised together so a content author sees them all.
    With require_complete (the default) a directory that lacks content the
    resolution pipeline draws from is rejected at load time as well.
    """

    def __init__(self, tables_dir: Optional[Path] = None, require_complete: bool = True):
        self._tables_dir = Path(tables_dir) if tables_dir is not None else DEFAULT_TABLES_DIR
        self._require_complete = require_complete

        self._tables: dict[str, WeightedTable] = {}
        self._difficulty = DifficultyTable()
        self._damage_notation: dict[str, dict[int, str]] = {}
        self._status_effects: dict[int, WeightedEntry] = {}
        self._enemies: dict[str, CombatTarget] = {}
        self._reward_profiles: dict[str, RewardProfile] = {}

        self._load_directory(self._tables_dir)

    # =========================================================================
    # LOADING
    # =========================================================================

    def _load_directory(self, directory: Path) -> None:
        if not directory.is_dir():
            raise FileNotFoundError(f"Table directory not found: {directory}")

        problems: list[str] = []
        files = sorted(directory.glob("*.json"))
        for file_path in files:
            with open(file_path, "r", encoding="utf-8") as f:
                try:
                    data = json.load(f)
                except json.JSONDecodeError as e:
                    problems.append(f"{file_path.name}: invalid JSON ({e})")
                    continue
            problems.extend(self._load_data(data, source=file_path.name))

        if self._require_complete:
            problems.extend(self._missing_content())

        if problems:
            raise TableValidationError(problems)

        logger.info(
            f"Loaded {len(self._tables)} weighted tables, "
            f"{len(self._reward_profiles)} reward profiles from {len(files)} files in {directory}"
        )

    def _load_data(self, data: dict[str, Any], source: str) -> list[str]:
        """Merge one file's content; returns the problems found."""
        problems: list[str] = []

        for table_data in data.get("tables", []):
            table = WeightedTable.from_dict(table_data)
            table_problems = table.validate()
            if table.table_id in self._tables:
                table_problems.append(f"duplicate table_id {table.table_id!r}")
            if table_problems:
                problems.extend(f"{source}: {p}" for p in table_problems)
                continue
            self._tables[table.table_id] = table

        if "difficulty" in data:
            try:
                self._difficulty = self._difficulty.with_overrides(data["difficulty"])
            except TableValidationError as e:
                problems.extend(f"{source}: {p}" for p in e.problems)

        for weapon_type, tiers in data.get("damage_notation", {}).items():
            self._damage_notation[weapon_type] = {int(tier): notation for tier, notation in tiers.items()}

        if "status_effects" in data:
            problems.extend(f"{source}: {p}" for p in self._load_status_effects(data["status_effects"]))

        for enemy_id, stats in data.get("enemies", {}).items():
            self._enemies[enemy_id] = CombatTarget(**stats)

        for name, profile_data in data.get("reward_profiles", {}).items():
            profile, profile_problems = self._parse_reward_profile(name, profile_data)
            if profile_problems:
                problems.extend(f"{source}: {p}" for p in profile_problems)
            else:
                self._reward_profiles[name] = profile

        return problems

    def _missing_content(self) -> list[str]:
        """Content the resolution pipeline needs but no file provided."""
        problems = [
            f"missing: weighted table {table_id!r}"
            for table_id in REQUIRED_TABLE_IDS
            if table_id not in self._tables
        ]
        if not self._status_effects:
            problems.append("missing: d6 status effects")
        if not self._damage_notation:
            problems.append("missing: weapon damage notation")
        for weapon_type, tiers in self._damage_notation.items():
            gaps = [t for t in range(1, MAX_WEAPON_TIER + 1) if t not in tiers]
            if gaps:
                problems.append(f"missing: damage notation for {weapon_type!r} tiers {gaps}")
        if DEFAULT_REWARD_PROFILE not in self._reward_profiles:
            problems.append(f"missing: reward profile {DEFAULT_REWARD_PROFILE!r}")
        return problems

    def _load_status_effects(self, rows: list[dict[str, Any]]) -> list[str]:
        problems = []
        effects: dict[int, WeightedEntry] = {}
        for row in rows:
            face = row.get("roll")
            if not isinstance(face, int) or not 1 <= face <= 6:
                problems.append(f"status effect {row.get('value')!r}: roll must be 1..6")
                continue
            if face in effects:
                problems.append(f"status effect roll {face} defined twice")
                continue
            extra = {k: v for k, v in row.items() if k not in ("value", "label", "roll")}
            effects[face] = WeightedEntry(value=row["value"], weight=1, label=row.get("label", ""), data=extra)
        missing = sorted(set(range(1, 7)) - set(effects))
        if missing:
            problems.append(f"status effects missing rolls {missing}")
        if not problems:
            self._status_effects = effects
        return problems

    def _parse_reward_profile(self, name: str, data: dict[str, Any]) -> tuple[RewardProfile, list[str]]:
        problems = []
        multipliers: dict[ResultTier, float] = {}
        for tier_name, value in data.get("multipliers", {}).items():
            try:
                tier = ResultTier(tier_name)
            except ValueError:
                problems.append(f"reward profile {name!r}: unknown tier {tier_name!r}")
                continue
            if value < 0:
                problems.append(f"reward profile {name!r}: negative multiplier for {tier_name}")
            multipliers[tier] = float(value)
        missing = [t.value for t in ResultTier if t not in multipliers]
        if missing:
            problems.append(f"reward profile {name!r}: missing multipliers for {missing}")

        bonus_tiers: set[ResultTier] = set()
        for tier_name in data.get("bonus_tiers", []):
            try:
                bonus_tiers.add(ResultTier(tier_name))
            except ValueError:
                problems.append(f"reward profile {name!r}: unknown bonus tier {tier_name!r}")

        return RewardProfile(name=name, multipliers=multipliers, bonus_tiers=bonus_tiers), problems

    # =========================================================================
    # LOOKUP
    # =========================================================================

    @property
    def tables_dir(self) -> Path:
        return self._tables_dir

    @property
    def difficulty(self) -> DifficultyTable:
        return self._difficulty

    def set_difficulty_table(self, table: DifficultyTable) -> None:
        """Replace the difficulty table (configuration overrides, fixtures)."""
        self._difficulty = table

    def get_table(self, table_id: str) -> Optional[WeightedTable]:
        """Get a table by ID."""
        return self._tables.get(table_id)

    def table_ids(self) -> list[str]:
        return sorted(self._tables)

    def roll_table(self, table_id: str, stream: RandomSource) -> WeightedEntry:
        """
        Draw from a table.

        Raises:
            KeyError: If no table has that ID
        """
        table = self._tables.get(table_id)
        if table is None:
            raise KeyError(f"Table {table_id!r} not found")
        return select_weighted(table.entries, stream)

    def damage_notation(self, weapon_type: str, tier: int) -> str:
        """Damage dice for a weapon; tiers above the maximum use the top tier."""
        tiers = self._damage_notation.get(weapon_type)
        if not tiers:
            return DEFAULT_DAMAGE_NOTATION
        return tiers.get(max(1, min(tier, MAX_WEAPON_TIER)), DEFAULT_DAMAGE_NOTATION)

    def status_effect(self, face: int) -> WeightedEntry:
        """d6 combat status effect for a face value."""
        return self._status_effects[face]

    def enemy(self, enemy_id: str) -> Optional[CombatTarget]:
        stats = self._enemies.get(enemy_id)
        if stats is None:
            return None
        return CombatTarget(**vars(stats))

    def enemy_ids(self) -> list[str]:
        return sorted(self._enemies)

    def reward_profile(self, name: str) -> RewardProfile:
        """Reward profile by name; unknown names fall back to 'standard'."""
        profile = self._reward_profiles.get(name)
        if profile is None:
            logger.debug(f"Unknown reward profile {name!r}, using 'standard'")
            profile = self._reward_profiles[DEFAULT_REWARD_PROFILE]
        return profile


# Global table manager instance
_table_manager: Optional[TableManager] = None


def get_table_manager() -> TableManager:
    """Get the global TableManager instance, loading the packaged tables once."""
    global _table_manager
    if _table_manager is None:
        _table_manager = TableManager()
    return _table_manager


def reset_table_manager() -> None:
    """Forget the global instance (tests, content reloads)."""
    global _table_manager
    _table_manager = None
