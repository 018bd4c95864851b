"""
Tests for the TableManager content loader.
"""

import json

import pytest

from dre.data_models import ResultTier
from dre.tables.table_manager import (
    DEFAULT_TABLES_DIR,
    REQUIRED_TABLE_IDS,
    TableManager,
    get_table_manager,
    reset_table_manager,
)
from dre.tables.table_types import TableValidationError


def _write(directory, name, data):
    (directory / name).write_text(json.dumps(data), encoding="utf-8")


class TestPackagedTables:
    """Tests against the packaged content."""

    def test_all_weighted_tables_load(self, table_manager):
        """Test that every packaged weighted table is present."""
        assert table_manager.table_ids() == sorted([
            "mining_yield_quality", "mining_hazards", "mining_loot_types",
            "scavenging_loot_quality", "scavenging_traps", "scavenging_loot_types",
            "derelict_discoveries", "derelict_structure", "derelict_ambush",
            "away_team_hazards", "away_team_discoveries",
        ])

    def test_difficulty_targets(self, table_manager):
        """Test the packaged difficulty ladder."""
        assert table_manager.difficulty.target_for("trivial") == 5
        assert table_manager.difficulty.target_for("hard") == 18
        assert table_manager.difficulty.target_for("impossible") == 25

    def test_get_table(self, table_manager):
        """Test table lookup by ID."""
        hazards = table_manager.get_table("mining_hazards")
        assert hazards.get_entry("severe").get("damage") == 30
        assert table_manager.get_table("nope") is None

    def test_roll_table(self, table_manager):
        """Test drawing from a table by ID."""
        assert table_manager.roll_table("derelict_ambush", lambda: 0.0).value == "safe"

    def test_roll_unknown_table(self, table_manager):
        """Test that rolling an unknown table raises KeyError."""
        with pytest.raises(KeyError):
            table_manager.roll_table("nope", lambda: 0.5)

    @pytest.mark.parametrize("weapon,tier,expected", [
        ("laser", 2, "2d8"),
        ("missile", 1, "1d10+2"),
        ("plasma", 3, "4d10+5"),
        ("laser", 7, "3d8"),
        ("laser", 0, "1d8"),
        ("harpoon", 2, "1d6"),
    ])
    def test_damage_notation(self, table_manager, weapon, tier, expected):
        """Test weapon damage lookup, tier clamping and the unknown-weapon fallback."""
        assert table_manager.damage_notation(weapon, tier) == expected

    def test_status_effects_cover_d6(self, table_manager):
        """Test that every d6 face has a status effect."""
        for face in range(1, 7):
            assert table_manager.status_effect(face).value
        critical = table_manager.status_effect(6)
        assert critical.value == "critical_hit"
        assert critical.get("multiplier") == 2

    def test_enemy_lookup_returns_copy(self, table_manager):
        """Test that enemy stats are returned as independent copies."""
        drone = table_manager.enemy("drone")
        assert drone.evasion == 16
        drone.evasion = 1
        assert table_manager.enemy("drone").evasion == 16
        assert table_manager.enemy("kraken") is None
        assert "pirate" in table_manager.enemy_ids()

    def test_reward_profiles(self, table_manager):
        """Test reward profile multipliers and bonus tiers."""
        high_risk = table_manager.reward_profile("high_risk")
        assert high_risk.multiplier_for(ResultTier.CRITICAL_SUCCESS) == 3.0
        assert high_risk.grants_bonus(ResultTier.SUCCESS)
        assert not table_manager.reward_profile("standard").grants_bonus(ResultTier.SUCCESS)

    def test_unknown_reward_profile_falls_back(self, table_manager):
        """Test that an unknown profile uses 'standard'."""
        assert table_manager.reward_profile("mystery").name == "standard"


class TestCustomTables:
    """Tests loading content from a directory."""

    def test_missing_directory(self, tmp_path):
        """Test that a missing directory raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            TableManager(tmp_path / "absent")

    def test_custom_directory(self, tmp_path):
        """Test loading a minimal content directory."""
        _write(tmp_path, "custom.json", {
            "tables": [{"table_id": "finds", "name": "Finds", "entries": [{"value": "coin", "weight": 1}]}],
            "difficulty": {"normal": 8},
        })
        manager = TableManager(tmp_path, require_complete=False)
        assert manager.tables_dir == tmp_path
        assert manager.table_ids() == ["finds"]
        assert manager.difficulty.target_for("normal") == 8
        assert manager.difficulty.target_for("hard") == 18

    def test_invalid_table_reports_file(self, tmp_path):
        """Test that validation problems name the offending file."""
        _write(tmp_path, "bad.json", {
            "tables": [{"table_id": "broken", "entries": [{"value": "x", "weight": -2}]}],
        })
        with pytest.raises(TableValidationError) as exc_info:
            TableManager(tmp_path)
        assert any("bad.json" in p and "negative weight" in p for p in exc_info.value.problems)

    def test_duplicate_table_ids(self, tmp_path):
        """Test that a table ID defined in two files is rejected."""
        table = {"table_id": "finds", "entries": [{"value": "coin", "weight": 1}]}
        _write(tmp_path, "a.json", {"tables": [table]})
        _write(tmp_path, "b.json", {"tables": [table]})
        with pytest.raises(TableValidationError) as exc_info:
            TableManager(tmp_path)
        assert any("duplicate table_id" in p for p in exc_info.value.problems)

    def test_invalid_json(self, tmp_path):
        """Test that unparseable files are reported."""
        (tmp_path / "broken.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(TableValidationError) as exc_info:
            TableManager(tmp_path)
        assert "broken.json" in exc_info.value.problems[0]

    def test_incomplete_status_effects(self, tmp_path):
        """Test that status effects must cover every d6 face."""
        _write(tmp_path, "combat.json", {"status_effects": [{"roll": 1, "value": "jam"}]})
        with pytest.raises(TableValidationError) as exc_info:
            TableManager(tmp_path)
        assert any("missing rolls" in p for p in exc_info.value.problems)

    def test_incomplete_reward_profile(self, tmp_path):
        """Test that a reward profile must give a multiplier for every tier."""
        _write(tmp_path, "missions.json", {"reward_profiles": {"standard": {"multipliers": {"success": 1.0}}}})
        with pytest.raises(TableValidationError) as exc_info:
            TableManager(tmp_path)
        assert any("missing multipliers" in p for p in exc_info.value.problems)

    def test_problems_from_all_files_collected(self, tmp_path):
        """Test that problems in several files are raised together."""
        _write(tmp_path, "a.json", {"tables": [{"table_id": "x", "entries": []}]})
        _write(tmp_path, "b.json", {"tables": [{"table_id": "y", "entries": [{"value": "v", "weight": -1}]}]})
        with pytest.raises(TableValidationError) as exc_info:
            TableManager(tmp_path, require_complete=False)
        sources = {p.split(":")[0] for p in exc_info.value.problems}
        assert sources == {"a.json", "b.json"}


class TestRequiredContent:
    """Tests that a content directory must supply what resolution draws from."""

    def _copy_packaged(self, directory, skip=()):
        for path in DEFAULT_TABLES_DIR.glob("*.json"):
            if path.name not in skip:
                (directory / path.name).write_text(path.read_text(encoding="utf-8"), encoding="utf-8")

    def test_packaged_directory_is_complete(self, tmp_path):
        """Test that a full copy of the packaged content loads."""
        self._copy_packaged(tmp_path)
        assert TableManager(tmp_path).table_ids() == sorted(REQUIRED_TABLE_IDS)

    def test_difficulty_only_directory_rejected(self, tmp_path):
        """Test that a directory with only difficulty targets fails at load time."""
        _write(tmp_path, "difficulty.json", {"difficulty": {"normal": 12}})
        with pytest.raises(TableValidationError) as exc_info:
            TableManager(tmp_path)
        problems = exc_info.value.problems
        assert "missing: d6 status effects" in problems
        assert "missing: weapon damage notation" in problems
        assert "missing: reward profile 'standard'" in problems
        assert sum(p.startswith("missing: weighted table") for p in problems) == len(REQUIRED_TABLE_IDS)

    def test_missing_combat_content_rejected(self, tmp_path):
        """Test that dropping the combat file is caught before any resolution."""
        self._copy_packaged(tmp_path, skip=("combat.json",))
        with pytest.raises(TableValidationError) as exc_info:
            TableManager(tmp_path)
        assert set(exc_info.value.problems) == {
            "missing: d6 status effects",
            "missing: weapon damage notation",
        }

    def test_damage_tier_gaps_rejected(self, tmp_path):
        """Test that every weapon needs damage dice for each tier."""
        self._copy_packaged(tmp_path, skip=("combat.json",))
        combat = json.loads((DEFAULT_TABLES_DIR / "combat.json").read_text(encoding="utf-8"))
        combat["damage_notation"]["laser"] = {"1": "1d8"}
        _write(tmp_path, "combat.json", combat)
        with pytest.raises(TableValidationError) as exc_info:
            TableManager(tmp_path)
        assert exc_info.value.problems == ["missing: damage notation for 'laser' tiers [2, 3]"]

    def test_incomplete_directory_allowed_when_not_required(self, tmp_path):
        """Test that require_complete=False loads partial content."""
        _write(tmp_path, "difficulty.json", {"difficulty": {"normal": 12}})
        manager = TableManager(tmp_path, require_complete=False)
        assert manager.table_ids() == []
        assert manager.difficulty.target_for("normal") == 12


class TestGlobalTableManager:
    """Tests for the shared instance."""

    def test_singleton_until_reset(self):
        """Test that get_table_manager reuses one instance until reset."""
        first = get_table_manager()
        assert get_table_manager() is first
        reset_table_manager()
        assert get_table_manager() is not first
