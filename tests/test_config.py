"""
Tests for engine configuration.
"""

import json
from pathlib import Path

import pytest

from dre.config import EngineConfig, build_engine
from dre.data_models import ActionContext, ActionType
from dre.observability.run_log import get_run_log
from dre.preview.odds import preview_odds
from dre.tables.table_types import TableValidationError, UnknownDifficultyError


class TestEngineConfig:
    """Tests for EngineConfig."""

    def test_defaults(self):
        """Test the default configuration."""
        config = EngineConfig()
        assert config.tables_dir is None
        assert config.default_difficulty == "normal"
        assert config.difficulty_overrides == {}
        assert config.record_run_log is False

    def test_string_path_normalised(self):
        """Test that tables_dir strings become Paths."""
        assert EngineConfig(tables_dir="content").tables_dir == Path("content")

    def test_from_file(self, tmp_path):
        """Test loading configuration from JSON."""
        path = tmp_path / "engine.json"
        path.write_text(json.dumps({"default_difficulty": "easy", "difficulty_overrides": {"normal": 8}}))
        config = EngineConfig.from_file(path)
        assert config.default_difficulty == "easy"
        assert config.difficulty_overrides == {"normal": 8}

    def test_unknown_keys_rejected(self):
        """Test that typos in configuration are caught."""
        with pytest.raises(ValueError, match="difficulty_override"):
            EngineConfig.from_dict({"difficulty_override": {"normal": 8}})


class TestBuildEngine:
    """Tests for build_engine."""

    def test_default_engine(self):
        """Test an engine built from defaults."""
        engine = build_engine()
        assert engine.difficulty_table.target_for("normal") == 15
        assert engine.run_log is None
        assert engine.registry.names()[0] == "ship"

    def test_difficulty_overrides(self):
        """Test that overrides change targets and previews."""
        engine = build_engine(EngineConfig(difficulty_overrides={"normal": 8}))
        assert engine.difficulty_table.target_for("normal") == 8
        assert preview_odds(ActionType.MINING, ActionContext(), engine).success_chance == 65

    def test_default_difficulty(self):
        """Test the engine-wide default label."""
        engine = build_engine(EngineConfig(default_difficulty="hard"))
        assert engine.resolve(ActionType.MINING, seed="s").target_difficulty == 18

    def test_unknown_default_difficulty(self):
        """Test that an unknown default label fails at build time."""
        with pytest.raises(UnknownDifficultyError):
            build_engine(EngineConfig(default_difficulty="legendary"))

    def test_record_run_log(self):
        """Test that recording uses the shared run log."""
        engine = build_engine(EngineConfig(record_run_log=True))
        assert engine.run_log is get_run_log()
        engine.resolve(ActionType.MINING, seed="s")
        assert get_run_log().get_event_count() == 1

    def test_engines_do_not_share_registries(self):
        """Test that each built engine has its own registry."""
        assert build_engine().registry is not build_engine().registry

    def test_incomplete_tables_dir_fails_at_build_time(self, tmp_path):
        """Test that a tables directory missing combat content is rejected before resolving."""
        (tmp_path / "difficulty.json").write_text(json.dumps({"difficulty": {"normal": 12}}), encoding="utf-8")
        with pytest.raises(TableValidationError) as exc_info:
            build_engine(EngineConfig(tables_dir=tmp_path))
        assert "missing: d6 status effects" in exc_info.value.problems
