"""
Engine configuration.

EngineConfig collects everything needed to wire up a ResolutionEngine:
where the content tables live, the default difficulty, any target
overrides, and whether resolutions are recorded to the run log.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Union

from dre.modifiers.registry import build_default_registry
from dre.observability.run_log import get_run_log
from dre.resolution.engine import ResolutionEngine
from dre.tables.table_manager import TableManager

logger = logging.getLogger(__name__)


@dataclass
class EngineConfig:
    """Configuration for a resolution engine."""

    tables_dir: Optional[Path] = None  # None = packaged tables
    default_difficulty: str = "normal"
    difficulty_overrides: dict[str, int] = field(default_factory=dict)

    # Runtime options
    record_run_log: bool = False
    verbose: bool = False

    def __post_init__(self):
        """Ensure paths are Path objects."""
        if isinstance(self.tables_dir, str):
            self.tables_dir = Path(self.tables_dir)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EngineConfig":
        unknown = set(data) - {"tables_dir", "default_difficulty", "difficulty_overrides", "record_run_log", "verbose"}
        if unknown:
            raise ValueError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")
        return cls(**data)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "EngineConfig":
        """Load configuration from a JSON file."""
        with open(path, "r", encoding="utf-8") as f:
            config = cls.from_dict(json.load(f))
        logger.info(f"Loaded engine configuration from {path}")
        return config


def build_engine(config: Optional[EngineConfig] = None) -> ResolutionEngine:
    """
    Create a ResolutionEngine from configuration.

    Each call builds its own table manager and modifier registry, so engines
    built from different configurations never share state.

    Raises:
        UnknownDifficultyError: If default_difficulty is not a known label
    """
    config = config or EngineConfig()
    tables = TableManager(config.tables_dir)
    difficulty = tables.difficulty
    if config.difficulty_overrides:
        difficulty = difficulty.with_overrides(config.difficulty_overrides)
    difficulty.target_for(config.default_difficulty)

    return ResolutionEngine(
        table_manager=tables,
        registry=build_default_registry(),
        difficulty_table=difficulty,
        run_log=get_run_log() if config.record_run_log else None,
        default_difficulty=config.default_difficulty,
    )
