"""
Table system for the dice resolution engine.

Weighted outcome tables, the difficulty table, and the loader that reads
them from JSON content files.
"""

from dre.tables.table_types import (
    DEFAULT_DIFFICULTY_TARGETS,
    DifficultyTable,
    EmptyTableError,
    TableValidationError,
    UnknownDifficultyError,
    WeightedTable,
    select_weighted,
)
from dre.tables.table_manager import (
    DEFAULT_TABLES_DIR,
    RewardProfile,
    TableManager,
    get_table_manager,
    reset_table_manager,
)

__all__ = [
    "DEFAULT_DIFFICULTY_TARGETS",
    "DEFAULT_TABLES_DIR",
    "DifficultyTable",
    "EmptyTableError",
    "RewardProfile",
    "TableManager",
    "TableValidationError",
    "UnknownDifficultyError",
    "WeightedTable",
    "get_table_manager",
    "reset_table_manager",
    "select_weighted",
]
