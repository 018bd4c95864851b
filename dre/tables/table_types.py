"""
Table type definitions for the dice resolution engine.

Weighted tables drive every secondary outcome (hazards, loot, discoveries);
the difficulty table maps labels to target numbers. Both are plain data,
validated once when loaded.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from dre.data_models import WeightedEntry
from dre.rng.substream import RandomSource

logger = logging.getLogger(__name__)


class EmptyTableError(ValueError):
    """Raised when drawing from a table with no entries."""
    pass


class TableValidationError(ValueError):
    """Raised when table content fails validation."""

    def __init__(self, problems: list[str]):
        self.problems = list(problems)
        super().__init__("Invalid table content:\n  " + "\n  ".join(self.problems))


class UnknownDifficultyError(KeyError):
    """Raised when a difficulty label has no target number."""
    pass


# =============================================================================
# WEIGHTED SELECTION
# =============================================================================


def select_weighted(entries: list[WeightedEntry], stream: RandomSource) -> WeightedEntry:
    """
    Draw one entry with probability proportional to its weight.

    Zero-weight entries are never chosen. If every weight is zero the first
    entry is returned; if rounding walks off the end of the list the last
    positive-weight entry is returned. One draw from the stream is consumed
    either way.

    Raises:
        EmptyTableError: If entries is empty
    """
    if not entries:
        raise EmptyTableError("Cannot select from an empty weighted table")

    total = sum(e.weight for e in entries if e.weight > 0)
    r = stream() * total
    if total <= 0:
        logger.warning("Weighted table has no positive weights; using first entry")
        return entries[0]

    fallback = entries[0]
    for entry in entries:
        if entry.weight <= 0:
            continue
        fallback = entry
        r -= entry.weight
        if r <= 0:
            return entry
    return fallback


@dataclass
class WeightedTable:
    """A named weighted table loaded from content."""
    table_id: str
    name: str
    entries: list[WeightedEntry] = field(default_factory=list)
    description: str = ""

    @property
    def total_weight(self) -> float:
        return sum(e.weight for e in self.entries if e.weight > 0)

    def select(self, stream: RandomSource) -> WeightedEntry:
        return select_weighted(self.entries, stream)

    def get_entry(self, value: Any) -> Optional[WeightedEntry]:
        for entry in self.entries:
            if entry.value == value:
                return entry
        return None

    def with_weights_scaled(self, factor: float, predicate) -> "WeightedTable":
        """Copy with the weight of every entry matching predicate multiplied."""
        return WeightedTable(
            table_id=self.table_id,
            name=self.name,
            description=self.description,
            entries=[
                WeightedEntry(e.value, e.weight * factor, e.label, dict(e.data))
                if predicate(e) else e
                for e in self.entries
            ],
        )

    def validate(self) -> list[str]:
        """Problems with this table (empty when valid)."""
        problems = []
        if not self.table_id:
            problems.append("table without table_id")
        if not self.entries:
            problems.append(f"{self.table_id}: no entries")
        seen = set()
        total = 0
        for entry in self.entries:
            if not isinstance(entry.weight, (int, float)) or isinstance(entry.weight, bool):
                problems.append(f"{self.table_id}: weight of {entry.value!r} is not a number")
                continue
            if entry.weight < 0:
                problems.append(f"{self.table_id}: negative weight for {entry.value!r}")
            else:
                total += entry.weight
            if entry.value in seen:
                problems.append(f"{self.table_id}: duplicate value {entry.value!r}")
            seen.add(entry.value)
        if self.entries and total <= 0:
            problems.append(f"{self.table_id}: total weight must be positive")
        return problems

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WeightedTable":
        return cls(
            table_id=data.get("table_id", data.get("id", "")),
            name=data.get("name", ""),
            description=data.get("description", ""),
            entries=[WeightedEntry.from_dict(e) for e in data.get("entries", [])],
        )


# =============================================================================
# DIFFICULTY
# =============================================================================


DEFAULT_DIFFICULTY_TARGETS = {
    "trivial": 5,
    "easy": 10,
    "normal": 15,
    "hard": 18,
    "deadly": 22,
    "impossible": 25,
}


class DifficultyTable:
    """Difficulty label -> target number, ordered easiest first."""

    def __init__(self, targets: Optional[dict[str, int]] = None):
        self._targets: dict[str, int] = dict(targets if targets is not None else DEFAULT_DIFFICULTY_TARGETS)
        problems = [
            f"difficulty {label!r}: target must be an integer"
            for label, target in self._targets.items()
            if not isinstance(target, int) or isinstance(target, bool)
        ]
        if problems:
            raise TableValidationError(problems)

    def target_for(self, label: str) -> int:
        """
        Target number for a difficulty label.

        Raises:
            UnknownDifficultyError: If the label is not in the table
        """
        try:
            return self._targets[label]
        except KeyError:
            raise UnknownDifficultyError(
                f"Unknown difficulty {label!r}; expected one of {', '.join(self._targets)}"
            ) from None

    def labels(self) -> list[str]:
        return list(self._targets)

    def with_overrides(self, overrides: dict[str, int]) -> "DifficultyTable":
        merged = dict(self._targets)
        merged.update(overrides)
        return DifficultyTable(merged)

    def __contains__(self, label: object) -> bool:
        return label in self._targets

    def to_dict(self) -> dict[str, int]:
        return dict(self._targets)
