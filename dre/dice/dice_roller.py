"""
Dice primitives built on seeded substreams.

Every roller takes the stream to draw from explicitly; nothing here keeps
global state, so two calls on two streams can never disturb each other.
A "stream" is any zero-argument callable returning floats in [0, 1),
normally a Substream from dre.rng.
"""

import re
from dataclasses import dataclass

from dre.data_models import DiceResult
from dre.rng.substream import RandomSource

# Guard against notation like "100000d6" from hand-edited content.
MAX_DICE = 1000

_NOTATION_RE = re.compile(r"^\s*(\d*)\s*d\s*(\d+)\s*(?:([+-])\s*(\d+))?\s*$", re.IGNORECASE)


class DiceNotationError(ValueError):
    """Raised when a dice notation string cannot be parsed."""
    pass


@dataclass(frozen=True)
class CriticalCheck:
    """Natural-maximum / natural-minimum flags for one die."""
    is_crit_success: bool
    is_crit_fail: bool


@dataclass(frozen=True)
class D20Result:
    """A single d20 with critical detection."""
    value: int
    is_crit_success: bool
    is_crit_fail: bool


def roll(sides: int, stream: RandomSource) -> int:
    """Roll one die with the given number of sides: 1..sides."""
    if sides < 1:
        raise ValueError(f"A die needs at least one side, got {sides}")
    return min(int(stream() * sides), sides - 1) + 1


def check_critical(value: int, sides: int) -> CriticalCheck:
    """Natural max is a critical success, natural 1 a critical failure."""
    return CriticalCheck(is_crit_success=value == sides, is_crit_fail=value == 1)


def roll_d20(stream: RandomSource) -> D20Result:
    """Roll a d20 with critical detection."""
    value = roll(20, stream)
    crit = check_critical(value, 20)
    return D20Result(value=value, is_crit_success=crit.is_crit_success, is_crit_fail=crit.is_crit_fail)


def roll_d6(stream: RandomSource) -> int:
    """d6: status effects and secondary outcomes."""
    return roll(6, stream)


def roll_d10(stream: RandomSource) -> int:
    """d10: loot quality and yield."""
    return roll(10, stream)


def roll_d12(stream: RandomSource) -> int:
    """d12: hazards, defense, structure."""
    return roll(12, stream)


def roll_d100(stream: RandomSource) -> int:
    """Percentile roll, 1..100."""
    return roll(100, stream)


def roll_multiple(count: int, sides: int, stream: RandomSource) -> DiceResult:
    """Roll `count` dice of `sides` sides and sum them."""
    if count < 1:
        raise ValueError(f"Must roll at least one die, got {count}")
    rolls = [roll(sides, stream) for _ in range(count)]
    total = sum(rolls)
    return DiceResult(
        notation=f"{count}d{sides}",
        rolls=rolls,
        raw_total=total,
        modifier=0,
        total=total,
    )


def parse_notation(notation: str) -> tuple[int, int, int]:
    """
    Parse dice notation into (count, sides, modifier).

    Accepts "2d8", "1d10+2", "3d6-1" and the implied single die "d6".

    Raises:
        DiceNotationError: If the notation is malformed or out of range
    """
    if not isinstance(notation, str):
        raise DiceNotationError(f"Dice notation must be a string, got {type(notation).__name__}")

    match = _NOTATION_RE.match(notation)
    if not match:
        raise DiceNotationError(f"Invalid dice notation: {notation!r}")

    count_str, sides_str, sign, mod_str = match.groups()
    count = int(count_str) if count_str else 1
    sides = int(sides_str)
    modifier = int(mod_str) if mod_str else 0
    if sign == "-":
        modifier = -modifier

    if count < 1 or count > MAX_DICE:
        raise DiceNotationError(f"Dice count out of range in {notation!r}: {count}")
    if sides < 1:
        raise DiceNotationError(f"Die size out of range in {notation!r}: {sides}")

    return count, sides, modifier


def roll_notation(notation: str, stream: RandomSource) -> DiceResult:
    """
    Roll dice using standard notation (e.g., '2d8+3').

    Args:
        notation: Dice notation string
        stream: Random source to draw from

    Returns:
        DiceResult with individual rolls, raw total, modifier and total

    Raises:
        DiceNotationError: If the notation is malformed
    """
    count, sides, modifier = parse_notation(notation)
    rolls = [roll(sides, stream) for _ in range(count)]
    raw_total = sum(rolls)
    return DiceResult(
        notation=notation.strip(),
        rolls=rolls,
        raw_total=raw_total,
        modifier=modifier,
        total=raw_total + modifier,
    )
