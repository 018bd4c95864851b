"""Dice primitives.

Standalone rollers usable by any subsystem that holds a seeded stream.
"""

from dre.dice.dice_roller import (
    MAX_DICE,
    CriticalCheck,
    D20Result,
    DiceNotationError,
    check_critical,
    parse_notation,
    roll,
    roll_d6,
    roll_d10,
    roll_d12,
    roll_d20,
    roll_d100,
    roll_multiple,
    roll_notation,
)

__all__ = [
    "MAX_DICE",
    "CriticalCheck",
    "D20Result",
    "DiceNotationError",
    "check_critical",
    "parse_notation",
    "roll",
    "roll_d6",
    "roll_d10",
    "roll_d12",
    "roll_d20",
    "roll_d100",
    "roll_multiple",
    "roll_notation",
]
