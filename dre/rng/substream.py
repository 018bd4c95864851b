"""
Deterministic seed hashing and named random substreams.

Every random decision in the engine draws from a substream derived purely
from a seed string and a label. The hash is xmur3 and the generator is
mulberry32, both computed in 32-bit unsigned arithmetic so a given
(seed text, label) pair yields the same sequence on every platform.

Usage:
    stream = make_stream("run-42", "mining")
    roll = stream.randint(1, 20)
"""

import struct
from typing import Any, Callable, Sequence

# Any zero-argument callable returning floats in [0, 1) can stand in for a
# Substream wherever the engine draws randomness.
RandomSource = Callable[[], float]

_MASK = 0xFFFFFFFF
_LABEL_SEPARATOR = "::"


def _imul(a: int, b: int) -> int:
    """32-bit multiply, low word only."""
    return (a * b) & _MASK


def _code_units(text: str) -> tuple[int, ...]:
    """UTF-16 code units of the text."""
    data = text.encode("utf-16-le", "surrogatepass")
    return struct.unpack(f"<{len(data) // 2}H", data)


def hash_to_seed(text: Any) -> int:
    """
    Stable 32-bit hash of a string (xmur3, first output).

    Accepts any input; non-strings are hashed through str(). Never raises.
    """
    if not isinstance(text, str):
        text = str(text)
    units = _code_units(text)
    h = (1779033703 ^ len(units)) & _MASK
    for unit in units:
        h = _imul(h ^ unit, 3432918353)
        h = ((h << 13) | (h >> 19)) & _MASK
    h = _imul(h ^ (h >> 16), 2246822507)
    h = _imul(h ^ (h >> 13), 3266489909)
    h ^= h >> 16
    return h & _MASK


def derive_sub_seed(base_seed: int, label: str) -> int:
    """Combine a base seed and a label into an unrelated 32-bit seed."""
    return hash_to_seed(f"{base_seed & _MASK}{_LABEL_SEPARATOR}{label}")


def lerp(a: float, b: float, t: float) -> float:
    """Linear interpolation between a and b."""
    return a + (b - a) * t


class Substream:
    """
    A mulberry32 generator producing floats in [0, 1).

    Calling the instance advances it by one step. The period is 2**32
    draws, far beyond what a game session consumes.
    """

    def __init__(self, seed: int, label: str = ""):
        self._seed = seed & _MASK
        self._state = self._seed
        self.label = label
        self.draws = 0

    @property
    def seed(self) -> int:
        return self._seed

    def random(self) -> float:
        self._state = (self._state + 0x6D2B79F5) & _MASK
        t = self._state
        t = _imul(t ^ (t >> 15), t | 1)
        t ^= (t + _imul(t ^ (t >> 7), t | 61)) & _MASK
        self.draws += 1
        return ((t ^ (t >> 14)) & _MASK) / 4294967296.0

    __call__ = random

    def randint(self, low: int, high: int) -> int:
        """Integer in [low, high], inclusive."""
        if high < low:
            raise ValueError(f"Empty range: {low}..{high}")
        return int(self.random() * (high - low + 1)) + low

    def uniform(self, a: float, b: float) -> float:
        return lerp(a, b, self.random())

    def pick(self, items: Sequence[Any]) -> Any:
        """Uniformly chosen element of a non-empty sequence."""
        if not items:
            raise IndexError("Cannot pick from an empty sequence")
        return items[int(self.random() * len(items))]

    def noise(self, amp: float = 1.0, bias: float = 0.0) -> float:
        """Signed noise in [bias - amp, bias + amp)."""
        return (self.random() * 2 - 1) * amp + bias

    def __repr__(self) -> str:
        return f"Substream(seed={self._seed}, label={self.label!r}, draws={self.draws})"


def make_generator(seed: int) -> Substream:
    """Generator for an already-derived 32-bit seed."""
    return Substream(seed)


def make_stream(seed_text: str, label: str) -> Substream:
    """
    The substream for (seed text, label).

    This is the only entry point other components use; identical inputs
    always reproduce an identical sequence.
    """
    base = hash_to_seed(seed_text)
    stream = make_generator(derive_sub_seed(base, label))
    stream.label = label
    return stream
