"""
random.Random-style adapter over a named substream.

Subsystems outside the resolution core (spatial generation, flavour text)
often expect an object with randint/choice/shuffle. This adapter gives
them one while keeping every draw on a seed-derived substream, so their
output stays reproducible.
"""

from __future__ import annotations

import logging
from typing import Any, MutableSequence, Sequence

from dre.rng.substream import Substream, make_stream

logger = logging.getLogger(__name__)


class SubstreamRngAdapter:
    """
    Adapter that makes a Substream compatible with the random.Random interface.

    Usage:
        from dre.rng.rng_adapter import SubstreamRngAdapter

        rng = SubstreamRngAdapter.for_label("galaxy-7", "star-names")
        name = rng.choice(NAMES)
    """

    def __init__(self, stream: Substream, reason_prefix: str = ""):
        """
        Initialize the adapter.

        Args:
            stream: Substream to draw from
            reason_prefix: Prefix used in debug logging of draws
        """
        self._stream = stream
        self._reason_prefix = reason_prefix or stream.label or "rng"
        self._draw_count = 0

    @classmethod
    def for_label(cls, seed_text: str, label: str) -> "SubstreamRngAdapter":
        """Adapter over make_stream(seed_text, label)."""
        return cls(make_stream(seed_text, label), reason_prefix=label)

    def _next(self, context: str) -> float:
        self._draw_count += 1
        value = self._stream.random()
        logger.debug(f"{self._reason_prefix}: {context} (draw #{self._draw_count})")
        return value

    def random(self) -> float:
        """Return a float in [0.0, 1.0)."""
        return self._next("random float")

    def randint(self, a: int, b: int) -> int:
        """
        Return random integer in range [a, b], inclusive.

        Raises:
            ValueError: If b < a
        """
        if b < a:
            raise ValueError(f"Empty range for randint({a}, {b})")
        return int(self._next(f"range({a}-{b})") * (b - a + 1)) + a

    def uniform(self, a: float, b: float) -> float:
        return a + (b - a) * self._next(f"uniform({a}, {b})")

    def choice(self, seq: Sequence[Any]) -> Any:
        """
        Choose an element from a non-empty sequence.

        Raises:
            IndexError: If sequence is empty
        """
        if not seq:
            raise IndexError("Cannot choose from an empty sequence")
        return seq[int(self._next(f"choice from {len(seq)} options") * len(seq))]

    def shuffle(self, x: MutableSequence[Any]) -> None:
        """Shuffle x in place (Fisher-Yates)."""
        for i in range(len(x) - 1, 0, -1):
            j = self.randint(0, i)
            x[i], x[j] = x[j], x[i]

    def sample(self, population: Sequence[Any], k: int) -> list[Any]:
        """k distinct elements, in selection order."""
        if k < 0 or k > len(population):
            raise ValueError("Sample larger than population or is negative")
        pool = list(population)
        self.shuffle(pool)
        return pool[:k]

    @property
    def draw_count(self) -> int:
        """Number of draws made through this adapter."""
        return self._draw_count

    @property
    def stream(self) -> Substream:
        return self._stream
