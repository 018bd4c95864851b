"""Seeded substreams and adapters.

All engine randomness flows from string seeds through named substreams.
"""

from dre.rng.substream import (
    RandomSource,
    Substream,
    derive_sub_seed,
    hash_to_seed,
    lerp,
    make_generator,
    make_stream,
)
from dre.rng.rng_adapter import SubstreamRngAdapter

__all__ = [
    "RandomSource",
    "Substream",
    "SubstreamRngAdapter",
    "derive_sub_seed",
    "hash_to_seed",
    "lerp",
    "make_generator",
    "make_stream",
]
