"""
Modifier sources and their aggregation.
"""

from dre.modifiers.registry import (
    DuplicateSourceError,
    ModifierRegistry,
    ModifierResult,
    ModifierSource,
    build_default_registry,
    get_default_registry,
    reset_registry,
)
from dre.modifiers.sources import DEFAULT_SOURCES

__all__ = [
    "DEFAULT_SOURCES",
    "DuplicateSourceError",
    "ModifierRegistry",
    "ModifierResult",
    "ModifierSource",
    "build_default_registry",
    "get_default_registry",
    "reset_registry",
]
