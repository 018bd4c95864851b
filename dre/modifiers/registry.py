"""
Modifier source registry and aggregation.

Sources are registered explicitly, evaluated in priority order and summed.
Registration order only affects the order of the breakdown shown to the
player; the total is a plain sum.

A source that raises is isolated: it contributes 0, the fault is logged
and recorded on the result, and the remaining sources still run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from dre.data_models import ActionContext, ActionType, ContextSection

logger = logging.getLogger(__name__)


ModifierFn = Callable[[ActionType, ActionContext], int]


class DuplicateSourceError(ValueError):
    """Raised when registering a source name that is already registered."""
    pass


@dataclass(frozen=True)
class ModifierSource:
    """A named pure function contributing a bonus or penalty."""
    name: str
    priority: int
    fn: ModifierFn
    reads: tuple[ContextSection, ...] = ()
    description: str = ""

    def evaluate(self, action_type: ActionType, context: ActionContext) -> int:
        return int(self.fn(action_type, context))


@dataclass
class ModifierResult:
    """Sum of all source contributions for one action."""
    total: int = 0
    breakdown: dict[str, int] = field(default_factory=dict)  # non-zero only
    faults: dict[str, str] = field(default_factory=dict)     # source -> error

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "breakdown": dict(self.breakdown),
            "faults": dict(self.faults),
        }


class ModifierRegistry:
    """
    Holds the active modifier sources.

    The source list is an immutable tuple replaced on every change, so an
    aggregate() in progress always sees one consistent snapshot.
    """

    def __init__(self, sources: Optional[Iterable[ModifierSource]] = None) -> None:
        self._sources: tuple[ModifierSource, ...] = ()
        self._sequence: dict[str, int] = {}
        self._next_sequence = 0
        for source in sources or ():
            self.register(source)

    def register(self, source: ModifierSource) -> None:
        """
        Add a source.

        Raises:
            DuplicateSourceError: If a source with that name is registered
        """
        if source.name in self._sequence:
            raise DuplicateSourceError(f"Modifier source {source.name!r} is already registered")
        self._sequence[source.name] = self._next_sequence
        self._next_sequence += 1
        self._sources = tuple(sorted(
            self._sources + (source,),
            key=lambda s: (s.priority, self._sequence[s.name]),
        ))
        logger.debug(f"Registered modifier source {source.name!r} (priority {source.priority})")

    def unregister(self, name: str) -> bool:
        """Remove a source by name. Returns False if it was not registered."""
        if name not in self._sequence:
            return False
        del self._sequence[name]
        self._sources = tuple(s for s in self._sources if s.name != name)
        logger.debug(f"Unregistered modifier source {name!r}")
        return True

    def get(self, name: str) -> Optional[ModifierSource]:
        for source in self._sources:
            if source.name == name:
                return source
        return None

    def sources(self) -> list[ModifierSource]:
        """Active sources in evaluation order."""
        return list(self._sources)

    def names(self) -> list[str]:
        return [s.name for s in self._sources]

    def __len__(self) -> int:
        return len(self._sources)

    def __contains__(self, name: object) -> bool:
        return name in self._sequence

    def aggregate(self, action_type: ActionType, context: ActionContext) -> ModifierResult:
        """Evaluate every source for this action and sum the results."""
        result = ModifierResult()
        for source in self._sources:
            try:
                value = source.evaluate(action_type, context)
            except Exception as e:
                logger.warning(
                    f"Modifier source {source.name!r} failed for {getattr(action_type, 'value', action_type)}: {e}"
                )
                result.faults[source.name] = f"{type(e).__name__}: {e}"
                continue
            if value != 0:
                result.breakdown[source.name] = value
                result.total += value
        return result


# Global registry instance
_registry: Optional[ModifierRegistry] = None


def build_default_registry() -> ModifierRegistry:
    """A fresh registry holding the built-in sources."""
    from dre.modifiers.sources import DEFAULT_SOURCES
    return ModifierRegistry(DEFAULT_SOURCES)


def get_default_registry() -> ModifierRegistry:
    """Get the global registry, populated with the built-in sources on first use."""
    global _registry
    if _registry is None:
        _registry = build_default_registry()
    return _registry


def reset_registry() -> None:
    """Discard the global registry (tests, plugin reloads)."""
    global _registry
    _registry = None
