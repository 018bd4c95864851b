"""
Run Log for resolution tracking.

Records every resolution (seed, action type, serialized context and a
compact telemetry snapshot) and every isolated modifier-source fault, so a
session can be inspected, shipped to an external telemetry sink through a
subscriber, or replayed seed by seed.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Optional
import json
import logging

from dre.data_models import ActionContext, ResolutionOutcome
from dre.narrative.output import telemetry_snapshot

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Types of events that can be logged."""

    RESOLUTION = "resolution"  # One resolve() call
    MODIFIER_FAULT = "modifier_fault"  # A modifier source raised
    CUSTOM = "custom"  # Custom event


@dataclass
class LogEvent:
    """Base class for all logged events."""

    # Subclasses set the correct event_type in __post_init__
    event_type: EventType = EventType.CUSTOM
    timestamp: datetime = field(default_factory=datetime.now)
    sequence_number: int = 0
    context: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "event_type": self.event_type.value,
            "timestamp": self.timestamp.isoformat(),
            "sequence_number": self.sequence_number,
            "context": self.context,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LogEvent":
        """Create from dictionary."""
        return cls(
            event_type=EventType(data["event_type"]),
            timestamp=datetime.fromisoformat(data["timestamp"]),
            sequence_number=data.get("sequence_number", 0),
            context=data.get("context", {}),
        )


@dataclass
class ResolutionEvent(LogEvent):
    """A resolved action; `context` holds the serialized ActionContext."""

    seed: str = ""
    action_type: str = ""
    natural_roll: int = 0
    target_difficulty: int = 0
    modifier_total: int = 0
    snapshot: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.event_type = EventType.RESOLUTION

    @property
    def tier(self) -> str:
        return self.snapshot.get("tier", "")

    @property
    def total_roll(self) -> int:
        return self.snapshot.get("total_roll", 0)

    def to_dict(self) -> dict[str, Any]:
        base = super().to_dict()
        base.update(
            {
                "seed": self.seed,
                "action_type": self.action_type,
                "natural_roll": self.natural_roll,
                "target_difficulty": self.target_difficulty,
                "modifier_total": self.modifier_total,
                "snapshot": self.snapshot,
            }
        )
        return base

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ResolutionEvent":
        return cls(
            timestamp=datetime.fromisoformat(data["timestamp"]),
            sequence_number=data.get("sequence_number", 0),
            context=data.get("context", {}),
            seed=data.get("seed", ""),
            action_type=data.get("action_type", ""),
            natural_roll=data.get("natural_roll", 0),
            target_difficulty=data.get("target_difficulty", 0),
            modifier_total=data.get("modifier_total", 0),
            snapshot=data.get("snapshot", {}),
        )

    def __str__(self) -> str:
        return (
            f"[{self.sequence_number}] RESOLVE {self.action_type} seed={self.seed!r}: "
            f"d20={self.natural_roll} {self.modifier_total:+d} = {self.total_roll} "
            f"vs {self.target_difficulty} -> {self.tier}"
        )


@dataclass
class ModifierFaultEvent(LogEvent):
    """A modifier source that raised and was skipped."""

    source_name: str = ""
    action_type: str = ""
    error: str = ""

    def __post_init__(self):
        self.event_type = EventType.MODIFIER_FAULT

    def to_dict(self) -> dict[str, Any]:
        base = super().to_dict()
        base.update(
            {
                "source_name": self.source_name,
                "action_type": self.action_type,
                "error": self.error,
            }
        )
        return base

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ModifierFaultEvent":
        return cls(
            timestamp=datetime.fromisoformat(data["timestamp"]),
            sequence_number=data.get("sequence_number", 0),
            context=data.get("context", {}),
            source_name=data.get("source_name", ""),
            action_type=data.get("action_type", ""),
            error=data.get("error", ""),
        )

    def __str__(self) -> str:
        return f"[{self.sequence_number}] FAULT {self.source_name} ({self.action_type}): {self.error}"


_EVENT_CLASSES = {
    EventType.RESOLUTION: ResolutionEvent,
    EventType.MODIFIER_FAULT: ModifierFaultEvent,
}


class RunLog:
    """
    Ordered log of resolution events.

    Use get_run_log() for the shared session log; engines can also be given
    their own instance.
    """

    def __init__(self):
        self._events: list[LogEvent] = []
        self._sequence: int = 0
        self._session_start: datetime = datetime.now()
        self._subscribers: list[Callable[[LogEvent], None]] = []
        self._paused: bool = False

    def reset(self) -> None:
        """Reset the log for a new session."""
        self._events = []
        self._sequence = 0
        self._session_start = datetime.now()
        logger.info("RunLog reset")

    def pause(self) -> None:
        """Pause logging (e.g., during replay)."""
        self._paused = True

    def resume(self) -> None:
        """Resume logging."""
        self._paused = False

    def is_paused(self) -> bool:
        return self._paused

    def subscribe(self, callback: Callable[[LogEvent], None]) -> None:
        """Subscribe to receive events as they are logged."""
        self._subscribers.append(callback)

    def unsubscribe(self, callback: Callable[[LogEvent], None]) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def _log_event(self, event: LogEvent) -> None:
        if self._paused:
            return

        self._sequence += 1
        event.sequence_number = self._sequence
        self._events.append(event)

        # Subscriber failures never reach the resolution caller
        for subscriber in self._subscribers:
            try:
                subscriber(event)
            except Exception as e:
                logger.warning(f"Subscriber error: {e}")

    def log_resolution(
        self,
        outcome: ResolutionOutcome,
        context: ActionContext,
    ) -> ResolutionEvent:
        """Log a completed resolution."""
        event = ResolutionEvent(
            seed=outcome.seed,
            action_type=outcome.action_type.value,
            natural_roll=outcome.natural_roll,
            target_difficulty=outcome.target_difficulty,
            modifier_total=outcome.modifier_total,
            snapshot=telemetry_snapshot(outcome),
            context=context.to_dict(),
        )
        self._log_event(event)
        return event

    def log_modifier_fault(self, source_name: str, action_type: str, error: str) -> ModifierFaultEvent:
        """Log a modifier source that raised during aggregation."""
        event = ModifierFaultEvent(source_name=source_name, action_type=action_type, error=error)
        self._log_event(event)
        return event

    def log_custom(self, event_name: str, details: dict[str, Any]) -> LogEvent:
        """Log a custom event."""
        event = LogEvent(
            event_type=EventType.CUSTOM,
            context={"event_name": event_name, **details},
        )
        self._log_event(event)
        return event

    def get_events(
        self,
        event_type: Optional[EventType] = None,
        since_sequence: int = 0,
    ) -> list[LogEvent]:
        """
        Get logged events.

        Args:
            event_type: Filter by event type (None = all)
            since_sequence: Only events after this sequence number
        """
        events = [e for e in self._events if e.sequence_number > since_sequence]
        if event_type:
            events = [e for e in events if e.event_type == event_type]
        return events

    def get_resolutions(self) -> list[ResolutionEvent]:
        return [e for e in self._events if isinstance(e, ResolutionEvent)]

    def get_faults(self) -> list[ModifierFaultEvent]:
        return [e for e in self._events if isinstance(e, ModifierFaultEvent)]

    def get_event_count(self) -> int:
        return len(self._events)

    def get_summary(self) -> dict[str, Any]:
        """Get a summary of the run log."""
        tiers: dict[str, int] = {}
        for event in self.get_resolutions():
            tiers[event.tier] = tiers.get(event.tier, 0) + 1
        return {
            "session_start": self._session_start.isoformat(),
            "total_events": len(self._events),
            "resolutions": len(self.get_resolutions()),
            "modifier_faults": len(self.get_faults()),
            "tiers": tiers,
            "last_sequence": self._sequence,
        }

    def to_dict(self) -> dict[str, Any]:
        """Serialize the entire log to a dictionary."""
        return {
            "session_start": self._session_start.isoformat(),
            "sequence": self._sequence,
            "events": [e.to_dict() for e in self._events],
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, default=str)

    def save(self, filepath: str) -> None:
        """Save the log to a file."""
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(self.to_json())
        logger.info(f"RunLog saved to {filepath}")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RunLog":
        """Rebuild a log from to_dict() output."""
        log = cls()
        log._session_start = datetime.fromisoformat(data["session_start"])
        log._sequence = data.get("sequence", 0)
        for event_data in data.get("events", []):
            event_cls = _EVENT_CLASSES.get(EventType(event_data["event_type"]), LogEvent)
            log._events.append(event_cls.from_dict(event_data))
        return log

    @classmethod
    def load(cls, filepath: str) -> "RunLog":
        """Load a log from a file."""
        with open(filepath, "r", encoding="utf-8") as f:
            log = cls.from_dict(json.load(f))
        logger.info(f"RunLog loaded from {filepath}: {log.get_event_count()} events")
        return log

    def format_log(
        self,
        event_types: Optional[list[EventType]] = None,
        max_events: Optional[int] = None,
    ) -> str:
        """Format the log as a human-readable string."""
        lines = [
            "=== Run Log ===",
            f"Session: {self._session_start.isoformat()}",
            f"Total Events: {len(self._events)}",
            "",
        ]

        events = self._events
        if event_types:
            events = [e for e in events if e.event_type in event_types]
        if max_events:
            events = events[-max_events:]

        for event in events:
            lines.append(str(event))

        return "\n".join(lines)


# Singleton access
_run_log: Optional[RunLog] = None


def get_run_log() -> RunLog:
    """Get the global RunLog instance."""
    global _run_log
    if _run_log is None:
        _run_log = RunLog()
    return _run_log


def reset_run_log() -> RunLog:
    """Reset and return the global RunLog instance."""
    log = get_run_log()
    log.reset()
    return log
