"""
Replay of recorded resolutions.

Every resolution is a pure function of (action type, context, seed), so a
run log holds everything needed to reproduce a session. ReplaySession
re-resolves each recorded event and reports any divergence in tier or
total roll, which would mean content, modifier sources or the RNG changed.
"""

from dataclasses import dataclass, field
from typing import Any, Optional
import json
import logging

from dre.data_models import ActionContext
from dre.resolution.engine import ResolutionEngine, get_engine

logger = logging.getLogger(__name__)


@dataclass
class RecordedResolution:
    """One resolution as captured in a run log."""
    sequence_number: int
    action_type: str
    seed: str
    context: dict[str, Any]
    tier: str
    total_roll: int


@dataclass
class ReplayMismatch:
    """A recorded resolution that no longer reproduces."""
    sequence_number: int
    action_type: str
    seed: str
    expected: dict[str, Any]
    actual: dict[str, Any]

    def __str__(self) -> str:
        return (
            f"#{self.sequence_number} {self.action_type} seed={self.seed!r}: "
            f"expected {self.expected}, got {self.actual}"
        )


@dataclass
class ReplayReport:
    """Outcome of replaying a session."""
    replayed: int = 0
    mismatches: list[ReplayMismatch] = field(default_factory=list)

    @property
    def matched(self) -> bool:
        return not self.mismatches

    def to_dict(self) -> dict[str, Any]:
        return {
            "replayed": self.replayed,
            "matched": self.matched,
            "mismatches": [str(m) for m in self.mismatches],
        }


@dataclass
class ReplaySession:
    """
    Re-resolves recorded resolutions.

    Build one with from_run_log() or load(), then call replay().
    """

    records: list[RecordedResolution] = field(default_factory=list)

    @classmethod
    def from_run_log(cls, log_data: dict[str, Any]) -> "ReplaySession":
        """
        Create a replay session from saved run log data.

        Args:
            log_data: Dictionary from RunLog.to_dict() or loaded JSON
        """
        records = []
        for event in log_data.get("events", []):
            if event.get("event_type") != "resolution":
                continue
            snapshot = event.get("snapshot", {})
            records.append(
                RecordedResolution(
                    sequence_number=event.get("sequence_number", 0),
                    action_type=event.get("action_type", ""),
                    seed=event.get("seed", ""),
                    context=event.get("context", {}),
                    tier=snapshot.get("tier", ""),
                    total_roll=snapshot.get("total_roll", 0),
                )
            )
        return cls(records=records)

    @classmethod
    def load(cls, filepath: str) -> "ReplaySession":
        """Load a replay session from a saved run log file."""
        with open(filepath, "r", encoding="utf-8") as f:
            return cls.from_run_log(json.load(f))

    def replay(self, engine: Optional[ResolutionEngine] = None) -> ReplayReport:
        """Re-resolve every record and compare tier and total roll."""
        engine = engine or get_engine()
        report = ReplayReport()

        # Replayed resolutions must not be recorded again.
        run_log = engine.run_log
        paused_here = run_log is not None and not run_log.is_paused()
        if paused_here:
            run_log.pause()
        try:
            for record in self.records:
                outcome = engine.resolve(record.action_type, ActionContext.from_dict(record.context), record.seed)
                report.replayed += 1
                if outcome.tier.value != record.tier or outcome.total_roll != record.total_roll:
                    report.mismatches.append(
                        ReplayMismatch(
                            sequence_number=record.sequence_number,
                            action_type=record.action_type,
                            seed=record.seed,
                            expected={"tier": record.tier, "total_roll": record.total_roll},
                            actual={"tier": outcome.tier.value, "total_roll": outcome.total_roll},
                        )
                    )
        finally:
            if paused_here:
                run_log.resume()

        if report.mismatches:
            logger.warning(f"Replay diverged on {len(report.mismatches)} of {report.replayed} resolutions")
        else:
            logger.info(f"Replay matched all {report.replayed} resolutions")
        return report

    def __len__(self) -> int:
        return len(self.records)

    def __repr__(self) -> str:
        return f"ReplaySession(records={len(self.records)})"
