"""
Tests for the run log.
"""

from dre.data_models import ActionType
from dre.observability.run_log import (
    EventType,
    ModifierFaultEvent,
    ResolutionEvent,
    RunLog,
    get_run_log,
    reset_run_log,
)


class TestRecording:
    """Tests for recording resolutions."""

    def test_resolution_is_recorded(self, logged_engine, run_log, full_context):
        """Test that each resolve() adds a resolution event."""
        outcome = logged_engine.resolve(ActionType.MINING, full_context, "seed-1")

        events = run_log.get_resolutions()
        assert len(events) == 1
        event = events[0]
        assert isinstance(event, ResolutionEvent)
        assert event.event_type == EventType.RESOLUTION
        assert event.seed == "seed-1"
        assert event.action_type == "mining"
        assert event.natural_roll == outcome.natural_roll
        assert event.tier == outcome.tier.value
        assert event.total_roll == outcome.total_roll
        assert event.context == full_context.to_dict()
        assert event.sequence_number == 1

    def test_sequence_numbers_increase(self, logged_engine, run_log):
        """Test that events are numbered in order."""
        for i in range(3):
            logged_engine.resolve(ActionType.SCAVENGING, seed=f"s{i}")
        assert [e.sequence_number for e in run_log.get_events()] == [1, 2, 3]
        assert [e.sequence_number for e in run_log.get_events(since_sequence=1)] == [2, 3]

    def test_modifier_fault_is_recorded(self, make_engine, run_log, failing_source):
        """Test that an isolated source failure is logged as its own event."""
        engine = make_engine(sources=[failing_source("broken")], run_log=run_log)
        engine.resolve(ActionType.DERELICT, seed="s")

        faults = run_log.get_faults()
        assert len(faults) == 1
        assert isinstance(faults[0], ModifierFaultEvent)
        assert faults[0].source_name == "broken"
        assert faults[0].action_type == "derelict"
        assert "sensor offline" in faults[0].error
        assert len(run_log.get_resolutions()) == 1

    def test_engine_without_log_records_nothing(self, engine):
        """Test that engines without a run log leave the global log empty."""
        engine.resolve(ActionType.MINING, seed="s")
        assert get_run_log().get_event_count() == 0

    def test_pause(self, logged_engine, run_log):
        """Test that a paused log ignores events."""
        run_log.pause()
        logged_engine.resolve(ActionType.MINING, seed="s")
        assert run_log.is_paused()
        assert run_log.get_event_count() == 0
        run_log.resume()
        logged_engine.resolve(ActionType.MINING, seed="s")
        assert run_log.get_event_count() == 1

    def test_custom_event(self, run_log):
        """Test logging a custom event."""
        event = run_log.log_custom("session_note", {"note": "calibration run"})
        assert event.event_type == EventType.CUSTOM
        assert event.context == {"event_name": "session_note", "note": "calibration run"}


class TestSubscribers:
    """Tests for event subscribers."""

    def test_subscriber_receives_events(self, logged_engine, run_log):
        """Test that subscribers see each event as it is logged."""
        received = []
        run_log.subscribe(received.append)
        logged_engine.resolve(ActionType.MINING, seed="s")
        assert len(received) == 1
        assert received[0].snapshot["action_type"] == "mining"

        run_log.unsubscribe(received.append)
        logged_engine.resolve(ActionType.MINING, seed="s")
        assert len(received) == 1

    def test_failing_subscriber_is_contained(self, logged_engine, run_log):
        """Test that a raising subscriber neither breaks resolution nor other subscribers."""
        received = []

        def broken(event):
            raise RuntimeError("sink offline")

        run_log.subscribe(broken)
        run_log.subscribe(received.append)
        outcome = logged_engine.resolve(ActionType.MINING, seed="s")
        assert outcome is not None
        assert len(received) == 1


class TestPersistence:
    """Tests for serialization."""

    def test_round_trip(self, logged_engine, run_log, full_context):
        """Test to_dict/from_dict preserves events."""
        logged_engine.resolve(ActionType.AWAY_TEAM, full_context, "a")
        logged_engine.resolve(ActionType.COMBAT_FLEE, full_context, "b")

        restored = RunLog.from_dict(run_log.to_dict())
        assert [e.seed for e in restored.get_resolutions()] == ["a", "b"]
        assert restored.get_resolutions()[0].context == full_context.to_dict()
        assert restored.get_summary()["tiers"] == run_log.get_summary()["tiers"]

    def test_save_and_load(self, logged_engine, run_log, tmp_path):
        """Test saving to and loading from a file."""
        logged_engine.resolve(ActionType.DERELICT, seed="saved")
        path = tmp_path / "session.json"
        run_log.save(str(path))

        loaded = RunLog.load(str(path))
        assert loaded.get_event_count() == 1
        assert loaded.get_resolutions()[0].seed == "saved"

    def test_summary(self, logged_engine, run_log):
        """Test the summary counts."""
        logged_engine.resolve(ActionType.MINING, seed="x")
        summary = run_log.get_summary()
        assert summary["resolutions"] == 1
        assert summary["modifier_faults"] == 0
        assert sum(summary["tiers"].values()) == 1

    def test_format_log(self, logged_engine, run_log):
        """Test the human-readable listing."""
        logged_engine.resolve(ActionType.MINING, seed="x")
        text = run_log.format_log()
        assert "=== Run Log ===" in text
        assert "RESOLVE mining seed='x'" in text


class TestGlobalRunLog:
    """Tests for the shared instance."""

    def test_reset_clears_events(self):
        """Test that reset_run_log empties the shared log."""
        log = get_run_log()
        log.log_custom("note", {})
        assert reset_run_log() is log
        assert log.get_event_count() == 0
