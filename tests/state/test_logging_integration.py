"""Tests for structured logging of trip state transitions."""

import logging
from datetime import datetime, timezone

import structlog
from structlog.testing import capture_logs

from trip_progress.logging.config import (
    configure_logging,
    get_logger,
    get_state_logger,
    log_state_transition,
)
from trip_progress.state.models import StopStatus
from trip_progress.state.transitions import TripTransitionHandler

NOW = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


class TestLoggingIntegration:
    """Test that transitions leave an audit trail."""

    def teardown_method(self):
        structlog.reset_defaults()

    def test_log_state_transition_fields(self):
        with capture_logs() as logs:
            log_state_transition(
                get_state_logger("test"),
                trip_id="trip-1",
                from_state="current",
                to_state="completed",
                trigger="complete",
                context={"stop_id": "1-1"},
            )

        entry = logs[0]
        assert entry["event"] == "State transition"
        assert entry["kind"] == "state_transition"
        assert entry["trip_id"] == "trip-1"
        assert entry["subsystem"] == "trip_state"
        assert entry["audit_trail"] is True
        assert entry["context"] == {"stop_id": "1-1"}

    def test_finish_stop_logs_transition(self, sample_stops):
        handler = TripTransitionHandler()
        progress = handler.create("trip-1", "Trip", "Theme", 3, sample_stops, NOW)

        with capture_logs() as logs:
            handler.finish_stop(progress, "a", StopStatus.COMPLETED, NOW)

        transitions = [e for e in logs if e.get("kind") == "state_transition"]
        assert len(transitions) == 1
        assert transitions[0]["trigger"] == "complete"
        assert transitions[0]["context"]["next_current"] == "b"

    def test_early_day_close_warns(self, sample_stops):
        handler = TripTransitionHandler()
        progress = handler.create("trip-1", "Trip", "Theme", 3, sample_stops, NOW)

        with capture_logs() as logs:
            handler.finish_stop(progress, "c", StopStatus.COMPLETED, NOW)

        warnings = [e for e in logs if e["log_level"] == "warning"]
        assert warnings[0]["event"] == "Day closed with unfinished stops"
        assert warnings[0]["unfinished"] == ["a", "b"]

    def test_configure_logging_json(self, caplog):
        configure_logging(level="INFO", format_json=True)
        caplog.set_level(logging.INFO)

        get_logger("trip.test").info("hello", trip_id="trip-1")

        assert any('"trip_id": "trip-1"' in r.getMessage() for r in caplog.records)
