#!/usr/bin/env python3
"""
Basic Usage Example - Trip Progress Engine

This script walks a traveler through a multi-day trip. It shows how to:
- Build the engine from configuration
- Start a trip and complete or skip stops
- Substitute a stop and roll over to the next day
- Flush queued sync intents through the log-only client

Run: python examples/basic_usage.py
"""

import sys
import tempfile
from pathlib import Path

# Add the project root to the Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

from trip_progress.engine import TripProgressEngine
from trip_progress.state.models import StopStatus, TripStop

STATUS_ICONS = {
    StopStatus.COMPLETED: "✅",
    StopStatus.SKIPPED: "⏭️ ",
    StopStatus.CURRENT: "📍",
    StopStatus.UPCOMING: "⏳",
}


def print_day(engine: TripProgressEngine, trip_id: str) -> None:
    """Print the active day's stops and completion flags."""
    progress = engine.get(trip_id)
    print(f"📅 {progress.trip_name} - day {progress.current_day}/{progress.total_days}")
    for stop in progress.stops:
        transport = f" ({stop.transport.mode.value}, {stop.transport.duration_label})" if stop.transport else ""
        print(f"  {STATUS_ICONS[stop.status]} {stop.scheduled_time:>5} {stop.name}{transport}")
    print(f"  day completed: {progress.day_completed}, trip completed: {progress.trip_completed}")
    print("-" * 50)


def main():
    """Run the walkthrough against throwaway storage."""
    print("🧭 Trip Progress Engine - Basic Usage")
    print("=" * 50)

    workdir = Path(tempfile.mkdtemp())
    engine = TripProgressEngine.create(
        config_dir=workdir,
        overrides={
            "persistence": {"db_path": str(workdir / "progress.db")},
            "sync": {"enabled": True, "method": "log", "outbox_path": str(workdir / "sync.db")},
            "logging": {"level": "WARNING"},
        },
        setup_logging=True,
    )

    trip_id = "demo-trip"
    engine.start(trip_id, "Beach & Culture Explorer")
    print_day(engine, trip_id)

    engine.mark_complete(trip_id, "1-1")
    engine.skip(trip_id, "1-2")
    engine.replace_stop(trip_id, "1-3", TripStop(
        id="alt-con-market",
        name="Con Market",
        category="shopping",
        scheduled_time="10:00",
        duration_label="1.5h",
    ))
    print_day(engine, trip_id)

    for stop in engine.get(trip_id).stops:
        if not stop.status.is_terminal:
            engine.mark_complete(trip_id, stop.id)
    print_day(engine, trip_id)

    engine.advance_to_next_day(trip_id)
    print_day(engine, trip_id)

    summary = engine.progress_summary(trip_id)
    print(f"📊 Summary: {summary}")

    report = engine.flush_sync()
    print(f"🔄 Sync: delivered {report.delivered}, left queued {report.retried}, "
          f"dead-lettered {report.dead_lettered}")

    print("\n📈 Engine stats:")
    for key, value in engine.get_stats().items():
        print(f"  {key}: {value}")


if __name__ == "__main__":
    main()
