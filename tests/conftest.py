"""Pytest configuration and shared fixtures."""

import pytest
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, List

from trip_progress.persistence.progress_store import ProgressSnapshotStore
from trip_progress.persistence.sync_outbox import SyncOutbox
from trip_progress.state.models import StopStatus, TripStop
from trip_progress.state.store import TripProgressStore
from trip_progress.templates.provider import StaticTemplateProvider


class SteppingClock:
    """Deterministic clock that moves one second per reading."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        self.now = self.now + timedelta(seconds=1)
        return self.now


@pytest.fixture
def clock() -> Callable[[], datetime]:
    """Clock starting at 2024-03-01 08:00 UTC."""
    return SteppingClock(datetime(2024, 3, 1, 8, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def provider() -> StaticTemplateProvider:
    """Provider backed by the bundled catalog."""
    return StaticTemplateProvider.default()


@pytest.fixture
def store(provider, clock) -> TripProgressStore:
    """In-memory store with no persistence and no sync."""
    return TripProgressStore(provider=provider, clock=clock)


@pytest.fixture
def snapshot_store(tmp_path: Path) -> ProgressSnapshotStore:
    return ProgressSnapshotStore(db_path=str(tmp_path / "progress.db"))


@pytest.fixture
def outbox(tmp_path: Path) -> SyncOutbox:
    return SyncOutbox(db_path=str(tmp_path / "outbox.db"))


@pytest.fixture
def sample_stops() -> List[TripStop]:
    """Three-stop day positioned on its first stop."""
    return [
        TripStop(id="a", name="Alpha", status=StopStatus.CURRENT),
        TripStop(id="b", name="Bravo"),
        TripStop(id="c", name="Charlie"),
    ]

