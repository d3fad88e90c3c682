"""Unit tests for the trip progress engine."""

from dataclasses import replace
from unittest.mock import Mock, patch

import pytest

from trip_progress.config.defaults import PersistenceParams, SyncParams, get_default_config
from trip_progress.engine import TripProgressEngine, build_sync_client
from trip_progress.state.models import TransitionOutcome
from trip_progress.sync.base import SyncResult, SyncStatus
from trip_progress.sync.http_sync import HttpTripSync
from trip_progress.sync.log_sync import LogTripSync


def _overrides(tmp_path, **sections):
    overrides = {
        "persistence": {"db_path": str(tmp_path / "progress.db")},
        "sync": {"outbox_path": str(tmp_path / "outbox.db")},
    }
    for name, values in sections.items():
        overrides.setdefault(name, {}).update(values)
    return overrides


class TestTripProgressEngine:
    """Test suite for the TripProgressEngine class."""

    def test_engine_initialization(self, tmp_path, clock) -> None:
        engine = TripProgressEngine.create(config_dir=tmp_path, overrides=_overrides(tmp_path), clock=clock)

        assert engine.snapshot_store is not None
        assert engine.worker is None
        assert engine.trip_ids() == []
        assert engine.flush_sync() is None

    def test_persistence_disabled(self, clock) -> None:
        config = replace(get_default_config(), persistence=PersistenceParams(enabled=False))

        engine = TripProgressEngine(config=config, clock=clock)

        assert engine.snapshot_store is None
        assert engine.start("trip-1", "Relaxation Retreat") == TransitionOutcome.APPLIED

    def test_create_uses_config_loader(self, tmp_path) -> None:
        with patch("trip_progress.engine.ConfigLoader") as mock_config_loader:
            loader = Mock()
            loader.load.return_value = get_default_config()
            mock_config_loader.create.return_value = loader

            with patch.object(TripProgressEngine, "__init__", return_value=None) as mock_init:
                TripProgressEngine.create(config_dir=str(tmp_path), overrides={"engine": {}})

            mock_config_loader.create.assert_called_once_with(tmp_path)
            loader.load.assert_called_once_with({"engine": {}})
            mock_init.assert_called_once()

    def test_operations_delegate_to_store(self, tmp_path, clock) -> None:
        engine = TripProgressEngine.create(config_dir=tmp_path, overrides=_overrides(tmp_path), clock=clock)

        engine.start("trip-1", "Foodie Paradise Trail")
        engine.mark_complete("trip-1", "1-1")
        engine.skip("trip-1", "1-2")

        summary = engine.progress_summary("trip-1")
        assert summary.completed_count == 1
        assert summary.skipped_count == 1
        assert engine.require("trip-1").current_stop.id == "1-3"

    def test_strict_mode_from_config(self, tmp_path, clock) -> None:
        from trip_progress.errors import TripNotFoundError

        engine = TripProgressEngine.create(
            config_dir=tmp_path,
            overrides=_overrides(tmp_path, engine={"strict_ids": True}),
            clock=clock,
        )

        with pytest.raises(TripNotFoundError):
            engine.reset("ghost")

    def test_custom_catalog(self, tmp_path, clock) -> None:
        catalog = tmp_path / "catalog.yaml"
        catalog.write_text(
            "fallback:\n  - {id: '1', name: Anywhere}\n"
            "trips:\n  Weekend:\n    1:\n      - {id: w1, name: Brunch}\n",
            encoding="utf-8",
        )

        engine = TripProgressEngine.create(
            config_dir=tmp_path,
            overrides=_overrides(tmp_path, templates={"catalog_path": str(catalog)}),
            clock=clock,
        )
        engine.start("trip-1", "Weekend")

        assert engine.get("trip-1").total_days == 1
        assert engine.get("trip-1").stops[0].name == "Brunch"

    def test_flush_sync_with_injected_client(self, tmp_path, clock) -> None:
        client = Mock()
        client.deliver_with_retry.side_effect = lambda intents, **kw: [
            SyncResult(status=SyncStatus.SUCCESS) for _ in intents
        ]
        engine = TripProgressEngine.create(
            config_dir=tmp_path,
            overrides=_overrides(tmp_path, sync={"enabled": True, "method": "log"}),
            sync_client=client,
            clock=clock,
        )

        engine.start("trip-1", "Beach & Culture Explorer")
        engine.skip("trip-1", "1-1")
        report = engine.flush_sync()

        assert report.delivered == 2
        assert client.deliver_with_retry.call_count == 2

    def test_get_stats(self, tmp_path, clock) -> None:
        engine = TripProgressEngine.create(
            config_dir=tmp_path,
            overrides=_overrides(tmp_path, sync={"enabled": True, "method": "log"}),
            clock=clock,
        )
        engine.start("trip-1", "Beach & Culture Explorer")

        stats = engine.get_stats()

        assert stats["tracked_trips"] == 1
        assert stats["completed_trips"] == 0
        assert stats["sync_enabled"] is True
        assert stats["outbox"]["total_intents"] == 0
        assert stats["sync_client"]["name"] == "log"

    def test_clear(self, tmp_path, clock) -> None:
        engine = TripProgressEngine.create(config_dir=tmp_path, overrides=_overrides(tmp_path), clock=clock)
        engine.start("trip-1", "Beach & Culture Explorer")

        engine.clear()

        reopened = TripProgressEngine.create(config_dir=tmp_path, overrides=_overrides(tmp_path), clock=clock)
        assert reopened.trip_ids() == []


class TestBuildSyncClient:
    """Test sync client selection."""

    def test_log_method(self) -> None:
        assert isinstance(build_sync_client(SyncParams(method="log")), LogTripSync)

    def test_http_method(self) -> None:
        client = build_sync_client(SyncParams(method="http", base_url="https://api.example.com"))
        assert isinstance(client, HttpTripSync)
