"""
Trip progress engine coordinator.

Wires configuration, the template provider, the snapshot store, the sync
outbox and the remote sync client around a ``TripProgressStore`` and exposes
the store operations to presentation code.
"""

from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Optional, Union

import structlog

from .config.defaults import DefaultConfig, SyncParams, get_default_config
from .config.loader import ConfigLoader
from .config.trip_sync import LogSyncConfig, SyncMethod, http_config_from_params
from .logging.config import configure_logging
from .persistence.progress_store import ProgressSnapshotStore
from .persistence.sync_outbox import SyncOutbox
from .state.models import (
    ProgressSummary,
    StopStatus,
    TransitionOutcome,
    TripProgress,
    TripStop,
)
from .state.store import TripProgressStore
from .sync.base import BaseTripSync
from .sync.http_sync import HttpTripSync
from .sync.log_sync import LogTripSync
from .sync.worker import DrainReport, SyncWorker
from .templates.provider import StaticTemplateProvider, TemplateProvider
from .utils.time import utc_now

logger = structlog.get_logger(__name__)


def build_sync_client(params: SyncParams) -> BaseTripSync:
    """Create the sync client selected by ``sync.method``."""
    method = SyncMethod(params.method)
    if method == SyncMethod.LOG:
        return LogTripSync("log", LogSyncConfig())
    return HttpTripSync("http", http_config_from_params(params))


class TripProgressEngine:
    """
    Main coordinator for trip progress tracking.

    Operation → Transition → Snapshot → Sync outbox → (flush) Remote record
    """

    def __init__(
        self,
        config: Optional[DefaultConfig] = None,
        provider: Optional[TemplateProvider] = None,
        sync_client: Optional[BaseTripSync] = None,
        clock: Callable[[], datetime] = utc_now
    ) -> None:
        self.config = config or get_default_config()
        self.logger = logger

        self.provider = provider or self._build_provider()

        persistence = self.config.persistence
        self.snapshot_store = (
            ProgressSnapshotStore(
                db_path=persistence.db_path,
                storage_key=persistence.storage_key,
                version=persistence.version
            )
            if persistence.enabled else None
        )

        sync = self.config.sync
        self.outbox: Optional[SyncOutbox] = None
        self.worker: Optional[SyncWorker] = None
        if sync.enabled:
            self.outbox = SyncOutbox(sync.outbox_path)
            self.worker = SyncWorker(
                outbox=self.outbox,
                client=sync_client or build_sync_client(sync),
                max_retries=sync.max_retries,
                retry_delay=sync.retry_delay_seconds,
                max_attempts=sync.max_attempts,
                batch_size=sync.batch_size
            )

        self.store = TripProgressStore(
            provider=self.provider,
            snapshot_store=self.snapshot_store,
            outbox=self.outbox,
            strict_ids=self.config.engine.strict_ids,
            last_stop_ends_day=self.config.engine.last_stop_ends_day,
            clock=clock
        )

        self.logger.info(
            "Trip progress engine initialized",
            trips=len(self.store.trips),
            persistence=persistence.enabled,
            sync=sync.enabled
        )

    @classmethod
    def create(
        cls,
        config_dir: Optional[Union[str, Path]] = None,
        overrides: Optional[dict[str, Any]] = None,
        setup_logging: bool = False,
        **kwargs
    ) -> "TripProgressEngine":
        """
        Build an engine from layered configuration.

        Args:
            config_dir: Directory holding ``trip_progress.yaml``
            overrides: Highest-precedence configuration values
            setup_logging: Configure structlog from the ``logging`` section
            **kwargs: Passed to the constructor (provider, sync_client, clock)
        """
        loader = ConfigLoader.create(Path(config_dir) if config_dir else None)
        config = loader.load(overrides)

        if setup_logging:
            configure_logging(level=config.logging.level, format_json=config.logging.format_json)

        return cls(config=config, **kwargs)

    def _build_provider(self) -> TemplateProvider:
        params = self.config.templates
        options = {
            "fallback_total_days": params.fallback_total_days,
            "fallback_theme": params.fallback_theme,
        }
        if params.catalog_path:
            return StaticTemplateProvider.from_yaml(params.catalog_path, **options)
        return StaticTemplateProvider.default(**options)

    # Store operations

    def start(self, trip_id: str, trip_name: str) -> TransitionOutcome:
        return self.store.start(trip_id, trip_name)

    def get(self, trip_id: str) -> Optional[TripProgress]:
        return self.store.get(trip_id)

    def require(self, trip_id: str) -> TripProgress:
        return self.store.require(trip_id)

    def reset(self, trip_id: str) -> TransitionOutcome:
        return self.store.reset(trip_id)

    def mark_complete(self, trip_id: str, stop_id: str) -> TransitionOutcome:
        return self.store.mark_complete(trip_id, stop_id)

    def skip(self, trip_id: str, stop_id: str) -> TransitionOutcome:
        return self.store.skip(trip_id, stop_id)

    def replace_stop(self, trip_id: str, old_stop_id: str, new_stop: TripStop) -> TransitionOutcome:
        return self.store.replace_stop(trip_id, old_stop_id, new_stop)

    def advance_to_next_day(self, trip_id: str) -> TransitionOutcome:
        return self.store.advance_to_next_day(trip_id)

    def update_status(
        self,
        trip_id: str,
        stop_id: str,
        status: Union[StopStatus, str]
    ) -> TransitionOutcome:
        return self.store.update_status(trip_id, stop_id, status)

    def trip_ids(self) -> list[str]:
        return self.store.trip_ids()

    def clear(self) -> None:
        self.store.clear()

    def progress_summary(self, trip_id: str) -> Optional[ProgressSummary]:
        return self.store.progress_summary(trip_id)

    # Remote sync

    def flush_sync(self) -> Optional[DrainReport]:
        """Deliver queued sync intents; None when sync is disabled."""
        if self.worker is None:
            return None
        return self.worker.drain()

    def get_stats(self) -> dict[str, Any]:
        """Engine statistics for monitoring."""
        stats: dict[str, Any] = {
            "tracked_trips": len(self.store.trips),
            "completed_trips": sum(1 for p in self.store.trips.values() if p.trip_completed),
            "persistence_enabled": self.snapshot_store is not None,
            "sync_enabled": self.worker is not None,
        }
        if self.worker is not None:
            stats["outbox"] = self.outbox.get_stats()
            stats["sync_client"] = self.worker.client.get_stats()
        return stats
