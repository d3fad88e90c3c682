"""Log-only sync client for running without a remote trip API."""

from ..config.trip_sync import LogSyncConfig
from .base import BaseTripSync, SyncResult, SyncStatus
from .intents import SyncIntent


class LogTripSync(BaseTripSync):
    """Writes each intent to the sync log and reports success."""

    def __init__(self, name: str, config: LogSyncConfig):
        super().__init__(name, config)
        self.config: LogSyncConfig = config

    def deliver(self, intents: list[SyncIntent]) -> list[SyncResult]:
        results = []
        log = getattr(self.logger, self.config.level.lower(), self.logger.info)

        for intent in intents:
            log(
                "Sync intent",
                trip_id=intent.trip_id,
                sync_kind=intent.kind.value,
                intent_key=intent.intent_key,
                payload=intent.payload
            )
            results.append(SyncResult(status=SyncStatus.SUCCESS, message="Logged"))

        return results

    def health_check(self) -> bool:
        return True
