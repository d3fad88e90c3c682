"""Outbox drain loop for remote trip record synchronization."""

from dataclasses import dataclass, field

from ..logging.config import get_sync_logger
from ..persistence.sync_outbox import SyncOutbox
from .base import BaseTripSync, SyncStatus

logger = get_sync_logger(__name__)


@dataclass
class DrainReport:
    """What a single drain pass did."""
    delivered: int = 0
    retried: int = 0
    dead_lettered: int = 0
    held: int = 0                         # Queued behind an undelivered intent of the same trip
    blocked_trips: list[str] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return self.delivered + self.retried + self.dead_lettered


class SyncWorker:
    """
    Delivers queued sync intents to the remote trip record.

    Intents of one trip are delivered strictly in queue order: once an intent
    fails and stays queued, later intents of that trip wait for the next pass.
    Local trip state is never touched here.
    """

    def __init__(
        self,
        outbox: SyncOutbox,
        client: BaseTripSync,
        max_retries: int = 2,
        retry_delay: float = 1,
        max_attempts: int = 5,
        batch_size: int = 50
    ):
        self.outbox = outbox
        self.client = client
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.max_attempts = max_attempts
        self.batch_size = batch_size
        self.logger = logger

    def drain(self) -> DrainReport:
        """Attempt every pending intent once (with in-call retries)."""
        report = DrainReport()
        blocked: set[str] = set()

        for queued in self.outbox.pending(limit=self.batch_size):
            intent = queued.intent
            if intent.trip_id in blocked:
                report.held += 1
                continue

            results = self.client.deliver_with_retry(
                [intent],
                max_retries=self.max_retries,
                retry_delay=self.retry_delay
            )
            result = results[0] if results else None

            if result and result.status == SyncStatus.SUCCESS:
                self.outbox.mark_delivered(queued.id)
                report.delivered += 1
                continue

            error = result.message if result else "No delivery result"
            permanent = result is not None and result.status == SyncStatus.FAILED
            exhausted = queued.attempts + 1 >= self.max_attempts

            if permanent or exhausted:
                self.outbox.mark_failed(queued.id, error, dead_letter=True)
                report.dead_lettered += 1
                self.logger.error(
                    "Sync intent dead-lettered",
                    trip_id=intent.trip_id,
                    sync_kind=intent.kind.value,
                    intent_id=queued.id,
                    attempts=queued.attempts + 1,
                    error=error
                )
            else:
                self.outbox.mark_failed(queued.id, error)
                report.retried += 1
                blocked.add(intent.trip_id)
                self.logger.warning(
                    "Sync intent left queued",
                    trip_id=intent.trip_id,
                    sync_kind=intent.kind.value,
                    intent_id=queued.id,
                    attempts=queued.attempts + 1,
                    error=error
                )

        report.blocked_trips = sorted(blocked)
        if report.attempted or report.held:
            self.logger.info(
                "Sync drain finished",
                delivered=report.delivered,
                retried=report.retried,
                dead_lettered=report.dead_lettered,
                held=report.held
            )
        return report
