"""
Trip progress store.

Holds one ``TripProgress`` per trip identifier and owns every stop status
and completion flag. Each operation computes a new record through the
transition handler and installs it in place of the old one; the full mapping
is then written to the snapshot store and any remote sync intents are queued.
Neither of those side effects can fail an operation: the in-memory mapping is
authoritative as soon as the record is installed.
"""

from datetime import datetime
from typing import Callable, Optional, Union

import structlog

from ..errors import StopNotFoundError, TripNotFoundError
from ..persistence.progress_store import ProgressSnapshotStore
from ..persistence.sync_outbox import SyncOutbox
from ..sync.intents import (
    SyncIntent,
    intents_for_finished_stop,
    intents_for_position,
    intents_for_substitution,
)
from ..templates.provider import TemplateProvider
from ..utils.time import utc_now
from .models import (
    ProgressSummary,
    StopStatus,
    TransitionOutcome,
    TripProgress,
    TripStop,
)
from .transitions import TripTransitionHandler

logger = structlog.get_logger(__name__)


class TripProgressStore:
    """In-process, durably persisted state machine keyed by trip identifier."""

    def __init__(
        self,
        provider: TemplateProvider,
        snapshot_store: Optional[ProgressSnapshotStore] = None,
        outbox: Optional[SyncOutbox] = None,
        strict_ids: bool = False,
        last_stop_ends_day: bool = True,
        clock: Callable[[], datetime] = utc_now
    ):
        self.provider = provider
        self.snapshot_store = snapshot_store
        self.outbox = outbox
        self.strict_ids = strict_ids
        self.clock = clock
        self.handler = TripTransitionHandler(last_stop_ends_day=last_stop_ends_day)
        self.logger = logger

        self.trips: dict[str, TripProgress] = (
            snapshot_store.load() if snapshot_store is not None else {}
        )

    # Lifecycle

    def start(self, trip_id: str, trip_name: str) -> TransitionOutcome:
        """
        Begin tracking a trip on day 1.

        Starting a trip that already has a record does nothing, so repeated
        initialization never wipes progress.
        """
        if trip_id in self.trips:
            self.logger.debug("Trip already started", trip_id=trip_id)
            return TransitionOutcome.UNCHANGED

        stops, total_days = self.provider.resolve(trip_name, 1)
        progress = self.handler.create(
            trip_id=trip_id,
            trip_name=trip_name,
            trip_theme=self.provider.theme_for(trip_name),
            total_days=total_days,
            stops=stops,
            now=self.clock()
        )
        self._install(progress)
        return TransitionOutcome.APPLIED

    def get(self, trip_id: str) -> Optional[TripProgress]:
        """Current record for the trip, or None if it was never started."""
        return self.trips.get(trip_id)

    def require(self, trip_id: str) -> TripProgress:
        """Current record for the trip; raises ``TripNotFoundError`` if absent."""
        progress = self.trips.get(trip_id)
        if progress is None:
            raise TripNotFoundError(trip_id)
        return progress

    def reset(self, trip_id: str) -> TransitionOutcome:
        """Restart the trip from a fresh day 1."""
        progress = self.trips.get(trip_id)
        if progress is None:
            return self._unknown_trip(trip_id, "reset")

        record = self.handler.restart(
            progress,
            self.provider.stops_for_day(progress.trip_name, 1),
            self.clock()
        )
        self._install(record.after, intents_for_position(record))
        return TransitionOutcome.APPLIED

    # Stop transitions

    def mark_complete(self, trip_id: str, stop_id: str) -> TransitionOutcome:
        """Complete a stop and make the next upcoming stop current."""
        return self._finish_stop(trip_id, stop_id, StopStatus.COMPLETED, "mark_complete")

    def skip(self, trip_id: str, stop_id: str) -> TransitionOutcome:
        """Skip a stop and make the next upcoming stop current."""
        return self._finish_stop(trip_id, stop_id, StopStatus.SKIPPED, "skip")

    def _finish_stop(
        self,
        trip_id: str,
        stop_id: str,
        terminal_status: StopStatus,
        operation: str
    ) -> TransitionOutcome:
        progress = self.trips.get(trip_id)
        if progress is None:
            return self._unknown_trip(trip_id, operation)

        record = self.handler.finish_stop(progress, stop_id, terminal_status, self.clock())
        if record is None:
            return self._unknown_stop(progress, stop_id, operation)

        self._install(record.after, intents_for_finished_stop(record))
        return TransitionOutcome.APPLIED

    def replace_stop(self, trip_id: str, old_stop_id: str, new_stop: TripStop) -> TransitionOutcome:
        """
        Substitute a stop's content (smart reroute).

        The stop keeps its position and its status, whatever status the
        replacement carries. Completion flags are not affected.
        """
        progress = self.trips.get(trip_id)
        if progress is None:
            return self._unknown_trip(trip_id, "replace_stop")

        record = self.handler.replace_stop(progress, old_stop_id, new_stop, self.clock())
        if record is None:
            return self._unknown_stop(progress, old_stop_id, "replace_stop")

        self._install(record.after, intents_for_substitution(record))
        return TransitionOutcome.APPLIED

    def advance_to_next_day(self, trip_id: str) -> TransitionOutcome:
        """
        Roll over to the next day with freshly seeded stops.

        The previous day's stops are discarded. Finishing the day first is up
        to the caller; only advancing past the last day is refused.
        """
        progress = self.trips.get(trip_id)
        if progress is None:
            return self._unknown_trip(trip_id, "advance_to_next_day")

        if progress.current_day >= progress.total_days:
            self.logger.info(
                "Already on the last day",
                trip_id=trip_id,
                current_day=progress.current_day,
                total_days=progress.total_days
            )
            return TransitionOutcome.UNCHANGED

        record = self.handler.advance_day(
            progress,
            self.provider.stops_for_day(progress.trip_name, progress.current_day + 1),
            self.clock()
        )
        self._install(record.after, intents_for_position(record))
        return TransitionOutcome.APPLIED

    def update_status(
        self,
        trip_id: str,
        stop_id: str,
        status: Union[StopStatus, str]
    ) -> TransitionOutcome:
        """
        Set a stop's status directly.

        Bypasses the guarded transitions: neither the current pointer nor the
        completion flags are recomputed.
        """
        status = StopStatus(status)

        progress = self.trips.get(trip_id)
        if progress is None:
            return self._unknown_trip(trip_id, "update_status")

        record = self.handler.set_status(progress, stop_id, status, self.clock())
        if record is None:
            return self._unknown_stop(progress, stop_id, "update_status")

        self._install(record.after)
        return TransitionOutcome.APPLIED

    # Store maintenance

    def trip_ids(self) -> list[str]:
        """Identifiers of every tracked trip."""
        return list(self.trips)

    def clear(self) -> None:
        """Evict every trip record, including any the snapshot could not read."""
        evicted = len(self.trips)
        self.trips = {}
        if self.snapshot_store is not None and not self.snapshot_store.clear():
            self.logger.warning("Trip progress snapshot not cleared")
        self.logger.info("Cleared trip progress store", evicted=evicted)

    def progress_summary(self, trip_id: str) -> Optional[ProgressSummary]:
        """Stop counts and current pointer for the active day."""
        progress = self.trips.get(trip_id)
        return progress.summary() if progress is not None else None

    # Internals

    def _install(self, progress: TripProgress, intents: Optional[list[SyncIntent]] = None) -> None:
        self.trips[progress.trip_id] = progress
        self._persist()

        if intents and self.outbox is not None:
            for intent in intents:
                self.outbox.enqueue(intent)

    def _persist(self) -> None:
        if self.snapshot_store is None:
            return
        if not self.snapshot_store.save(self.trips):
            self.logger.warning(
                "Trip progress not persisted; in-memory state kept",
                trip_count=len(self.trips)
            )

    def _unknown_trip(self, trip_id: str, operation: str) -> TransitionOutcome:
        if self.strict_ids:
            raise TripNotFoundError(trip_id, context={"operation": operation})

        self.logger.debug("Unknown trip ignored", trip_id=trip_id, operation=operation)
        return TransitionOutcome.UNKNOWN_TRIP

    def _unknown_stop(self, progress: TripProgress, stop_id: str, operation: str) -> TransitionOutcome:
        if self.strict_ids:
            raise StopNotFoundError(
                progress.trip_id,
                stop_id,
                current_day=progress.current_day,
                context={"operation": operation}
            )

        self.logger.debug(
            "Unknown stop ignored",
            trip_id=progress.trip_id,
            stop_id=stop_id,
            operation=operation
        )
        return TransitionOutcome.UNKNOWN_STOP
