"""
Trip progress transition logic.

Every function here takes a ``TripProgress`` and returns a new one; nothing
is mutated in place and nothing is persisted. The store decides whether to
install the result. Stop lookups that fail return ``None`` so the caller can
report an unknown stop without any state having changed.
"""

from dataclasses import replace
from datetime import datetime
from typing import Optional

from ..logging.config import get_state_logger, log_state_transition
from .models import (
    StopStatus,
    TransitionRecord,
    TripProgress,
    TripStop,
)

state_logger = get_state_logger(__name__)


class TripTransitionHandler:
    """Applies stop, day and lifecycle transitions to trip progress records."""

    def __init__(self, last_stop_ends_day: bool = True):
        self.last_stop_ends_day = last_stop_ends_day
        self.state_logger = state_logger

    def create(
        self,
        trip_id: str,
        trip_name: str,
        trip_theme: str,
        total_days: int,
        stops: list[TripStop],
        now: datetime
    ) -> TripProgress:
        """Fresh record positioned on the first stop of day 1."""
        progress = TripProgress(
            trip_id=trip_id,
            trip_name=trip_name,
            trip_theme=trip_theme,
            current_day=1,
            total_days=max(1, total_days),
            stops=tuple(stops),
            day_completed=False,
            trip_completed=False,
            started_at=now,
            last_updated=now,
        )

        log_state_transition(
            self.state_logger,
            trip_id=trip_id,
            from_state="none",
            to_state=progress.phase,
            trigger="start",
            context={
                "trip_name": trip_name,
                "total_days": progress.total_days,
                "stop_count": len(progress.stops),
            }
        )
        return progress

    def finish_stop(
        self,
        progress: TripProgress,
        stop_id: str,
        terminal_status: StopStatus,
        now: datetime
    ) -> Optional[TransitionRecord]:
        """
        Move a stop to a terminal status and hand ``current`` on.

        When no stop is left current, the first unfinished stop in order
        becomes current; walking the day in order this is always the next
        stop. A stop that is still current elsewhere keeps the pointer, so at
        most one stop is current. Day completion is reached when every stop
        is terminal or, with ``last_stop_ends_day``, as soon as the final
        stop is finished. Trip completion additionally needs every stop
        terminal on the last day. Neither flag is cleared here once set.
        """
        if not terminal_status.is_terminal:
            raise ValueError(f"Not a terminal stop status: {terminal_status.value}")

        stop_index = progress.find_stop_index(stop_id)
        if stop_index == -1:
            return None

        previous_status = progress.stops[stop_index].status
        is_last_stop = stop_index == len(progress.stops) - 1

        updated_stops = list(progress.stops)
        updated_stops[stop_index] = updated_stops[stop_index].with_status(terminal_status)

        next_current = None
        if not any(s.status == StopStatus.CURRENT for s in updated_stops):
            for idx, stop in enumerate(updated_stops):
                if stop.status == StopStatus.UPCOMING:
                    updated_stops[idx] = stop.with_status(StopStatus.CURRENT)
                    next_current = stop.id
                    break

        all_done = all(s.status.is_terminal for s in updated_stops)
        day_completed = (
            progress.day_completed
            or all_done
            or (self.last_stop_ends_day and is_last_stop)
        )
        trip_completed = progress.trip_completed or (all_done and progress.is_last_day)

        updated = replace(
            progress,
            stops=tuple(updated_stops),
            day_completed=day_completed,
            trip_completed=trip_completed,
            last_updated=now,
            revision=progress.revision + 1,
        )

        log_state_transition(
            self.state_logger,
            trip_id=progress.trip_id,
            from_state=previous_status.value,
            to_state=terminal_status.value,
            trigger="complete" if terminal_status == StopStatus.COMPLETED else "skip",
            context={
                "stop_id": stop_id,
                "day": progress.current_day,
                "is_last_stop": is_last_stop,
                "all_done": all_done,
                "next_current": next_current,
                "day_completed": day_completed,
                "trip_completed": trip_completed,
            }
        )

        if day_completed and not progress.day_completed and not all_done:
            self.state_logger.warning(
                "Day closed with unfinished stops",
                trip_id=progress.trip_id,
                day=progress.current_day,
                unfinished=[s.id for s in updated_stops if not s.status.is_terminal],
            )

        return TransitionRecord(
            before=progress,
            after=updated,
            stop_id=stop_id,
            previous_status=previous_status,
            new_status=terminal_status,
        )

    def replace_stop(
        self,
        progress: TripProgress,
        stop_id: str,
        new_stop: TripStop,
        now: datetime
    ) -> Optional[TransitionRecord]:
        """Swap a stop's content in place, keeping its position and status."""
        stop_index = progress.find_stop_index(stop_id)
        if stop_index == -1:
            return None

        old_stop = progress.stops[stop_index]
        substituted = old_stop.with_content_of(new_stop)
        stops = list(progress.stops)
        stops[stop_index] = substituted

        self.state_logger.info(
            "Stop substituted",
            trip_id=progress.trip_id,
            day=progress.current_day,
            old_stop_id=stop_id,
            new_stop_id=substituted.id,
            new_stop_name=substituted.name,
            status=old_stop.status.value,
        )

        return TransitionRecord(
            before=progress,
            after=replace(progress, stops=tuple(stops), last_updated=now,
                          revision=progress.revision + 1),
            stop_id=stop_id,
            previous_status=old_stop.status,
            new_status=substituted.status,
            context={"old_name": old_stop.name, "new_stop_id": substituted.id,
                     "new_name": substituted.name},
        )

    def set_status(
        self,
        progress: TripProgress,
        stop_id: str,
        status: StopStatus,
        now: datetime
    ) -> Optional[TransitionRecord]:
        """
        Assign a status without any of the guarded bookkeeping.

        Completion flags and the current pointer are not recomputed.
        """
        stop_index = progress.find_stop_index(stop_id)
        if stop_index == -1:
            return None

        previous_status = progress.stops[stop_index].status
        stops = list(progress.stops)
        stops[stop_index] = stops[stop_index].with_status(status)

        log_state_transition(
            self.state_logger,
            trip_id=progress.trip_id,
            from_state=previous_status.value,
            to_state=status.value,
            trigger="update_status",
            context={"stop_id": stop_id, "day": progress.current_day}
        )

        return TransitionRecord(
            before=progress,
            after=replace(progress, stops=tuple(stops), last_updated=now,
                          revision=progress.revision + 1),
            stop_id=stop_id,
            previous_status=previous_status,
            new_status=status,
        )

    def advance_day(
        self,
        progress: TripProgress,
        stops: list[TripStop],
        now: datetime
    ) -> TransitionRecord:
        """Move to the next day with the given freshly seeded stops."""
        updated = replace(
            progress,
            current_day=progress.current_day + 1,
            stops=tuple(stops),
            day_completed=False,
            trip_completed=False,
            last_updated=now,
            revision=progress.revision + 1,
        )

        log_state_transition(
            self.state_logger,
            trip_id=progress.trip_id,
            from_state=progress.phase,
            to_state=updated.phase,
            trigger="advance_day",
            context={
                "previous_day_completed": progress.day_completed,
                "stop_count": len(stops),
            }
        )

        if not progress.day_completed:
            self.state_logger.warning(
                "Advanced past an unfinished day",
                trip_id=progress.trip_id,
                day=progress.current_day,
            )

        return TransitionRecord(before=progress, after=updated)

    def restart(
        self,
        progress: TripProgress,
        stops: list[TripStop],
        now: datetime
    ) -> TransitionRecord:
        """Back to day 1 with fresh stops; name, theme and day count are kept."""
        updated = replace(
            progress,
            current_day=1,
            stops=tuple(stops),
            day_completed=False,
            trip_completed=False,
            last_updated=now,
            revision=progress.revision + 1,
        )

        log_state_transition(
            self.state_logger,
            trip_id=progress.trip_id,
            from_state=progress.phase,
            to_state=updated.phase,
            trigger="reset",
        )

        return TransitionRecord(before=progress, after=updated)
