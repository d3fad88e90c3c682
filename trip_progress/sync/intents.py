"""
Sync intents mirrored to the remote trip record.

A sync intent is a queued description of one remote call. Intents are built
from applied transitions only, and each carries a key that identifies the
transition it came from so enqueueing the same transition twice is harmless.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..state.models import StopStatus, TransitionRecord, TripProgress
from ..utils.time import format_timestamp


class SyncKind(str, Enum):
    """Remote trip record calls."""
    ADVANCE = "advance"              # POST /trips/{id}/advance
    SET_POSITION = "set_position"    # PATCH /trips/{id} {currentDayNumber, currentItemIndex}
    SET_STATUS = "set_status"        # PATCH /trips/{id} {status}
    LOG_EVENT = "log_event"          # POST /trips/{id}/events


class TripEventType(str, Enum):
    """Trip event types understood by the remote event log."""
    LOCATION_SKIPPED = "location_skipped"
    SCHEDULE_ADJUSTED = "schedule_adjusted"


@dataclass(frozen=True)
class SyncIntent:
    """One remote call waiting to be delivered."""
    trip_id: str
    kind: SyncKind
    intent_key: str
    payload: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "trip_id": self.trip_id,
            "kind": self.kind.value,
            "intent_key": self.intent_key,
            "payload": self.payload,
        }


def _intent_key(progress: TripProgress, kind: SyncKind, ref: str) -> str:
    """
    Key of one remote call: trip, kind, day, stop and the record's revision.

    The revision grows with every applied transition, so two transitions never
    share a key however close together they happen. The start stamp keeps a
    trip that was cleared and started again from reusing earlier keys.
    """
    started = format_timestamp(progress.started_at) if progress.started_at else "-"
    return f"{progress.trip_id}:{kind.value}:{progress.current_day}:{ref}:r{progress.revision}:{started}"


def intents_for_finished_stop(record: TransitionRecord) -> list[SyncIntent]:
    """
    Advance the remote pointer, logging an event for skipped stops.

    The remote advance call records the departure itself, so a completion
    queues the advance alone. A stop that was already in the same terminal
    status produces nothing, so repeated completions never move the remote
    pointer twice.
    """
    if not record.status_changed:
        return []

    after = record.after
    intents = [
        SyncIntent(
            trip_id=after.trip_id,
            kind=SyncKind.ADVANCE,
            intent_key=_intent_key(after, SyncKind.ADVANCE, record.stop_id),
        ),
    ]

    if record.new_status == StopStatus.SKIPPED:
        stop = after.get_stop(record.stop_id)
        intents.append(SyncIntent(
            trip_id=after.trip_id,
            kind=SyncKind.LOG_EVENT,
            intent_key=_intent_key(after, SyncKind.LOG_EVENT, record.stop_id),
            payload={
                "type": TripEventType.LOCATION_SKIPPED.value,
                "message": f"Skipped {stop.name}",
                "data": {"stopId": stop.id, "day": after.current_day},
            },
        ))

    if record.trip_just_completed:
        intents.append(SyncIntent(
            trip_id=after.trip_id,
            kind=SyncKind.SET_STATUS,
            intent_key=_intent_key(after, SyncKind.SET_STATUS, "completed"),
            payload={"status": "completed"},
        ))

    return intents


def intents_for_position(record: TransitionRecord) -> list[SyncIntent]:
    """Day advance and reset both move the remote record to a day's first stop."""
    after = record.after
    payload: dict[str, Any] = {
        "currentDayNumber": after.current_day,
        "currentItemIndex": 0,
    }
    if record.before.trip_completed and not after.trip_completed:
        payload["status"] = "active"

    return [SyncIntent(
        trip_id=after.trip_id,
        kind=SyncKind.SET_POSITION,
        intent_key=_intent_key(after, SyncKind.SET_POSITION, f"day{after.current_day}"),
        payload=payload,
    )]


def intents_for_substitution(record: TransitionRecord) -> list[SyncIntent]:
    """Record a smart reroute in the remote event log."""
    after = record.after
    return [SyncIntent(
        trip_id=after.trip_id,
        kind=SyncKind.LOG_EVENT,
        intent_key=_intent_key(after, SyncKind.LOG_EVENT, f"replace-{record.stop_id}"),
        payload={
            "type": TripEventType.SCHEDULE_ADJUSTED.value,
            "message": f"Replaced {record.context.get('old_name')} with {record.context.get('new_name')}",
            "data": {
                "oldStopId": record.stop_id,
                "newStopId": record.context.get("new_stop_id"),
                "day": after.current_day,
            },
        },
    )]
