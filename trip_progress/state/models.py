"""
State machine data models for trip progress tracking.

This module defines immutable data structures for a traveler's progress
through a multi-day itinerary: the stops of the active day, the day and trip
completion flags, and the outcome reported by each store operation.

Every model serializes to the camelCase document layout used by the browser
client's persisted store, so existing snapshots can be rehydrated as-is.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from ..utils.time import format_timestamp, parse_timestamp


class StopStatus(str, Enum):
    """Lifecycle status of a single stop."""
    COMPLETED = "completed"
    CURRENT = "current"
    UPCOMING = "upcoming"
    SKIPPED = "skipped"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({StopStatus.COMPLETED, StopStatus.SKIPPED})


class TransportMode(str, Enum):
    """How the traveler moves into a stop from the previous one."""
    GRAB_BIKE = "grab_bike"
    GRAB_CAR = "grab_car"
    WALK = "walk"
    CYCLO = "cyclo"
    TAXI = "taxi"
    BUS = "bus"
    BICYCLE = "bicycle"


class TransitionOutcome(str, Enum):
    """Result of a store operation."""
    APPLIED = "applied"
    UNCHANGED = "unchanged"          # Guarded no-op (already started, last day)
    UNKNOWN_TRIP = "unknown_trip"
    UNKNOWN_STOP = "unknown_stop"

    @property
    def applied(self) -> bool:
        return self is TransitionOutcome.APPLIED


@dataclass(frozen=True)
class Transport:
    """Descriptive leg into a stop. Never drives state."""
    mode: TransportMode
    duration_label: str = ""
    cost: Optional[float] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "mode": self.mode.value,
            "duration": self.duration_label,
        }
        if self.cost is not None:
            data["cost"] = self.cost
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Transport":
        return cls(
            mode=TransportMode(data["mode"]),
            duration_label=str(data.get("duration", "")),
            cost=data.get("cost"),
        )


@dataclass(frozen=True)
class TripStop:
    """A single planned activity or location within one day of a trip."""

    id: str
    name: str
    category: str = "activity"
    scheduled_time: str = ""                         # Display-only
    duration_label: str = ""                         # Display-only
    status: StopStatus = StopStatus.UPCOMING
    address: str = ""
    image_ref: str = ""
    transport: Optional[Transport] = None

    def with_status(self, status: StopStatus) -> "TripStop":
        """Copy of this stop with a different status."""
        return replace(self, status=status)

    def with_content_of(self, other: "TripStop") -> "TripStop":
        """Take every field from ``other`` except this stop's status."""
        return replace(other, status=self.status)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "type": self.category,
            "time": self.scheduled_time,
            "duration": self.duration_label,
            "status": self.status.value,
            "address": self.address,
            "image": self.image_ref,
        }
        if self.transport is not None:
            data["transport"] = self.transport.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TripStop":
        transport = data.get("transport")
        return cls(
            id=str(data["id"]),
            name=data["name"],
            category=data.get("type", "activity"),
            scheduled_time=str(data.get("time", "")),
            duration_label=str(data.get("duration", "")),
            status=StopStatus(data.get("status", StopStatus.UPCOMING.value)),
            address=data.get("address", ""),
            image_ref=data.get("image", ""),
            transport=Transport.from_dict(transport) if transport else None,
        )


@dataclass(frozen=True)
class ProgressSummary:
    """Counts and pointers derived from the active day's stops."""
    current_day: int
    total_days: int
    completed_count: int
    skipped_count: int
    remaining_count: int
    current_stop_id: Optional[str] = None
    current_index: Optional[int] = None


@dataclass(frozen=True)
class TripProgress:
    """Progress record for one trip. Owns the stops of ``current_day`` only."""

    trip_id: str
    trip_name: str
    trip_theme: str
    current_day: int
    total_days: int
    stops: tuple[TripStop, ...]
    day_completed: bool = False
    trip_completed: bool = False
    started_at: Optional[datetime] = None
    last_updated: Optional[datetime] = None
    # Bumped by every applied transition; orders remote sync intents.
    revision: int = 0

    def find_stop_index(self, stop_id: str) -> int:
        """Index of the stop in the active day, or -1."""
        for idx, stop in enumerate(self.stops):
            if stop.id == stop_id:
                return idx
        return -1

    def get_stop(self, stop_id: str) -> Optional[TripStop]:
        idx = self.find_stop_index(stop_id)
        return self.stops[idx] if idx >= 0 else None

    @property
    def current_stop(self) -> Optional[TripStop]:
        for stop in self.stops:
            if stop.status == StopStatus.CURRENT:
                return stop
        return None

    @property
    def is_last_day(self) -> bool:
        return self.current_day >= self.total_days

    @property
    def phase(self) -> str:
        """Coarse lifecycle label used in transition logs."""
        if self.trip_completed:
            return "trip_completed"
        if self.day_completed:
            return f"day_{self.current_day}_completed"
        return f"day_{self.current_day}_in_progress"

    def summary(self) -> ProgressSummary:
        completed = sum(1 for s in self.stops if s.status == StopStatus.COMPLETED)
        skipped = sum(1 for s in self.stops if s.status == StopStatus.SKIPPED)
        current_index = next(
            (idx for idx, s in enumerate(self.stops) if s.status == StopStatus.CURRENT),
            None
        )
        return ProgressSummary(
            current_day=self.current_day,
            total_days=self.total_days,
            completed_count=completed,
            skipped_count=skipped,
            remaining_count=len(self.stops) - completed - skipped,
            current_stop_id=self.stops[current_index].id if current_index is not None else None,
            current_index=current_index,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "tripId": self.trip_id,
            "tripName": self.trip_name,
            "tripTheme": self.trip_theme,
            "currentDay": self.current_day,
            "totalDays": self.total_days,
            "stops": [stop.to_dict() for stop in self.stops],
            "dayCompleted": self.day_completed,
            "tripCompleted": self.trip_completed,
            "startedAt": format_timestamp(self.started_at) if self.started_at else None,
            "lastUpdated": format_timestamp(self.last_updated) if self.last_updated else None,
            "revision": self.revision,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TripProgress":
        started_at = parse_timestamp(data.get("startedAt"))
        return cls(
            trip_id=str(data["tripId"]),
            trip_name=data["tripName"],
            trip_theme=data.get("tripTheme", ""),
            current_day=int(data["currentDay"]),
            total_days=int(data["totalDays"]),
            stops=tuple(TripStop.from_dict(s) for s in data.get("stops", [])),
            day_completed=bool(data.get("dayCompleted", False)),
            trip_completed=bool(data.get("tripCompleted", False)),
            started_at=started_at,
            last_updated=parse_timestamp(data.get("lastUpdated"), fallback=started_at),
            revision=int(data.get("revision", 0)),
        )


@dataclass(frozen=True)
class TransitionRecord:
    """What an applied stop transition changed, for logging and sync."""
    before: TripProgress
    after: TripProgress
    stop_id: Optional[str] = None
    previous_status: Optional[StopStatus] = None
    new_status: Optional[StopStatus] = None
    context: dict[str, Any] = field(default_factory=dict)

    @property
    def status_changed(self) -> bool:
        return self.previous_status != self.new_status

    @property
    def trip_just_completed(self) -> bool:
        return self.after.trip_completed and not self.before.trip_completed
