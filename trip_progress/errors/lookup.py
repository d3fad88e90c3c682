"""
Lookup error classifications for trip and stop identifiers.

These exceptions are only raised when the caller asks for them: through
strict mode or through ``TripProgressStore.require``. The default store
behavior treats an unknown identifier as a no-op.
"""

from typing import Optional, Dict, Any


class NotFoundError(LookupError):
    """Base class for unknown trip or stop identifiers."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = True


class TripNotFoundError(NotFoundError):
    """No progress record exists for the trip identifier."""

    def __init__(self, trip_id: str, **kwargs):
        super().__init__(f"Trip not started: {trip_id}", **kwargs)
        self.trip_id = trip_id


class StopNotFoundError(NotFoundError):
    """The stop identifier is not part of the trip's current day."""

    def __init__(self, trip_id: str, stop_id: str, current_day: Optional[int] = None,
                 **kwargs):
        super().__init__(f"Stop {stop_id} not found in trip {trip_id}", **kwargs)
        self.trip_id = trip_id
        self.stop_id = stop_id
        self.current_day = current_day
