"""
Error classification for the trip progress engine.

Lookup errors cover unknown trips and stops (raised only in strict mode or by
explicit ``require`` calls). System failures cover persistence, remote sync
and template loading; those are logged and absorbed by the store, never
propagated out of a transition.
"""

from .lookup import (
    NotFoundError,
    TripNotFoundError,
    StopNotFoundError,
)
from .system_failures import (
    SystemFailureError,
    PersistenceError,
    SyncDeliveryError,
    TemplateError,
    ConfigError,
)

__all__ = [
    # Lookup Errors
    "NotFoundError",
    "TripNotFoundError",
    "StopNotFoundError",
    # System Failures
    "SystemFailureError",
    "PersistenceError",
    "SyncDeliveryError",
    "TemplateError",
    "ConfigError",
]
