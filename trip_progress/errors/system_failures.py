"""
System failure error classifications.

These exceptions represent failures of the collaborators around the state
machine: durable storage, the remote trip record, template documents and
configuration.
"""

from typing import Optional, Dict, Any


class SystemFailureError(Exception):
    """Base class for system-level failures."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = False


class PersistenceError(SystemFailureError):
    """Database or file system persistence failures."""

    def __init__(self, message: str, operation: Optional[str] = None,
                 target: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.operation = operation
        self.target = target


class SyncDeliveryError(SystemFailureError):
    """Remote trip record synchronization failures."""

    def __init__(self, message: str, sync_kind: Optional[str] = None,
                 trip_id: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.sync_kind = sync_kind
        self.trip_id = trip_id


class TemplateError(SystemFailureError):
    """Malformed day-template document."""

    def __init__(self, message: str, source: Optional[str] = None,
                 trip_name: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.source = source
        self.trip_name = trip_name


class ConfigError(SystemFailureError):
    """Configuration rejected by validation."""

    def __init__(self, message: str, errors: Optional[list] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.errors = errors or []
