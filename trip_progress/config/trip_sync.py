"""Configuration for remote trip record synchronization clients."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .defaults import SyncParams


class SyncMethod(Enum):
    """Supported sync client implementations."""
    HTTP = "http"
    LOG = "log"


@dataclass(frozen=True)
class HttpSyncConfig:
    """Configuration for the HTTP trip API client."""
    base_url: str
    headers: Optional[dict[str, str]] = None
    auth_token: Optional[str] = None
    timeout_seconds: int = 10


@dataclass(frozen=True)
class LogSyncConfig:
    """Configuration for the log-only client used in local development."""
    level: str = "info"


def http_config_from_params(params: SyncParams) -> HttpSyncConfig:
    """Build the HTTP client configuration from the ``sync`` config section."""
    if not params.base_url:
        raise ValueError("sync.base_url is required for the http sync method")

    return HttpSyncConfig(
        base_url=params.base_url.rstrip("/"),
        headers=dict(params.headers) if params.headers else None,
        auth_token=params.auth_token,
        timeout_seconds=params.timeout_seconds,
    )
