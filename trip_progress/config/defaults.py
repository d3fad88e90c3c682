"""Default configuration parameters for the trip progress engine."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class EngineParams:
    """Transition behavior."""
    strict_ids: bool = False                  # Raise NotFoundError instead of no-op
    last_stop_ends_day: bool = True           # Finishing the last stop closes the day


@dataclass(frozen=True)
class TemplateParams:
    """Day-template resolution."""
    catalog_path: Optional[str] = None        # YAML catalog; None uses the bundled one
    fallback_total_days: int = 3              # Day count for unknown trip names
    fallback_theme: str = "Explorer"          # Theme for unknown trip names


@dataclass(frozen=True)
class PersistenceParams:
    """Durable snapshot of the trip mapping."""
    enabled: bool = True
    db_path: str = "trip_progress.db"
    storage_key: str = "anvago-trip-progress"
    version: int = 0


@dataclass(frozen=True)
class SyncParams:
    """Remote trip record mirroring."""
    enabled: bool = False
    method: str = "http"                      # http, log
    base_url: Optional[str] = None
    auth_token: Optional[str] = None
    headers: Optional[dict[str, str]] = None
    timeout_seconds: int = 10
    outbox_path: str = "trip_sync.db"
    max_retries: int = 2                      # In-call retries per drain pass
    retry_delay_seconds: float = 1.0
    max_attempts: int = 5                     # Drain passes before dead-lettering
    batch_size: int = 50


@dataclass(frozen=True)
class LoggingParams:
    """structlog output."""
    level: str = "INFO"
    format_json: bool = False


@dataclass(frozen=True)
class DefaultConfig:
    """Complete default configuration."""
    engine: EngineParams
    templates: TemplateParams
    persistence: PersistenceParams
    sync: SyncParams
    logging: LoggingParams


def get_default_config() -> DefaultConfig:
    """Get the default configuration instance."""
    return DefaultConfig(
        engine=EngineParams(),
        templates=TemplateParams(),
        persistence=PersistenceParams(),
        sync=SyncParams(),
        logging=LoggingParams(),
    )
