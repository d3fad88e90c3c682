"""Base classes for remote trip record synchronization."""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from ..errors import SyncDeliveryError
from ..logging.config import get_sync_logger
from .intents import SyncIntent


class SyncStatus(Enum):
    """Outcome of delivering one sync intent."""
    SUCCESS = "success"
    FAILED = "failed"
    RETRYING = "retrying"
    DEAD_LETTER = "dead_letter"


@dataclass
class SyncResult:
    """Result of a sync delivery attempt."""
    status: SyncStatus
    message: Optional[str] = None
    attempt_count: int = 1
    delivery_time_ms: Optional[int] = None
    error: Optional[Exception] = None


class TripSyncError(SyncDeliveryError):
    """Base exception for remote sync errors."""
    pass


class TripSyncRetryableError(TripSyncError):
    """Transient sync error (server error, network failure)."""
    pass


class TripSyncPermanentError(TripSyncError):
    """Sync error that should not be retried (rejected request, bad endpoint)."""
    pass


class BaseTripSync(ABC):
    """Base class for remote trip record clients."""

    def __init__(self, name: str, config: Any):
        self.name = name
        self.config = config
        self.logger = get_sync_logger(f"trip.sync.{name}")
        self._delivery_count = 0
        self._error_count = 0

    @abstractmethod
    def deliver(self, intents: list[SyncIntent]) -> list[SyncResult]:
        """
        Deliver sync intents to the remote trip record.

        Args:
            intents: Intents to deliver, in order

        Returns:
            One result per intent
        """
        pass

    @abstractmethod
    def health_check(self) -> bool:
        """Check if the remote trip record is reachable."""
        pass

    def deliver_with_retry(
        self,
        intents: list[SyncIntent],
        max_retries: int = 3,
        retry_delay: float = 1
    ) -> list[SyncResult]:
        """
        Deliver intents with retry logic.

        Permanent errors are not retried. When retries run out the result is
        ``DEAD_LETTER``; the caller decides whether the intent stays queued.

        Args:
            intents: Intents to deliver
            max_retries: Maximum number of retry attempts per intent
            retry_delay: Delay between retries in seconds

        Returns:
            One result per intent
        """
        results = []

        for intent in intents:
            attempt = 0
            last_error = None

            while attempt <= max_retries:
                try:
                    start_time = time.time()
                    delivery_results = self.deliver([intent])
                    delivery_time = int((time.time() - start_time) * 1000)

                    if delivery_results and delivery_results[0].status == SyncStatus.SUCCESS:
                        result = delivery_results[0]
                        result.delivery_time_ms = delivery_time
                        result.attempt_count = attempt + 1
                        results.append(result)
                        self._delivery_count += 1
                        break
                    else:
                        last_error = delivery_results[0].error if delivery_results else None
                        if isinstance(last_error, TripSyncPermanentError):
                            raise last_error

                except TripSyncPermanentError as e:
                    self._error_count += 1
                    results.append(SyncResult(
                        status=SyncStatus.FAILED,
                        message=f"Permanent error: {str(e)}",
                        attempt_count=attempt + 1,
                        error=e
                    ))
                    break

                except TripSyncRetryableError as e:
                    last_error = e

                except Exception as e:
                    # Unknown error - treat as retryable
                    last_error = e

                attempt += 1

                if attempt <= max_retries:
                    self.logger.warning(
                        "Sync attempt failed, retrying",
                        attempt=attempt,
                        retry_delay=retry_delay,
                        trip_id=intent.trip_id,
                        sync_kind=intent.kind.value,
                        error=str(last_error)
                    )
                    time.sleep(retry_delay)
                else:
                    self._error_count += 1
                    results.append(SyncResult(
                        status=SyncStatus.DEAD_LETTER,
                        message=f"Max retries exceeded: {str(last_error)}",
                        attempt_count=attempt,
                        error=last_error
                    ))

        return results

    def get_stats(self) -> dict[str, Any]:
        """Get delivery statistics."""
        return {
            "name": self.name,
            "delivery_count": self._delivery_count,
            "error_count": self._error_count,
            "success_rate": (
                self._delivery_count / (self._delivery_count + self._error_count)
                if (self._delivery_count + self._error_count) > 0 else 0.0
            )
        }

    def reset_stats(self):
        """Reset delivery statistics."""
        self._delivery_count = 0
        self._error_count = 0
