"""HTTP client for the remote trip record API."""

import json
import socket
from typing import Any, Optional
from urllib.error import HTTPError, URLError
from urllib.parse import quote, urlparse
from urllib.request import Request, urlopen

from ..config.trip_sync import HttpSyncConfig
from .base import (
    BaseTripSync,
    SyncResult,
    SyncStatus,
    TripSyncPermanentError,
    TripSyncRetryableError,
)
from .intents import SyncIntent, SyncKind


class HttpTripSync(BaseTripSync):
    """Mirrors sync intents onto the trips REST endpoints."""

    def __init__(self, name: str, config: HttpSyncConfig):
        super().__init__(name, config)
        self.config: HttpSyncConfig = config

        parsed = urlparse(config.base_url)
        if not parsed.scheme or not parsed.netloc:
            raise TripSyncPermanentError(f"Invalid URL: {config.base_url}")

    def build_request(self, intent: SyncIntent) -> tuple[str, str, Optional[dict[str, Any]]]:
        """Map an intent to ``(method, url, json_body)``."""
        trip_url = f"{self.config.base_url}/trips/{quote(intent.trip_id, safe='')}"

        if intent.kind == SyncKind.ADVANCE:
            return "POST", f"{trip_url}/advance", None
        if intent.kind in (SyncKind.SET_POSITION, SyncKind.SET_STATUS):
            return "PATCH", trip_url, intent.payload
        if intent.kind == SyncKind.LOG_EVENT:
            return "POST", f"{trip_url}/events", intent.payload

        raise TripSyncPermanentError(f"Unsupported sync kind: {intent.kind}")

    def deliver(self, intents: list[SyncIntent]) -> list[SyncResult]:
        """Deliver intents one request at a time."""
        results = []

        for intent in intents:
            try:
                results.append(self._deliver_single_intent(intent))

            except (TripSyncPermanentError, TripSyncRetryableError) as e:
                results.append(SyncResult(
                    status=SyncStatus.FAILED,
                    message=str(e),
                    error=e
                ))

            except Exception as e:
                self.logger.error(
                    "Unexpected error delivering sync intent",
                    trip_id=intent.trip_id,
                    sync_kind=intent.kind.value,
                    error=str(e)
                )
                results.append(SyncResult(
                    status=SyncStatus.FAILED,
                    message=f"Unexpected error: {str(e)}",
                    error=e
                ))

        return results

    def _deliver_single_intent(self, intent: SyncIntent) -> SyncResult:
        method, url, body = self.build_request(intent)

        headers = {
            'Accept': 'application/json',
            'User-Agent': 'trip-progress/0.1'
        }
        data = None
        if body is not None:
            try:
                data = json.dumps(body).encode('utf-8')
            except (TypeError, ValueError) as e:
                raise TripSyncPermanentError(f"JSON encoding error: {str(e)}") from e
            headers['Content-Type'] = 'application/json'
            headers['Content-Length'] = str(len(data))

        if self.config.auth_token:
            headers['Authorization'] = f"Bearer {self.config.auth_token}"
        if self.config.headers:
            headers.update(self.config.headers)

        req = Request(url, data=data, headers=headers, method=method)

        try:
            with urlopen(req, timeout=self.config.timeout_seconds) as response:
                response_code = response.getcode()
                response_data = response.read().decode('utf-8')

        except HTTPError as e:
            error_msg = f"HTTP {e.code}: {e.reason}"
            self.logger.warning(
                "Sync HTTP error",
                trip_id=intent.trip_id,
                sync_kind=intent.kind.value,
                error_code=e.code,
                error_reason=str(e.reason)
            )
            if e.code >= 500 or e.code == 429:
                raise TripSyncRetryableError(error_msg, sync_kind=intent.kind.value,
                                             trip_id=intent.trip_id) from e
            raise TripSyncPermanentError(error_msg, sync_kind=intent.kind.value,
                                         trip_id=intent.trip_id) from e

        except (OSError, URLError, socket.timeout) as e:
            error_msg = f"Network error: {str(e)}"
            self.logger.warning(
                "Sync network error",
                trip_id=intent.trip_id,
                sync_kind=intent.kind.value,
                error=str(e)
            )
            raise TripSyncRetryableError(error_msg, sync_kind=intent.kind.value,
                                         trip_id=intent.trip_id) from e

        if 200 <= response_code < 300:
            self.logger.info(
                "Sync intent delivered",
                trip_id=intent.trip_id,
                sync_kind=intent.kind.value,
                response_code=response_code
            )
            return SyncResult(
                status=SyncStatus.SUCCESS,
                message=f"HTTP {response_code}: {response_data[:100]}"
            )

        error_msg = f"HTTP {response_code}: {response_data[:200]}"
        if response_code >= 500:
            raise TripSyncRetryableError(error_msg, sync_kind=intent.kind.value,
                                         trip_id=intent.trip_id)
        raise TripSyncPermanentError(error_msg, sync_kind=intent.kind.value,
                                     trip_id=intent.trip_id)

    def health_check(self) -> bool:
        """Check if the API host is reachable."""
        try:
            parsed = urlparse(self.config.base_url)
            health_url = f"{parsed.scheme}://{parsed.netloc}"

            req = Request(health_url, method='HEAD')
            with urlopen(req, timeout=5) as response:
                return 200 <= response.getcode() < 400

        except Exception as e:
            self.logger.warning(
                "Health check failed",
                error=str(e)
            )
            return False
