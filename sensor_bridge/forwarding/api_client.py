"""HTTP client for the sensor data collection API.

Sends one reading per request. No batching and no retry: a failed or
timed-out request raises ForwardError and the caller drops the reading.
"""

from __future__ import annotations

import logging
from typing import Mapping, Optional, Protocol

import requests

from ..domain.reading import SensorReading
from ..errors import ForwardError

logger = logging.getLogger(__name__)

_MAX_ERROR_BODY = 500


class Forwarder(Protocol):
    """Destination for resolved readings."""

    def send(self, sensor_id: str, value: float, timestamp_ms: int) -> None: ...


class APIClient:
    """POSTs readings as JSON to the collection endpoint."""

    def __init__(
        self,
        endpoint: str,
        timeout: float = 10.0,
        headers: Optional[Mapping[str, str]] = None,
        session: Optional[requests.Session] = None,
    ):
        self.endpoint = endpoint
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({"Content-Type": "application/json"})
        if headers:
            self._session.headers.update(dict(headers))

    def send(self, sensor_id: str, value: float, timestamp_ms: int) -> None:
        """Send a single reading.

        Raises:
            ForwardError: transport failure, timeout or non-2xx response.
        """
        body = SensorReading(sensor_id, value, timestamp_ms).to_api_payload()

        try:
            response = self._session.post(self.endpoint, json=body, timeout=self.timeout)
        except requests.Timeout as e:
            raise ForwardError(f"request to {self.endpoint} timed out after {self.timeout}s") from e
        except requests.RequestException as e:
            raise ForwardError(f"request to {self.endpoint} failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise ForwardError(
                f"API returned status {response.status_code}: {response.text[:_MAX_ERROR_BODY]}",
                status_code=response.status_code,
            )

        logger.debug(
            "[API] Sent sensor=%s value=%s status=%d",
            sensor_id,
            value,
            response.status_code,
        )

    def close(self) -> None:
        self._session.close()
