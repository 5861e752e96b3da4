"""HTTP backend for the IngestionBackend protocol.

Talks to the add-in's remote service over JSON.  Every call is a single
request with its own timeout; bounded retry is available but disabled by
default (``backend_max_retries=0``).
"""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx

from sheetchat_ingest.config import PipelineConfig
from sheetchat_ingest.errors import BackendStatusError

logger = logging.getLogger("sheetchat_ingest")


def _error_detail(response: httpx.Response) -> str:
    """Pull ``detail`` out of an error body, falling back to the reason phrase."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("detail"):
        return str(body["detail"])
    return response.reason_phrase or "Unknown error occurred"


class HttpIngestionBackend:
    """httpx-backed ingestion service client.

    Satisfies :class:`~sheetchat_ingest.protocols.IngestionBackend` via
    structural subtyping (no inheritance required).

    Parameters
    ----------
    base_url:
        Service base URL.  Defaults to ``config.base_url``.
    config:
        Pipeline configuration providing endpoints, timeouts, and retry
        settings.
    """

    def __init__(
        self,
        base_url: str | None = None,
        config: PipelineConfig | None = None,
    ) -> None:
        self._config = config or PipelineConfig()
        self._base_url = (base_url or self._config.base_url).rstrip("/")

    def _request(
        self,
        method: str,
        endpoint: str,
        payload: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> dict[str, Any]:
        """Send a request and return the decoded JSON body.

        Raises:
            TimeoutError: The request timed out on every attempt.
            ConnectionError: Connection or protocol failure, or non-2xx
                status.  4xx responses are raised without retrying.
            ValueError: The response body is not JSON.
        """
        url = f"{self._base_url}{endpoint}"
        effective_timeout = (
            self._config.backend_timeout_seconds if timeout is None else timeout
        )

        last_exc: Exception | None = None
        max_attempts = 1 + self._config.backend_max_retries

        for attempt in range(max_attempts):
            try:
                if method == "GET":
                    response = httpx.get(url, timeout=effective_timeout)
                else:
                    response = httpx.post(url, json=payload, timeout=effective_timeout)
                if not response.is_success:
                    raise BackendStatusError(
                        response.status_code, _error_detail(response), endpoint
                    )
                return response.json()
            except BackendStatusError as exc:
                # Client errors are final.
                if exc.status_code < 500:
                    raise
                last_exc = exc
                reason = f"returned {exc.status_code}"
            except httpx.TimeoutException as exc:
                last_exc = exc
                reason = "timed out"
            except (httpx.HTTPError, ConnectionError) as exc:
                last_exc = exc
                reason = "failed"

            if attempt < max_attempts - 1:
                sleep_time = self._config.backend_backoff_base * (2 ** attempt)
                logger.warning(
                    "Request to %s %s (attempt %d/%d), retrying in %.1fs",
                    endpoint,
                    reason,
                    attempt + 1,
                    max_attempts,
                    sleep_time,
                )
                time.sleep(sleep_time)

        if isinstance(last_exc, httpx.TimeoutException):
            raise TimeoutError(
                f"Request to {endpoint} timed out after {max_attempts} attempts: {last_exc}"
            ) from last_exc
        if isinstance(last_exc, ConnectionError):
            raise last_exc

        raise ConnectionError(
            f"Request to {endpoint} failed after {max_attempts} attempts: {last_exc}"
        ) from last_exc

    # ------------------------------------------------------------------
    # Protocol methods
    # ------------------------------------------------------------------

    def fetch_config(self, timeout: float | None = None) -> dict[str, Any]:
        """``GET`` the batching limits."""
        return self._request(
            "GET",
            self._config.config_endpoint,
            timeout=self._config.config_timeout_seconds if timeout is None else timeout,
        )

    def initialize(
        self, payload: dict[str, Any], timeout: float | None = None
    ) -> dict[str, Any]:
        """Register a workbook and return the body carrying its ``file_id``."""
        return self._request(
            "POST", self._config.initialize_endpoint, payload, timeout=timeout
        )

    def store_cell_data(
        self, payload: dict[str, Any], timeout: float | None = None
    ) -> dict[str, Any]:
        """Deliver one batch of cell records."""
        return self._request(
            "POST", self._config.ingest_endpoint, payload, timeout=timeout
        )
