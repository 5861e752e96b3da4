"""Remote batching limits with a fixed fallback.

``ConfigProvider.fetch_config()`` never raises: any failure yields the
default :class:`BatchConfig` and a warning.  A successful fetch is cached
for the life of the provider.
"""

from __future__ import annotations

import logging

from sheetchat_ingest.config import PipelineConfig
from sheetchat_ingest.errors import ConfigFetchError, ErrorCode, IngestError
from sheetchat_ingest.models import BatchConfig
from sheetchat_ingest.protocols import IngestionBackend

logger = logging.getLogger("sheetchat_ingest")

DEFAULT_BATCH_CONFIG = BatchConfig()


class ConfigProvider:
    """Fetches and caches :class:`BatchConfig` from the config endpoint."""

    def __init__(
        self,
        backend: IngestionBackend,
        config: PipelineConfig | None = None,
    ) -> None:
        self._backend = backend
        self._config = config or PipelineConfig()
        self._cached: BatchConfig | None = None
        self.last_error: IngestError | None = None

    @property
    def cached(self) -> BatchConfig | None:
        return self._cached

    def fetch_config(self) -> BatchConfig:
        """Return the session's limits, fetching them on first success."""
        if self._cached is not None:
            return self._cached

        try:
            batch_config = self._fetch()
        except ConfigFetchError as exc:
            self.last_error = exc.error
            logger.warning(
                "Using default batch config (%s): %s",
                ErrorCode.W_CONFIG_DEFAULTS.value,
                exc.message,
            )
            return DEFAULT_BATCH_CONFIG

        self._cached = batch_config
        self.last_error = None
        logger.info(
            "Batch config: max_rows_per_batch=%d max_total_rows=%d max_total_cols=%d",
            batch_config.max_rows_per_batch,
            batch_config.max_total_rows,
            batch_config.max_total_cols,
        )
        return batch_config

    def _fetch(self) -> BatchConfig:
        try:
            body = self._backend.fetch_config(
                timeout=self._config.config_timeout_seconds
            )
            return BatchConfig.from_payload(body)
        except (ConnectionError, TimeoutError, ValueError) as exc:
            raise ConfigFetchError(f"Config fetch failed: {exc}") from exc
        except Exception as exc:
            raise ConfigFetchError(
                f"Config fetch failed unexpectedly: {type(exc).__name__}: {exc}"
            ) from exc
