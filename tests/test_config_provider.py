"""Tests for ConfigProvider -- remote limits with fallback and caching."""

from __future__ import annotations

import logging

from sheetchat_ingest.config_provider import DEFAULT_BATCH_CONFIG, ConfigProvider
from sheetchat_ingest.errors import ErrorCode
from sheetchat_ingest.models import BatchConfig


class TestFetchConfig:
    def test_parses_remote_limits(self, mock_backend, fast_config) -> None:
        mock_backend.config_body = {
            "maxRowsPerBatch": 100,
            "maxTotalRows": 5000,
            "maxTotalCols": 40,
        }
        provider = ConfigProvider(mock_backend, fast_config)

        config = provider.fetch_config()

        assert config == BatchConfig(
            max_rows_per_batch=100, max_total_rows=5000, max_total_cols=40
        )
        assert provider.last_error is None

    def test_success_is_cached(self, mock_backend, fast_config) -> None:
        provider = ConfigProvider(mock_backend, fast_config)

        first = provider.fetch_config()
        mock_backend.config_body = {"maxRowsPerBatch": 1}
        second = provider.fetch_config()

        assert first is second
        assert mock_backend.config_calls == 1
        assert provider.cached is first

    def test_network_error_returns_defaults(self, mock_backend, fast_config, caplog) -> None:
        mock_backend.config_error = ConnectionError("refused")
        provider = ConfigProvider(mock_backend, fast_config)

        with caplog.at_level(logging.WARNING, logger="sheetchat_ingest"):
            config = provider.fetch_config()

        assert config == DEFAULT_BATCH_CONFIG
        assert provider.last_error is not None
        assert provider.last_error.code == ErrorCode.E_CONFIG_FETCH
        assert any("default batch config" in r.message for r in caplog.records)

    def test_timeout_returns_defaults(self, mock_backend, fast_config) -> None:
        mock_backend.config_error = TimeoutError("slow")
        assert ConfigProvider(mock_backend, fast_config).fetch_config() == DEFAULT_BATCH_CONFIG

    def test_malformed_body_returns_defaults(self, mock_backend, fast_config) -> None:
        mock_backend.config_body = ["not", "an", "object"]
        assert ConfigProvider(mock_backend, fast_config).fetch_config() == DEFAULT_BATCH_CONFIG

    def test_unexpected_error_never_raises(self, mock_backend, fast_config) -> None:
        mock_backend.config_error = RuntimeError("bug in transport")
        assert ConfigProvider(mock_backend, fast_config).fetch_config() == DEFAULT_BATCH_CONFIG

    def test_failure_is_not_cached(self, mock_backend, fast_config) -> None:
        mock_backend.config_error = ConnectionError("refused")
        provider = ConfigProvider(mock_backend, fast_config)
        provider.fetch_config()

        mock_backend.config_error = None
        mock_backend.config_body = {"maxRowsPerBatch": 10}
        config = provider.fetch_config()

        assert config.max_rows_per_batch == 10
        assert mock_backend.config_calls == 2
        assert provider.last_error is None

    def test_partial_body_fills_defaults(self, mock_backend, fast_config) -> None:
        mock_backend.config_body = {"maxTotalRows": 300}
        config = ConfigProvider(mock_backend, fast_config).fetch_config()
        assert config.max_total_rows == 300
        assert config.max_rows_per_batch == DEFAULT_BATCH_CONFIG.max_rows_per_batch
