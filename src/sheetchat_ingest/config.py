"""Configuration model for the sheetchat-ingest pipeline.

Provides ``PipelineConfig`` with all local tunable parameters and sensible
defaults.  Remote batching limits are not configured here; they arrive as a
:class:`~sheetchat_ingest.models.BatchConfig` from the config endpoint.
Supports loading overrides from YAML or JSON files via ``from_file()``.
"""

from __future__ import annotations

import json
import pathlib

from pydantic import BaseModel


class PipelineConfig(BaseModel):
    """All local tunable parameters with sensible defaults.

    Override individual values via constructor kwargs or load a complete
    config from a file with ``PipelineConfig.from_file(path)``.
    """

    # --- Identity ---
    client_version: str = "sheetchat_ingest:1.0.0"

    # --- Remote service ---
    base_url: str = "http://localhost:8000"
    config_endpoint: str = "/config"
    initialize_endpoint: str = "/initialize"
    ingest_endpoint: str = "/store-cell-data"

    # --- Batching and pacing ---
    cell_batch_size: int = 1500
    pacing_delay_seconds: float = 0.1

    # --- Backend resilience ---
    config_timeout_seconds: float = 10.0
    backend_timeout_seconds: float = 30.0
    backend_max_retries: int = 0
    backend_backoff_base: float = 1.0

    # --- Logging / PII safety ---
    log_cell_previews: bool = False

    @classmethod
    def from_file(cls, path: str) -> PipelineConfig:
        """Load configuration from a YAML or JSON file.

        File format is detected by extension: ``.yaml`` / ``.yml`` for YAML,
        ``.json`` for JSON.  Keys present in the file override the
        corresponding defaults; keys not present retain their defaults.

        Raises:
            FileNotFoundError: If *path* does not exist.
            ValueError: If the file extension is not recognized.
        """
        file_path = pathlib.Path(path)
        if not file_path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        suffix = file_path.suffix.lower()

        if suffix in (".yaml", ".yml"):
            import yaml

            with open(file_path) as fh:
                data = yaml.safe_load(fh)
        elif suffix == ".json":
            with open(file_path) as fh:
                data = json.load(fh)
        else:
            raise ValueError(
                f"Unsupported config file extension '{suffix}'. "
                "Use .yaml, .yml, or .json."
            )

        if data is None:
            data = {}

        return cls(**data)
