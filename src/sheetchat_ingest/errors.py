"""Normalized error codes, structured error model, and raisable exceptions.

``ErrorCode`` values equal their names so they are stable strings suitable
for metrics and alerting.  ``IngestError`` is the serializable record that
ends up in results; the ``PipelineError`` family wraps it for control flow.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class ErrorCode(str, Enum):
    """Error codes for the workbook upload pipeline.

    Codes prefixed with ``E_`` are errors; codes prefixed with ``W_`` are
    non-fatal warnings.
    """

    # Config
    E_CONFIG_FETCH = "E_CONFIG_FETCH"

    # Extraction
    E_HOST_EXTRACTION = "E_HOST_EXTRACTION"
    E_ADDRESS_FORMAT = "E_ADDRESS_FORMAT"

    # Transmission
    E_TRANSMIT_TIMEOUT = "E_TRANSMIT_TIMEOUT"
    E_TRANSMIT_CONNECT = "E_TRANSMIT_CONNECT"
    E_TRANSMIT_HTTP = "E_TRANSMIT_HTTP"
    E_TRANSMIT_CANCELLED = "E_TRANSMIT_CANCELLED"

    # Initialization
    E_INITIALIZE_FAILED = "E_INITIALIZE_FAILED"

    # Warnings (non-fatal)
    W_CONFIG_DEFAULTS = "W_CONFIG_DEFAULTS"
    W_SHEET_EMPTY = "W_SHEET_EMPTY"
    W_SHEET_TOO_LARGE = "W_SHEET_TOO_LARGE"


class IngestError(BaseModel):
    """Structured error with code, message, and location context.

    ``sheet_name`` and ``batch_number`` locate the failure; ``stage`` names
    the pipeline stage (``config``, ``extract``, ``initialize``,
    ``transmit``) that produced it.
    """

    code: ErrorCode
    message: str
    stage: str | None = None
    sheet_name: str | None = None
    batch_number: int | None = None
    recoverable: bool = False


class PipelineError(Exception):
    """Raisable exception wrapping an :class:`IngestError` data model.

    Carries the structured error as the ``.error`` attribute for inspection
    and serialization.  Subclasses fix the default code and stage.
    """

    default_code: ErrorCode = ErrorCode.E_HOST_EXTRACTION
    default_stage: str | None = None
    default_recoverable: bool = False

    def __init__(self, message: str, **kwargs: object) -> None:
        kwargs.setdefault("code", self.default_code)
        kwargs.setdefault("stage", self.default_stage)
        kwargs.setdefault("recoverable", self.default_recoverable)
        self.error = IngestError(message=message, **kwargs)  # type: ignore[arg-type]
        super().__init__(message)

    @property
    def code(self) -> ErrorCode:
        return self.error.code

    @property
    def message(self) -> str:
        return self.error.message

    @property
    def stage(self) -> str | None:
        return self.error.stage

    @property
    def recoverable(self) -> bool:
        return self.error.recoverable


class ConfigFetchError(PipelineError):
    """The remote config could not be fetched or parsed.  Recovered with defaults."""

    default_code = ErrorCode.E_CONFIG_FETCH
    default_stage = "config"
    default_recoverable = True


class HostExtractionError(PipelineError):
    """A host read failed.  Per sheet, the sheet contributes zero records."""

    default_code = ErrorCode.E_HOST_EXTRACTION
    default_stage = "extract"
    default_recoverable = True


class FormatError(PipelineError, ValueError):
    """A range address string did not match ``<col><row>:<col><row>``."""

    default_code = ErrorCode.E_ADDRESS_FORMAT
    default_stage = "extract"


class TransmissionError(PipelineError):
    """A single batch delivery failed.  Recorded in the summary, never fatal."""

    default_code = ErrorCode.E_TRANSMIT_CONNECT
    default_stage = "transmit"
    default_recoverable = True


class InitializationError(PipelineError):
    """The backend rejected ``/initialize``; no ``file_id`` exists for the pass."""

    default_code = ErrorCode.E_INITIALIZE_FAILED
    default_stage = "initialize"


class BackendStatusError(ConnectionError):
    """The remote service answered with a non-2xx status.

    ``detail`` is the ``detail`` field of the error body when present.
    """

    def __init__(self, status_code: int, detail: str, endpoint: str = "") -> None:
        self.status_code = status_code
        self.detail = detail
        self.endpoint = endpoint
        super().__init__(f"Server error ({status_code}) from {endpoint}: {detail}")
