"""Pydantic data models and enumerations for sheetchat-ingest.

Covers the remote batching limits, the host read shapes, the per-pass
snapshots and cell records, the batches and their transmission summary,
and the final pass result.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    computed_field,
    model_validator,
)
from pydantic.alias_generators import to_camel

from sheetchat_ingest.errors import IngestError

CellValue = Union[str, int, float, bool, None]


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class PipelineStage(str, Enum):
    """Where a pass currently is.  Passes only move forward."""

    INIT = "init"
    EXTRACTING = "extracting"
    PREPARED = "prepared"
    TRANSMITTING = "transmitting"
    COMPLETE = "complete"
    FAILED = "failed"


class PipelineOutcome(str, Enum):
    """User-visible outcome of a pass."""

    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"


# ---------------------------------------------------------------------------
# Remote limits
# ---------------------------------------------------------------------------


class BatchConfig(BaseModel):
    """Batching limits served by the config endpoint.

    Immutable once fetched.  Field defaults are the conservative values used
    whenever the endpoint is unreachable or omits a field.
    """

    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )

    max_rows_per_batch: int = Field(default=250, ge=1)
    max_total_rows: int = Field(default=10_000, ge=1)
    max_total_cols: int = Field(default=100, ge=1)

    @classmethod
    def from_payload(cls, payload: Any) -> BatchConfig:
        """Build a config from a ``GET /config`` body.

        Absent or invalid fields fall back to their defaults one by one.

        Raises:
            ValueError: If *payload* is not a JSON object.
        """
        if not isinstance(payload, dict):
            raise ValueError(
                f"Config body must be a JSON object, got {type(payload).__name__}"
            )

        accepted: dict[str, int] = {}
        for name, field in cls.model_fields.items():
            alias = field.alias or name
            raw = payload.get(alias, payload.get(name))
            if raw is None or isinstance(raw, bool):
                continue
            try:
                cls.model_validate({alias: raw})
            except ValidationError:
                continue
            accepted[alias] = raw
        return cls.model_validate(accepted)


# ---------------------------------------------------------------------------
# Host read shapes
# ---------------------------------------------------------------------------


class UsedRange(BaseModel):
    """Occupied range of a sheet as reported by the host."""

    address: str
    row_count: int
    column_count: int


class RangeData(BaseModel):
    """Row-major contents of one range read."""

    values: list[list[Any]] = []
    formulas: list[list[Any]] = []
    display_text: list[list[str]] = []


# ---------------------------------------------------------------------------
# Per-pass snapshots
# ---------------------------------------------------------------------------


class SheetSnapshot(BaseModel):
    """One sheet's occupied range, computed once per pass."""

    name: str
    used_range_address: str
    row_count: int
    column_count: int


class WorkbookSnapshot(BaseModel):
    """Workbook name and sheet list for one pass."""

    name: str
    sheets: list[str]

    def to_initialize_payload(self) -> dict[str, Any]:
        """Body for ``POST /initialize``."""
        return {
            "workbookName": self.name,
            "totalWorksheets": len(self.sheets),
            "sheets": [{"sheet_name": sheet} for sheet in self.sheets],
        }


class CellRecord(BaseModel):
    """One non-empty cell.  Serialized with camelCase keys on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    sheet_name: str
    column: str
    row: int
    formula: str | None = None
    value: CellValue = None
    display_text: str = ""

    @staticmethod
    def has_content(value: Any, formula: Any, display_text: Any) -> bool:
        """True if at least one of the three cell facets is non-empty."""
        return any(part not in (None, "") for part in (value, formula, display_text))


class Batch(BaseModel):
    """Sheet-scoped group of cell records sent in one delivery."""

    sheet_name: str
    cells: list[CellRecord]
    total_cells_in_sheet: int
    batch_number: int

    def to_payload(self) -> dict[str, Any]:
        """Wire form used inside the ``batches`` list of a delivery."""
        return {
            "sheet_name": self.sheet_name,
            "cells": [cell.model_dump(by_alias=True) for cell in self.cells],
            "total_cells": self.total_cells_in_sheet,
            "batch_number": self.batch_number,
        }


class ExtractionResult(BaseModel):
    """Output of one extraction pass over a workbook."""

    cells: list[CellRecord] = []
    sheets: list[SheetSnapshot] = []
    skipped_sheets: dict[str, str] = {}
    error_details: list[IngestError] = []


# ---------------------------------------------------------------------------
# Transmission
# ---------------------------------------------------------------------------


class BatchFailure(BaseModel):
    """A batch that was not delivered."""

    batch_number: int
    sheet_name: str
    error: str
    code: str | None = None


class TransmissionSummary(BaseModel):
    """Outcome of delivering every batch of a pass."""

    total_cells: int = 0
    total_batches: int = 0
    successful_batches: int = 0
    failed_batches: int = 0
    errors: list[BatchFailure] = []
    cancelled: bool = False

    @computed_field  # type: ignore[prop-decorator]
    @property
    def success(self) -> bool:
        return self.failed_batches == 0

    @model_validator(mode="after")
    def _check_counts(self) -> TransmissionSummary:
        if self.successful_batches + self.failed_batches != self.total_batches:
            raise ValueError(
                "successful_batches + failed_batches must equal total_batches"
            )
        return self


# ---------------------------------------------------------------------------
# Pass result
# ---------------------------------------------------------------------------


class PipelineResult(BaseModel):
    """Final result returned by ``UploadRouter.process()``."""

    pass_id: str
    workbook_name: str
    file_id: str | None = None
    outcome: PipelineOutcome
    stage: PipelineStage
    batch_config: BatchConfig
    summary: TransmissionSummary | None = None
    sheets_extracted: list[str] = []
    skipped_sheets: dict[str, str] = {}
    errors: list[str] = []
    warnings: list[str] = []
    error_details: list[IngestError] = []
    processing_time_seconds: float = 0.0

    @property
    def user_message(self) -> str:
        """Single line suitable for the chat pane status area."""
        if self.outcome == PipelineOutcome.SUCCESS:
            return "Workbook uploaded. You can start chatting."
        if self.outcome == PipelineOutcome.PARTIAL and (
            self.summary is None or self.summary.failed_batches == 0
        ):
            return "Workbook partially uploaded: some sheets could not be read."
        if self.outcome == PipelineOutcome.PARTIAL:
            return (
                f"Workbook partially uploaded: {self.summary.failed_batches} of "
                f"{self.summary.total_batches} batches failed."
            )
        return "Workbook upload failed. Please try again."
