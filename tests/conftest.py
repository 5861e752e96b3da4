"""Shared test fixtures for sheetchat-ingest tests.

Provides an in-memory host satisfying ``SpreadsheetHost``, a recording
backend satisfying ``IngestionBackend``, and a ``fast_config`` fixture with
pacing disabled.
"""

from __future__ import annotations

from typing import Any

import pytest

from sheetchat_ingest.addressing import (
    column_index_to_letter,
    column_letter_to_index,
    parse_range_address,
)
from sheetchat_ingest.config import PipelineConfig
from sheetchat_ingest.models import CellRecord, RangeData, UsedRange


# ---------------------------------------------------------------------------
# Mock collaborators
# ---------------------------------------------------------------------------


class MockWorkbookHost:
    """In-memory host satisfying ``SpreadsheetHost`` protocol.

    Each sheet is a rectangular grid of values anchored at an origin cell.
    Names in ``fail_used_range`` / ``fail_reads`` raise ``RuntimeError``.
    """

    def __init__(self) -> None:
        self.sheets: dict[str, dict[str, Any]] = {}
        self.read_calls: list[tuple[str, str]] = []
        self.fail_used_range: set[str] = set()
        self.fail_reads: set[str] = set()

    def add_sheet(
        self,
        name: str,
        values: list[list[Any]],
        formulas: list[list[Any]] | None = None,
        origin: str = "A1",
    ) -> None:
        bounds = parse_range_address(origin)
        self.sheets[name] = {
            "values": values,
            "formulas": formulas,
            "row": bounds.start_row,
            "col": column_letter_to_index(bounds.start_col),
        }

    def list_sheet_names(self) -> list[str]:
        return list(self.sheets)

    def get_used_range(self, sheet_name: str) -> UsedRange | None:
        if sheet_name in self.fail_used_range:
            raise RuntimeError(f"host refused used range for {sheet_name}")
        sheet = self.sheets[sheet_name]
        values = sheet["values"]
        if not values or not values[0]:
            return None
        rows, cols = len(values), len(values[0])
        start = f"{column_index_to_letter(sheet['col'])}{sheet['row']}"
        end = f"{column_index_to_letter(sheet['col'] + cols - 1)}{sheet['row'] + rows - 1}"
        return UsedRange(
            address=f"{sheet_name}!{start}:{end}", row_count=rows, column_count=cols
        )

    def read_range(self, sheet_name: str, address: str) -> RangeData:
        self.read_calls.append((sheet_name, address))
        if sheet_name in self.fail_reads:
            raise RuntimeError(f"host read failed for {sheet_name}")
        sheet = self.sheets[sheet_name]
        bounds = parse_range_address(address)
        r0 = bounds.start_row - sheet["row"]
        r1 = bounds.end_row - sheet["row"] + 1
        c0 = column_letter_to_index(bounds.start_col) - sheet["col"]
        c1 = column_letter_to_index(bounds.end_col) - sheet["col"] + 1

        values = [row[c0:c1] for row in sheet["values"][r0:r1]]
        formulas_src = sheet["formulas"] or sheet["values"]
        formulas = [row[c0:c1] for row in formulas_src[r0:r1]]
        display = [["" if v is None else str(v) for v in row] for row in values]
        return RangeData(values=values, formulas=formulas, display_text=display)


class MockBackend:
    """Recording backend satisfying ``IngestionBackend`` protocol.

    ``fail_deliveries`` holds 1-based delivery numbers that raise
    ``ConnectionError``.  ``config_error`` / ``initialize_error`` are raised
    from the respective calls when set.
    """

    def __init__(self) -> None:
        self.config_body: Any = {
            "maxRowsPerBatch": 250,
            "maxTotalRows": 10_000,
            "maxTotalCols": 100,
        }
        self.config_error: Exception | None = None
        self.initialize_body: Any = {"file_id": "file-123"}
        self.initialize_error: Exception | None = None
        self.fail_deliveries: set[int] = set()
        self.delivery_error: Exception = ConnectionError("connection refused")
        self.config_calls = 0
        self.initialize_payloads: list[dict[str, Any]] = []
        self.deliveries: list[dict[str, Any]] = []
        self.on_delivery: Any = None

    def fetch_config(self, timeout: float | None = None) -> dict[str, Any]:
        self.config_calls += 1
        if self.config_error is not None:
            raise self.config_error
        return self.config_body

    def initialize(
        self, payload: dict[str, Any], timeout: float | None = None
    ) -> dict[str, Any]:
        self.initialize_payloads.append(payload)
        if self.initialize_error is not None:
            raise self.initialize_error
        return self.initialize_body

    def store_cell_data(
        self, payload: dict[str, Any], timeout: float | None = None
    ) -> dict[str, Any]:
        self.deliveries.append(payload)
        if self.on_delivery is not None:
            self.on_delivery(len(self.deliveries))
        if len(self.deliveries) in self.fail_deliveries:
            raise self.delivery_error
        return {"status": "ok"}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def fast_config() -> PipelineConfig:
    """PipelineConfig with pacing disabled."""
    return PipelineConfig(pacing_delay_seconds=0.0)


@pytest.fixture()
def mock_host() -> MockWorkbookHost:
    return MockWorkbookHost()


@pytest.fixture()
def mock_backend() -> MockBackend:
    return MockBackend()


@pytest.fixture()
def make_cells():
    """Factory: ``make_cells("Sheet1", 5)`` -> 5 records in column A."""

    def _make(sheet_name: str, count: int, start_row: int = 1) -> list[CellRecord]:
        return [
            CellRecord(
                sheet_name=sheet_name,
                column="A",
                row=start_row + i,
                value=i,
                display_text=str(i),
            )
            for i in range(count)
        ]

    return _make
