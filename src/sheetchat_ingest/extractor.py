"""WorkbookExtractor -- turns the live workbook into cell records.

For each sheet:

1. Query the occupied range.  No range means no records.
2. Skip the whole sheet if it exceeds ``max_total_rows`` or
   ``max_total_cols``.  There is no partial extraction of oversized sheets.
3. Split the rows into windows of at most ``max_rows_per_batch`` rows.
4. Read values, formulas, and display text for each window.
5. Emit a :class:`CellRecord` for every cell with any content.

Records within a sheet come out row-ascending, then column-ascending.  A
host failure on one sheet is logged and that sheet contributes nothing; the
other sheets are still extracted.
"""

from __future__ import annotations

import logging
from typing import Any

from sheetchat_ingest.addressing import (
    build_range_address,
    column_index_to_letter,
    column_letter_to_index,
    parse_range_address,
    plan_row_windows,
)
from sheetchat_ingest.config import PipelineConfig
from sheetchat_ingest.errors import ErrorCode, HostExtractionError, IngestError
from sheetchat_ingest.models import (
    BatchConfig,
    CellRecord,
    ExtractionResult,
    RangeData,
    SheetSnapshot,
)
from sheetchat_ingest.protocols import SpreadsheetHost

logger = logging.getLogger("sheetchat_ingest")


def _cell_at(grid: list[list[Any]], row: int, col: int) -> Any:
    if row < len(grid) and col < len(grid[row]):
        return grid[row][col]
    return None


def _normalize_formula(formula: Any) -> str | None:
    # Hosts echo the constant for cells without a formula.
    if isinstance(formula, str) and formula.startswith("="):
        return formula
    return None


class WorkbookExtractor:
    """Produces the non-empty cell records of every eligible sheet.

    Parameters
    ----------
    host:
        The host spreadsheet capability interface.
    config:
        Pipeline configuration (logging flags).
    """

    def __init__(
        self,
        host: SpreadsheetHost,
        config: PipelineConfig | None = None,
    ) -> None:
        self._host = host
        self._config = config or PipelineConfig()

    # -- public API ----------------------------------------------------------

    def extract(
        self,
        batch_config: BatchConfig,
        sheet_names: list[str] | None = None,
    ) -> ExtractionResult:
        """Extract every sheet in *sheet_names* (default: all sheets).

        Raises:
            HostExtractionError: If the sheet list itself cannot be read.
        """
        if sheet_names is None:
            sheet_names = self.list_sheets()

        result = ExtractionResult()
        for sheet_name in sheet_names:
            try:
                snapshot = self._snapshot(sheet_name)
            except Exception as exc:
                self._record_failure(result, sheet_name, exc)
                continue

            if snapshot is None:
                result.skipped_sheets[sheet_name] = ErrorCode.W_SHEET_EMPTY.value
                logger.debug("Sheet '%s' has no occupied range", sheet_name)
                continue

            if (
                snapshot.row_count > batch_config.max_total_rows
                or snapshot.column_count > batch_config.max_total_cols
            ):
                result.skipped_sheets[sheet_name] = ErrorCode.W_SHEET_TOO_LARGE.value
                result.error_details.append(
                    IngestError(
                        code=ErrorCode.W_SHEET_TOO_LARGE,
                        message=(
                            f"Sheet '{sheet_name}' is {snapshot.row_count}x"
                            f"{snapshot.column_count}, exceeding the "
                            f"{batch_config.max_total_rows}x"
                            f"{batch_config.max_total_cols} limit; skipped"
                        ),
                        stage="extract",
                        sheet_name=sheet_name,
                        recoverable=True,
                    )
                )
                logger.warning(
                    "Sheet '%s' exceeds limits (%d rows, %d cols); skipped",
                    sheet_name,
                    snapshot.row_count,
                    snapshot.column_count,
                )
                continue

            try:
                cells = self.extract_sheet(snapshot, batch_config.max_rows_per_batch)
            except Exception as exc:
                self._record_failure(result, sheet_name, exc)
                continue

            result.sheets.append(snapshot)
            result.cells.extend(cells)
            logger.info(
                "Extracted %d cells from sheet '%s' (%s)",
                len(cells),
                sheet_name,
                snapshot.used_range_address,
            )

        return result

    def list_sheets(self) -> list[str]:
        try:
            return list(self._host.list_sheet_names())
        except Exception as exc:
            raise HostExtractionError(f"Could not list worksheets: {exc}") from exc

    def extract_sheet(
        self, snapshot: SheetSnapshot, max_rows_per_window: int
    ) -> list[CellRecord]:
        """Read one sheet window by window and return its records in order."""
        bounds = parse_range_address(snapshot.used_range_address)
        first_col = column_letter_to_index(bounds.start_col)

        cells: list[CellRecord] = []
        for start_row, end_row in plan_row_windows(
            bounds.start_row, snapshot.row_count, max_rows_per_window
        ):
            address = build_range_address(
                bounds.start_col, start_row, bounds.end_col, end_row
            )
            data = self._host.read_range(snapshot.name, address)
            logger.debug("Read window %s!%s", snapshot.name, address)
            cells.extend(self._window_cells(snapshot.name, data, start_row, first_col))
        return cells

    # -- internal helpers ----------------------------------------------------

    def _snapshot(self, sheet_name: str) -> SheetSnapshot | None:
        used = self._host.get_used_range(sheet_name)
        if used is None or used.row_count <= 0 or used.column_count <= 0:
            return None
        return SheetSnapshot(
            name=sheet_name,
            used_range_address=used.address,
            row_count=used.row_count,
            column_count=used.column_count,
        )

    def _window_cells(
        self,
        sheet_name: str,
        data: RangeData,
        start_row: int,
        first_col: int,
    ) -> list[CellRecord]:
        cells: list[CellRecord] = []
        row_total = max(len(data.values), len(data.formulas), len(data.display_text))
        for r in range(row_total):
            col_total = max(
                len(data.values[r]) if r < len(data.values) else 0,
                len(data.formulas[r]) if r < len(data.formulas) else 0,
                len(data.display_text[r]) if r < len(data.display_text) else 0,
            )
            for c in range(col_total):
                value = _cell_at(data.values, r, c)
                formula = _normalize_formula(_cell_at(data.formulas, r, c))
                display_text = _cell_at(data.display_text, r, c)
                if not CellRecord.has_content(value, formula, display_text):
                    continue
                record = CellRecord(
                    sheet_name=sheet_name,
                    column=column_index_to_letter(first_col + c),
                    row=start_row + r,
                    formula=formula,
                    value=value,
                    display_text="" if display_text is None else str(display_text),
                )
                if self._config.log_cell_previews:
                    logger.debug(
                        "Cell %s!%s%d = %r", sheet_name, record.column, record.row, value
                    )
                cells.append(record)
        return cells

    @staticmethod
    def _record_failure(
        result: ExtractionResult, sheet_name: str, exc: Exception
    ) -> None:
        code = getattr(exc, "code", ErrorCode.E_HOST_EXTRACTION)
        if not isinstance(code, ErrorCode):
            code = ErrorCode.E_HOST_EXTRACTION
        result.skipped_sheets[sheet_name] = code.value
        result.error_details.append(
            IngestError(
                code=code,
                message=f"Extraction failed for sheet '{sheet_name}': {exc}",
                stage="extract",
                sheet_name=sheet_name,
                recoverable=True,
            )
        )
        logger.warning("Extraction failed for sheet '%s': %s", sheet_name, exc)
