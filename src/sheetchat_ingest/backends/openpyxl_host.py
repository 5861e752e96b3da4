"""openpyxl-backed SpreadsheetHost.

Serves the host capability interface from an ``.xlsx`` file so the pipeline
can run outside the add-in (scripts, tests, server-side re-ingestion).
Formulas come from the normal workbook; values come from a ``data_only``
workbook, which holds the values Excel cached at last save.
"""

from __future__ import annotations

import datetime
import logging
from typing import Any

import openpyxl
from openpyxl.worksheet.worksheet import Worksheet

from sheetchat_ingest.addressing import (
    column_index_to_letter,
    column_letter_to_index,
    parse_range_address,
)
from sheetchat_ingest.models import RangeData, UsedRange

logger = logging.getLogger("sheetchat_ingest")


def _to_scalar(value: Any) -> Any:
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return value.isoformat()
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


def _display(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    return str(value)


class OpenpyxlWorkbookHost:
    """Read-only SpreadsheetHost over an ``.xlsx`` file.

    Satisfies :class:`~sheetchat_ingest.protocols.SpreadsheetHost` via
    structural subtyping.  Chart sheets are not worksheets and are not
    listed.
    """

    def __init__(self, file_path: str) -> None:
        self._file_path = file_path
        self._formula_wb = openpyxl.load_workbook(file_path)
        self._value_wb = openpyxl.load_workbook(file_path, data_only=True)

    def _sheet(self, workbook: Any, sheet_name: str) -> Worksheet:
        try:
            return workbook[sheet_name]
        except KeyError as exc:
            raise KeyError(f"Worksheet not found: {sheet_name!r}") from exc

    # ------------------------------------------------------------------
    # Protocol methods
    # ------------------------------------------------------------------

    def list_sheet_names(self) -> list[str]:
        return [ws.title for ws in self._formula_wb.worksheets]

    def get_used_range(self, sheet_name: str) -> UsedRange | None:
        ws = self._sheet(self._formula_wb, sheet_name)
        min_row, min_col = ws.min_row, ws.min_column
        max_row, max_col = ws.max_row, ws.max_column

        # openpyxl reports A1:A1 for a sheet with no cells at all.
        if min_row == max_row and min_col == max_col:
            if ws.cell(row=min_row, column=min_col).value is None:
                return None

        address = (
            f"{column_index_to_letter(min_col - 1)}{min_row}:"
            f"{column_index_to_letter(max_col - 1)}{max_row}"
        )
        return UsedRange(
            address=f"{sheet_name}!{address}",
            row_count=max_row - min_row + 1,
            column_count=max_col - min_col + 1,
        )

    def read_range(self, sheet_name: str, address: str) -> RangeData:
        bounds = parse_range_address(address)
        window = {
            "min_row": bounds.start_row,
            "max_row": bounds.end_row,
            "min_col": column_letter_to_index(bounds.start_col) + 1,
            "max_col": column_letter_to_index(bounds.end_col) + 1,
            "values_only": True,
        }
        formula_rows = self._sheet(self._formula_wb, sheet_name).iter_rows(**window)
        value_rows = self._sheet(self._value_wb, sheet_name).iter_rows(**window)

        data = RangeData()
        for formula_row, value_row in zip(formula_rows, value_rows):
            values = [_to_scalar(v) for v in value_row]
            data.values.append(values)
            data.formulas.append(
                [f if isinstance(f, str) and f.startswith("=") else None for f in formula_row]
            )
            data.display_text.append([_display(v) for v in values])

        logger.debug(
            "Read %s!%s from %s (%d rows)",
            sheet_name,
            address,
            self._file_path,
            len(data.values),
        )
        return data
