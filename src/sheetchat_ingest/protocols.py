"""Collaborator protocols for the sheetchat-ingest pipeline.

Defines the structural-subtyping interfaces for the host spreadsheet and the
remote ingestion service.  All protocols are ``@runtime_checkable`` so
callers can optionally verify conformance with ``isinstance`` checks.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from sheetchat_ingest.models import RangeData, UsedRange


@runtime_checkable
class SpreadsheetHost(Protocol):
    """Read-only view of the live workbook in the host application.

    Each call returns fully-resolved data; any load-then-sync protocol the
    host needs happens behind the call.
    """

    def list_sheet_names(self) -> list[str]:
        """Return the names of all worksheets in workbook order."""
        ...

    def get_used_range(self, sheet_name: str) -> UsedRange | None:
        """Return the occupied range of a sheet, or None if it is empty."""
        ...

    def read_range(self, sheet_name: str, address: str) -> RangeData:
        """Return values, formulas, and display text for *address*."""
        ...


@runtime_checkable
class IngestionBackend(Protocol):
    """Interface for the remote service that receives workbook content."""

    def fetch_config(self, timeout: float | None = None) -> dict[str, Any]:
        """``GET /config`` and return the decoded body."""
        ...

    def initialize(
        self, payload: dict[str, Any], timeout: float | None = None
    ) -> dict[str, Any]:
        """``POST /initialize`` and return the decoded body."""
        ...

    def store_cell_data(
        self, payload: dict[str, Any], timeout: float | None = None
    ) -> dict[str, Any]:
        """``POST /store-cell-data`` and return the decoded body."""
        ...
