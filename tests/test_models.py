"""Tests for data models: limits, records, batches, summaries, results."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from sheetchat_ingest.models import (
    Batch,
    BatchConfig,
    BatchFailure,
    CellRecord,
    PipelineOutcome,
    PipelineResult,
    PipelineStage,
    TransmissionSummary,
    WorkbookSnapshot,
)


class TestBatchConfig:
    def test_defaults(self) -> None:
        config = BatchConfig()
        assert config.max_rows_per_batch == 250
        assert config.max_total_rows == 10_000
        assert config.max_total_cols == 100

    def test_from_camel_case_payload(self) -> None:
        config = BatchConfig.from_payload(
            {"maxRowsPerBatch": 500, "maxTotalRows": 20_000, "maxTotalCols": 52}
        )
        assert config == BatchConfig(
            max_rows_per_batch=500, max_total_rows=20_000, max_total_cols=52
        )

    def test_absent_fields_use_defaults(self) -> None:
        config = BatchConfig.from_payload({"maxTotalCols": 26})
        assert config.max_total_cols == 26
        assert config.max_rows_per_batch == 250
        assert config.max_total_rows == 10_000

    @pytest.mark.parametrize("bad", [0, -5, "lots", None, True, 2.5])
    def test_invalid_field_uses_default(self, bad) -> None:
        config = BatchConfig.from_payload({"maxRowsPerBatch": bad, "maxTotalRows": 99})
        assert config.max_rows_per_batch == 250
        assert config.max_total_rows == 99

    @pytest.mark.parametrize("body", [None, [], "text", 42])
    def test_non_object_body_raises(self, body) -> None:
        with pytest.raises(ValueError, match="JSON object"):
            BatchConfig.from_payload(body)

    def test_frozen(self) -> None:
        config = BatchConfig()
        with pytest.raises(ValidationError):
            config.max_rows_per_batch = 5  # type: ignore[misc]


class TestCellRecord:
    def test_wire_form_uses_camel_case(self) -> None:
        cell = CellRecord(
            sheet_name="Data", column="B", row=4, formula="=A4*2", value=10, display_text="10"
        )
        assert cell.model_dump(by_alias=True) == {
            "sheetName": "Data",
            "column": "B",
            "row": 4,
            "formula": "=A4*2",
            "value": 10,
            "displayText": "10",
        }

    def test_accepts_alias_input(self) -> None:
        cell = CellRecord.model_validate(
            {"sheetName": "S", "column": "A", "row": 1, "displayText": "x"}
        )
        assert cell.sheet_name == "S"
        assert cell.display_text == "x"

    def test_bool_value_stays_bool(self) -> None:
        cell = CellRecord(sheet_name="S", column="A", row=1, value=True)
        assert cell.value is True

    @pytest.mark.parametrize(
        "value, formula, display, expected",
        [
            (None, None, "", False),
            ("", None, "", False),
            (0, None, "", True),
            (False, None, "", True),
            (None, "=A1", "", True),
            (None, None, "#N/A", True),
        ],
    )
    def test_has_content(self, value, formula, display, expected) -> None:
        assert CellRecord.has_content(value, formula, display) is expected


class TestBatch:
    def test_payload_shape(self) -> None:
        cell = CellRecord(sheet_name="S", column="A", row=1, value="x", display_text="x")
        batch = Batch(sheet_name="S", cells=[cell], total_cells_in_sheet=7, batch_number=2)
        payload = batch.to_payload()
        assert payload["sheet_name"] == "S"
        assert payload["total_cells"] == 7
        assert payload["batch_number"] == 2
        assert payload["cells"] == [cell.model_dump(by_alias=True)]


class TestWorkbookSnapshot:
    def test_initialize_payload(self) -> None:
        snapshot = WorkbookSnapshot(name="Budget.xlsx", sheets=["Summary", "Data"])
        assert snapshot.to_initialize_payload() == {
            "workbookName": "Budget.xlsx",
            "totalWorksheets": 2,
            "sheets": [{"sheet_name": "Summary"}, {"sheet_name": "Data"}],
        }


class TestTransmissionSummary:
    def test_empty_summary_is_success(self) -> None:
        summary = TransmissionSummary()
        assert summary.success is True
        assert summary.total_batches == 0

    def test_success_tracks_failures(self) -> None:
        summary = TransmissionSummary(
            total_cells=30,
            total_batches=3,
            successful_batches=2,
            failed_batches=1,
            errors=[BatchFailure(batch_number=2, sheet_name="S", error="boom")],
        )
        assert summary.success is False
        assert summary.model_dump()["success"] is False

    def test_counts_must_add_up(self) -> None:
        with pytest.raises(ValidationError):
            TransmissionSummary(total_batches=3, successful_batches=2, failed_batches=0)


class TestPipelineResultMessage:
    def _result(self, outcome: PipelineOutcome, summary: TransmissionSummary | None):
        return PipelineResult(
            pass_id="p",
            workbook_name="w",
            outcome=outcome,
            stage=PipelineStage.COMPLETE,
            batch_config=BatchConfig(),
            summary=summary,
        )

    def test_success_message(self) -> None:
        result = self._result(PipelineOutcome.SUCCESS, TransmissionSummary())
        assert "uploaded" in result.user_message

    def test_partial_message_reports_counts(self) -> None:
        summary = TransmissionSummary(
            total_batches=4, successful_batches=3, failed_batches=1
        )
        result = self._result(PipelineOutcome.PARTIAL, summary)
        assert "1 of 4" in result.user_message

    def test_failed_message(self) -> None:
        result = self._result(PipelineOutcome.FAILED, None)
        assert "failed" in result.user_message
