"""BatchScheduler -- sheet-scoped batching and sequential delivery.

``batch_cell_data`` groups cell records into batches that never straddle a
sheet and never exceed the batch size.  ``BatchScheduler.transmit`` sends
them one at a time, pacing between sends, recording each failure and moving
on.  Only the last batch is flagged ``is_final_batch``.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable

from sheetchat_ingest.config import PipelineConfig
from sheetchat_ingest.errors import BackendStatusError, ErrorCode, TransmissionError
from sheetchat_ingest.events import ProgressEvent, ProgressSink, ProgressStage
from sheetchat_ingest.models import Batch, BatchFailure, CellRecord, TransmissionSummary
from sheetchat_ingest.protocols import IngestionBackend

logger = logging.getLogger("sheetchat_ingest")


def batch_cell_data(cells: list[CellRecord], batch_size: int = 1500) -> list[Batch]:
    """Group *cells* by sheet and slice each sheet into batches.

    Within a sheet, cell order is preserved and ``batch_number`` counts from
    1.  Concatenating a sheet's batches gives back its cells exactly.
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be positive, got {batch_size}")

    by_sheet: dict[str, list[CellRecord]] = {}
    for cell in cells:
        by_sheet.setdefault(cell.sheet_name, []).append(cell)

    batches: list[Batch] = []
    for sheet_name, sheet_cells in by_sheet.items():
        for number, start in enumerate(range(0, len(sheet_cells), batch_size), start=1):
            batches.append(
                Batch(
                    sheet_name=sheet_name,
                    cells=sheet_cells[start : start + batch_size],
                    total_cells_in_sheet=len(sheet_cells),
                    batch_number=number,
                )
            )
    return batches


class BatchScheduler:
    """Delivers batches to the ingestion endpoint, strictly one at a time.

    Parameters
    ----------
    backend:
        Remote ingestion backend.
    config:
        Pipeline configuration providing timeout and pacing settings.
    sleep:
        Pacing function; injectable for tests.
    """

    def __init__(
        self,
        backend: IngestionBackend,
        config: PipelineConfig | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._backend = backend
        self._config = config or PipelineConfig()
        self._sleep = sleep

    def transmit(
        self,
        batches: list[Batch],
        file_id: str,
        progress: ProgressSink | None = None,
        cancel_event: threading.Event | None = None,
        pass_id: str | None = None,
    ) -> TransmissionSummary:
        """Send every batch in order and return the transmission summary.

        A failed delivery is recorded and the loop continues.  When
        *cancel_event* is set, the remaining batches are recorded as
        cancelled and nothing more is sent.
        """
        emit = progress or (lambda event: None)
        total_batches = len(batches)
        total_cells = sum(len(batch.cells) for batch in batches)

        emit(
            ProgressEvent(
                stage=ProgressStage.PREPARATION,
                pass_id=pass_id,
                total_batches=total_batches,
                total_cells=total_cells,
            )
        )

        successful = 0
        failures: list[BatchFailure] = []
        cancelled = False

        for index, batch in enumerate(batches):
            if cancel_event is not None and cancel_event.is_set():
                cancelled = True
                failures.extend(self._cancelled(batches[index:]))
                logger.warning(
                    "Transmission cancelled with %d of %d batches unsent",
                    total_batches - index,
                    total_batches,
                )
                break

            is_final = index == total_batches - 1
            emit(
                ProgressEvent(
                    stage=ProgressStage.FINALIZING if is_final else ProgressStage.TRANSMISSION,
                    pass_id=pass_id,
                    total_batches=total_batches,
                    total_cells=total_cells,
                    sheet_name=batch.sheet_name,
                    batch_index=index,
                    batch_size=len(batch.cells),
                )
            )

            try:
                self._deliver(batch, file_id, is_final)
                successful += 1
            except TransmissionError as exc:
                failures.append(
                    BatchFailure(
                        batch_number=batch.batch_number,
                        sheet_name=batch.sheet_name,
                        error=exc.message,
                        code=exc.code.value,
                    )
                )
                logger.warning(
                    "Batch %d of sheet '%s' failed: %s",
                    batch.batch_number,
                    batch.sheet_name,
                    exc.message,
                )

            if not is_final and self._config.pacing_delay_seconds > 0:
                self._sleep(self._config.pacing_delay_seconds)

        summary = TransmissionSummary(
            total_cells=total_cells,
            total_batches=total_batches,
            successful_batches=successful,
            failed_batches=len(failures),
            errors=failures,
            cancelled=cancelled,
        )
        emit(
            ProgressEvent(
                stage=ProgressStage.COMPLETE,
                pass_id=pass_id,
                total_batches=total_batches,
                total_cells=total_cells,
                summary=summary,
            )
        )
        return summary

    # -- internal helpers ----------------------------------------------------

    def _deliver(self, batch: Batch, file_id: str, is_final: bool) -> None:
        payload = {
            "file_id": file_id,
            "batches": [batch.to_payload()],
            "is_final_batch": is_final,
        }
        logger.debug(
            "Sending batch %d of sheet '%s' (%d cells, final=%s)",
            batch.batch_number,
            batch.sheet_name,
            len(batch.cells),
            is_final,
        )
        try:
            self._backend.store_cell_data(
                payload, timeout=self._config.backend_timeout_seconds
            )
        except TimeoutError as exc:
            raise TransmissionError(
                str(exc),
                code=ErrorCode.E_TRANSMIT_TIMEOUT,
                sheet_name=batch.sheet_name,
                batch_number=batch.batch_number,
            ) from exc
        except BackendStatusError as exc:
            raise TransmissionError(
                str(exc),
                code=ErrorCode.E_TRANSMIT_HTTP,
                sheet_name=batch.sheet_name,
                batch_number=batch.batch_number,
            ) from exc
        except ConnectionError as exc:
            raise TransmissionError(
                str(exc),
                code=ErrorCode.E_TRANSMIT_CONNECT,
                sheet_name=batch.sheet_name,
                batch_number=batch.batch_number,
            ) from exc
        except ValueError as exc:
            raise TransmissionError(
                f"Malformed response: {exc}",
                code=ErrorCode.E_TRANSMIT_HTTP,
                sheet_name=batch.sheet_name,
                batch_number=batch.batch_number,
            ) from exc
        except Exception as exc:
            raise TransmissionError(
                f"Unexpected delivery failure: {type(exc).__name__}: {exc}",
                code=ErrorCode.E_TRANSMIT_CONNECT,
                sheet_name=batch.sheet_name,
                batch_number=batch.batch_number,
            ) from exc

    @staticmethod
    def _cancelled(batches: list[Batch]) -> list[BatchFailure]:
        return [
            BatchFailure(
                batch_number=batch.batch_number,
                sheet_name=batch.sheet_name,
                error="Transmission cancelled before delivery",
                code=ErrorCode.E_TRANSMIT_CANCELLED.value,
            )
            for batch in batches
        ]
