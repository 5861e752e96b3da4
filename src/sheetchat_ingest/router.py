"""UploadRouter -- orchestrator and public API for sheetchat-ingest.

Runs one pass over the live workbook:

1. Fetch the batching limits via :class:`ConfigProvider` (cached).
2. Enumerate sheets and register the workbook with ``/initialize``.
   Failure here is fatal: without a ``file_id`` no batch can be addressed.
3. Extract cell records via :class:`WorkbookExtractor`.
4. Group them with :func:`batch_cell_data`.
5. Deliver them sequentially via :class:`BatchScheduler`.
6. Return a fully-assembled :class:`PipelineResult`.

Progress events are published on ``router.events``.  Per-sheet and
per-batch failures are aggregated into the result; only initialization
failures and unexpected exceptions propagate.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time

from sheetchat_ingest.config import PipelineConfig
from sheetchat_ingest.config_provider import ConfigProvider
from sheetchat_ingest.errors import ErrorCode, IngestError, InitializationError
from sheetchat_ingest.events import ProgressBus
from sheetchat_ingest.extractor import WorkbookExtractor
from sheetchat_ingest.models import (
    ExtractionResult,
    PipelineOutcome,
    PipelineResult,
    PipelineStage,
    TransmissionSummary,
    WorkbookSnapshot,
)
from sheetchat_ingest.protocols import IngestionBackend, SpreadsheetHost
from sheetchat_ingest.scheduler import BatchScheduler, batch_cell_data
from sheetchat_ingest.session import PassContext

logger = logging.getLogger("sheetchat_ingest")


class UploadRouter:
    """Drives extraction and delivery of a workbook, one pass at a time.

    Parameters
    ----------
    backend:
        Remote ingestion backend.
    config:
        Pipeline configuration.  Uses defaults when *None*.
    events:
        Progress bus to publish on.  A private bus is created when *None*.
    """

    def __init__(
        self,
        backend: IngestionBackend,
        config: PipelineConfig | None = None,
        events: ProgressBus | None = None,
    ) -> None:
        self._config = config or PipelineConfig()
        self._backend = backend
        self.events = events or ProgressBus()
        self._config_provider = ConfigProvider(backend, self._config)
        self._scheduler = BatchScheduler(backend, self._config)
        self._active: PassContext | None = None
        self._last_result: PipelineResult | None = None
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def last_result(self) -> PipelineResult | None:
        return self._last_result

    @property
    def file_id(self) -> str | None:
        """``file_id`` of the last successful upload, for the chat request."""
        if self._last_result and self._last_result.outcome == PipelineOutcome.SUCCESS:
            return self._last_result.file_id
        return None

    def process(
        self,
        host: SpreadsheetHost,
        workbook_name: str,
        force: bool = False,
    ) -> PipelineResult:
        """Extract and upload the workbook behind *host*.

        A previous successful upload of the same workbook is returned as-is
        unless *force* is True, in which case a fresh pass starts from INIT.

        Raises:
            InitializationError: The backend did not accept the workbook.
            HostExtractionError: The workbook's sheet list could not be read.
        """
        previous = self._last_result
        if (
            not force
            and previous is not None
            and previous.outcome == PipelineOutcome.SUCCESS
            and previous.workbook_name == workbook_name
        ):
            logger.info(
                "Workbook '%s' already uploaded; reusing pass %s",
                workbook_name,
                previous.pass_id,
            )
            return previous

        overall_start = time.monotonic()

        batch_config = self._config_provider.fetch_config()
        sheet_names = WorkbookExtractor(host, self._config).list_sheets()
        ctx = PassContext(
            batch_config=batch_config,
            workbook=WorkbookSnapshot(name=workbook_name, sheets=sheet_names),
        )
        with self._lock:
            self._active = ctx
        logger.info(
            "Starting pass %s for workbook '%s' (%d sheets)",
            ctx.pass_id,
            workbook_name,
            len(sheet_names),
        )

        warnings: list[str] = []
        error_details: list[IngestError] = []
        if self._config_provider.last_error is not None:
            warnings.append(ErrorCode.W_CONFIG_DEFAULTS.value)
            error_details.append(self._config_provider.last_error)

        try:
            self._initialize(ctx)

            ctx.advance(PipelineStage.EXTRACTING)
            extraction = WorkbookExtractor(host, self._config).extract(
                batch_config, sheet_names
            )
            error_details.extend(extraction.error_details)

            batches = batch_cell_data(extraction.cells, self._config.cell_batch_size)
            ctx.advance(PipelineStage.PREPARED)

            ctx.advance(PipelineStage.TRANSMITTING)
            summary = self._scheduler.transmit(
                batches,
                file_id=ctx.file_id or "",
                progress=self.events.publish,
                cancel_event=ctx.cancel_event,
                pass_id=ctx.pass_id,
            )
            ctx.advance(PipelineStage.COMPLETE)
        except Exception:
            ctx.advance(PipelineStage.FAILED)
            raise
        finally:
            with self._lock:
                self._active = None

        result = self._build_result(
            ctx, extraction, summary, warnings, error_details, overall_start
        )
        self._last_result = result

        logger.info(
            "Processed workbook '%s': pass=%s sheets=%d skipped=%d cells=%d "
            "batches=%d failed=%d outcome=%s time=%.3fs",
            workbook_name,
            ctx.pass_id,
            len(result.sheets_extracted),
            len(result.skipped_sheets),
            summary.total_cells,
            summary.total_batches,
            summary.failed_batches,
            result.outcome.value,
            result.processing_time_seconds,
        )
        return result

    async def aprocess(
        self,
        host: SpreadsheetHost,
        workbook_name: str,
        force: bool = False,
    ) -> PipelineResult:
        """Async wrapper around :meth:`process`.

        Runs the synchronous pass in a worker thread via
        ``asyncio.to_thread()``; :meth:`cancel` may be called meanwhile.
        """
        return await asyncio.to_thread(self.process, host, workbook_name, force)

    def cancel(self) -> bool:
        """Cancel the active pass between batch sends.

        Batches already delivered stay on the receiver; the final batch is
        never sent, so the upload is left un-finalized.  Returns False when
        no pass is running.
        """
        with self._lock:
            ctx = self._active
        if ctx is None:
            return False
        ctx.cancel()
        logger.info("Cancellation requested for pass %s", ctx.pass_id)
        return True

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _initialize(self, ctx: PassContext) -> None:
        try:
            body = self._backend.initialize(
                ctx.workbook.to_initialize_payload(),
                timeout=self._config.backend_timeout_seconds,
            )
        except Exception as exc:
            logger.error(
                "Initialization failed for workbook '%s': %s", ctx.workbook.name, exc
            )
            raise InitializationError(
                f"Backend rejected initialization: {exc}"
            ) from exc

        file_id = body.get("file_id") if isinstance(body, dict) else None
        if not file_id:
            logger.error(
                "Initialization response for workbook '%s' carried no file_id",
                ctx.workbook.name,
            )
            raise InitializationError("Initialization response missing file_id")

        ctx.set_file_id(str(file_id))
        logger.info(
            "Initialized workbook '%s' (%d sheets) as file_id=%s",
            ctx.workbook.name,
            len(ctx.workbook.sheets),
            ctx.file_id,
        )

    @staticmethod
    def _outcome(
        extraction: ExtractionResult, summary: TransmissionSummary
    ) -> PipelineOutcome:
        sheet_failed = any(
            e.code.value.startswith("E_") for e in extraction.error_details
        )
        sheet_dropped = sheet_failed or any(
            e.code == ErrorCode.W_SHEET_TOO_LARGE for e in extraction.error_details
        )
        if summary.total_batches == 0:
            return PipelineOutcome.FAILED if sheet_dropped else PipelineOutcome.SUCCESS
        if summary.successful_batches == 0:
            return PipelineOutcome.FAILED
        if not summary.success or sheet_failed:
            return PipelineOutcome.PARTIAL
        return PipelineOutcome.SUCCESS

    def _build_result(
        self,
        ctx: PassContext,
        extraction: ExtractionResult,
        summary: TransmissionSummary,
        warnings: list[str],
        error_details: list[IngestError],
        overall_start: float,
    ) -> PipelineResult:
        errors: list[str] = []
        for detail in error_details:
            target = errors if detail.code.value.startswith("E_") else warnings
            if detail.code.value not in target:
                target.append(detail.code.value)
        for failure in summary.errors:
            if failure.code and failure.code not in errors:
                errors.append(failure.code)

        return PipelineResult(
            pass_id=ctx.pass_id,
            workbook_name=ctx.workbook.name,
            file_id=ctx.file_id,
            outcome=self._outcome(extraction, summary),
            stage=ctx.stage,
            batch_config=ctx.batch_config,
            summary=summary,
            sheets_extracted=[sheet.name for sheet in extraction.sheets],
            skipped_sheets=extraction.skipped_sheets,
            errors=errors,
            warnings=warnings,
            error_details=error_details,
            processing_time_seconds=time.monotonic() - overall_start,
        )


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def create_default_router(**overrides) -> UploadRouter:
    """Create an UploadRouter backed by :class:`HttpIngestionBackend`.

    Recognized keyword arguments are ``backend``, ``config``, and
    ``events``; any other keyword arguments are passed to
    :class:`PipelineConfig`.
    """
    from sheetchat_ingest.backends import HttpIngestionBackend

    router_keys = {"backend", "config", "events"}
    router_kwargs = {k: v for k, v in overrides.items() if k in router_keys}
    config_kwargs = {k: v for k, v in overrides.items() if k not in router_keys}

    config = router_kwargs.pop("config", None)
    if config is None:
        config = PipelineConfig(**config_kwargs)

    backend = router_kwargs.pop("backend", None)
    if backend is None:
        backend = HttpIngestionBackend(config=config)

    return UploadRouter(
        backend=backend,
        config=config,
        events=router_kwargs.pop("events", None),
    )
