"""Per-pass context threaded through every pipeline stage.

A ``PassContext`` is created when a pass starts and dropped when it ends.
It replaces module-level state: the pass's limits, the backend ``file_id``,
the current stage, and the cancellation flag all live here.
"""

from __future__ import annotations

import logging
import threading
import uuid

from sheetchat_ingest.models import BatchConfig, PipelineStage, WorkbookSnapshot

logger = logging.getLogger("sheetchat_ingest")

_STAGE_ORDER = [
    PipelineStage.INIT,
    PipelineStage.EXTRACTING,
    PipelineStage.PREPARED,
    PipelineStage.TRANSMITTING,
    PipelineStage.COMPLETE,
]


class PassContext:
    """State for one pipeline pass.

    ``file_id`` is write-once.  ``stage`` only moves forward through
    INIT -> EXTRACTING -> PREPARED -> TRANSMITTING -> COMPLETE, or jumps to
    FAILED from anywhere.
    """

    def __init__(self, batch_config: BatchConfig, workbook: WorkbookSnapshot) -> None:
        self.pass_id = str(uuid.uuid4())
        self.batch_config = batch_config
        self.workbook = workbook
        self._file_id: str | None = None
        self._stage = PipelineStage.INIT
        self._cancel_event = threading.Event()

    @property
    def file_id(self) -> str | None:
        return self._file_id

    def set_file_id(self, file_id: str) -> None:
        if self._file_id is not None:
            raise RuntimeError(f"file_id already set for pass {self.pass_id}")
        self._file_id = file_id

    @property
    def stage(self) -> PipelineStage:
        return self._stage

    def advance(self, stage: PipelineStage) -> None:
        """Move to *stage*.  Backward transitions raise ``RuntimeError``."""
        if self._stage == PipelineStage.FAILED:
            raise RuntimeError(f"Pass {self.pass_id} already failed")
        if stage != PipelineStage.FAILED and _STAGE_ORDER.index(stage) < _STAGE_ORDER.index(
            self._stage
        ):
            raise RuntimeError(
                f"Cannot move pass {self.pass_id} from {self._stage.value} to {stage.value}"
            )
        logger.debug("Pass %s: %s -> %s", self.pass_id, self._stage.value, stage.value)
        self._stage = stage

    def cancel(self) -> None:
        self._cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    @property
    def cancel_event(self) -> threading.Event:
        return self._cancel_event
