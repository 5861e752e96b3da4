"""Progress events and the in-process bus that carries them.

The pipeline publishes; presentation layers subscribe.  Nothing in the
pipeline knows who is listening.
"""

from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Callable

from pydantic import BaseModel

from sheetchat_ingest.models import TransmissionSummary

logger = logging.getLogger("sheetchat_ingest")


class ProgressStage(str, Enum):
    """Kind of progress event."""

    PREPARATION = "preparation"
    TRANSMISSION = "transmission"
    FINALIZING = "finalizing"
    COMPLETE = "complete"


class ProgressEvent(BaseModel):
    """One progress update.  Which fields are set depends on ``stage``."""

    stage: ProgressStage
    pass_id: str | None = None
    total_batches: int = 0
    total_cells: int = 0
    sheet_name: str | None = None
    batch_index: int | None = None
    batch_size: int | None = None
    summary: TransmissionSummary | None = None


ProgressSink = Callable[[ProgressEvent], None]


class ProgressBus:
    """Fan-out of progress events to independent subscribers.

    A subscriber that raises is logged and skipped; it never interrupts the
    pass or the other subscribers.
    """

    def __init__(self) -> None:
        self._subscribers: list[ProgressSink] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: ProgressSink) -> Callable[[], None]:
        """Register *callback* and return a function that unregisters it."""
        with self._lock:
            self._subscribers.append(callback)

        def _unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return _unsubscribe

    def publish(self, event: ProgressEvent) -> None:
        with self._lock:
            subscribers = list(self._subscribers)
        for callback in subscribers:
            try:
                callback(event)
            except Exception:
                logger.exception(
                    "Progress subscriber %r failed on %s event",
                    callback,
                    event.stage.value,
                )
