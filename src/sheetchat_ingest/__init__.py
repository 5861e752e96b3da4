"""sheetchat-ingest -- workbook extraction and upload for the spreadsheet chat add-in.

Public API exports for the router, pipeline components, models, errors,
configuration, and collaborator protocols.
"""

from sheetchat_ingest.addressing import (
    RangeBounds,
    build_range_address,
    column_index_to_letter,
    column_letter_to_index,
    parse_range_address,
    plan_row_windows,
)
from sheetchat_ingest.config import PipelineConfig
from sheetchat_ingest.config_provider import DEFAULT_BATCH_CONFIG, ConfigProvider
from sheetchat_ingest.errors import (
    BackendStatusError,
    ConfigFetchError,
    ErrorCode,
    FormatError,
    HostExtractionError,
    IngestError,
    InitializationError,
    PipelineError,
    TransmissionError,
)
from sheetchat_ingest.events import ProgressBus, ProgressEvent, ProgressStage
from sheetchat_ingest.extractor import WorkbookExtractor
from sheetchat_ingest.models import (
    Batch,
    BatchConfig,
    BatchFailure,
    CellRecord,
    ExtractionResult,
    PipelineOutcome,
    PipelineResult,
    PipelineStage,
    RangeData,
    SheetSnapshot,
    TransmissionSummary,
    UsedRange,
    WorkbookSnapshot,
)
from sheetchat_ingest.protocols import IngestionBackend, SpreadsheetHost
from sheetchat_ingest.router import UploadRouter, create_default_router
from sheetchat_ingest.scheduler import BatchScheduler, batch_cell_data
from sheetchat_ingest.session import PassContext

__all__ = [
    # Router
    "UploadRouter",
    "create_default_router",
    # Components
    "ConfigProvider",
    "DEFAULT_BATCH_CONFIG",
    "WorkbookExtractor",
    "BatchScheduler",
    "batch_cell_data",
    "PassContext",
    # Addressing
    "RangeBounds",
    "column_index_to_letter",
    "column_letter_to_index",
    "parse_range_address",
    "build_range_address",
    "plan_row_windows",
    # Events
    "ProgressBus",
    "ProgressEvent",
    "ProgressStage",
    # Enums
    "PipelineStage",
    "PipelineOutcome",
    # Models
    "BatchConfig",
    "UsedRange",
    "RangeData",
    "SheetSnapshot",
    "WorkbookSnapshot",
    "CellRecord",
    "Batch",
    "BatchFailure",
    "ExtractionResult",
    "TransmissionSummary",
    "PipelineResult",
    # Errors
    "ErrorCode",
    "IngestError",
    "PipelineError",
    "ConfigFetchError",
    "HostExtractionError",
    "FormatError",
    "TransmissionError",
    "InitializationError",
    "BackendStatusError",
    # Config
    "PipelineConfig",
    # Protocols
    "SpreadsheetHost",
    "IngestionBackend",
]
