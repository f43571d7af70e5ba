"""
Core data models for the work-item ingestion pipeline.

All models use Pydantic for runtime validation and type safety.
"""

from .export_filter import STATUS_ALL, ExportFilter
from .record import (
    EXPORT_COLUMNS,
    MAX_FIELD_LENGTH,
    Record,
    RecordInput,
    TicketStatus,
)
from .results import (
    ChunkOutcome,
    ExportResult,
    FetchResult,
    IngestionResult,
    UpsertOutcome,
)

__all__ = [
    "EXPORT_COLUMNS",
    "MAX_FIELD_LENGTH",
    "STATUS_ALL",
    "ChunkOutcome",
    "ExportFilter",
    "ExportResult",
    "FetchResult",
    "IngestionResult",
    "Record",
    "RecordInput",
    "TicketStatus",
    "UpsertOutcome",
]
