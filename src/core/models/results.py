"""
Outcome models returned by the store, the ingestion pipeline and the exporter.
"""

from pathlib import Path
from typing import Any, List

from pydantic import BaseModel, Field

from .record import Record


class UpsertOutcome(BaseModel):
    """
    What one unordered bulk upsert did.

    Attributes:
        inserted: Records created by this chunk
        updated: Existing records whose fields changed
        unchanged: Upserts that matched an identical record
        failed: Operations the store rejected (siblings still applied)
        failed_ids: natural_id of each rejected operation
    """

    inserted: int = 0
    updated: int = 0
    unchanged: int = 0
    failed: int = 0
    failed_ids: List[str] = Field(default_factory=list)

    @property
    def applied(self) -> int:
        return self.inserted + self.updated


class ChunkOutcome(BaseModel):
    """Per-chunk bookkeeping kept by the orchestrator."""

    chunk_index: int
    attempted: int
    skipped: int = 0
    upsert: UpsertOutcome = Field(default_factory=UpsertOutcome)

    @property
    def applied(self) -> int:
        return self.upsert.applied


class IngestionResult(BaseModel):
    """
    Structured result of one ingestion call.

    Attributes:
        message: Human-readable summary
        total_records: Records inserted or modified across all chunks
        rows_read: Data rows decoded from the file
        rows_skipped: Rows dropped by validation (missing identifier)
        rows_failed: Upserts rejected by the store
        chunks_attempted: Chunks dispatched to the store
        inserted: New records
        updated: Modified records
        failed_ids: Sample of rejected natural ids (capped)
        state: Final pipeline state
    """

    message: str
    total_records: int
    rows_read: int = 0
    rows_skipped: int = 0
    rows_failed: int = 0
    chunks_attempted: int = 0
    inserted: int = 0
    updated: int = 0
    failed_ids: List[str] = Field(default_factory=list)
    state: str = "completed"

    def to_response(self) -> dict[str, Any]:
        return {"message": self.message, "totalRecords": self.total_records}


class ExportResult(BaseModel):
    """Reference to a generated export file."""

    url: str
    filename: str
    path: Path
    record_count: int

    def to_response(self) -> dict[str, Any]:
        return {"message": "Export successful", "url": self.url, "filename": self.filename}


class FetchResult(BaseModel):
    """Filtered records returned directly instead of as a file."""

    message: str = "Fetch successful"
    total_records: int
    data: List[Record]

    def to_response(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "totalRecords": self.total_records,
            "data": [record.model_dump(mode="json") for record in self.data],
        }
