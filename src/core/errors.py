"""
Error taxonomy for ingestion and export.

Every pipeline-level failure is a PipelineError subclass carrying a stable
``code`` that the routing layer turns into a user-facing response.
"""

from pathlib import Path
from typing import Any


class PipelineError(Exception):
    """Base class for all ingestion/export failures."""

    code = "pipeline_error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_response(self) -> dict[str, Any]:
        return {"error": self.code, "message": self.message}


class SizeLimitExceeded(PipelineError):
    """Input file is larger than the configured byte limit."""

    code = "size_limit_exceeded"

    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        limit_mb = limit // (1024 * 1024)
        super().__init__(f"File exceeds {limit_mb}MB limit ({size} bytes)")


class UnsupportedFormat(PipelineError):
    """File extension or export format is not one of the supported ones."""

    code = "unsupported_format"

    def __init__(self, extension: str, allowed: tuple[str, ...] = ()):
        self.extension = extension
        self.allowed = allowed
        hint = f"; allowed: {', '.join(allowed)}" if allowed else ""
        super().__init__(f"Unsupported format '{extension or '<none>'}'{hint}")


class MalformedFile(PipelineError):
    """The source file could not be decoded."""

    code = "malformed_file"

    def __init__(self, file_path: str | Path, reason: str):
        self.file_path = str(file_path)
        self.reason = reason
        super().__init__(f"Could not read {Path(file_path).name}: {reason}")


class NoApplicableRecords(PipelineError):
    """Every row lacked a natural identifier or produced no store change."""

    code = "no_applicable_records"

    def __init__(self, rows_read: int, rows_skipped: int):
        self.rows_read = rows_read
        self.rows_skipped = rows_skipped
        super().__init__(
            "All records in the file already exist or lack a ticket reference "
            f"(read={rows_read}, skipped={rows_skipped})"
        )


class ChunkWriteFailure(PipelineError):
    """A chunk-level store error aborted the ingestion."""

    code = "chunk_write_failure"

    def __init__(self, chunk_index: int, cause: BaseException):
        self.chunk_index = chunk_index
        self.cause = cause
        super().__init__(f"Chunk {chunk_index} failed to write: {cause}")


class EmptyResultSet(PipelineError):
    """Export filter matched zero records."""

    code = "empty_result_set"

    def __init__(self, filters: dict[str, Any] | None = None):
        self.filters = filters or {}
        super().__init__("No records found")


class DecoderExhausted(PipelineError):
    """A single-pass row decoder was iterated twice."""

    code = "decoder_exhausted"

    def __init__(self, file_path: str | Path):
        self.file_path = str(file_path)
        super().__init__(f"Rows of {file_path} were already consumed")
