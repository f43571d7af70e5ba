"""
Ingestion pipeline orchestration.

Coordinates the flow: guard → decode → normalize → chunk → validate →
bounded concurrent upsert → aggregate.
"""

from concurrent.futures import Future
from enum import Enum
from pathlib import Path

from src.batch.chunking import iter_chunks
from src.batch.concurrency import BoundedChunkPool
from src.batch.readers import RowDecoder, decoder_for, file_extension
from src.core.config import PipelineSettings
from src.core.errors import (
    ChunkWriteFailure,
    NoApplicableRecords,
    PipelineError,
    SizeLimitExceeded,
    UnsupportedFormat,
)
from src.core.models import ChunkOutcome, IngestionResult, UpsertOutcome
from src.core.schema import HeaderNormalizer
from src.core.validators import RecordValidator
from src.observability import metrics
from src.observability.logger import get_logger, log_operation
from src.warehouse.store import RecordStore

logger = get_logger(__name__)

SUCCESS_MESSAGE = "File uploaded successfully"


class PipelineState(str, Enum):
    IDLE = "idle"
    DECODING = "decoding"
    DRAINING = "draining"
    COMPLETED = "completed"
    FAILED = "failed"


# Allowed transitions of the ingestion state machine
TRANSITIONS = {
    PipelineState.IDLE: {PipelineState.DECODING, PipelineState.FAILED},
    PipelineState.DECODING: {PipelineState.DRAINING, PipelineState.FAILED},
    PipelineState.DRAINING: {PipelineState.COMPLETED, PipelineState.FAILED},
    PipelineState.COMPLETED: {PipelineState.IDLE},
    PipelineState.FAILED: {PipelineState.IDLE},
}


class IngestionPipeline:
    """
    Ingests one tabular file into the record store.

    Flow:
    1. Reject oversized files and unsupported extensions (file removed)
    2. Decode rows lazily and map headers onto canonical fields
    3. Buffer rows into chunks of ``settings.chunk_size``
    4. Drop rows without a natural identifier
    5. Upsert each chunk on a pool of ``settings.max_workers`` writers
    6. Wait for every admitted chunk and aggregate the counts

    The store is injected; the pipeline keeps no state between calls
    besides ``state``.
    """

    def __init__(
        self,
        store: RecordStore,
        settings: PipelineSettings | None = None,
        normalizer: HeaderNormalizer | None = None,
        validator: RecordValidator | None = None,
    ):
        """
        Initialize ingestion pipeline.

        Args:
            store: Record store receiving the upserts
            settings: Pipeline settings (defaults if None)
            normalizer: Header normalizer (default alias table if None)
            validator: Record validator (built from settings if None)
        """
        self.store = store
        self.settings = settings or PipelineSettings()
        self.normalizer = normalizer or HeaderNormalizer()
        self.validator = validator or RecordValidator(
            require_description=self.settings.require_description
        )
        self.state = PipelineState.IDLE

    def _transition(self, new_state: PipelineState) -> None:
        if new_state not in TRANSITIONS[self.state]:
            raise RuntimeError(f"Illegal pipeline transition {self.state.value} -> {new_state.value}")
        logger.debug(f"Pipeline state {self.state.value} -> {new_state.value}")
        self.state = new_state

    def ingest(self, file_path: str | Path, file_size: int | None = None) -> IngestionResult:
        """
        Ingest a file.

        Args:
            file_path: Path to the uploaded (temporary) file
            file_size: Size in bytes as reported by the upload; read from
                the filesystem if None

        Returns:
            IngestionResult with counts of applied, skipped and failed rows

        Raises:
            SizeLimitExceeded: File larger than the limit (file removed)
            UnsupportedFormat: Extension not supported (file removed)
            MalformedFile: File could not be decoded
            NoApplicableRecords: Nothing was inserted or modified
            ChunkWriteFailure: A chunk failed at the store level
        """
        path = Path(file_path)
        if self.state in (PipelineState.COMPLETED, PipelineState.FAILED):
            self._transition(PipelineState.IDLE)

        if file_size is None:
            file_size = path.stat().st_size

        try:
            decoder = self._admit(path, file_size)
        except (SizeLimitExceeded, UnsupportedFormat) as e:
            self._transition(PipelineState.FAILED)
            metrics.record_rejection(e.code)
            logger.warning(f"Rejected {path.name}: {e.message}", extra={"error_code": e.code})
            self._remove_source(path)
            raise

        self._transition(PipelineState.DECODING)
        try:
            with log_operation("ingest_file", logger=logger, file=path.name, size_bytes=file_size):
                result = self._run(decoder)
        except PipelineError as e:
            if self.state != PipelineState.FAILED:
                self._transition(PipelineState.FAILED)
            metrics.record_rejection(e.code)
            raise
        except Exception:
            if self.state != PipelineState.FAILED:
                self._transition(PipelineState.FAILED)
            metrics.record_rejection("internal_error")
            raise

        self._remove_source(path)
        return result

    def _admit(self, path: Path, file_size: int) -> RowDecoder:
        """Size and format guard; nothing is read from the file."""
        limit = self.settings.max_file_size_bytes
        if file_size > limit:
            raise SizeLimitExceeded(file_size, limit)
        return decoder_for(path, normalizer=self.normalizer)

    def _run(self, decoder: RowDecoder) -> IngestionResult:
        file_format = file_extension(decoder.file_path).lstrip(".")
        rows_read = 0
        rows_skipped = 0
        dispatched: list[tuple[int, int, int, Future]] = []

        with log_operation("decode_and_dispatch", logger=logger, file=decoder.file_path.name) as op:
            with BoundedChunkPool(self.settings.max_workers) as pool:
                for chunk_index, rows in enumerate(iter_chunks(decoder.rows(), self.settings.chunk_size)):
                    rows_read += len(rows)
                    validation = self.validator.validate_chunk(rows)
                    rows_skipped += validation.skipped
                    if not validation.records:
                        continue
                    if pool.failed:
                        logger.warning(
                            "A chunk write failed; no further chunks will be dispatched",
                            extra={"chunk_index": chunk_index}
                        )
                        break
                    future = pool.submit(self.store.upsert_chunk, validation.records)
                    dispatched.append((chunk_index, len(validation.records), validation.skipped, future))

                self._transition(PipelineState.DRAINING)
                pool.drain()

            outcomes = self._collect(dispatched)
            duration = op.elapsed

        totals = UpsertOutcome()
        for outcome in outcomes:
            totals.inserted += outcome.upsert.inserted
            totals.updated += outcome.upsert.updated
            totals.unchanged += outcome.upsert.unchanged
            totals.failed += outcome.upsert.failed
            totals.failed_ids.extend(outcome.upsert.failed_ids)

        metrics.record_ingestion(
            file_format,
            rows_read=rows_read,
            rows_skipped=rows_skipped,
            inserted=totals.inserted,
            updated=totals.updated,
            unchanged=totals.unchanged,
            failed=totals.failed,
            duration=duration,
        )

        if totals.failed:
            logger.warning(
                f"{totals.failed} upserts were rejected by the store",
                extra={"failed_ids": totals.failed_ids[:self.settings.max_failed_ids]}
            )

        logger.info(
            "Ingestion finished",
            extra={
                "rows_read": rows_read,
                "rows_skipped": rows_skipped,
                "chunks": len(outcomes),
                "inserted": totals.inserted,
                "updated": totals.updated,
                "unchanged": totals.unchanged,
                "failed": totals.failed,
            }
        )

        if totals.applied == 0:
            self._transition(PipelineState.FAILED)
            raise NoApplicableRecords(rows_read, rows_skipped)

        self._transition(PipelineState.COMPLETED)
        return IngestionResult(
            message=SUCCESS_MESSAGE,
            total_records=totals.applied,
            rows_read=rows_read,
            rows_skipped=rows_skipped,
            rows_failed=totals.failed,
            chunks_attempted=len(outcomes),
            inserted=totals.inserted,
            updated=totals.updated,
            failed_ids=totals.failed_ids[:self.settings.max_failed_ids],
            state=self.state.value,
        )

    def _collect(self, dispatched: list[tuple[int, int, int, Future]]) -> list[ChunkOutcome]:
        """Turn settled futures into outcomes; raise for the first failed chunk."""
        outcomes = []
        first_failure: tuple[int, BaseException] | None = None

        for chunk_index, attempted, skipped, future in dispatched:
            error = future.exception()
            metrics.record_chunk(success=error is None)
            if error is not None:
                logger.error(
                    f"Chunk {chunk_index} failed: {error}",
                    extra={"chunk_index": chunk_index, "error_type": type(error).__name__}
                )
                if first_failure is None:
                    first_failure = (chunk_index, error)
                continue
            outcomes.append(ChunkOutcome(
                chunk_index=chunk_index,
                attempted=attempted,
                skipped=skipped,
                upsert=future.result(),
            ))

        if first_failure is not None:
            chunk_index, error = first_failure
            self._transition(PipelineState.FAILED)
            raise ChunkWriteFailure(chunk_index, error) from error
        return outcomes

    def _remove_source(self, path: Path) -> None:
        if not self.settings.remove_source:
            return
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not remove source file {path}: {e}")
