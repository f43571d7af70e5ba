"""
File ingestion and export.
"""

from .chunking import BatchAccumulator, iter_chunks
from .concurrency import BoundedChunkPool
from .exporter import RecordExporter, resolve_format
from .pipeline import IngestionPipeline, PipelineState
from .readers import CsvRowDecoder, ExcelRowDecoder, RowDecoder, decoder_for
from .writers import CsvExportWriter, ExcelExportWriter

__all__ = [
    "BatchAccumulator",
    "BoundedChunkPool",
    "CsvExportWriter",
    "CsvRowDecoder",
    "ExcelExportWriter",
    "ExcelRowDecoder",
    "IngestionPipeline",
    "PipelineState",
    "RecordExporter",
    "RowDecoder",
    "decoder_for",
    "iter_chunks",
    "resolve_format",
]
