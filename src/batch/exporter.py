"""
Export of filtered work items to CSV or XLSX files.
"""

import time
from collections.abc import Callable
from pathlib import Path

from src.batch.writers import CsvExportWriter, ExcelExportWriter
from src.core.config import PipelineSettings
from src.core.errors import EmptyResultSet, UnsupportedFormat
from src.core.models import ExportFilter, ExportResult, FetchResult
from src.observability import metrics
from src.observability.logger import get_logger, log_operation
from src.warehouse.store import RecordStore

logger = get_logger(__name__)

WRITERS = {
    "csv": CsvExportWriter,
    "excel": ExcelExportWriter,
}

FORMAT_ALIASES = {
    "csv": "csv",
    "text": "csv",
    "excel": "excel",
    "xlsx": "excel",
    "spreadsheet": "excel",
}

DEFAULT_FORMAT = "excel"


def resolve_format(fmt: str | None) -> str:
    """Map a caller's format selector onto 'csv' or 'excel'."""
    key = (fmt or DEFAULT_FORMAT).strip().lower()
    if key not in FORMAT_ALIASES:
        raise UnsupportedFormat(key, tuple(FORMAT_ALIASES))
    return FORMAT_ALIASES[key]


class RecordExporter:
    """
    Queries filtered records and writes them to a uniquely named file.

    Output files land in ``settings.export_dir`` as
    ``<prefix>_<epoch-millis>.<ext>`` and are served from
    ``<public_base_url>/exports/<filename>``.
    """

    def __init__(
        self,
        store: RecordStore,
        settings: PipelineSettings | None = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize exporter.

        Args:
            store: Record store to query
            settings: Pipeline settings (defaults if None)
            clock: Returns epoch seconds; used for the filename timestamp
        """
        self.store = store
        self.settings = settings or PipelineSettings()
        self.clock = clock

    def fetch(self, export_filter: ExportFilter | None = None) -> FetchResult:
        records = self.store.find_records(export_filter or ExportFilter())
        return FetchResult(total_records=len(records), data=records)

    def export(self, export_filter: ExportFilter | None = None, fmt: str | None = DEFAULT_FORMAT) -> ExportResult:
        """
        Export matching records.

        Args:
            export_filter: Filter to apply (everything if None)
            fmt: "csv"/"text" or "excel"/"xlsx"/"spreadsheet"

        Returns:
            ExportResult with url, filename and path

        Raises:
            UnsupportedFormat: Unknown format selector
            EmptyResultSet: Nothing matched; no file is written
        """
        export_filter = export_filter or ExportFilter()
        format_name = resolve_format(fmt)
        writer = WRITERS[format_name]()

        with log_operation("export", logger=logger, format=format_name, filters=export_filter.describe()) as op:
            records = self.store.find_records(export_filter)
            if not records:
                raise EmptyResultSet(export_filter.describe())

            export_dir = Path(self.settings.export_dir)
            export_dir.mkdir(parents=True, exist_ok=True)
            path = self._output_path(export_dir, writer.extension)
            count = writer.write(path, records)
            duration = op.elapsed

        metrics.record_export(format_name, count, duration)
        url = f"{self.settings.public_base_url.rstrip('/')}/exports/{path.name}"
        logger.info(f"Exported {count} records to {path.name}", extra={"format": format_name})
        return ExportResult(url=url, filename=path.name, path=path, record_count=count)

    def _output_path(self, export_dir: Path, extension: str) -> Path:
        stamp = int(self.clock() * 1000)
        base = f"{self.settings.export_prefix}_{stamp}"
        path = export_dir / f"{base}.{extension}"
        suffix = 1
        while path.exists():
            path = export_dir / f"{base}_{suffix}.{extension}"
            suffix += 1
        return path
