"""
Delimited-text export writer.
"""

import csv
from collections.abc import Iterable
from pathlib import Path

from src.core.models import EXPORT_COLUMNS, Record


class CsvExportWriter:
    """
    Writes a header line then one line per record.

    Values are quoted by csv.writer when needed, so commas and line breaks
    inside free text survive a re-ingest.
    """

    format_name = "csv"
    extension = "csv"

    def __init__(self, delimiter: str = ","):
        self.delimiter = delimiter

    def write(self, path: Path, records: Iterable[Record]) -> int:
        """
        Write records to ``path``.

        Returns:
            Number of records written
        """
        count = 0
        with open(path, "w", newline="", encoding="utf-8") as handle:
            writer = csv.writer(handle, delimiter=self.delimiter)
            writer.writerow([label for label, _ in EXPORT_COLUMNS])
            for record in records:
                writer.writerow(record.export_row())
                count += 1
        return count
