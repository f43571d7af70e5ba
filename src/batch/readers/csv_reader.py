"""
Delimited-text row decoder built on the stdlib csv module.
"""

import csv
from collections.abc import Iterator
from pathlib import Path

from src.core.errors import MalformedFile
from src.core.models import MAX_FIELD_LENGTH
from src.core.schema import CanonicalRow, HeaderNormalizer
from src.observability.logger import get_logger

from .base_reader import RowDecoder

logger = get_logger(__name__)

# Oversized cells are read then truncated rather than rejected
CSV_FIELD_SIZE_LIMIT = 64 * 1024 * 1024


class CsvRowDecoder(RowDecoder):
    """
    Reads one physical CSV record at a time.

    The first record is the header row. Blank records are skipped.
    """

    extension = ".csv"

    def __init__(
        self,
        file_path: str | Path,
        normalizer: HeaderNormalizer | None = None,
        max_field_length: int = MAX_FIELD_LENGTH,
        delimiter: str = ",",
        encoding: str = "utf-8-sig",
    ):
        super().__init__(file_path, normalizer, max_field_length)
        self.delimiter = delimiter
        self.encoding = encoding

    def _iter_rows(self) -> Iterator[CanonicalRow]:
        if csv.field_size_limit() < CSV_FIELD_SIZE_LIMIT:
            csv.field_size_limit(CSV_FIELD_SIZE_LIMIT)

        try:
            with open(self.file_path, newline="", encoding=self.encoding) as handle:
                reader = csv.reader(handle, delimiter=self.delimiter)
                header = next(reader, None)
                if header is None:
                    logger.warning(f"Empty CSV file: {self.file_path.name}")
                    return

                header_map = self.normalizer.build(header)
                logger.debug(
                    "Mapped CSV header",
                    extra={"file": self.file_path.name, "columns": header_map.columns}
                )
                if "natural_id" not in header_map:
                    logger.warning(
                        f"No ticket reference column in {self.file_path.name}; "
                        "every row will be skipped",
                        extra={"labels": list(header_map.labels)}
                    )

                for values in reader:
                    if not any(value.strip() for value in values):
                        continue
                    yield header_map.apply(values, self.max_field_length)
        except (csv.Error, UnicodeDecodeError) as e:
            raise MalformedFile(self.file_path, str(e)) from e
