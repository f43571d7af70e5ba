"""
Spreadsheet row decoder using openpyxl's read-only streaming mode.
"""

import zipfile
from collections.abc import Iterator
from datetime import date, datetime, time
from typing import Any

import openpyxl
from openpyxl.utils.exceptions import InvalidFileException

from src.core.errors import MalformedFile
from src.core.schema import CanonicalRow
from src.observability.logger import get_logger

from .base_reader import RowDecoder

logger = get_logger(__name__)


def cell_text(value: Any) -> str:
    """Render a cell the way it reads in the sheet ('1001', not '1001.0')."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value).upper()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return str(value)


class ExcelRowDecoder(RowDecoder):
    """
    Iterates every worksheet of an .xlsx workbook.

    Row 1 of each sheet is its header row; sheets without one are skipped.
    The workbook is never fully loaded and is closed when iteration ends.
    """

    extension = ".xlsx"

    def _iter_rows(self) -> Iterator[CanonicalRow]:
        try:
            workbook = openpyxl.load_workbook(self.file_path, read_only=True, data_only=True)
        except (InvalidFileException, zipfile.BadZipFile, KeyError) as e:
            raise MalformedFile(self.file_path, str(e)) from e

        try:
            for sheet_index, worksheet in enumerate(workbook.worksheets, start=1):
                rows_iter = worksheet.iter_rows(values_only=True)
                header = next(rows_iter, None)
                if header is None:
                    logger.debug(f"Sheet {sheet_index} ({worksheet.title}) is empty")
                    continue

                header_map = self.normalizer.build(cell_text(v) for v in header)
                logger.debug(
                    "Mapped worksheet header",
                    extra={"sheet": worksheet.title, "columns": header_map.columns}
                )
                if "natural_id" not in header_map:
                    logger.warning(
                        f"No ticket reference column in sheet '{worksheet.title}'",
                        extra={"labels": list(header_map.labels)}
                    )

                for values in rows_iter:
                    cells = [cell_text(v) for v in values]
                    if not any(cell.strip() for cell in cells):
                        continue
                    yield header_map.apply(cells, self.max_field_length)
        finally:
            workbook.close()
