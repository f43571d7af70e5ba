"""
Spreadsheet export writer using openpyxl's write-only (streaming) mode.
"""

from collections.abc import Iterable
from pathlib import Path

from openpyxl import Workbook
from openpyxl.cell import WriteOnlyCell
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.utils import get_column_letter

from src.core.models import EXPORT_COLUMNS, Record

SHEET_TITLE = "UploadData"


def sanitize_cell(value):
    """Strip control characters the xlsx format cannot store."""
    if isinstance(value, str):
        return ILLEGAL_CHARACTERS_RE.sub("", value)
    return value


class ExcelExportWriter:
    """
    Streams rows into a write-only workbook.

    Each appended row is serialized immediately, so memory stays at a small
    multiple of one row regardless of the record count.
    """

    format_name = "excel"
    extension = "xlsx"

    def __init__(self, sheet_title: str = SHEET_TITLE, column_width: int = 20):
        self.sheet_title = sheet_title
        self.column_width = column_width

    def cell(self, worksheet, value):
        """
        Strings are stored as text cells; openpyxl would otherwise turn a
        leading "=" into a formula.
        """
        value = sanitize_cell(value)
        if not isinstance(value, str):
            return value
        cell = WriteOnlyCell(worksheet, value=value)
        cell.data_type = "s"
        return cell

    def write(self, path: Path, records: Iterable[Record]) -> int:
        workbook = Workbook(write_only=True)
        worksheet = workbook.create_sheet(title=self.sheet_title)
        # Column widths must be set before the first row in write-only mode
        for index in range(1, len(EXPORT_COLUMNS) + 1):
            worksheet.column_dimensions[get_column_letter(index)].width = self.column_width
        worksheet.append([label for label, _ in EXPORT_COLUMNS])

        count = 0
        for record in records:
            worksheet.append([self.cell(worksheet, value) for value in record.export_row()])
            count += 1

        workbook.save(path)
        return count
