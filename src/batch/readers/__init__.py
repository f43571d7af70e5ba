"""
Row decoders for delimited text and spreadsheet files.
"""

from .base_reader import RowDecoder
from .csv_reader import CsvRowDecoder
from .excel_reader import ExcelRowDecoder
from .file_reader import SUPPORTED_EXTENSIONS, decoder_for, file_extension

__all__ = [
    "RowDecoder",
    "CsvRowDecoder",
    "ExcelRowDecoder",
    "SUPPORTED_EXTENSIONS",
    "decoder_for",
    "file_extension",
]
