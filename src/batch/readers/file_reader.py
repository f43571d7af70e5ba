"""
Pick the row decoder for a file from its extension.
"""

from pathlib import Path

from src.core.errors import UnsupportedFormat

from .base_reader import RowDecoder
from .csv_reader import CsvRowDecoder
from .excel_reader import ExcelRowDecoder

DECODERS: dict[str, type[RowDecoder]] = {
    CsvRowDecoder.extension: CsvRowDecoder,
    ExcelRowDecoder.extension: ExcelRowDecoder,
}

SUPPORTED_EXTENSIONS = tuple(DECODERS)


def file_extension(file_path: str | Path) -> str:
    return Path(file_path).suffix.lower()


def decoder_for(file_path: str | Path, **options) -> RowDecoder:
    """
    Build the decoder matching a file's extension.

    Args:
        file_path: Path to the source file
        **options: Passed to the decoder constructor

    Returns:
        RowDecoder instance (nothing is read yet)

    Raises:
        UnsupportedFormat: If the extension is not supported
    """
    extension = file_extension(file_path)
    decoder_cls = DECODERS.get(extension)
    if decoder_cls is None:
        raise UnsupportedFormat(extension, SUPPORTED_EXTENSIONS)
    return decoder_cls(file_path, **options)
