"""
Single-pass row decoder contract shared by every file format.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterator
from pathlib import Path

from src.core.errors import DecoderExhausted
from src.core.models import MAX_FIELD_LENGTH
from src.core.schema import CanonicalRow, HeaderNormalizer


class RowDecoder(ABC):
    """
    Reads a tabular file incrementally and yields canonical rows.

    ``rows()`` may be called once: the returned iterator is lazy, finite
    and cannot be restarted. Only the current row is held in memory.
    """

    extension: str = ""

    def __init__(
        self,
        file_path: str | Path,
        normalizer: HeaderNormalizer | None = None,
        max_field_length: int = MAX_FIELD_LENGTH,
    ):
        """
        Initialize decoder.

        Args:
            file_path: Path to the source file
            normalizer: Header normalizer (default alias table if None)
            max_field_length: Cells are trimmed and cut to this length
        """
        self.file_path = Path(file_path)
        self.normalizer = normalizer or HeaderNormalizer()
        self.max_field_length = max_field_length
        self._consumed = False

    def rows(self) -> Iterator[CanonicalRow]:
        if self._consumed:
            raise DecoderExhausted(self.file_path)
        self._consumed = True
        return self._iter_rows()

    @abstractmethod
    def _iter_rows(self) -> Iterator[CanonicalRow]:
        """Generator doing the actual reading."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.file_path.name})"
