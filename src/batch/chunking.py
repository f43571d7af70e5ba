"""
Batch accumulation: group decoded rows into bounded chunks.
"""

from collections.abc import Iterable, Iterator
from typing import Generic, TypeVar

from src.core.config import DEFAULT_CHUNK_SIZE

T = TypeVar("T")


class BatchAccumulator(Generic[T]):
    """
    Buffers items and hands back a detached chunk every ``chunk_size`` items.

    Chunk size bounds memory and unit-of-work size only; it has no effect on
    what ends up in the store.
    """

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE):
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")
        self.chunk_size = chunk_size
        self._buffer: list[T] = []

    def __len__(self) -> int:
        return len(self._buffer)

    def add(self, item: T) -> list[T] | None:
        """Buffer an item; return the full chunk once the buffer reaches size."""
        self._buffer.append(item)
        if len(self._buffer) >= self.chunk_size:
            return self._detach()
        return None

    def flush(self) -> list[T] | None:
        """Return the remaining (possibly undersized) chunk, if any."""
        if not self._buffer:
            return None
        return self._detach()

    def _detach(self) -> list[T]:
        chunk, self._buffer = self._buffer, []
        return chunk


def iter_chunks(items: Iterable[T], chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[list[T]]:
    """Lazily split an iterable into lists of at most ``chunk_size`` items."""
    accumulator: BatchAccumulator[T] = BatchAccumulator(chunk_size)
    for item in items:
        chunk = accumulator.add(item)
        if chunk is not None:
            yield chunk
    tail = accumulator.flush()
    if tail is not None:
        yield tail
