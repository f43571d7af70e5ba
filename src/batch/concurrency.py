"""
Bounded worker pool for chunk writes.

A thread pool whose ``submit`` blocks the producer while ``max_workers``
tasks are already in flight, so at most ``max_workers`` chunks are held
beyond the one being decoded.
"""

import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Any

from src.core.config import DEFAULT_MAX_WORKERS
from src.observability.logger import get_logger

logger = get_logger(__name__)


class BoundedChunkPool:
    """
    Admits at most ``max_workers`` concurrent tasks, queuing the producer.

    Usage:
        with BoundedChunkPool(5) as pool:
            for chunk in chunks:
                if pool.failed:
                    break
                pool.submit(write_chunk, chunk)
            pool.drain()

    Leaving the context waits for every admitted task.
    """

    def __init__(self, max_workers: int = DEFAULT_MAX_WORKERS, thread_name_prefix: str = "chunk-writer"):
        if max_workers < 1:
            raise ValueError("BoundedChunkPool requires max_workers >= 1")
        self.max_workers = max_workers
        self.thread_name_prefix = thread_name_prefix
        self._slots = threading.BoundedSemaphore(max_workers)
        self._lock = threading.Lock()
        self._failed = threading.Event()
        self._futures: list[Future] = []
        self._executor: ThreadPoolExecutor | None = None
        self.active = 0
        self.peak_active = 0

    def __enter__(self):
        self._executor = ThreadPoolExecutor(
            max_workers=self.max_workers,
            thread_name_prefix=self.thread_name_prefix,
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=True)
        return False

    @property
    def failed(self) -> bool:
        """True once any admitted task has raised."""
        return self._failed.is_set()

    @property
    def submitted(self) -> int:
        return len(self._futures)

    def submit(self, fn: Callable[..., Any], *args, **kwargs) -> Future:
        """
        Run ``fn`` on the pool, blocking until a slot is free.

        Raises:
            RuntimeError: If the pool is not open
        """
        if self._executor is None:
            raise RuntimeError("BoundedChunkPool is not open. Use it as a context manager.")

        self._slots.acquire()
        try:
            future = self._executor.submit(self._run, fn, *args, **kwargs)
        except BaseException:
            self._slots.release()
            raise
        self._futures.append(future)
        return future

    def _run(self, fn: Callable[..., Any], *args, **kwargs) -> Any:
        with self._lock:
            self.active += 1
            self.peak_active = max(self.peak_active, self.active)
        try:
            return fn(*args, **kwargs)
        except Exception:
            self._failed.set()
            raise
        finally:
            with self._lock:
                self.active -= 1
            self._slots.release()

    def drain(self) -> list[Future]:
        """Wait for every submitted task to settle and return their futures."""
        if self._futures:
            wait(self._futures)
        logger.debug(
            "Chunk pool drained",
            extra={"submitted": self.submitted, "peak_active": self.peak_active}
        )
        return list(self._futures)
