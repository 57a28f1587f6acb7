"""
Data-parallel execution helpers.

``ParallelExecutor.parallel_for`` runs independent iterations on a thread
pool and returns only once every iteration has finished. Results produced
concurrently are gathered in a ``KeypointCollector`` owned by the pipeline
pass that created it.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed

logger = logging.getLogger(__name__)


class ParallelExecutor:
    """
    Fixed-size worker pool for "for i in range(n): fn(i)" jobs.

    With ``max_workers=1`` iterations run inline on the calling thread.
    Use as a context manager so the pool is shut down after the run.
    """

    def __init__(self, max_workers=None):
        if max_workers is not None and max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")
        self.max_workers = max_workers
        self._pool = None
        if max_workers != 1:
            self._pool = ThreadPoolExecutor(
                max_workers=max_workers, thread_name_prefix="puresift"
            )

    def parallel_for(self, n, fn):
        """
        Run ``fn(i)`` for every ``i`` in ``range(n)`` and wait for all of them.

        The first exception raised by a worker is re-raised after the
        remaining iterations are cancelled or finished.
        """
        if n <= 0:
            return
        if self._pool is None or n == 1:
            for i in range(n):
                fn(i)
            return

        futures = [self._pool.submit(fn, i) for i in range(n)]
        try:
            for future in as_completed(futures):
                future.result()
        except BaseException:
            for future in futures:
                future.cancel()
            raise

    def shutdown(self):
        if self._pool is not None:
            self._pool.shutdown(wait=True)
            self._pool = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.shutdown()
        return False


class KeypointCollector:
    """Append-only sequence safe for concurrent writers."""

    def __init__(self):
        self._items = []
        self._lock = threading.Lock()

    def append(self, item):
        with self._lock:
            self._items.append(item)

    def extend(self, items):
        items = list(items)
        with self._lock:
            self._items.extend(items)

    def snapshot(self):
        with self._lock:
            return list(self._items)

    def __len__(self):
        with self._lock:
            return len(self._items)
