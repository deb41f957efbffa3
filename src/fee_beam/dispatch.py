"""
Parallel evaluation of large direction batches.
"""

import logging
import threading
import numpy as np
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Callable, Optional

from .errors import ResourceError
from .utilities import DEFAULT_CHUNK_SIZE

logger = logging.getLogger(__name__)

ChunkFunc = Callable[[np.ndarray, np.ndarray, np.ndarray], None]


class BatchDispatcher:
    """
    Split a batch of directions into chunks and evaluate them on a thread pool.

    Each chunk writes into its own slice of a preallocated (N, 2, 2) output
    array, so results are always in input order. numpy releases the GIL in
    its vectorised kernels, so chunks run concurrently.
    """

    def __init__(self, max_workers: Optional[int] = None, chunk_size: int = DEFAULT_CHUNK_SIZE):
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self.max_workers = max_workers
        self.chunk_size = int(chunk_size)
        self._executor = None
        self._lock = threading.Lock()

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=self.max_workers,
                                                    thread_name_prefix='fee-beam')
            return self._executor

    def run(self, func: ChunkFunc, az: np.ndarray, za: np.ndarray) -> np.ndarray:
        """
        Evaluate ``func(az_chunk, za_chunk, out_chunk)`` over all directions.

        Args:
            func: Fills out_chunk, shape (k, 2, 2), for the given directions
            az: Azimuths, shape (N,)
            za: Zenith angles, shape (N,)

        Returns:
            Complex array of shape (N, 2, 2)

        Raises:
            ResourceError: If the output or a chunk workspace cannot be allocated
            Any exception raised by ``func``; remaining chunks are cancelled
        """
        n_dirs = len(az)
        try:
            out = np.empty((n_dirs, 2, 2), dtype=np.complex128)
        except MemoryError as e:
            raise ResourceError(f"Cannot allocate output for {n_dirs} directions") from e

        bounds = [(start, min(start + self.chunk_size, n_dirs))
                  for start in range(0, n_dirs, self.chunk_size)]

        try:
            if len(bounds) <= 1:
                func(az, za, out)
                return out

            logger.debug(f"Dispatching {n_dirs} directions as {len(bounds)} chunks")
            executor = self._get_executor()
            futures = [executor.submit(func, az[lo:hi], za[lo:hi], out[lo:hi]) for lo, hi in bounds]
            done, pending = wait(futures, return_when=FIRST_EXCEPTION)
            for future in pending:
                future.cancel()
            for future in futures:
                if future.done() and not future.cancelled() and future.exception() is not None:
                    wait(pending)
                    raise future.exception()
            # Nothing failed, so everything finished
            return out
        except ResourceError:
            raise
        except MemoryError as e:
            raise ResourceError(f"Out of memory evaluating {n_dirs} directions") from e

    def shutdown(self) -> None:
        with self._lock:
            if self._executor is not None:
                self._executor.shutdown(wait=True)
                self._executor = None
