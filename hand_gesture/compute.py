"""
Reusable compute context for the per-pixel passes of the pipeline.

Holds the scratch buffers and the worker pool, and abstracts parallel
dispatch behind two ideas: a per-pixel pass (rows split into independent
bands) and a sequence of strictly ordered iterations. A pass returns only
after every band has finished, so iteration k+1 always sees the complete
output of iteration k.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from functools import reduce as _fold
from typing import Callable, List, Optional, Sequence, Tuple

import cv2
import numpy as np

from .exceptions import ComputeUnavailableError

# Errors a kernel or the worker pool can raise while a pass is running
_DISPATCH_ERRORS = (cv2.error, RuntimeError, ValueError, MemoryError, FloatingPointError)


class ComputeContext:
    """
    Long-lived compute state: scratch buffers plus a worker pool.

    One context serves one pipeline invocation at a time; session() holds
    the context lock for the whole invocation so concurrent callers are
    serialized instead of sharing scratch buffers.

    Usage:
        with ComputeContext(shape=(240, 320), num_workers=4) as ctx:
            with ctx.session():
                ctx.dispatch(kernel, ctx.buffer(0), source)
    """

    def __init__(
        self,
        shape: Tuple[int, int] = (240, 320),
        num_workers: int = 1,
        num_buffers: int = 3
    ):
        """
        Create the context.

        Args:
            shape: (rows, cols) of every scratch buffer
            num_workers: Worker threads for a pass (1 = run inline)
            num_buffers: Number of float32 scratch buffers

        Raises:
            ComputeUnavailableError: If the buffers or the pool cannot be created
        """
        if len(shape) != 2 or min(shape) <= 0:
            raise ComputeUnavailableError(f"Invalid compute buffer shape: {shape}")
        if num_workers < 1 or num_buffers < 1:
            raise ComputeUnavailableError("num_workers and num_buffers must be >= 1")

        self.shape = (int(shape[0]), int(shape[1]))
        self.num_workers = num_workers

        try:
            self._buffers = [np.zeros(self.shape, dtype=np.float32) for _ in range(num_buffers)]
            self._executor: Optional[ThreadPoolExecutor] = None
            if num_workers > 1:
                self._executor = ThreadPoolExecutor(
                    max_workers=num_workers,
                    thread_name_prefix="hand-compute"
                )
        except (MemoryError, RuntimeError) as e:
            raise ComputeUnavailableError(f"Could not create compute context: {e}") from e

        self._bands = self._split_rows(self.shape[0], num_workers)
        self._lock = threading.Lock()
        self._closed = False

    @classmethod
    def from_config(cls, config) -> "ComputeContext":
        """Create a context sized for a PipelineConfig canvas."""
        return cls(shape=config.canvas_shape, num_workers=config.num_workers)

    @staticmethod
    def _split_rows(rows: int, parts: int) -> List[Tuple[int, int]]:
        parts = max(1, min(parts, rows))
        edges = np.linspace(0, rows, parts + 1).round().astype(int)
        return [(int(a), int(b)) for a, b in zip(edges[:-1], edges[1:]) if b > a]

    @property
    def closed(self) -> bool:
        return self._closed

    def buffer(self, index: int) -> np.ndarray:
        """Scratch buffer ``index``; contents persist between passes."""
        self._check_open()
        return self._buffers[index]

    def _check_open(self) -> None:
        if self._closed:
            raise ComputeUnavailableError("Compute context has been closed")

    def _check_shape(self, *arrays: np.ndarray) -> None:
        for array in arrays:
            if array.shape[:2] != self.shape:
                raise ComputeUnavailableError(
                    f"Buffer shape {array.shape[:2]} does not match context shape {self.shape}"
                )

    def _run(self, tasks: Sequence[Callable[[], object]]) -> list:
        """Run band tasks and wait for all of them."""
        self._check_open()
        try:
            if self._executor is None or len(tasks) == 1:
                return [task() for task in tasks]
            futures = [self._executor.submit(task) for task in tasks]
            return [future.result() for future in futures]
        except _DISPATCH_ERRORS as e:
            raise ComputeUnavailableError(f"Kernel dispatch failed: {e}") from e

    def dispatch(self, kernel: Callable, out: np.ndarray, *sources: np.ndarray) -> None:
        """
        Per-pixel pass.

        Args:
            kernel: Called as kernel(out_band, *source_bands) and writes into out_band
            out: Destination buffer
            sources: Source buffers of the same shape
        """
        self._check_shape(out, *sources)

        def task(r0: int, r1: int):
            return lambda: kernel(out[r0:r1], *(src[r0:r1] for src in sources))

        self._run([task(r0, r1) for r0, r1 in self._bands])

    def dispatch_window(
        self,
        kernel: Callable[[np.ndarray], np.ndarray],
        out: np.ndarray,
        source: np.ndarray,
        halo: int
    ) -> None:
        """
        Neighbourhood pass: each band is computed from its rows plus ``halo``
        rows of context above and below.

        Args:
            kernel: Called as kernel(source_rows) and returns filtered rows
            out: Destination buffer (must not alias source)
            source: Source buffer
            halo: Rows of context needed on each side
        """
        self._check_shape(out, source)
        rows = self.shape[0]

        def task(r0: int, r1: int):
            def run():
                lo = max(0, r0 - halo)
                hi = min(rows, r1 + halo)
                filtered = kernel(source[lo:hi])
                out[r0:r1] = filtered[r0 - lo:r1 - lo]
            return run

        self._run([task(r0, r1) for r0, r1 in self._bands])

    def reduce(
        self,
        kernel: Callable[[np.ndarray], object],
        source: np.ndarray,
        combine: Callable[[object, object], object]
    ):
        """Global reduction: kernel per band, then partials folded with combine."""
        self._check_shape(source)

        def task(r0: int, r1: int):
            return lambda: kernel(source[r0:r1])

        partials = self._run([task(r0, r1) for r0, r1 in self._bands])
        return _fold(combine, partials)

    def iterate(self, step: Callable[[int], None], iterations: int) -> None:
        """Run ``step(k)`` for k in range(iterations), strictly in order."""
        for k in range(iterations):
            self._check_open()
            step(k)

    @contextmanager
    def session(self):
        """Hold the context for one pipeline invocation."""
        self._check_open()
        with self._lock:
            self._check_open()
            yield self

    def close(self) -> None:
        """Shut down the worker pool and release the buffers."""
        if self._closed:
            return
        self._closed = True
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
        self._buffers = []

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()

    def __del__(self):
        """Cleanup on deletion."""
        if hasattr(self, "_closed"):
            self.close()
