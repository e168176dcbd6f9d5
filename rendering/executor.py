from __future__ import annotations

import logging
import os
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, List, Tuple

import numpy as np

from fractals.base import Fractal, CalculationParameters

logger = logging.getLogger(__name__)

GRID_DTYPE = np.int32


class RenderCancelled(RuntimeError):
    """Raised when a compute is abandoned through its CancelToken."""


class CancelToken:
    def __init__(self) -> None:
        self._flag = threading.Event()

    def cancel(self) -> None:
        self._flag.set()

    def is_cancelled(self) -> bool:
        return self._flag.is_set()


# ---- Executor -----------------------------------------------------------

class RenderExecutor:
    """
    Runs a fractal kernel over horizontal stripes of the grid on a thread pool
    and assembles the stripes into one canvas.

    Stripes are independent and each kernel call receives its absolute row
    offset, so the canvas does not depend on max_workers or stripe_rows.
    """

    def __init__(
        self,
        *,
        max_workers: Optional[int] = None,
        stripe_rows: Optional[int] = None,
    ) -> None:
        self.max_workers = max(1, int(max_workers or os.cpu_count() or 1))
        self.stripe_rows = int(stripe_rows) if stripe_rows else None
        self._pool: Optional[ThreadPoolExecutor] = None
        self._pool_lock = threading.Lock()

    # ---- Lifecycle ------------------------------------------------------

    def _get_pool(self) -> ThreadPoolExecutor:
        with self._pool_lock:
            if self._pool is None:
                self._pool = ThreadPoolExecutor(max_workers=self.max_workers,
                                                thread_name_prefix="escape-time")
            return self._pool

    def close(self) -> None:
        with self._pool_lock:
            if self._pool is not None:
                self._pool.shutdown(wait=True)
                self._pool = None

    # ---- Stripe splitting -----------------------------------------------

    def split_rows(self, height: int) -> List[Tuple[int, int]]:
        """
        Returns (row_start, row_count) stripes covering [0, height).
        """
        if self.stripe_rows:
            base = self.stripe_rows
        else:
            base = max(1, -(-height // self.max_workers))
        stripes: List[Tuple[int, int]] = []
        off = 0
        while off < height:
            h = min(base, height - off)
            stripes.append((off, h))
            off += h
        return stripes

    # ---- Render ---------------------------------------------------------

    @staticmethod
    def _run_stripe(fractal: Fractal, meta: dict, params: CalculationParameters,
                    row_start: int, rows: int) -> np.ndarray:
        scalars = fractal.build_arg_values(params, row_start)
        dtype = np.dtype(meta.get("output_dtype", GRID_DTYPE))
        buffers = {name: np.zeros((rows, params.x_res), dtype=dtype)
                   for name in meta["produces"]}
        arg_map = {**scalars, **buffers}
        ordered = [arg_map[name] for name in meta["arg_order"]]
        meta["func"](*ordered)
        return buffers[fractal.output_semantics()]

    def render(
        self,
        fractal: Fractal,
        params: CalculationParameters,
        cancel: Optional[CancelToken] = None,
    ) -> np.ndarray:
        if cancel is not None and cancel.is_cancelled():
            raise RenderCancelled("Compute cancelled before start.")

        meta = fractal.get_kernel()
        stripes = self.split_rows(params.y_res)
        canvas = np.zeros(params.shape, dtype=GRID_DTYPE)
        t0 = time.perf_counter()

        if len(stripes) == 1 or self.max_workers == 1:
            for row_start, rows in stripes:
                if cancel is not None and cancel.is_cancelled():
                    raise RenderCancelled("Compute cancelled between stripes.")
                canvas[row_start:row_start + rows, :] = self._run_stripe(
                    fractal, meta, params, row_start, rows)
        else:
            pool = self._get_pool()

            def run(row_start: int, rows: int) -> Optional[np.ndarray]:
                # Stripes not yet started are skipped once cancelled
                if cancel is not None and cancel.is_cancelled():
                    return None
                return self._run_stripe(fractal, meta, params, row_start, rows)

            futs = [(row_start, rows, pool.submit(run, row_start, rows))
                    for row_start, rows in stripes]
            skipped = 0
            for row_start, rows, fut in futs:
                part = fut.result()
                if part is None:
                    skipped += 1
                else:
                    canvas[row_start:row_start + rows, :] = part
            if skipped:
                raise RenderCancelled(f"Compute cancelled with {skipped} of {len(stripes)} stripes pending.")

        elapsed = (time.perf_counter() - t0) * 1000.0
        logger.debug("Computed %dx%d grid in %d stripes on %d workers in %.2f ms",
                     params.x_res, params.y_res, len(stripes), self.max_workers, elapsed)
        return canvas
