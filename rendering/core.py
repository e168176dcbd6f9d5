from __future__ import annotations
import numpy as np
from typing import Optional

from fractals.base import Fractal, CalculationParameters
from fractals.mandelbrot import MandelbrotFractal
from fractals.validation import validate_parameters
from rendering.executor import RenderExecutor, CancelToken


class EscapeTimeEngine:

    """
    Facade that binds together:
      - the fractal (kernel selection + argument binding),
      - the render executor (stripes + thread pool)

    compute() is a pure function of its parameters: the same input always
    yields the same grid, whatever the executor's degree of parallelism.
    """

    def __init__(
        self,
        fractal: Optional[Fractal] = None,
        *,
        executor: Optional[RenderExecutor] = None,
        max_workers: Optional[int] = None,
        stripe_rows: Optional[int] = None,
    ):
        self.fractal = fractal or MandelbrotFractal()
        self.executor = executor or RenderExecutor(max_workers=max_workers,
                                                   stripe_rows=stripe_rows)

    def compute(self, params: CalculationParameters,
                cancel: Optional[CancelToken] = None) -> np.ndarray:
        """
        Returns the (y_res, x_res) int32 grid of escape-time counts.
        Raises RenderCancelled if `cancel` fires before every stripe is done.
        """
        validate_parameters(params)
        return self.executor.render(self.fractal, params, cancel)

    def close(self) -> None:
        self.executor.close()

    def __enter__(self) -> "EscapeTimeEngine":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


def compute(params: CalculationParameters, max_workers: int = 1) -> np.ndarray:
    """One-shot compute without keeping a thread pool around."""
    with EscapeTimeEngine(max_workers=max_workers) as engine:
        return engine.compute(params)
