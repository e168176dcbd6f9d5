from dataclasses import dataclass
from typing import Dict, Any

import numpy as np

from fractals.base import Fractal, CalculationParameters
from kernel_sources.loader import load_kernel

# Counts are stored as int32, so no cap beyond this range can be observed
_ITER_MIN = -2 ** 31
_ITER_MAX = 2 ** 31 - 1


def _saturate_iterations(max_iterations: int) -> int:
    return min(max(max_iterations, _ITER_MIN), _ITER_MAX)


@dataclass
class MandelbrotFractal(Fractal):
    name: str = "mandelbrot"
    backend: str = "CPU"
    precision: str = "f64"

    def build_arg_values(self, params: CalculationParameters,
                         row_start: int) -> Dict[str, Any]:
        """
        Scalar kernel arguments for a stripe starting at grid row `row_start`.
        Steps are signed so inverted bounds produce a mirrored mapping.
        """
        return {
            "min_real": np.float64(params.min_real),
            "real_step": np.float64(params.real_step),
            "min_imag": np.float64(params.min_imaginary),
            "imag_step": np.float64(params.imag_step),
            "row_start": np.int64(row_start),
            "max_iter": np.int64(_saturate_iterations(params.max_iterations)),
            "sq_radius": np.float64(params.sq_radius),
        }

    def get_kernel(self, backend_name: str = None, precision: str = None) -> Dict[str, Any]:
        return load_kernel(backend_name or self.backend, self.name, "iter",
                           precision or self.precision)

    def output_semantics(self) -> str:
        # iter_raw == max_iterations marks points that never escaped
        return "iter_raw"
