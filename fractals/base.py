from dataclasses import dataclass, replace, asdict
from typing import Dict, Any
from abc import ABC, abstractmethod

from fractals.validation import validate_parameters


# Default view of the set
DEFAULT_MAX_ITERATIONS = 50
DEFAULT_MIN_REAL = -2.0
DEFAULT_MAX_REAL = 0.7
DEFAULT_MIN_IMAGINARY = -1.25
DEFAULT_MAX_IMAGINARY = 1.25
DEFAULT_SQ_RADIUS = 4.0


@dataclass(frozen=True)
class CalculationParameters:
    """
    Describes one view of the fractal.
    X and Y resolution determine the size of the iteration grid in pixels.
    The real/imaginary limits determine the area of the complex plane mapped
    onto that grid; they are not required to be ordered.
    Max_iterations caps the escape-time loop and sq_radius is the squared
    escape threshold. Neither is range checked.
    """
    x_res: int
    y_res: int
    max_iterations: int
    min_real: float
    max_real: float
    min_imaginary: float
    max_imaginary: float
    sq_radius: float

    def __post_init__(self) -> None:
        # Raises InvalidResolution / ParameterError before any field is normalised
        validate_parameters(self)
        for name in ("x_res", "y_res", "max_iterations"):
            object.__setattr__(self, name, int(getattr(self, name)))
        for name in ("min_real", "max_real", "min_imaginary", "max_imaginary", "sq_radius"):
            object.__setattr__(self, name, float(getattr(self, name)))

    @classmethod
    def default(cls, x_res: int, y_res: int) -> "CalculationParameters":
        return cls(
            x_res=x_res,
            y_res=y_res,
            max_iterations=DEFAULT_MAX_ITERATIONS,
            min_real=DEFAULT_MIN_REAL,
            max_real=DEFAULT_MAX_REAL,
            min_imaginary=DEFAULT_MIN_IMAGINARY,
            max_imaginary=DEFAULT_MAX_IMAGINARY,
            sq_radius=DEFAULT_SQ_RADIUS,
        )

    # ---- copy-on-write helpers -------------------------------------------

    def with_bounds(self, min_real: float, max_real: float,
                    min_imaginary: float, max_imaginary: float) -> "CalculationParameters":
        return replace(self, min_real=min_real, max_real=max_real,
                       min_imaginary=min_imaginary, max_imaginary=max_imaginary)

    def with_resolution(self, x_res: int, y_res: int) -> "CalculationParameters":
        return replace(self, x_res=x_res, y_res=y_res)

    def with_max_iterations(self, max_iterations: int) -> "CalculationParameters":
        return replace(self, max_iterations=max_iterations)

    def with_sq_radius(self, sq_radius: float) -> "CalculationParameters":
        return replace(self, sq_radius=sq_radius)

    # ---- derived values --------------------------------------------------

    @property
    def real_step(self) -> float:
        """Real-axis distance covered by one pixel (negative for inverted bounds)."""
        return (self.max_real - self.min_real) / self.x_res

    @property
    def imag_step(self) -> float:
        """Imaginary-axis distance covered by one pixel."""
        return (self.max_imaginary - self.min_imaginary) / self.y_res

    @property
    def shape(self) -> tuple:
        return (self.y_res, self.x_res)

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


class Fractal(ABC):
    """
    An abstract base class for escape-time fractal types.
    """
    name: str

    @abstractmethod
    def build_arg_values(self, params: CalculationParameters,
                         row_start: int) -> Dict[str, Any]:
        ...

    @abstractmethod
    def get_kernel(self, backend_name: str, precision: str) -> Dict[str, Any]:
        ...

    @abstractmethod
    def output_semantics(self) -> str:
        ...
