import pytest

from fractals.base import CalculationParameters
from rendering.core import EscapeTimeEngine
from rendering.service import FractalSessionController


@pytest.fixture
def scenario_params():
    return CalculationParameters(
        x_res=10, y_res=10, max_iterations=50,
        min_real=-2.0, max_real=1.0,
        min_imaginary=-1.5, max_imaginary=1.5,
        sq_radius=4.0,
    )


@pytest.fixture
def small_params():
    return CalculationParameters.default(16, 12)


@pytest.fixture
def engine():
    with EscapeTimeEngine(max_workers=2) as eng:
        yield eng


@pytest.fixture
def controller(small_params, engine):
    return FractalSessionController(small_params, engine=engine)


@pytest.fixture
def reference_grid():
    return _reference_grid


def _reference_grid(params):
    """Straight Python escape-time loop, one pixel at a time."""
    grid = []
    for py in range(params.y_res):
        row = []
        ci = params.min_imaginary + py * params.imag_step
        for px in range(params.x_res):
            cr = params.min_real + px * params.real_step
            zr = zi = 0.0
            n = 0
            while n < params.max_iterations and zr*zr + zi*zi <= params.sq_radius:
                zr, zi = zr*zr - zi*zi + cr, 2.0 * zr * zi + ci
                n += 1
            row.append(n)
        grid.append(row)
    return grid
