import math

from fractals.base import CalculationParameters

# Largest value the magnification read-out can show; also returned when the
# viewport has no area.
INFINITE_MAGNIFICATION = 2 ** 31 - 1


def pixel_to_complex(px, py, params: CalculationParameters):
    real = params.min_real + px * params.real_step
    imag = params.min_imaginary + py * params.imag_step
    return real, imag


def complex_to_pixel(real, imag, params: CalculationParameters):
    """
    Inverse of pixel_to_complex, as fractional pixel coordinates.
    A degenerate axis has no inverse and yields nan on that axis.
    """
    rs, is_ = params.real_step, params.imag_step
    px = (real - params.min_real) / rs if rs != 0 else math.nan
    py = (imag - params.min_imaginary) / is_ if is_ != 0 else math.nan
    return px, py


def pan(params: CalculationParameters, pixel_dx, pixel_dy,
        sensitivity=1.0) -> CalculationParameters:
    """
    Translate the view by a pixel offset; the width and height of the region
    are unchanged.
    """
    h_shift = pixel_dx * params.real_step * sensitivity
    v_shift = pixel_dy * params.imag_step * sensitivity
    return params.with_bounds(
        params.min_real + h_shift,
        params.max_real + h_shift,
        params.min_imaginary + v_shift,
        params.max_imaginary + v_shift,
    )


def zoom_to_pixel_rect(params: CalculationParameters, min_px_x, min_px_y,
                       max_px_x, max_px_y) -> CalculationParameters:
    """
    Map a selected pixel rectangle back to complex-plane bounds.
    The near edge is offset from the minimum bound, the far edge from the
    resolution boundary. Corners are used as given, unsorted.
    """
    rs, is_ = params.real_step, params.imag_step
    return params.with_bounds(
        params.min_real + min_px_x * rs,
        params.max_real - (params.x_res - max_px_x) * rs,
        params.min_imaginary + min_px_y * is_,
        params.max_imaginary - (params.y_res - max_px_y) * is_,
    )


def magnification(params: CalculationParameters) -> int:
    """
    1 / viewport area, truncated toward zero.
    Returns INFINITE_MAGNIFICATION instead of dividing by a zero area.
    """
    area = abs(params.max_real - params.min_real) * abs(params.max_imaginary - params.min_imaginary)
    if math.isnan(area):
        return 0
    if area * INFINITE_MAGNIFICATION <= 1.0:
        return INFINITE_MAGNIFICATION
    return int(1.0 / area)
