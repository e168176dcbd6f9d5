from numba import njit

from kernel_sources.registry import register_kernel


ARG_SCALARS = [
    "min_real", "real_step", "min_imag", "imag_step",
    "row_start", "max_iter", "sq_radius",
]
ARG_BUFFERS_IN = []
ARG_BUFFERS_OUT = ["iter_raw"]

ARG_ORDER = ARG_SCALARS + ARG_BUFFERS_IN + ARG_BUFFERS_OUT


# No fastmath: the escape test must keep IEEE comparison semantics so that
# negative radii and NaN coordinates behave exactly like the reference loop.
@njit(cache=True, nogil=True)
def _mandelbrot_iter(min_real, real_step, min_imag, imag_step,
                     row_start, max_iter, sq_radius,
                     iter_raw):
    H, W = iter_raw.shape
    for y in range(H):
        ci = min_imag + (row_start + y) * imag_step
        for x in range(W):
            cr = min_real + x * real_step

            zr = 0.0
            zi = 0.0
            n = 0

            while n < max_iter and zr*zr + zi*zi <= sq_radius:
                zr2 = zr*zr - zi*zi + cr
                zi2 = 2.0 * zr * zi + ci
                zr, zi = zr2, zi2
                n += 1

            iter_raw[y, x] = n


register_kernel(
    fractal="mandelbrot",
    op_name="iter",
    backend="CPU",
    precision="f64",
    func=_mandelbrot_iter,
    arg_order=ARG_ORDER,
    produces=ARG_BUFFERS_OUT,
)
