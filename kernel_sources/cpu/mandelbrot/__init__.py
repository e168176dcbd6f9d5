from kernel_sources.registry import register_op_descriptor

# "iter" produces raw escape-time counts; no deps.
register_op_descriptor(
    "mandelbrot", "iter",
    depends_on=[],
    output_dtype="int32",
)
