from __future__ import annotations
from typing import Dict, Any, List, Tuple

# (fractal, op_name, BACKEND, precision) -> kernel meta
_KERNELS: Dict[Tuple[str, str, str, str], Dict[str, Any]] = {}

# (fractal, op_name) -> backend-agnostic descriptor: output dtype, defaults
_OP_DESCRIPTORS: Dict[Tuple[str, str], Dict[str, Any]] = {}


def _key(fractal: str, op_name: str, backend: str, precision: str) -> Tuple[str, str, str, str]:
    return fractal, op_name, backend.upper(), precision


def register_kernel(fractal: str, op_name: str, backend: str, precision: str, **meta: Any) -> None:
    """
    Register a compiled kernel and its calling convention.
    Example:
        register_kernel("mandelbrot", "iter", "CPU", "f64", func=kernel, arg_order=[...],
                        produces=["iter_raw"])
    Registering the same key again replaces the earlier entry.
    """
    _KERNELS[_key(fractal, op_name, backend, precision)] = meta


def register_op_descriptor(fractal: str, op_name: str, **descriptor: Any) -> None:
    _OP_DESCRIPTORS[(fractal, op_name)] = descriptor


def load_kernel(backend: str, fractal: str, op_name: str, precision: str) -> Dict[str, Any]:
    """
    Raises KeyError if nothing is registered under the key.
    """
    key = _key(fractal, op_name, backend, precision)
    try:
        return _KERNELS[key]
    except KeyError as e:
        raise KeyError("No kernel registered for fractal='%s', op='%s', backend='%s', precision='%s'" % key) from e


def list_kernels(fractal: str, backend: str, precision: str) -> List[str]:
    """Operation names registered for one fractal on one backend/precision."""
    be = backend.upper()
    return sorted(op for (f, op, b, p) in _KERNELS if f == fractal and b == be and p == precision)


def get_op_descriptor(fractal: str, op_name: str) -> Dict[str, Any]:
    try:
        return _OP_DESCRIPTORS[(fractal, op_name)]
    except KeyError as e:
        raise KeyError(f"No descriptor for fractal='{fractal}', op='{op_name}'") from e
