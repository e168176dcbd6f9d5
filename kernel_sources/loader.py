from __future__ import annotations
import importlib
import logging
from typing import Dict, Any

from kernel_sources.registry import get_op_descriptor, load_kernel as load_registered

logger = logging.getLogger(__name__)

KERNEL_ROOT = "kernel_sources"


def _module_name(backend: str, fractal: str, operation: str) -> str:
    return f"{KERNEL_ROOT}.{backend.lower()}.{fractal.lower()}.{operation.lower()}"


def load_kernel(backend: str, fractal: str, operation: str, precision: str) -> Dict[str, Any]:
    """
    Return kernel metadata from the registry, importing the kernel module by
    convention (kernel_sources.<backend>.<fractal>.<operation>) on first use.
    """
    try:
        meta = load_registered(backend, fractal, operation, precision)
    except KeyError:
        module = _module_name(backend, fractal, operation)
        logger.debug("Importing kernel module %s", module)
        try:
            importlib.import_module(module)
        except ImportError as e:
            raise KeyError(f"No kernel module '{module}' for {fractal}.{operation}") from e
        meta = load_registered(backend, fractal, operation, precision)
    _validate_meta(meta, f"registry[{fractal}.{operation}:{backend}/{precision}]")
    if "output_dtype" not in meta:
        try:
            descriptor = get_op_descriptor(fractal, operation)
        except KeyError:
            # undescribed ops fall back to the executor's grid dtype
            descriptor = {}
        if "output_dtype" in descriptor:
            meta["output_dtype"] = descriptor["output_dtype"]
    return meta


def _validate_meta(meta: Dict[str, Any], where: str) -> None:
    if "arg_order" not in meta or not isinstance(meta["arg_order"], (list, tuple)):
        raise KeyError(f"{where} must provide an 'arg_order' list")
    if "func" not in meta or not callable(meta["func"]):
        raise KeyError(f"{where} must provide a callable 'func'")

    if not isinstance(meta.get("produces"), (list, tuple)):
        raise KeyError(f"{where} must provide a 'produces' list")
