from __future__ import annotations
import numbers
from typing import List, Any

INT_FIELDS = ("x_res", "y_res", "max_iterations")
FLOAT_FIELDS = ("min_real", "max_real", "min_imaginary", "max_imaginary", "sq_radius")


class ParameterError(ValueError):
    """Aggregated CalculationParameters validation error(s)."""


class InvalidResolution(ParameterError):
    """Raised when x_res or y_res is not strictly positive."""


def is_int(value: Any) -> bool:
    return isinstance(value, numbers.Integral) and not isinstance(value, bool)


def is_real(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def validate_resolution(x_res: Any, y_res: Any) -> None:
    """
    Raises InvalidResolution unless both dimensions are positive integers.
    """
    errors: List[str] = []
    for name, value in (("x_res", x_res), ("y_res", y_res)):
        if not is_int(value):
            errors.append(f"{name} must be an integer, got {type(value).__name__}.")
        elif value <= 0:
            errors.append(f"{name} must be greater than 0, got {value}.")
    if errors:
        raise InvalidResolution("Invalid resolution:\n- " + "\n- ".join(errors))


def validate_parameters(params: Any) -> None:
    """
    Validates the field types of a parameter record and its resolution.
    Raises ParameterError for type problems, InvalidResolution when only the
    resolution is out of range. Bounds ordering, iteration caps and the
    escape radius are deliberately left unchecked.
    """
    errors: List[str] = []

    for name in INT_FIELDS:
        value = getattr(params, name, None)
        if not is_int(value):
            errors.append(f"'{name}' must be an integer, got {type(value).__name__}.")

    for name in FLOAT_FIELDS:
        value = getattr(params, name, None)
        if not is_real(value):
            errors.append(f"'{name}' must be a real number, got {type(value).__name__}.")

    if errors:
        raise ParameterError("CalculationParameters validation failed:\n- " + "\n- ".join(errors))

    validate_resolution(params.x_res, params.y_res)
