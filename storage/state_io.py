"""
State persistence.
Reads and writes one CalculationParameters record as a small JSON document:

    {"format": "mandelbrot-state", "version": 1,
     "parameters": {"x_res": 600, "y_res": 600, ...}}

Python's json module writes floats with repr(), so every double survives a
round trip unchanged.
"""
import json
import logging
import math
import os
from dataclasses import fields
from typing import Any, Dict, Union

from fractals.base import CalculationParameters
from fractals.validation import INT_FIELDS, FLOAT_FIELDS, is_int, is_real

logger = logging.getLogger(__name__)

FORMAT_TAG = "mandelbrot-state"
FORMAT_VERSION = 1

PathLike = Union[str, "os.PathLike[str]"]


class StateFormatError(ValueError):
    """Persisted state could not be read back into a parameter record."""


def to_dict(params: CalculationParameters) -> Dict[str, Any]:
    return {
        "format": FORMAT_TAG,
        "version": FORMAT_VERSION,
        "parameters": params.as_dict(),
    }


def from_dict(doc: Any) -> CalculationParameters:
    """
    Rebuild a record from a decoded document.
    Structural problems raise StateFormatError; a well-formed record with a
    bad resolution raises InvalidResolution from the constructor.
    """
    if not isinstance(doc, dict):
        raise StateFormatError(f"Expected a JSON object, got {type(doc).__name__}.")
    if doc.get("format") != FORMAT_TAG:
        raise StateFormatError(f"Unknown format tag {doc.get('format')!r}.")
    if doc.get("version") != FORMAT_VERSION:
        raise StateFormatError(f"Unsupported version {doc.get('version')!r}.")

    raw = doc.get("parameters")
    if not isinstance(raw, dict):
        raise StateFormatError("'parameters' must be an object.")

    expected = {f.name for f in fields(CalculationParameters)}
    missing = sorted(expected - raw.keys())
    extra = sorted(raw.keys() - expected)
    errors = []
    if missing:
        errors.append(f"missing fields: {', '.join(missing)}")
    if extra:
        errors.append(f"unexpected fields: {', '.join(extra)}")
    for name in INT_FIELDS:
        if name in raw and not is_int(raw[name]):
            errors.append(f"'{name}' must be an integer")
    for name in FLOAT_FIELDS:
        if name in raw and not is_real(raw[name]):
            errors.append(f"'{name}' must be a number")
    if errors:
        raise StateFormatError("Malformed state: " + "; ".join(errors) + ".")

    return CalculationParameters(**raw)


def dumps(params: CalculationParameters) -> str:
    # allow_nan keeps NaN/inf bounds representable, matching what the
    # session accepts in memory
    return json.dumps(to_dict(params), indent=2, allow_nan=True)


def loads(text: Union[str, bytes]) -> CalculationParameters:
    try:
        doc = json.loads(text)
    except (ValueError, TypeError) as e:
        raise StateFormatError(f"Not a valid state document: {e}") from e
    return from_dict(doc)


def save_parameters(path: PathLike, params: CalculationParameters) -> None:
    logger.info(f"Saving state to: {path}")
    text = dumps(params)
    with open(path, "w", encoding="utf-8") as f:
        f.write(text)


def load_parameters(path: PathLike) -> CalculationParameters:
    logger.info(f"Loading state from: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise StateFormatError(f"Could not read state file '{path}': {e}") from e
    params = loads(text)
    if any(math.isnan(getattr(params, n)) for n in FLOAT_FIELDS):
        logger.warning(f"State file '{path}' contains NaN bounds or radius.")
    return params
