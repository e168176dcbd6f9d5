from __future__ import annotations

import json
import os
from typing import Optional, Mapping

from pydantic import BaseModel, field_validator

ENV_PREFIX = "MANDELBROT_"


class SessionConfig(BaseModel):
    # Initial grid size in pixels
    x_res: int = 600
    y_res: int = 600
    # Complex-plane pixels moved per dragged screen pixel
    mouse_sensitivity: float = 1.0
    # None -> os.cpu_count()
    max_workers: Optional[int] = None
    # None -> rows split evenly over the workers
    stripe_rows: Optional[int] = None
    log_level: str = "INFO"

    @field_validator("x_res", "y_res")
    @classmethod
    def _positive_resolution(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("resolution must be greater than 0")
        return v

    @field_validator("max_workers", "stripe_rows")
    @classmethod
    def _positive_or_none(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v <= 0:
            raise ValueError("must be greater than 0 when set")
        return v

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level {v!r}")
        return level

    @classmethod
    def from_file(cls, path: str) -> "SessionConfig":
        with open(path, "r", encoding="utf-8") as f:
            return cls.model_validate(json.load(f))

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "SessionConfig":
        """Reads MANDELBROT_X_RES, MANDELBROT_MAX_WORKERS, ... when present."""
        env = os.environ if environ is None else environ
        values = {}
        for name in cls.model_fields:
            key = ENV_PREFIX + name.upper()
            if key in env:
                values[name] = env[key]
        return cls.model_validate(values)
