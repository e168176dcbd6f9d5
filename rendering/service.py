from __future__ import annotations
import logging
import numpy as np
from typing import Optional

# Fractal imports
from fractals.base import CalculationParameters
from fractals.validation import ParameterError, validate_parameters, validate_resolution

# Rendering imports
from rendering.core import EscapeTimeEngine
from rendering.executor import CancelToken, RenderCancelled
from rendering.events import ChangeNotifier, Listener
from rendering.history import SessionHistory

# Storage / utils imports
from storage import state_io
from utils import coords
from utils.config import SessionConfig

logger = logging.getLogger(__name__)


class FractalSessionController:
    """
    UI-facing owner of one exploration session:
      - parameter history (undo/redo stacks + the origin for reset),
      - the grid of the current view, recomputed on every change,
      - change notification to observers.

    Every change goes derive -> validate -> compute -> commit -> notify.
    Nothing is committed until the grid has been computed, so a rejected
    or cancelled change leaves the session exactly as it was.

    Mutating calls must come from one thread at a time.
    """

    def __init__(
        self,
        initial: CalculationParameters,
        engine: Optional[EscapeTimeEngine] = None,
        config: Optional[SessionConfig] = None,
        cancel: Optional[CancelToken] = None,
    ) -> None:
        self._check_params(initial)
        self.config = config or SessionConfig(x_res=initial.x_res, y_res=initial.y_res)
        self.engine = engine or EscapeTimeEngine(max_workers=self.config.max_workers,
                                                 stripe_rows=self.config.stripe_rows)

        self._grid = self._compute(initial, cancel)
        self._history = SessionHistory(initial)
        self._notifier = ChangeNotifier()
        logger.info("Session started at %dx%d, %d iterations",
                    initial.x_res, initial.y_res, initial.max_iterations)

    @classmethod
    def from_config(cls, config: SessionConfig,
                    engine: Optional[EscapeTimeEngine] = None) -> "FractalSessionController":
        """Session on the default view at the configured resolution."""
        return cls(CalculationParameters.default(config.x_res, config.y_res),
                   engine=engine, config=config)

    # ---------------------------------------------------------------------
    # Read accessors
    # ---------------------------------------------------------------------

    def current_parameters(self) -> CalculationParameters:
        return self._history.current

    def current_grid(self) -> np.ndarray:
        """Read-only (y_res, x_res) int32 grid of the current view."""
        return self._grid

    def magnification(self) -> int:
        return coords.magnification(self._history.current)

    def can_undo(self) -> bool:
        return self._history.can_undo()

    def can_redo(self) -> bool:
        return self._history.can_redo()

    @property
    def history(self) -> SessionHistory:
        return self._history

    # ---------------------------------------------------------------------
    # Observers
    # ---------------------------------------------------------------------

    def add_observer(self, listener: Listener) -> Listener:
        return self._notifier.add(listener)

    def remove_observer(self, listener: Listener) -> bool:
        return self._notifier.remove(listener)

    # ---------------------------------------------------------------------
    # Mutations
    # ---------------------------------------------------------------------

    def set_state(self, params: CalculationParameters, *,
                  cancel: Optional[CancelToken] = None) -> None:
        """Replace the current view wholesale (used when loading a file)."""
        self._apply(params, "set_state", cancel)

    def set_bounds(self, min_real: float, max_real: float,
                   min_imaginary: float, max_imaginary: float, *,
                   cancel: Optional[CancelToken] = None) -> None:
        new = self._history.current.with_bounds(min_real, max_real, min_imaginary, max_imaginary)
        self._apply(new, "set_bounds", cancel)

    def pan(self, pixel_dx: float, pixel_dy: float, sensitivity: float = 1.0, *,
            cancel: Optional[CancelToken] = None) -> None:
        new = coords.pan(self._history.current, pixel_dx, pixel_dy, sensitivity)
        self._apply(new, "pan", cancel)

    def zoom_to_pixel_rect(self, x0: float, y0: float, x1: float, y1: float, *,
                           cancel: Optional[CancelToken] = None) -> None:
        new = coords.zoom_to_pixel_rect(self._history.current, x0, y0, x1, y1)
        self.set_bounds(new.min_real, new.max_real, new.min_imaginary, new.max_imaginary,
                        cancel=cancel)

    def set_escape_radius_squared(self, sq_radius: float, *,
                                  cancel: Optional[CancelToken] = None) -> None:
        new = self._history.current.with_sq_radius(sq_radius)
        self._apply(new, "set_escape_radius_squared", cancel)

    def set_max_iterations(self, max_iterations: int, *,
                           cancel: Optional[CancelToken] = None) -> None:
        new = self._history.current.with_max_iterations(max_iterations)
        self._apply(new, "set_max_iterations", cancel)

    def set_resolution(self, x_res: int, y_res: int, *,
                       cancel: Optional[CancelToken] = None) -> None:
        try:
            validate_resolution(x_res, y_res)
        except ParameterError:
            logger.warning("Rejected resolution %rx%r", x_res, y_res)
            raise
        new = self._history.current.with_resolution(x_res, y_res)
        self._apply(new, "set_resolution", cancel)

    def undo(self, *, cancel: Optional[CancelToken] = None) -> None:
        if not self._history.can_undo():
            return
        self._guard_reentry("undo")
        grid = self._compute(self._history.peek_back(), cancel)
        popped, current = self._history.step_back()
        self._grid = grid
        self._notifier.dispatch(popped, current, "undo")

    def redo(self, *, cancel: Optional[CancelToken] = None) -> None:
        if not self._history.can_redo():
            return
        self._guard_reentry("redo")
        grid = self._compute(self._history.peek_forward(), cancel)
        previous, restored = self._history.step_forward()
        self._grid = grid
        self._notifier.dispatch(previous, restored, "redo")

    def reset(self, *, cancel: Optional[CancelToken] = None) -> None:
        """Return to the constructor-time view as a new history entry."""
        self._apply(self._history.origin, "reset", cancel)

    # ---------------------------------------------------------------------
    # Persistence
    # ---------------------------------------------------------------------

    def save(self, path) -> None:
        state_io.save_parameters(path, self._history.current)

    def load(self, path, *, cancel: Optional[CancelToken] = None) -> None:
        """
        Load a saved view. StateFormatError / InvalidResolution leave the
        session untouched.
        """
        params = state_io.load_parameters(path)
        self.set_state(params, cancel=cancel)

    # ---------------------------------------------------------------------
    # Text dump
    # ---------------------------------------------------------------------

    def format_grid(self) -> str:
        return "".join("[" + "".join(f"{v} " for v in row) + "]\n"
                       for row in self._grid.tolist())

    def __str__(self) -> str:
        return self.format_grid()

    # ---------------------------------------------------------------------
    # Internals
    # ---------------------------------------------------------------------

    @staticmethod
    def _check_params(params) -> None:
        if not isinstance(params, CalculationParameters):
            raise ParameterError(f"Expected CalculationParameters, got {type(params).__name__}.")
        validate_parameters(params)

    def _guard_reentry(self, operation: str) -> None:
        if self._notifier.dispatching:
            raise RuntimeError(f"{operation}() called from a change listener; "
                               f"session mutations cannot be nested.")

    def _compute(self, params: CalculationParameters,
                 cancel: Optional[CancelToken]) -> np.ndarray:
        try:
            grid = self.engine.compute(params, cancel)
        except RenderCancelled:
            logger.warning("Compute cancelled; session left at the previous view")
            raise
        grid.flags.writeable = False
        return grid

    def _apply(self, new: CalculationParameters, operation: str,
               cancel: Optional[CancelToken]) -> None:
        self._guard_reentry(operation)
        try:
            self._check_params(new)
        except ParameterError:
            logger.warning("Rejected %s: invalid parameters", operation)
            raise
        grid = self._compute(new, cancel)

        previous = self._history.current
        self._history.push(new)
        self._grid = grid
        logger.debug("%s -> %s", operation, new)
        self._notifier.dispatch(previous, new, operation)

    def close(self) -> None:
        self.engine.close()
