from typing import Optional

from rendering.events import Listener
from rendering.service import FractalSessionController


class InputError(ValueError):
    """Raw text from the UI could not be parsed into a number."""


def _parse_int(text: str, label: str) -> int:
    try:
        return int(str(text).strip())
    except ValueError as e:
        raise InputError(f"Please enter a valid integer for {label}.") from e


def _parse_float(text: str, label: str) -> float:
    try:
        return float(str(text).strip())
    except ValueError as e:
        raise InputError(f"Please enter a valid number for {label}.") from e


class SessionAPI:
    """
    Facade between a UI layer and a FractalSessionController.
    Turns raw text fields and pixel drags into controller calls.
    """
    def __init__(self, controller: FractalSessionController,
                 mouse_sensitivity: Optional[float] = None):
        self.controller = controller
        if mouse_sensitivity is None:
            mouse_sensitivity = controller.config.mouse_sensitivity
        self.mouse_sensitivity = mouse_sensitivity

    # ---------- Observers --------------------------------
    def on_change(self, cb: Listener) -> Listener: return self.controller.add_observer(cb)
    def off_change(self, cb: Listener) -> bool: return self.controller.remove_observer(cb)

    # ---------- Text input -------------------------------
    def set_max_iterations_text(self, text: str) -> None:
        """
        Parses and applies a new iteration cap.

        Args:
            text (str): Raw text from an input field, e.g. "250".

        Raises:
            InputError: If the text is not an integer; the session is unchanged.
        """
        self.controller.set_max_iterations(_parse_int(text, "max iterations"))

    def set_bounds_text(self, min_real: str, max_real: str,
                        min_imaginary: str, max_imaginary: str,
                        sq_radius: str) -> None:
        """
        Parses all five fields before applying anything, then sets the bounds
        and the squared radius as two separate history entries.

        Raises:
            InputError: If any field is not a number; the session is unchanged.
        """
        values = [
            _parse_float(min_real, "min real"),
            _parse_float(max_real, "max real"),
            _parse_float(min_imaginary, "min imaginary"),
            _parse_float(max_imaginary, "max imaginary"),
        ]
        radius = _parse_float(sq_radius, "square radius")
        self.controller.set_bounds(*values)
        self.controller.set_escape_radius_squared(radius)

    def set_resolution_text(self, x_res: str, y_res: str) -> None:
        """
        Raises:
            InputError: If either field is not an integer.
            InvalidResolution: If either value is not positive.
        """
        self.controller.set_resolution(_parse_int(x_res, "x resolution"),
                                       _parse_int(y_res, "y resolution"))

    # ---------- Drag gestures ----------------------------
    def drag_pan(self, start_x: int, start_y: int, end_x: int, end_y: int) -> None:
        """
        Pans by the drag vector, scaled by the mouse sensitivity.
        """
        self.controller.pan(end_x - start_x, end_y - start_y, self.mouse_sensitivity)

    def drag_zoom(self, start_x: int, start_y: int, end_x: int, end_y: int) -> None:
        """
        Zooms to the dragged rectangle. The vertical extent is taken from the
        horizontal drag distance, so end_y is ignored and the selection is
        always square in pixels.
        """
        diff = end_x - start_x
        self.controller.zoom_to_pixel_rect(start_x, start_y, end_x, start_y + diff)

    # ---------- History ----------------------------------
    def undo(self) -> None: self.controller.undo()
    def redo(self) -> None: self.controller.redo()
    def reset(self) -> None: self.controller.reset()

    # ---------- Files ------------------------------------
    def open(self, path) -> None:
        """
        Loads a saved view.

        Raises:
            StateFormatError: If the file is unreadable or malformed.
            InvalidResolution: If the stored resolution is not positive.
        """
        self.controller.load(path)

    def save(self, path) -> None:
        self.controller.save(path)

    # ---------- Display ----------------------------------
    def magnification_label(self) -> str:
        return f"Magnification x {self.controller.magnification()}"
