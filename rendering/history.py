from __future__ import annotations
from typing import List, Tuple

from fractals.base import CalculationParameters


class SessionHistory:
    """
    Two stacks of parameter records plus the record the session started from.

    past[-1] is always the current view and past is never empty; future holds
    the views undone since the last new entry. The history only moves records
    around; grids are the controller's business.
    """

    def __init__(self, origin: CalculationParameters) -> None:
        self.origin = origin
        self.past: List[CalculationParameters] = [origin]
        self.future: List[CalculationParameters] = []

    @property
    def current(self) -> CalculationParameters:
        return self.past[-1]

    def can_undo(self) -> bool:
        return len(self.past) > 1

    def can_redo(self) -> bool:
        return bool(self.future)

    def push(self, params: CalculationParameters) -> None:
        """Append a new entry; anything that could be redone is dropped."""
        self.past.append(params)
        self.future.clear()

    def peek_back(self) -> CalculationParameters:
        """The entry undo would land on."""
        return self.past[-2]

    def peek_forward(self) -> CalculationParameters:
        """The entry redo would land on."""
        return self.future[-1]

    def step_back(self) -> Tuple[CalculationParameters, CalculationParameters]:
        """Move the current entry onto future. Returns (popped, new current)."""
        popped = self.past.pop()
        self.future.append(popped)
        return popped, self.past[-1]

    def step_forward(self) -> Tuple[CalculationParameters, CalculationParameters]:
        """Move the next entry back onto past. Returns (previous current, restored)."""
        previous = self.past[-1]
        restored = self.future.pop()
        self.past.append(restored)
        return previous, restored

    def __len__(self) -> int:
        return len(self.past) + len(self.future)
