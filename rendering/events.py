from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Callable, List

from fractals.base import CalculationParameters

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChangeEvent:
    previous: CalculationParameters
    current: CalculationParameters
    seq: int            # change sequence number
    operation: str      # name of the controller operation that caused it


Listener = Callable[[ChangeEvent], None]


class ChangeNotifier:
    """
    Ordered registry of change listeners.

    Dispatch is synchronous, on the caller's thread, in registration order.
    Listeners added or removed during a dispatch take effect on the next one.
    """

    def __init__(self) -> None:
        self._listeners: List[Listener] = []
        self._seq = 0
        self._dispatching = False

    def add(self, listener: Listener) -> Listener:
        if not callable(listener):
            raise TypeError(f"Listener must be callable, got {type(listener).__name__}")
        self._listeners.append(listener)
        return listener

    def remove(self, listener: Listener) -> bool:
        try:
            self._listeners.remove(listener)
        except ValueError:
            return False
        return True

    def __len__(self) -> int:
        return len(self._listeners)

    @property
    def dispatching(self) -> bool:
        return self._dispatching

    @property
    def seq(self) -> int:
        return self._seq

    def dispatch(self, previous: CalculationParameters, current: CalculationParameters,
                 operation: str) -> ChangeEvent:
        self._seq += 1
        evt = ChangeEvent(previous, current, self._seq, operation)
        self._dispatching = True
        try:
            for listener in tuple(self._listeners):
                try:
                    listener(evt)
                except Exception:
                    logger.exception("Listener %r failed on %s (seq %d)", listener, operation, evt.seq)
                    raise
        finally:
            self._dispatching = False
        return evt
