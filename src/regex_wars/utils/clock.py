from time import monotonic
from typing import Callable

Clock = Callable[[], float]


def monotonic_ms() -> float:
    """Monotonic clock reading in milliseconds, the unit every interval uses."""
    return monotonic() * 1000.0
