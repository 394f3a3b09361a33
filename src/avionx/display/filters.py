from __future__ import annotations

import threading
from collections import deque
from typing import Generic, TypeVar

import numpy as np

T = TypeVar("T")


class ExponentialSmoother:
    """
    First-order low-pass filter: smoothed += alpha * (raw - smoothed).

    The first value seeds the filter so the display does not sweep up from 0.
    """

    def __init__(self, alpha: float = 0.15) -> None:
        if not 0.0 < alpha <= 1.0:
            raise ValueError(f"alpha must be in (0, 1], got {alpha}")
        self.alpha = alpha
        self._value: float | None = None

    @property
    def value(self) -> float:
        return 0.0 if self._value is None else self._value

    def update(self, raw: float) -> float:
        if self._value is None:
            self._value = raw
        else:
            self._value += self.alpha * (raw - self._value)
        return self._value

    def reset(self) -> None:
        self._value = None


# ---------------------------------------- #


class AttitudeFilter:
    """Roll, pitch and heading smoothers sharing one alpha."""

    def __init__(self, alpha: float = 0.15) -> None:
        self.roll = ExponentialSmoother(alpha)
        self.pitch = ExponentialSmoother(alpha)
        self.heading = ExponentialSmoother(alpha)

    def update(self, roll: float, pitch: float, heading: float) -> tuple[float, float, float]:
        return (
            self.roll.update(roll),
            self.pitch.update(pitch),
            self.heading.update(heading),
        )

    def reset(self) -> None:
        for s in (self.roll, self.pitch, self.heading):
            s.reset()


# ---------------------------------------- #


class RollingHistory(Generic[T]):
    """
    Bounded FIFO shared between the telemetry producer and the UI.

    Appends drop the oldest entry once maxlen is reached. Every access goes
    through one lock.
    """

    def __init__(self, maxlen: int = 200) -> None:
        if maxlen <= 0:
            raise ValueError("maxlen must be positive")
        self._maxlen = maxlen
        self._lock = threading.Lock()
        self._items: deque[T] = deque(maxlen=maxlen)

    @property
    def maxlen(self) -> int:
        return self._maxlen

    def append(self, item: T) -> None:
        with self._lock:
            self._items.append(item)

    def snapshot(self) -> list[T]:
        with self._lock:
            return list(self._items)

    def as_array(self) -> np.ndarray:
        return np.asarray(self.snapshot(), dtype=np.float64)

    def clear(self) -> None:
        with self._lock:
            self._items.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)
