"""
Gravity / linear acceleration separation.

A one-pole IIR low-pass filter per axis tracks gravity; whatever the filter does
not follow is the linear (gesture) acceleration:

    gravity[i] = alpha * gravity[i] + (1 - alpha) * sample[i]
    linear[i]  = sample[i] - gravity[i]

With alpha = 0.8 slow tilt is absorbed into the gravity estimate within a few
tens of samples while shake transients pass straight through. The update is O(1)
and allocation-light so it can run inside a 50-100 Hz sensor callback.
"""

import math
import time
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

Vector3 = Tuple[float, float, float]

DEFAULT_ALPHA = 0.8


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


@dataclass(frozen=True)
class MotionSample:
    """Single accelerometer reading in m/s^2 with a monotonic timestamp in ms."""
    x: float
    y: float
    z: float
    timestamp_ms: float = field(default_factory=_monotonic_ms)

    @property
    def values(self) -> Vector3:
        return (self.x, self.y, self.z)

    def is_finite(self) -> bool:
        return math.isfinite(self.x) and math.isfinite(self.y) and math.isfinite(self.z)


@dataclass
class FilterState:
    """Filter memory owned by exactly one detector."""
    gravity: List[float] = field(default_factory=lambda: [0.0, 0.0, 0.0])
    linear: List[float] = field(default_factory=lambda: [0.0, 0.0, 0.0])

    def reset(self) -> None:
        for i in range(3):
            self.gravity[i] = 0.0
            self.linear[i] = 0.0


def apply_filter(sample: MotionSample, state: FilterState, alpha: float = DEFAULT_ALPHA) -> Optional[Vector3]:
    """
    Feed one sample through the gravity filter, updating ``state`` in place.

    Args:
        sample: The raw reading
        state: Filter memory to update
        alpha: Smoothing coefficient in [0, 1)

    Returns:
        The linear acceleration vector, or None if the sample had a non-finite
        component (the state is left untouched in that case)
    """
    if not sample.is_finite():
        return None
    values = sample.values
    for i in range(3):
        state.gravity[i] = alpha * state.gravity[i] + (1.0 - alpha) * values[i]
        state.linear[i] = values[i] - state.gravity[i]
    return (state.linear[0], state.linear[1], state.linear[2])


def magnitude(vector: Vector3) -> float:
    """Euclidean length of a 3-vector."""
    return math.sqrt(vector[0] * vector[0] + vector[1] * vector[1] + vector[2] * vector[2])
