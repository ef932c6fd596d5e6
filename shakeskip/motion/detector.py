"""
Shake gesture recognition.

The ShakeDetector feeds raw accelerometer samples through the gravity filter and
raises a shake when the linear acceleration magnitude reaches the threshold and
the previous shake is at least one debounce window old. Debounce is measured on
the samples' monotonic timestamps, never on sample counts, so jittery or bursty
delivery does not change how often shakes can fire.

Listeners are called synchronously from ``on_sample``. They run on the sensor
delivery path and must not block; anything slow belongs in a task they schedule.
"""

import logging
import math
from dataclasses import dataclass
from typing import Callable, List, Optional

from .filter import DEFAULT_ALPHA, FilterState, MotionSample, apply_filter, magnitude

DEFAULT_SHAKE_THRESHOLD = 15.0
MIN_SHAKE_THRESHOLD = 10.0
MAX_SHAKE_THRESHOLD = 25.0
DEBOUNCE_INTERVAL_MS = 500.0


def clamp_threshold(value: float,
                    low: float = MIN_SHAKE_THRESHOLD,
                    high: float = MAX_SHAKE_THRESHOLD) -> float:
    """Clamp a threshold into [low, high]. Infinities clamp to the nearest bound."""
    return min(max(float(value), low), high)


@dataclass(frozen=True)
class ShakeEvent:
    """A recognized shake. Consumers react immediately; events are never queued."""
    timestamp_ms: float
    magnitude: float
    threshold: float


ShakeListener = Callable[[ShakeEvent], None]


class ShakeDetector:
    """
    Stateful shake recognizer: gravity filter + threshold + debounce.

    The detector only processes samples while started. Registering with real
    sensor hardware is the job of whoever owns the detector.
    """

    def __init__(self,
                 threshold: float = DEFAULT_SHAKE_THRESHOLD,
                 debounce_ms: float = DEBOUNCE_INTERVAL_MS,
                 alpha: float = DEFAULT_ALPHA,
                 min_threshold: float = MIN_SHAKE_THRESHOLD,
                 max_threshold: float = MAX_SHAKE_THRESHOLD):
        self.logger = logging.getLogger(__name__)
        self.debounce_ms = debounce_ms
        self.alpha = alpha
        self.min_threshold = min_threshold
        self.max_threshold = max_threshold
        self._threshold = clamp_threshold(threshold, min_threshold, max_threshold)
        self._state = FilterState()
        self._last_shake_ms: Optional[float] = None  # None means never
        self._listeners: List[ShakeListener] = []
        self._started = False

    @property
    def threshold(self) -> float:
        return self._threshold

    @property
    def is_started(self) -> bool:
        return self._started

    @property
    def gravity(self):
        return tuple(self._state.gravity)

    @property
    def linear_acceleration(self):
        return tuple(self._state.linear)

    @property
    def last_shake_ms(self) -> Optional[float]:
        return self._last_shake_ms

    def add_listener(self, listener: ShakeListener) -> None:
        """Register a callback invoked once per recognized shake."""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: ShakeListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def start(self) -> None:
        self._started = True

    def stop(self) -> None:
        self._started = False

    def set_threshold(self, value: float) -> float:
        """
        Set the shake threshold, clamped into the allowed range.

        Takes effect from the next sample. A NaN value is ignored and the
        current threshold kept.

        Returns:
            The stored threshold
        """
        if math.isnan(float(value)):
            self.logger.warning("Ignoring NaN shake threshold; keeping %.2f", self._threshold)
            return self._threshold
        self._threshold = clamp_threshold(value, self.min_threshold, self.max_threshold)
        self.logger.debug("Shake threshold set to %.2f", self._threshold)
        return self._threshold

    def reset(self) -> None:
        """Zero the filter state and forget the last shake so the next one can fire at once."""
        self._state.reset()
        self._last_shake_ms = None

    def on_sample(self, sample: MotionSample) -> bool:
        """
        Process one accelerometer sample.

        Args:
            sample: The raw reading

        Returns:
            True if the sample produced a shake
        """
        if not self._started:
            return False

        linear = apply_filter(sample, self._state, self.alpha)
        if linear is None:
            return False

        value = magnitude(linear)
        if value < self._threshold:
            return False

        now = sample.timestamp_ms
        if self._last_shake_ms is not None and now - self._last_shake_ms < self.debounce_ms:
            return False

        self._last_shake_ms = now
        event = ShakeEvent(timestamp_ms=now, magnitude=value, threshold=self._threshold)
        self.logger.debug("Shake detected: magnitude=%.2f threshold=%.2f", value, self._threshold)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                self.logger.error(f"Error in shake listener {listener!r}: {e}", exc_info=True)
        return True
