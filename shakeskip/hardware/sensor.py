"""
Accelerometer source abstraction for ShakeSkip.

A SensorSource delivers MotionSamples to one registered callback at the
configured rate. Registration models hooking a listener into the platform's
sensor service; ``register`` fails with SensorUnavailableError when the device
has no accelerometer.

SimulatedSensorSource feeds samples by hand or replays a recorded or
synthesized trace (an ``(n, 3)`` numpy array of m/s^2 readings).
"""

import asyncio
from abc import abstractmethod
from typing import Callable, Optional

import numpy as np

from shakeskip.core.config import SensorConfig
from shakeskip.motion.filter import MotionSample

from .base import BaseHardware

STANDARD_GRAVITY = 9.80665

SampleCallback = Callable[[MotionSample], None]

class SensorUnavailableError(Exception):
    """No accelerometer is present on this device."""

class SensorSource(BaseHardware):
    """
    Base class for accelerometer sources.
    """

    def __init__(self, config: Optional[SensorConfig] = None, name: Optional[str] = None):
        super().__init__(config or SensorConfig(), name or "SensorSource")
        self._callback: Optional[SampleCallback] = None

    @property
    def sampling_rate_hz(self) -> float:
        return self.config.sampling_rate_hz

    def is_registered(self) -> bool:
        return self._callback is not None

    def register(self, callback: SampleCallback) -> None:
        """
        Start delivering samples to ``callback``.

        Raises:
            SensorUnavailableError: If the device has no accelerometer
        """
        if not self.is_available():
            raise SensorUnavailableError(f"{self.name}: no accelerometer available")
        self._callback = callback
        self.logger.info("Sensor listener registered", rate_hz=self.sampling_rate_hz)

    def unregister(self) -> None:
        if self._callback is not None:
            self._callback = None
            self.logger.info("Sensor listener unregistered")

    def _deliver(self, sample: MotionSample) -> bool:
        callback = self._callback
        if callback is None:
            return False
        callback(sample)
        return True

    @abstractmethod
    def is_available(self) -> bool:
        """Whether an accelerometer exists."""


class SimulatedSensorSource(SensorSource):
    """
    Sensor source driven by the caller instead of hardware.
    """

    def __init__(self, config: Optional[SensorConfig] = None, available: bool = True,
                 name: Optional[str] = None):
        super().__init__(config, name or "SimulatedSensorSource")
        self._available = available

    def is_available(self) -> bool:
        return self._available

    def feed(self, sample: MotionSample) -> bool:
        """
        Deliver a single sample.

        Returns:
            True if a listener was registered to receive it
        """
        return self._deliver(sample)

    async def replay(self, trace: np.ndarray, rate_hz: Optional[float] = None,
                     start_ms: float = 0.0, realtime: bool = True) -> int:
        """
        Deliver every row of ``trace`` as a sample.

        Sample timestamps are ``start_ms`` plus the nominal sample period, so a
        replay is reproducible regardless of scheduling jitter.

        Args:
            trace: Array of shape (n, 3)
            rate_hz: Replay rate; defaults to the configured sampling rate
            start_ms: Timestamp of the first sample
            realtime: Sleep one period between samples; otherwise only yield

        Returns:
            Number of samples delivered
        """
        trace = np.asarray(trace, dtype=float)
        if trace.ndim != 2 or trace.shape[1] != 3:
            raise ValueError(f"Expected a trace of shape (n, 3), got {trace.shape}")
        rate = rate_hz or self.sampling_rate_hz
        period_ms = 1000.0 / rate
        delivered = 0
        for index, (x, y, z) in enumerate(trace):
            sample = MotionSample(float(x), float(y), float(z), start_ms + index * period_ms)
            if self._deliver(sample):
                delivered += 1
            await asyncio.sleep(period_ms / 1000.0 if realtime else 0)
        return delivered


def generate_shake_trace(shakes: int = 3,
                         interval_s: float = 1.0,
                         rate_hz: float = 100.0,
                         amplitude: float = 25.0,
                         shake_duration_s: float = 0.3,
                         shake_frequency_hz: float = 8.0,
                         noise: float = 0.05,
                         lead_in_s: float = 1.0,
                         seed: Optional[int] = None) -> np.ndarray:
    """
    Synthesize an accelerometer trace of a phone lying flat that gets shaken.

    Gravity sits on the z axis. Each shake is a burst of side-to-side oscillation
    on the x axis, separated by ``interval_s`` of rest. A lead-in of rest lets
    the gravity filter settle before the first shake.

    Returns:
        Array of shape (n, 3) in m/s^2
    """
    rng = np.random.default_rng(seed)
    total_s = lead_in_s + shakes * interval_s
    n = int(round(total_s * rate_hz))
    t = np.arange(n) / rate_hz

    trace = np.zeros((n, 3))
    trace[:, 2] = STANDARD_GRAVITY
    for k in range(shakes):
        start = lead_in_s + k * interval_s
        burst = (t >= start) & (t < start + shake_duration_s)
        trace[burst, 0] += amplitude * np.sin(2 * np.pi * shake_frequency_hz * (t[burst] - start))
    trace += rng.normal(0.0, noise, size=trace.shape)
    return trace
