"""
Haptic feedback for ShakeSkip.

A HapticDevice plays a short vibration pulse. Pulses are fire-and-forget: they
return immediately and never report failure to the caller, so feedback can be
given on the sensor path without affecting anything downstream.
"""

from abc import abstractmethod
from typing import Optional

from shakeskip.core.config import HapticConfig

from .base import BaseHardware

class HapticDevice(BaseHardware):
    """Base class for vibration motors."""

    def __init__(self, config: Optional[HapticConfig] = None, name: Optional[str] = None):
        super().__init__(config or HapticConfig(), name or "HapticDevice")

    def pulse(self, duration_ms: Optional[int] = None) -> None:
        """Play one vibration pulse; errors are logged, not raised."""
        duration = duration_ms if duration_ms is not None else self.config.pulse_ms
        if not self.is_available():
            self.logger.debug("No haptic device available")
            return
        try:
            self._pulse_impl(duration)
        except Exception as e:
            self.logger.error("Error playing haptic pulse", error=str(e), duration_ms=duration)

    @abstractmethod
    def _pulse_impl(self, duration_ms: int) -> None:
        """Drive the motor for ``duration_ms``."""


class MockHapticDevice(HapticDevice):
    """
    Haptic device for hosts without a vibration motor.

    Pulses are logged and counted.
    """

    def __init__(self, config: Optional[HapticConfig] = None, available: bool = True):
        super().__init__(config, "MockHapticDevice")
        self._available = available
        self.pulse_count = 0
        self.last_pulse_ms: Optional[int] = None

    def is_available(self) -> bool:
        return self._available

    def _pulse_impl(self, duration_ms: int) -> None:
        self.pulse_count += 1
        self.last_pulse_ms = duration_ms
        self.logger.debug("Haptic pulse", duration_ms=duration_ms)
