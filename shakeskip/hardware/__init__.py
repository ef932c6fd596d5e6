"""
Hardware abstraction layer for ShakeSkip.

This package provides the capability interfaces the core is built against
(audio transport, accelerometer source, haptic device) and simulated
implementations of each. It isolates the rest of the application from the
details of the platform that hosts it.
"""

from .base import BaseHardware
from .haptic import HapticDevice, MockHapticDevice
from .sensor import (
    SensorSource,
    SensorUnavailableError,
    SimulatedSensorSource,
    generate_shake_trace,
)
from .transport import InMemoryTransport, Transport, TransportError, TransportSnapshot

__all__ = [
    'BaseHardware',
    'HapticDevice',
    'MockHapticDevice',
    'SensorSource',
    'SensorUnavailableError',
    'SimulatedSensorSource',
    'generate_shake_trace',
    'InMemoryTransport',
    'Transport',
    'TransportError',
    'TransportSnapshot',
]
