"""
Shake detection events for ShakeSkip.

These events carry what the shake detector exposes upward: discrete shakes,
whether detection is running, the transient "shaking now" flag and the
cumulative shake count.
"""

from typing import Literal

from shakeskip.core.events import BaseEvent, EventType

class ShakeDetectedEvent(BaseEvent):
    """
    Event published once per recognized shake.

    ``magnitude`` is the linear acceleration that crossed the threshold.
    """
    type: Literal[EventType.SHAKE_DETECTED] = EventType.SHAKE_DETECTED
    magnitude: float
    threshold: float
    sample_timestamp_ms: float

class ShakeDetectionStateEvent(BaseEvent):
    """
    Event published when shake detection is enabled or disabled.
    """
    type: Literal[EventType.SHAKE_DETECTION_STATE] = EventType.SHAKE_DETECTION_STATE
    enabled: bool
    sensor_unavailable: bool = False

class ShakingStateEvent(BaseEvent):
    """
    Event published when the device starts or stops being shaken.
    """
    type: Literal[EventType.SHAKING_STATE] = EventType.SHAKING_STATE
    is_shaking: bool

class ShakeCountEvent(BaseEvent):
    """
    Event published whenever the cumulative shake count changes.
    """
    type: Literal[EventType.SHAKE_COUNT] = EventType.SHAKE_COUNT
    count: int
