"""
Settings events for ShakeSkip.

``ShakeSettings`` is the user-facing configuration of the shake feature. Its
sensitivity is always normalized into the allowed threshold range: writes are
clamped, never rejected.
"""

import math
from typing import Literal

from pydantic import BaseModel, field_validator

from shakeskip.core.events import BaseEvent, EventType
from shakeskip.motion.detector import DEFAULT_SHAKE_THRESHOLD, clamp_threshold

class ShakeSettings(BaseModel):
    """Persisted shake preferences."""
    enabled: bool = True
    sensitivity: float = DEFAULT_SHAKE_THRESHOLD  # m/s^2 threshold
    haptic_feedback_enabled: bool = True

    @field_validator("sensitivity", mode="before")
    @classmethod
    def clamp_sensitivity(cls, v):
        """Clamp into [10, 25]; a non-finite value falls back to the default."""
        v = float(v)
        if not math.isfinite(v):
            return DEFAULT_SHAKE_THRESHOLD
        return clamp_threshold(v)

class ShakeSettingsChangedEvent(BaseEvent):
    """
    Event published when shake settings are loaded or changed.
    """
    type: Literal[EventType.SHAKE_SETTINGS_CHANGED] = EventType.SHAKE_SETTINGS_CHANGED
    settings: ShakeSettings
