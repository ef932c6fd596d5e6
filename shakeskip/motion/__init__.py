"""
Motion processing for ShakeSkip.

Gravity separation and shake recognition over raw accelerometer samples.
"""

from .filter import FilterState, MotionSample, apply_filter, magnitude
from .detector import ShakeDetector, ShakeEvent, clamp_threshold

__all__ = [
    'FilterState',
    'MotionSample',
    'apply_filter',
    'magnitude',
    'ShakeDetector',
    'ShakeEvent',
    'clamp_threshold',
]
