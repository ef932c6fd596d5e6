"""
Services for ShakeSkip.

Each service owns one area of the application and talks to the others only
through events on the bus.
"""

from .playback_service import PlaybackService
from .settings_service import SettingsService
from .shake_detection_service import ShakeDetectionService

__all__ = [
    'PlaybackService',
    'SettingsService',
    'ShakeDetectionService',
]
