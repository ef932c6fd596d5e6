"""
Event definitions for ShakeSkip.

This package contains all event types used in the system, organized by functional area.
Each module defines events related to a specific subsystem.
"""

from shakeskip.core.events import EventType, BaseEvent
