"""
System events for ShakeSkip.

This module defines events related to application lifecycle, service state,
and system-level failures.
"""

from typing import Any, Dict, Literal, Optional

from shakeskip.core.events import BaseEvent, EventType

class ApplicationStartupCompletedEvent(BaseEvent):
    """
    Event published when application startup has completed.

    All services are running and the sensor path is live.
    """
    type: Literal[EventType.APPLICATION_STARTUP_COMPLETED] = EventType.APPLICATION_STARTUP_COMPLETED

class ServiceStateChangedEvent(BaseEvent):
    """
    Event published when a service changes lifecycle state.
    """
    type: Literal[EventType.SERVICE_STATE_CHANGED] = EventType.SERVICE_STATE_CHANGED
    service_name: str
    state: str  # 'started', 'stopping', 'stopped', 'error'
    error: Optional[str] = None

class HardwareErrorEvent(BaseEvent):
    """
    Event published when a hardware capability is missing or failing.

    Raised once when no accelerometer is available, for example.
    """
    type: Literal[EventType.HARDWARE_ERROR] = EventType.HARDWARE_ERROR
    component: str  # 'sensor', 'transport', 'haptic'
    error_type: str
    error_message: str
    details: Optional[Dict[str, Any]] = None
