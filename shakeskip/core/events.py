"""
Core event system for ShakeSkip.

This module defines the base event model and the event type enum that form the
foundation of the typed event system. All events in the system inherit from BaseEvent.
"""

import time
import uuid
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

class EventType(str, Enum):
    """
    Enum defining all event types in the system.
    
    Using string-based enum to ensure JSON serialization works properly.
    """
    # Application lifecycle events
    APPLICATION_STARTUP_COMPLETED = "application_startup_completed"
    
    # Shake detection events
    SHAKE_DETECTED = "shake_detected"
    SHAKE_DETECTION_STATE = "shake_detection_state"
    SHAKING_STATE = "shaking_state"
    SHAKE_COUNT = "shake_count"
    
    # Settings events
    SHAKE_SETTINGS_CHANGED = "shake_settings_changed"
    
    # Playback events
    PLAYBACK_STATE = "playback_state"
    SKIP_SIMULATION_STATE = "skip_simulation_state"
    
    # System events
    HARDWARE_ERROR = "hardware_error"
    SERVICE_STATE_CHANGED = "service_state_changed"

def generate_trace_id() -> str:
    """Generate a unique trace ID for event tracing."""
    return str(uuid.uuid4())

class BaseEvent(BaseModel):
    """
    Base model for all events with common metadata.
    
    All events in the system should inherit from this class and specify the event type
    and any additional payload fields required for that event.
    """
    model_config = ConfigDict(extra="allow", use_enum_values=True)

    type: EventType
    producer_name: str = ""
    timestamp: float = Field(default_factory=time.time)
    trace_id: Optional[str] = Field(default_factory=generate_trace_id)
