"""
Playback events for ShakeSkip.

Transport snapshots and skip-simulation progress, as observed by the UI.
"""

from typing import Literal, Optional

from shakeskip.core.events import BaseEvent, EventType

class PlaybackStateEvent(BaseEvent):
    """
    Event published whenever the transport's observable state changes.
    """
    type: Literal[EventType.PLAYBACK_STATE] = EventType.PLAYBACK_STATE
    current_media_id: Optional[str] = None
    is_playing: bool
    position_ms: int
    duration_ms: Optional[int] = None
    volume: float

class SkipSimulationStateEvent(BaseEvent):
    """
    Event published on every skip-simulation stage change.

    ``state`` is the SkipState name; ``is_simulating`` is False only for IDLE.
    """
    type: Literal[EventType.SKIP_SIMULATION_STATE] = EventType.SKIP_SIMULATION_STATE
    state: str
    is_simulating: bool
