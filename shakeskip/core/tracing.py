"""
Event tracing for ShakeSkip.

The tracer keeps a bounded buffer of recently published events so a session can
be inspected after the fact: which shakes fired, which skip simulations ran and
what the transport looked like along the way.
"""

import logging
import time
from collections import Counter, deque
from typing import Any, Deque, Dict, List, Optional

from .events import BaseEvent

class EventTracer:
    """
    Records events as they pass through the bus.

    Only the most recent ``max_events`` events are kept.
    """

    def __init__(self, max_events: int = 1000):
        """
        Initialize the event tracer.

        Args:
            max_events: Maximum number of events to keep in the buffer
        """
        self.max_events = max_events
        self.events: Deque[Dict[str, Any]] = deque(maxlen=max_events)
        self.logger = logging.getLogger(__name__)

    def record_event(self, event: BaseEvent) -> None:
        """Record an event in the trace buffer."""
        self.events.append({
            'recorded_at': time.monotonic(),
            'trace_id': event.trace_id,
            'type': event.type,
            'producer': event.producer_name,
            'event_data': event.model_dump(exclude={'trace_id', 'type', 'producer_name'})
        })
        self.logger.debug(f"Recorded event {event.type} from {event.producer_name}")

    def get_trace(self, trace_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """Get recorded events for a trace ID, or all events if None."""
        if trace_id is None:
            return list(self.events)
        return [e for e in self.events if e['trace_id'] == trace_id]

    def get_events_by_type(self, event_type: str) -> List[Dict[str, Any]]:
        """Get recorded events of a specific type, oldest first."""
        return [e for e in self.events if e['type'] == event_type]

    def get_events_by_producer(self, producer_name: str) -> List[Dict[str, Any]]:
        """Get recorded events from a specific producer, oldest first."""
        return [e for e in self.events if e['producer'] == producer_name]

    def get_last_event(self, event_type: str) -> Optional[Dict[str, Any]]:
        """Get the most recent recorded event of a type."""
        for entry in reversed(self.events):
            if entry['type'] == event_type:
                return entry
        return None

    def get_event_rate(self, event_type: str, window_seconds: float = 60.0) -> float:
        """
        Calculate how often an event type was recorded over a recent window.

        Args:
            event_type: The event type to measure
            window_seconds: Length of the window ending now

        Returns:
            Events per second over the window
        """
        if window_seconds <= 0:
            return 0.0
        window_start = time.monotonic() - window_seconds
        count = sum(
            1 for e in self.events
            if e['type'] == event_type and e['recorded_at'] >= window_start
        )
        return count / window_seconds

    def get_event_stats(self) -> Dict[str, Any]:
        """Get counts of recorded events by type and by producer."""
        return {
            'total_events': len(self.events),
            'event_types': dict(Counter(e['type'] for e in self.events)),
            'producers': dict(Counter(e['producer'] for e in self.events)),
        }

    def clear(self) -> None:
        """Clear all recorded events."""
        self.events.clear()
