"""
Event bus for ShakeSkip.

Services publish typed events here and the bus hands each one to every
service subscribed to its type. An event whose type has no registered schema,
or whose class does not match it, never reaches a subscriber.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Dict, List, Optional

from .events import BaseEvent, EventType
from .registry import EventRegistry
from .tracing import EventTracer

EventHandler = Callable[[BaseEvent], Awaitable[None]]

def _handler_name(handler: EventHandler) -> str:
    return getattr(handler, '__qualname__', repr(handler))

class EventBus:
    """
    Routes events from producing services to consuming services.

    A shake detected by the detection service, for instance, reaches the
    playback service here. Several handlers may share an event type; one
    failing handler never keeps the event from the others.
    """

    def __init__(self, registry: EventRegistry, tracer: Optional[EventTracer] = None):
        self.registry = registry
        self.tracer = tracer
        self._handlers: Dict[EventType, List[EventHandler]] = {}
        self.logger = logging.getLogger(__name__)

    async def publish(self, event: BaseEvent, sender: str) -> None:
        """
        Validate, trace and deliver an event.

        Handlers run concurrently and this returns once all of them are done.
        Handler errors are logged, never raised to the publisher.
        """
        event.producer_name = event.producer_name or sender

        try:
            self.registry.validate_schema(event)
        except (ValueError, TypeError) as e:
            self.logger.error(f"Dropping event from {sender}: {e}")
            return

        if self.tracer:
            self.tracer.record_event(event)

        handlers = list(self._handlers.get(event.type, ()))
        if not handlers:
            self.logger.debug(f"No handlers for {event.type}")
            return

        await asyncio.gather(*(self._deliver(handler, event) for handler in handlers))

    async def _deliver(self, handler: EventHandler, event: BaseEvent) -> None:
        try:
            await handler(event)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.logger.error(f"Handler {_handler_name(handler)} failed on {event.type}: {e}", exc_info=True)

    def subscribe(self, event_type: EventType, handler: EventHandler, service_name: str) -> None:
        """Add a handler for one event type and record the service as its consumer."""
        self._handlers.setdefault(event_type, []).append(handler)
        self.registry.register_consumer(service_name, event_type)
        self.logger.debug(f"{service_name} subscribed to {event_type}")

    def unsubscribe(self, event_type: EventType, handler: EventHandler) -> None:
        handlers = self._handlers.get(event_type)
        if handlers and handler in handlers:
            handlers.remove(handler)
            if not handlers:
                del self._handlers[event_type]
            self.logger.debug(f"{_handler_name(handler)} unsubscribed from {event_type}")

    def handler_count(self, event_type: EventType) -> int:
        """Number of handlers currently subscribed to an event type."""
        return len(self._handlers.get(event_type, ()))
