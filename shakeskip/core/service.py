"""
Base service implementation for ShakeSkip.

This module provides the BaseService class that all services inherit from,
defining the core service lifecycle and event handling interfaces.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Coroutine, Dict, Optional, Set

import structlog

from .bus import EventBus
from .events import BaseEvent, EventType
from .registry import ServiceRegistry

class BaseService(ABC):
    """
    Base class for all services.

    This class provides:
    - Service lifecycle management (start/stop)
    - Typed event publishing and handling
    - Service registration and dependency management
    - Structured logging with context

    All services inherit from this class and declare the events they produce and consume.
    """

    # Map of EventType to {'schema': event class, 'description': str}
    PRODUCES_EVENTS: ClassVar[Dict[EventType, Dict[str, Any]]] = {}

    # Map of EventType to handler method name
    CONSUMES_EVENTS: ClassVar[Dict[EventType, str]] = {}

    REQUIRED_SERVICES: ClassVar[Set[str]] = set()

    def __init__(self,
                 event_bus: EventBus,
                 service_registry: ServiceRegistry,
                 name: Optional[str] = None,
                 config: Optional[Any] = None):
        """
        Initialize the service.

        Args:
            event_bus: The event bus for publishing and subscribing to events
            service_registry: The service registry for service lifecycle management
            name: Optional service name (defaults to class name)
            config: Optional service configuration
        """
        self.event_bus = event_bus
        self.service_registry = service_registry
        self.name = name or self.__class__.__name__
        self.config = config

        self.logger = structlog.get_logger(service=self.name)

        self._running = False
        self._lock = asyncio.Lock()
        self._pending: Set[asyncio.Task] = set()

        for event_type, event_info in self.PRODUCES_EVENTS.items():
            event_bus.registry.register_producer(self.name, event_type)
            event_bus.registry.register_event(
                event_type,
                event_info['schema'],
                event_info['description']
            )

        self.service_registry.register_service(self.name, self)
        for dependency in self.REQUIRED_SERVICES:
            self.service_registry.register_dependency(self.name, dependency)

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """
        Start the service.

        This method:
        1. Checks all required services are running
        2. Subscribes to events
        3. Runs service-specific startup via ``_on_start``
        """
        async with self._lock:
            if self._running:
                self.logger.warning("Service already running")
                return

            for dependency in self.REQUIRED_SERVICES:
                if self.service_registry.get_service_state(dependency) != 'running':
                    raise RuntimeError(f"Required service {dependency} is not running")

            for event_type, handler_name in self.CONSUMES_EVENTS.items():
                handler = getattr(self, handler_name)
                self.event_bus.subscribe(event_type, handler, self.name)

            self._running = True
            self.service_registry.set_service_state(self.name, 'running')
            self.logger.info("Service started")

        await self.publish_service_state('started')
        await self._on_start()

    async def stop(self) -> None:
        """
        Stop the service.

        This method:
        1. Runs service-specific cleanup via ``_on_stop``
        2. Unsubscribes from events
        3. Marks the service as stopped
        """
        async with self._lock:
            if not self._running:
                self.logger.warning("Service already stopped")
                return

        await self.publish_service_state('stopping')
        try:
            await self._on_stop()
        finally:
            async with self._lock:
                for event_type, handler_name in self.CONSUMES_EVENTS.items():
                    self.event_bus.unsubscribe(event_type, getattr(self, handler_name))
                self._running = False
                self.service_registry.set_service_state(self.name, 'stopped')
                self.logger.info("Service stopped")

    async def _on_start(self) -> None:
        """Service-specific startup, run once the service is subscribed and running."""

    async def _on_stop(self) -> None:
        """Service-specific cleanup, run while the service can still publish."""

    async def publish(self, event: BaseEvent) -> None:
        """
        Publish an event through the bus.

        Args:
            event: The event to publish
        """
        if not self._running:
            self.logger.warning("Attempted publish while stopped", event_type=event.type)
            return

        if not event.producer_name:
            event.producer_name = self.name

        await self.event_bus.publish(event, self.name)

    def _spawn(self, coro: Coroutine) -> Optional[asyncio.Task]:
        """
        Schedule a coroutine from synchronous code, such as a hardware callback.

        The task is tracked until it finishes. Without a running loop the
        coroutine is dropped with a warning.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.logger.warning("No running event loop; dropping scheduled work")
            coro.close()
            return None
        task = loop.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def wait_for_notifications(self) -> None:
        """Wait until all work scheduled through ``_spawn`` has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def publish_service_state(self, state: str) -> None:
        """
        Publish a service state change event.

        Args:
            state: New state of the service
        """
        from shakeskip.events.system import ServiceStateChangedEvent

        if self.event_bus.registry.get_event_schema(EventType.SERVICE_STATE_CHANGED) is None:
            self.event_bus.registry.register_event(
                EventType.SERVICE_STATE_CHANGED,
                ServiceStateChangedEvent,
                "A service changed lifecycle state"
            )
        event = ServiceStateChangedEvent(
            producer_name=self.name,
            service_name=self.name,
            state=state
        )
        await self.event_bus.publish(event, self.name)

    @abstractmethod
    async def handle_event(self, event: BaseEvent) -> None:
        """
        Handle an event from the event bus.

        Services list ``handle_event`` in CONSUMES_EVENTS and dispatch on
        ``event.type`` here.

        Args:
            event: The event to handle
        """
