"""
Event and service registry for ShakeSkip.

This module keeps track of which services produce and consume which events,
and of the services themselves, their lifecycle state and their dependencies.
"""

import logging
from typing import Any, Dict, List, Optional, Set, Type

from .events import BaseEvent, EventType

class EventRegistry:
    """
    Central registry of event types, producers, and consumers.

    The registry holds the schema (event class) for each event type so the bus
    can reject events that do not match what their producer declared.
    """

    def __init__(self):
        self._producers: Dict[EventType, Set[str]] = {}
        self._consumers: Dict[EventType, Set[str]] = {}
        self._event_schemas: Dict[EventType, Dict[str, Any]] = {}
        self._logger = logging.getLogger(__name__)

    def register_event(self, event_type: EventType, event_schema: Type[BaseEvent], description: str):
        """
        Register an event type with its schema and description.

        Args:
            event_type: The type of event being registered
            event_schema: The Pydantic model class for this event type
            description: Human-readable description of this event type
        """
        existing = self._event_schemas.get(event_type)
        if existing and existing['schema'] is not event_schema:
            raise TypeError(
                f"Event type {event_type} already registered with schema "
                f"{existing['schema'].__name__}"
            )
        self._event_schemas[event_type] = {
            'schema': event_schema,
            'description': description
        }
        self._logger.debug(f"Registered event type: {event_type}")

    def register_producer(self, service_name: str, event_type: EventType):
        """Register a service as a producer of an event type."""
        self._producers.setdefault(event_type, set()).add(service_name)
        self._logger.debug(f"Registered producer {service_name} for {event_type}")

    def register_consumer(self, service_name: str, event_type: EventType):
        """Register a service as a consumer of an event type."""
        self._consumers.setdefault(event_type, set()).add(service_name)
        self._logger.debug(f"Registered consumer {service_name} for {event_type}")

    def validate_schema(self, event: BaseEvent) -> bool:
        """
        Validate that an event matches its registered schema.

        Args:
            event: The event to validate

        Returns:
            bool: True if validation passes

        Raises:
            ValueError: If event type is unknown
            TypeError: If event doesn't match registered schema
        """
        event_type = event.type
        if event_type not in self._event_schemas:
            raise ValueError(f"Unknown event type: {event_type}")

        schema = self._event_schemas[event_type]['schema']
        if not isinstance(event, schema):
            raise TypeError(f"Event does not match schema for {event_type}")

        return True

    def get_event_flow(self, event_type: EventType) -> Dict[str, Set[str]]:
        """Get all producers and consumers for an event type."""
        return {
            'producers': self._producers.get(event_type, set()),
            'consumers': self._consumers.get(event_type, set())
        }

    def get_event_schema(self, event_type: EventType) -> Optional[Type[BaseEvent]]:
        """Get the schema class for an event type, or None if unregistered."""
        if event_type in self._event_schemas:
            return self._event_schemas[event_type]['schema']
        return None

    def get_all_event_types(self) -> Set[EventType]:
        """Get all registered event types."""
        return set(self._event_schemas.keys())

    def generate_documentation(self) -> Dict[str, Any]:
        """
        Generate documentation of the event flows in the running application.

        Returns:
            Dictionary keyed by event type with description, producers, consumers and schema
        """
        doc = {}
        for event_type in self.get_all_event_types():
            info = self._event_schemas[event_type]
            doc[event_type] = {
                'description': info['description'],
                'producers': sorted(self._producers.get(event_type, set())),
                'consumers': sorted(self._consumers.get(event_type, set())),
                'schema': info['schema'].__name__
            }
        return doc


class ServiceRegistry:
    """
    Registry for services and their lifecycle state.

    Besides lookup by name, the registry resolves a start order that honours the
    declared dependencies between services.
    """

    def __init__(self):
        self._services: Dict[str, Any] = {}
        self._dependencies: Dict[str, Set[str]] = {}
        self._states: Dict[str, str] = {}
        self._logger = logging.getLogger(__name__)

    def register_service(self, service_name: str, service_instance: Any):
        """Register a service instance under its name."""
        self._services[service_name] = service_instance
        self._states[service_name] = "registered"
        self._logger.debug(f"Registered service: {service_name}")

    def register_dependency(self, service_name: str, depends_on: str):
        """Record that ``service_name`` needs ``depends_on`` running first."""
        self._dependencies.setdefault(service_name, set()).add(depends_on)

    def get_service(self, service_name: str) -> Optional[Any]:
        """Get a service by name."""
        return self._services.get(service_name)

    def set_service_state(self, service_name: str, state: str):
        """Update a service's state."""
        self._states[service_name] = state
        self._logger.debug(f"Service {service_name} state changed to {state}")

    def get_service_state(self, service_name: str) -> Optional[str]:
        """Get a service's state, or None if the service is unknown."""
        return self._states.get(service_name)

    def get_dependencies(self, service_name: str) -> Set[str]:
        """Get services that the specified service depends on."""
        return self._dependencies.get(service_name, set())

    def get_start_order(self) -> List[str]:
        """
        Resolve the order in which registered services must be started.

        Returns:
            Service names, each listed after all of its dependencies

        Raises:
            ValueError: If a dependency is missing or the dependencies form a cycle
        """
        order: List[str] = []
        visiting: Set[str] = set()
        done: Set[str] = set()

        def visit(name: str):
            if name in done:
                return
            if name in visiting:
                raise ValueError(f"Dependency cycle involving service {name}")
            if name not in self._services:
                raise ValueError(f"Unknown service dependency: {name}")
            visiting.add(name)
            for dependency in sorted(self.get_dependencies(name)):
                visit(dependency)
            visiting.discard(name)
            done.add(name)
            order.append(name)

        for name in self._services:
            visit(name)
        return order
