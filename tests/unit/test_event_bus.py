"""
Unit tests for the event bus, the registries and the event tracer.
"""

import unittest
from unittest.mock import AsyncMock

from shakeskip.core.bus import EventBus
from shakeskip.core.events import EventType
from shakeskip.core.registry import EventRegistry, ServiceRegistry
from shakeskip.core.tracing import EventTracer
from shakeskip.events.sensors import ShakeCountEvent, ShakeDetectedEvent

def shake_event():
    return ShakeDetectedEvent(magnitude=18.0, threshold=15.0, sample_timestamp_ms=0.0)

class TestEventBus(unittest.IsolatedAsyncioTestCase):
    """Test cases for the EventBus class."""

    async def asyncSetUp(self):
        self.registry = EventRegistry()
        self.registry.register_event(EventType.SHAKE_DETECTED, ShakeDetectedEvent, "shake")
        self.tracer = EventTracer(max_events=10)
        self.bus = EventBus(self.registry, self.tracer)

    async def test_publish_reaches_every_subscriber(self):
        first, second = AsyncMock(), AsyncMock()
        self.bus.subscribe(EventType.SHAKE_DETECTED, first, "a")
        self.bus.subscribe(EventType.SHAKE_DETECTED, second, "b")

        event = shake_event()
        await self.bus.publish(event, "detector")

        first.assert_awaited_once_with(event)
        second.assert_awaited_once_with(event)
        self.assertEqual(event.producer_name, "detector")

    async def test_failing_handler_does_not_block_others(self):
        failing = AsyncMock(side_effect=RuntimeError("boom"))
        healthy = AsyncMock()
        self.bus.subscribe(EventType.SHAKE_DETECTED, failing, "a")
        self.bus.subscribe(EventType.SHAKE_DETECTED, healthy, "b")

        await self.bus.publish(shake_event(), "detector")

        healthy.assert_awaited_once()

    async def test_unregistered_event_is_dropped(self):
        handler = AsyncMock()
        self.bus.subscribe(EventType.SHAKE_COUNT, handler, "a")

        await self.bus.publish(ShakeCountEvent(count=1), "detector")

        handler.assert_not_awaited()
        self.assertEqual(self.tracer.get_trace(), [])

    async def test_same_handler_from_two_services(self):
        handler = AsyncMock()
        self.bus.subscribe(EventType.SHAKE_DETECTED, handler, "a")
        self.bus.subscribe(EventType.SHAKE_DETECTED, handler, "b")

        await self.bus.publish(shake_event(), "detector")

        self.assertEqual(handler.await_count, 2)
        self.assertEqual(self.registry.get_event_flow(EventType.SHAKE_DETECTED)["consumers"], {"a", "b"})

    async def test_unsubscribe(self):
        handler = AsyncMock()
        self.bus.subscribe(EventType.SHAKE_DETECTED, handler, "a")
        self.bus.unsubscribe(EventType.SHAKE_DETECTED, handler)

        await self.bus.publish(shake_event(), "detector")

        handler.assert_not_awaited()
        self.assertEqual(self.bus.handler_count(EventType.SHAKE_DETECTED), 0)
        self.bus.unsubscribe(EventType.SHAKE_DETECTED, handler)

    async def test_events_are_traced(self):
        await self.bus.publish(shake_event(), "detector")
        await self.bus.publish(shake_event(), "detector")

        self.assertEqual(len(self.tracer.get_events_by_type(EventType.SHAKE_DETECTED)), 2)
        self.assertEqual(len(self.tracer.get_events_by_producer("detector")), 2)
        stats = self.tracer.get_event_stats()
        self.assertEqual(stats['total_events'], 2)
        self.assertEqual(stats['producers'], {"detector": 2})
        self.assertGreater(self.tracer.get_event_rate(EventType.SHAKE_DETECTED), 0.0)

class TestEventRegistry(unittest.TestCase):

    def setUp(self):
        self.registry = EventRegistry()

    def test_conflicting_schema_rejected(self):
        self.registry.register_event(EventType.SHAKE_DETECTED, ShakeDetectedEvent, "shake")
        self.registry.register_event(EventType.SHAKE_DETECTED, ShakeDetectedEvent, "shake")
        with self.assertRaises(TypeError):
            self.registry.register_event(EventType.SHAKE_DETECTED, ShakeCountEvent, "count")

    def test_validate_schema(self):
        with self.assertRaises(ValueError):
            self.registry.validate_schema(shake_event())
        self.registry.register_event(EventType.SHAKE_DETECTED, ShakeDetectedEvent, "shake")
        self.assertTrue(self.registry.validate_schema(shake_event()))

    def test_documentation(self):
        self.registry.register_event(EventType.SHAKE_DETECTED, ShakeDetectedEvent, "shake")
        self.registry.register_producer("ShakeDetectionService", EventType.SHAKE_DETECTED)
        self.registry.register_consumer("PlaybackService", EventType.SHAKE_DETECTED)

        doc = self.registry.generate_documentation()[EventType.SHAKE_DETECTED]

        self.assertEqual(doc['producers'], ["ShakeDetectionService"])
        self.assertEqual(doc['consumers'], ["PlaybackService"])
        self.assertEqual(doc['schema'], "ShakeDetectedEvent")

class TestServiceRegistry(unittest.TestCase):

    def setUp(self):
        self.registry = ServiceRegistry()
        for name in ("settings", "detection", "playback"):
            self.registry.register_service(name, object())

    def test_start_order_honours_dependencies(self):
        self.registry.register_dependency("settings", "detection")
        order = self.registry.get_start_order()
        self.assertLess(order.index("detection"), order.index("settings"))
        self.assertEqual(sorted(order), ["detection", "playback", "settings"])

    def test_cycle_detected(self):
        self.registry.register_dependency("settings", "detection")
        self.registry.register_dependency("detection", "settings")
        with self.assertRaises(ValueError):
            self.registry.get_start_order()

    def test_unknown_dependency(self):
        self.registry.register_dependency("settings", "cloud")
        with self.assertRaises(ValueError):
            self.registry.get_start_order()

    def test_states(self):
        self.assertEqual(self.registry.get_service_state("playback"), "registered")
        self.registry.set_service_state("playback", "running")
        self.assertEqual(self.registry.get_service_state("playback"), "running")
        self.assertIsNone(self.registry.get_service_state("missing"))

class TestEventTracer(unittest.TestCase):

    def test_buffer_is_bounded(self):
        tracer = EventTracer(max_events=3)
        for count in range(5):
            tracer.record_event(ShakeCountEvent(count=count))

        trace = tracer.get_trace()
        self.assertEqual(len(trace), 3)
        self.assertEqual([e['event_data']['count'] for e in trace], [2, 3, 4])
        self.assertEqual(tracer.get_last_event(EventType.SHAKE_COUNT)['event_data']['count'], 4)

    def test_lookup_by_trace_id(self):
        tracer = EventTracer()
        event = ShakeCountEvent(count=1)
        tracer.record_event(event)
        tracer.record_event(ShakeCountEvent(count=2))

        self.assertEqual(len(tracer.get_trace(event.trace_id)), 1)
        tracer.clear()
        self.assertEqual(tracer.get_trace(), [])

if __name__ == '__main__':
    unittest.main()
