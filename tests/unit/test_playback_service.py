"""
Unit tests for the PlaybackService.
"""

import asyncio
import random
import unittest

from shakeskip.core.bus import EventBus
from shakeskip.core.config import SkipSimulationConfig
from shakeskip.core.events import EventType
from shakeskip.core.registry import EventRegistry, ServiceRegistry
from shakeskip.core.tracing import EventTracer
from shakeskip.events.sensors import ShakeDetectedEvent
from shakeskip.hardware.transport import InMemoryTransport, TransportError
from shakeskip.services.playback_service import PlaybackService

class TestPlaybackService(unittest.IsolatedAsyncioTestCase):
    """Test cases for the PlaybackService class."""

    async def asyncSetUp(self):
        self.tracer = EventTracer()
        self.event_registry = EventRegistry()
        self.event_bus = EventBus(self.event_registry, self.tracer)
        self.transport = InMemoryTransport(volume=0.8)
        self.transport.load("track-1", duration_ms=180_000, position_ms=50_000)
        await self.transport.play()

        self.service = PlaybackService(
            self.event_bus,
            ServiceRegistry(),
            transport=self.transport,
            config=SkipSimulationConfig(seek_delay_ms=100.0, ramp_step_delay_ms=5.0),
            rng=random.Random(3),
        )
        await self.service.start()

    async def asyncTearDown(self):
        if self.service.is_running:
            await self.service.stop()

    def events(self, event_type):
        return [e['event_data'] for e in self.tracer.get_events_by_type(event_type)]

    async def shake(self):
        self.event_registry.register_event(EventType.SHAKE_DETECTED, ShakeDetectedEvent, "test shake")
        await self.event_bus.publish(
            ShakeDetectedEvent(magnitude=16.0, threshold=15.0, sample_timestamp_ms=0.0),
            "test"
        )

    async def test_start_publishes_snapshot(self):
        states = self.events(EventType.PLAYBACK_STATE)
        self.assertEqual(len(states), 1)
        self.assertEqual(states[0]['current_media_id'], "track-1")
        self.assertTrue(states[0]['is_playing'])
        self.assertEqual(states[0]['position_ms'], 50_000)
        self.assertEqual(states[0]['duration_ms'], 180_000)
        self.assertEqual(states[0]['volume'], 0.8)

    async def test_shake_event_runs_simulation(self):
        await self.shake()
        self.assertTrue(self.service.is_simulating)

        await self.service.controller.wait_idle()
        await self.service.wait_for_notifications()

        self.assertEqual(self.transport.get_volume(), 0.8)
        self.assertGreaterEqual(self.transport.get_position(), 50_200)
        self.assertLessEqual(self.transport.get_position(), 50_520)
        self.assertTrue(self.transport.is_playing())

        skip_states = self.events(EventType.SKIP_SIMULATION_STATE)
        self.assertEqual([e['state'] for e in skip_states],
                         ["MUTING", "SEEKING", "RESUMING", "RAMPING_VOLUME", "IDLE"])
        self.assertEqual([e['is_simulating'] for e in skip_states],
                         [True, True, True, True, False])

        volumes = [e['volume'] for e in self.events(EventType.PLAYBACK_STATE)]
        self.assertIn(0.0, volumes)
        self.assertEqual(volumes[-1], 0.8)

    async def test_pause_during_simulation(self):
        await self.service.simulate_cd_skip()
        await asyncio.sleep(0.03)

        await self.service.pause()

        self.assertFalse(self.service.is_simulating)
        self.assertFalse(self.transport.is_playing())
        self.assertEqual(self.transport.get_volume(), 0.8)
        self.assertEqual(self.service.controller.cancelled_count, 1)

    async def test_set_volume_during_simulation(self):
        await self.service.simulate_cd_skip()
        await asyncio.sleep(0.03)

        self.assertEqual(await self.service.set_volume(0.3), 0.3)

        self.assertFalse(self.service.is_simulating)
        self.assertEqual(self.transport.get_volume(), 0.3)
        self.assertTrue(self.transport.is_playing())

    async def test_set_volume_clamps(self):
        self.assertEqual(await self.service.set_volume(3.0), 1.0)
        self.assertEqual(self.transport.get_volume(), 1.0)

    async def test_seek_to(self):
        await self.service.seek_to(90_000)
        self.assertEqual(self.transport.get_position(), 90_000)

        with self.assertRaises(TransportError):
            await self.service.seek_to(-1)
        with self.assertRaises(TransportError):
            await self.service.seek_to(200_000)
        self.assertEqual(self.transport.get_position(), 90_000)

    async def test_toggle_play_pause(self):
        self.assertFalse(await self.service.toggle_play_pause())
        self.assertTrue(await self.service.toggle_play_pause())

    async def test_stop_cancels_simulation(self):
        await self.service.simulate_cd_skip()
        await asyncio.sleep(0.03)

        await self.service.stop()

        self.assertFalse(self.service.is_running)
        self.assertFalse(self.service.is_simulating)
        self.assertEqual(self.transport.get_volume(), 0.8)
        self.assertTrue(self.transport.is_playing())

    async def test_no_events_after_stop(self):
        await self.service.stop()
        published = len(self.tracer.get_trace())

        await self.transport.pause()
        await asyncio.sleep(0)

        self.assertEqual(len(self.tracer.get_trace()), published)

if __name__ == '__main__':
    unittest.main()
