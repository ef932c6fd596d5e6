"""
Unit tests for the SettingsService and the ShakeSettings model.
"""

import json
import math
import tempfile
import unittest
from pathlib import Path
from unittest.mock import AsyncMock

from shakeskip.core.bus import EventBus
from shakeskip.core.config import SettingsStoreConfig
from shakeskip.core.events import EventType
from shakeskip.core.registry import EventRegistry, ServiceRegistry
from shakeskip.events.settings import ShakeSettings
from shakeskip.services.settings_service import SettingsService

class TestShakeSettings(unittest.TestCase):

    def test_defaults(self):
        settings = ShakeSettings()
        self.assertTrue(settings.enabled)
        self.assertEqual(settings.sensitivity, 15.0)
        self.assertTrue(settings.haptic_feedback_enabled)

    def test_sensitivity_is_clamped(self):
        self.assertEqual(ShakeSettings(sensitivity=30).sensitivity, 25.0)
        self.assertEqual(ShakeSettings(sensitivity=5).sensitivity, 10.0)

    def test_non_finite_sensitivity_becomes_default(self):
        for value in (math.nan, math.inf, -math.inf):
            self.assertEqual(ShakeSettings(sensitivity=value).sensitivity, 15.0)

class TestSettingsService(unittest.IsolatedAsyncioTestCase):
    """Test cases for the SettingsService class."""

    async def asyncSetUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.path = Path(self.tmp.name) / "settings.json"
        self.event_bus = EventBus(EventRegistry())
        self.received = []
        self.handler = AsyncMock(side_effect=self.received.append)
        self.event_bus.subscribe(EventType.SHAKE_SETTINGS_CHANGED, self.handler, "test")

    async def asyncTearDown(self):
        self.tmp.cleanup()

    def make_service(self, path=None):
        config = SettingsStoreConfig(path=str(path) if path else None)
        return SettingsService(self.event_bus, ServiceRegistry(), config=config)

    async def test_publishes_current_settings_on_start(self):
        service = self.make_service()
        await service.start()

        self.handler.assert_awaited_once()
        self.assertEqual(self.received[0].settings, ShakeSettings())

    async def test_set_sensitivity_clamps_and_publishes(self):
        service = self.make_service()
        await service.start()

        settings = await service.set_shake_sensitivity(40)

        self.assertEqual(settings.sensitivity, 25.0)
        self.assertEqual(self.received[-1].settings.sensitivity, 25.0)

    async def test_setters(self):
        service = self.make_service()
        await service.start()

        await service.set_shake_enabled(False)
        await service.set_haptic_feedback_enabled(False)

        self.assertFalse(service.settings.enabled)
        self.assertFalse(service.settings.haptic_feedback_enabled)
        self.assertEqual(len(self.received), 3)

    async def test_unchanged_value_is_not_republished(self):
        service = self.make_service()
        await service.start()

        await service.set_shake_sensitivity(15.0)

        self.assertEqual(len(self.received), 1)

    async def test_unknown_setting_rejected(self):
        service = self.make_service()
        with self.assertRaises(ValueError):
            await service.update(volume=0.5)

    async def test_persists_to_file(self):
        service = self.make_service(self.path)
        await service.start()
        await service.set_shake_sensitivity(20.0)

        stored = json.loads(self.path.read_text())
        self.assertEqual(stored['sensitivity'], 20.0)

        reloaded = self.make_service(self.path)
        self.assertEqual(reloaded.settings.sensitivity, 20.0)

    async def test_corrupt_file_falls_back_to_defaults(self):
        self.path.write_text("{not json")
        service = self.make_service(self.path)
        self.assertEqual(service.settings, ShakeSettings())

    async def test_changes_before_start_are_not_published(self):
        service = self.make_service()
        await service.set_shake_enabled(False)
        self.handler.assert_not_awaited()

        await service.start()
        self.assertFalse(self.received[0].settings.enabled)

if __name__ == '__main__':
    unittest.main()
