"""
Service that turns accelerometer samples into shake events.

The service owns a ShakeDetector and registers it with the sensor source while
detection is enabled. Samples are processed synchronously on the sensor
delivery path; everything that has to await (publishing events) is handed off
to tasks so ``on_sample`` never blocks.

Per detected shake the service:
- increments the shake count
- pulses the haptic device if haptic feedback is enabled
- raises the transient "is shaking" flag for a short hold time
- publishes ShakeDetectedEvent and ShakeCountEvent

Settings changes arrive as ShakeSettingsChangedEvent and are applied without a
restart.
"""

import asyncio
from typing import Optional

from shakeskip.core.bus import EventBus
from shakeskip.core.config import ShakeConfig
from shakeskip.core.events import BaseEvent, EventType
from shakeskip.core.registry import ServiceRegistry
from shakeskip.core.service import BaseService
from shakeskip.events.sensors import (
    ShakeCountEvent,
    ShakeDetectedEvent,
    ShakeDetectionStateEvent,
    ShakingStateEvent,
)
from shakeskip.events.settings import ShakeSettings
from shakeskip.events.system import HardwareErrorEvent
from shakeskip.hardware.haptic import HapticDevice
from shakeskip.hardware.sensor import SensorSource, SensorUnavailableError
from shakeskip.motion.detector import ShakeDetector, ShakeEvent

class ShakeDetectionService(BaseService):
    """
    Shake recognition, shake statistics and haptic feedback.
    """

    PRODUCES_EVENTS = {
        EventType.SHAKE_DETECTED: {
            'schema': ShakeDetectedEvent,
            'description': "A shake crossed the threshold outside the debounce window"
        },
        EventType.SHAKE_DETECTION_STATE: {
            'schema': ShakeDetectionStateEvent,
            'description': "Shake detection was enabled or disabled"
        },
        EventType.SHAKING_STATE: {
            'schema': ShakingStateEvent,
            'description': "The device started or stopped being shaken"
        },
        EventType.SHAKE_COUNT: {
            'schema': ShakeCountEvent,
            'description': "The cumulative shake count changed"
        },
        EventType.HARDWARE_ERROR: {
            'schema': HardwareErrorEvent,
            'description': "A hardware capability is missing or failing"
        },
    }

    CONSUMES_EVENTS = {
        EventType.SHAKE_SETTINGS_CHANGED: "handle_event",
    }

    def __init__(self,
                 event_bus: EventBus,
                 service_registry: ServiceRegistry,
                 sensor_source: SensorSource,
                 haptic_device: Optional[HapticDevice] = None,
                 config: Optional[ShakeConfig] = None,
                 name: Optional[str] = None):
        super().__init__(event_bus, service_registry, name=name, config=config or ShakeConfig())
        self.sensor_source = sensor_source
        self.haptic_device = haptic_device
        self.detector = ShakeDetector(
            threshold=self.config.default_threshold,
            debounce_ms=self.config.debounce_ms,
            alpha=self.config.filter_alpha,
            min_threshold=self.config.min_threshold,
            max_threshold=self.config.max_threshold,
        )
        self.detector.add_listener(self._on_shake)

        self._detection_enabled = False
        self._sensor_unavailable = False
        self._haptic_feedback_enabled = True
        self._shake_count = 0
        self._is_shaking = False
        self._shaking_reset_task: Optional[asyncio.Task] = None

    @property
    def is_detection_enabled(self) -> bool:
        return self._detection_enabled

    @property
    def sensor_unavailable(self) -> bool:
        return self._sensor_unavailable

    @property
    def shake_count(self) -> int:
        return self._shake_count

    @property
    def is_shaking(self) -> bool:
        return self._is_shaking

    @property
    def haptic_feedback_enabled(self) -> bool:
        return self._haptic_feedback_enabled

    @property
    def threshold(self) -> float:
        return self.detector.threshold

    async def start_detection(self) -> bool:
        """
        Register with the sensor source and start recognizing shakes.

        Returns:
            True if detection is running afterwards
        """
        if self._detection_enabled:
            self.logger.debug("Shake detection already enabled")
            return True
        if self._sensor_unavailable:
            return False

        try:
            self.sensor_source.register(self.detector.on_sample)
        except SensorUnavailableError as e:
            self._sensor_unavailable = True
            self.logger.error("Cannot start shake detection - no accelerometer available")
            await self.publish(HardwareErrorEvent(
                component="sensor",
                error_type=type(e).__name__,
                error_message=str(e),
            ))
            await self._publish_detection_state()
            return False

        self.detector.start()
        self._detection_enabled = True
        self.logger.info("Shake detection started", threshold=self.detector.threshold)
        await self._publish_detection_state()
        return True

    async def stop_detection(self) -> None:
        """Unregister from the sensor source; no further shakes fire."""
        if not self._detection_enabled:
            self.logger.debug("Shake detection already disabled")
            return

        self.sensor_source.unregister()
        self.detector.stop()
        self._detection_enabled = False
        self._cancel_shaking_reset()
        if self._is_shaking:
            self._is_shaking = False
            await self.publish(ShakingStateEvent(is_shaking=False))
        self.logger.info("Shake detection stopped")
        await self._publish_detection_state()

    def set_threshold(self, threshold: float) -> float:
        """Update the shake threshold; clamped into the configured range."""
        return self.detector.set_threshold(threshold)

    async def reset_shake_count(self) -> None:
        self._shake_count = 0
        await self.publish(ShakeCountEvent(count=0))

    async def apply_settings(self, settings: ShakeSettings) -> None:
        """Apply threshold, haptic toggle and enabled state from user settings."""
        self.set_threshold(settings.sensitivity)
        self._haptic_feedback_enabled = settings.haptic_feedback_enabled
        if settings.enabled:
            await self.start_detection()
        else:
            await self.stop_detection()

    async def handle_event(self, event: BaseEvent) -> None:
        if event.type == EventType.SHAKE_SETTINGS_CHANGED:
            await self.apply_settings(event.settings)

    def _on_shake(self, shake: ShakeEvent) -> None:
        # Runs on the sensor delivery path: no awaiting here.
        self._shake_count += 1
        count = self._shake_count
        self.logger.info("Shake detected", magnitude=round(shake.magnitude, 2), count=count)

        if self._haptic_feedback_enabled and self.haptic_device is not None:
            self.haptic_device.pulse()

        if not self._is_shaking:
            self._is_shaking = True
            self._spawn(self.publish(ShakingStateEvent(is_shaking=True)))
        self._cancel_shaking_reset()
        self._shaking_reset_task = self._spawn(self._clear_shaking_after(self.config.shaking_indicator_ms))

        self._spawn(self._publish_shake(shake, count))

    async def _publish_shake(self, shake: ShakeEvent, count: int) -> None:
        await self.publish(ShakeDetectedEvent(
            magnitude=shake.magnitude,
            threshold=shake.threshold,
            sample_timestamp_ms=shake.timestamp_ms,
        ))
        await self.publish(ShakeCountEvent(count=count))

    async def _clear_shaking_after(self, hold_ms: float) -> None:
        await asyncio.sleep(hold_ms / 1000.0)
        self._is_shaking = False
        await self.publish(ShakingStateEvent(is_shaking=False))

    def _cancel_shaking_reset(self) -> None:
        if self._shaking_reset_task is not None and not self._shaking_reset_task.done():
            self._shaking_reset_task.cancel()
        self._shaking_reset_task = None

    async def _publish_detection_state(self) -> None:
        await self.publish(ShakeDetectionStateEvent(
            enabled=self._detection_enabled,
            sensor_unavailable=self._sensor_unavailable,
        ))

    async def _on_stop(self) -> None:
        await self.stop_detection()
        self.detector.reset()
        self._cancel_shaking_reset()
        pending = list(self._pending)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
