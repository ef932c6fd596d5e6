"""
Service owning the user's shake preferences.

Settings are kept in memory and, when a path is configured, persisted as JSON.
Every change is published as a ShakeSettingsChangedEvent so the detection
service can apply it immediately; the current settings are also published once
at startup.
"""

from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from shakeskip.core.bus import EventBus
from shakeskip.core.config import SettingsStoreConfig
from shakeskip.core.events import BaseEvent, EventType
from shakeskip.core.registry import ServiceRegistry
from shakeskip.core.service import BaseService
from shakeskip.events.settings import ShakeSettings, ShakeSettingsChangedEvent

class SettingsService(BaseService):
    """
    Source of truth for ShakeSettings.
    """

    PRODUCES_EVENTS = {
        EventType.SHAKE_SETTINGS_CHANGED: {
            'schema': ShakeSettingsChangedEvent,
            'description': "Shake settings were loaded or changed"
        }
    }

    def __init__(self,
                 event_bus: EventBus,
                 service_registry: ServiceRegistry,
                 config: Optional[SettingsStoreConfig] = None,
                 name: Optional[str] = None):
        super().__init__(event_bus, service_registry, name=name, config=config or SettingsStoreConfig())
        self._path = Path(self.config.path).expanduser() if self.config.path else None
        self._settings = self._load()

    @property
    def settings(self) -> ShakeSettings:
        return self._settings

    async def _on_start(self) -> None:
        await self._publish_settings()

    async def set_shake_enabled(self, enabled: bool) -> ShakeSettings:
        return await self.update(enabled=enabled)

    async def set_shake_sensitivity(self, sensitivity: float) -> ShakeSettings:
        """Store a new sensitivity; out-of-range values are clamped into [10, 25]."""
        return await self.update(sensitivity=sensitivity)

    async def set_haptic_feedback_enabled(self, enabled: bool) -> ShakeSettings:
        return await self.update(haptic_feedback_enabled=enabled)

    async def update(self, **changes: Any) -> ShakeSettings:
        """
        Apply one or more setting changes, persist them and publish the result.

        Raises:
            ValueError: If a change names an unknown setting
        """
        unknown = set(changes) - set(ShakeSettings.model_fields)
        if unknown:
            raise ValueError(f"Unknown shake settings: {sorted(unknown)}")

        updated = ShakeSettings.model_validate({**self._settings.model_dump(), **changes})
        if updated == self._settings:
            return self._settings
        self._settings = updated
        self.logger.info("Shake settings changed", **updated.model_dump())
        self._save()
        await self._publish_settings()
        return updated

    async def _publish_settings(self) -> None:
        if self.is_running:
            await self.publish(ShakeSettingsChangedEvent(settings=self._settings))

    def _load(self) -> ShakeSettings:
        if self._path is None or not self._path.exists():
            return ShakeSettings()
        try:
            settings = ShakeSettings.model_validate_json(self._path.read_text())
            self.logger.info("Loaded shake settings", path=str(self._path))
            return settings
        except (OSError, ValidationError, ValueError) as e:
            self.logger.warning("Unreadable settings file, using defaults",
                                path=str(self._path), error=str(e))
            return ShakeSettings()

    def _save(self) -> None:
        if self._path is None:
            return
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(self._settings.model_dump_json(indent=2))
        except OSError as e:
            self.logger.error("Failed to persist shake settings", path=str(self._path), error=str(e))

    async def handle_event(self, event: BaseEvent) -> None:
        """Settings consume no events."""
