"""
Playback service for ShakeSkip.

Owns the Transport and the SkipSimulationController. Shakes published on the
bus trigger a CD-skip simulation; user commands go straight to the transport
once any simulation in flight has been cancelled, so the controller stays the
only writer to volume and position while it runs.
"""

import asyncio
import random
from typing import Optional

from shakeskip.core.bus import EventBus
from shakeskip.core.config import SkipSimulationConfig
from shakeskip.core.events import BaseEvent, EventType
from shakeskip.core.registry import ServiceRegistry
from shakeskip.core.service import BaseService
from shakeskip.events.playback import PlaybackStateEvent, SkipSimulationStateEvent
from shakeskip.hardware.transport import Transport, TransportError, TransportSnapshot
from shakeskip.playback.skip_simulation import SkipSimulationController, SkipState

class PlaybackService(BaseService):
    """
    Service exposing transport commands and the shake-triggered skip effect.
    """

    PRODUCES_EVENTS = {
        EventType.PLAYBACK_STATE: {
            'schema': PlaybackStateEvent,
            'description': "Observable transport state changed"
        },
        EventType.SKIP_SIMULATION_STATE: {
            'schema': SkipSimulationStateEvent,
            'description': "Skip simulation moved to a new stage"
        },
    }

    CONSUMES_EVENTS = {
        EventType.SHAKE_DETECTED: "handle_event",
    }

    def __init__(self,
                 event_bus: EventBus,
                 service_registry: ServiceRegistry,
                 transport: Transport,
                 config: Optional[SkipSimulationConfig] = None,
                 rng: Optional[random.Random] = None,
                 name: Optional[str] = None):
        super().__init__(event_bus, service_registry, name=name, config=config or SkipSimulationConfig())
        self.transport = transport
        self.controller = SkipSimulationController(transport, self.config, rng)

    @property
    def is_simulating(self) -> bool:
        return self.controller.is_simulating

    def snapshot(self) -> TransportSnapshot:
        return self.transport.snapshot()

    async def _on_start(self) -> None:
        self.transport.add_listener(self._on_snapshot)
        self.controller.add_state_listener(self._on_skip_state)
        await self._publish_snapshot(self.transport.snapshot())

    async def _on_stop(self) -> None:
        await self.controller.cancel()
        self.transport.remove_listener(self._on_snapshot)
        self.controller.remove_state_listener(self._on_skip_state)
        await self.wait_for_notifications()

    async def handle_event(self, event: BaseEvent) -> None:
        if event.type == EventType.SHAKE_DETECTED:
            await self.simulate_cd_skip()

    async def simulate_cd_skip(self) -> asyncio.Task:
        """
        Start a CD-skip simulation, superseding one already running.

        Returns:
            The task running the simulation
        """
        self.logger.info("Simulating CD skip",
                         position_ms=self.transport.get_position(),
                         volume=self.controller.user_volume)
        return await self.controller.simulate()

    async def play(self) -> None:
        await self.controller.cancel()
        await self.transport.play()

    async def pause(self) -> None:
        await self.controller.cancel()
        await self.transport.pause()

    async def toggle_play_pause(self) -> bool:
        """
        Returns:
            Whether the transport is playing afterwards
        """
        await self.controller.cancel()
        if self.transport.is_playing():
            await self.transport.pause()
        else:
            await self.transport.play()
        return self.transport.is_playing()

    async def seek_to(self, position_ms: int) -> None:
        """
        Raises:
            TransportError: If the transport rejects the position
        """
        await self.controller.cancel()
        if position_ms < 0:
            raise TransportError(f"Seek target {position_ms} is negative")
        await self.transport.seek_to(position_ms)

    async def set_volume(self, volume: float) -> float:
        """Set the user volume; a simulation in flight is cancelled and restores to it."""
        stored = await self.controller.set_user_volume(volume)
        self.logger.info("User volume set", volume=stored)
        return stored

    def _on_snapshot(self, snapshot: TransportSnapshot) -> None:
        self._spawn(self._publish_snapshot(snapshot))

    def _on_skip_state(self, state: SkipState) -> None:
        self._spawn(self.publish(SkipSimulationStateEvent(
            state=state.name,
            is_simulating=state is not SkipState.IDLE,
        )))

    async def _publish_snapshot(self, snapshot: TransportSnapshot) -> None:
        await self.publish(PlaybackStateEvent(**snapshot.model_dump()))

