"""
CD-skip simulation.

The SkipSimulationController plays the illusion of a jumping CD on a Transport:

    IDLE -> MUTING -> SEEKING -> RESUMING -> RAMPING_VOLUME -> IDLE

1. pause if playing and mute, so the jump is silent
2. after a short mechanical delay, seek a random 200-520 ms ahead
   (clamped to the track duration when it is known)
3. resume if playback was running
4. ramp the volume back up through fractions of the user's volume

Each run is an asyncio task. Starting a new run cancels the previous one and
waits for its cleanup before touching the transport, so two runs never drive
the transport at once. Cleanup runs in a ``finally`` block on every exit path
(completion, cancellation, transport failure) and leaves the transport at the
latest user volume and, if the run paused playback, playing again.

A user volume change while a run is in flight cancels the run; the restored
volume is the new user volume.
"""

import asyncio
import logging
import math
import random
from enum import Enum, auto
from typing import Any, Awaitable, Callable, List, Optional

from shakeskip.core.config import SkipSimulationConfig
from shakeskip.hardware.transport import Transport

class SkipState(Enum):
    """Stages of a skip simulation."""
    IDLE = auto()
    MUTING = auto()
    SEEKING = auto()
    RESUMING = auto()
    RAMPING_VOLUME = auto()

StateListener = Callable[[SkipState], None]

class SkipSimulationController:
    """
    Runs at most one skip simulation at a time against a Transport.

    All public coroutines serialize on an internal lock; the simulation task
    itself never takes the lock, so cancelling it from under the lock is safe.
    """

    def __init__(self,
                 transport: Transport,
                 config: Optional[SkipSimulationConfig] = None,
                 rng: Optional[random.Random] = None):
        """
        Args:
            transport: The transport to drive
            config: Timing and ramp settings
            rng: Source for skip distances; seeded from config when omitted
        """
        self.transport = transport
        self.config = config or SkipSimulationConfig()
        self._rng = rng or random.Random(self.config.seed)
        self.logger = logging.getLogger(__name__)

        self._user_volume = transport.get_volume()
        self._state = SkipState.IDLE
        self._task: Optional[asyncio.Task] = None
        self._lock = asyncio.Lock()
        self._listeners: List[StateListener] = []
        self._paused_by_simulation = False

        self.started_count = 0
        self.completed_count = 0
        self.cancelled_count = 0
        self.failed_steps = 0

    @property
    def state(self) -> SkipState:
        return self._state

    @property
    def is_simulating(self) -> bool:
        return self._state is not SkipState.IDLE

    @property
    def user_volume(self) -> float:
        """The volume the user last asked for; what every run restores to."""
        return self._user_volume

    def add_state_listener(self, listener: StateListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_state_listener(self, listener: StateListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def simulate(self) -> asyncio.Task:
        """
        Start a skip simulation, superseding any run in flight.

        Returns:
            The task running the new simulation
        """
        async with self._lock:
            await self._cancel_locked()
            self.started_count += 1
            self._set_state(SkipState.MUTING)
            self._task = asyncio.create_task(self._run(self._user_volume))
            return self._task

    async def cancel(self) -> None:
        """Cancel the run in flight, if any, and wait for its cleanup. Idempotent."""
        async with self._lock:
            await self._cancel_locked()

    async def set_user_volume(self, volume: float) -> float:
        """
        Record an explicit user volume and apply it.

        A run in flight is cancelled and its cleanup restores the new volume.

        Returns:
            The stored volume, clamped to [0.0, 1.0]
        """
        if not math.isfinite(volume):
            self.logger.warning("Ignoring non-finite volume %r", volume)
            return self._user_volume
        volume = min(max(float(volume), 0.0), 1.0)
        async with self._lock:
            self._user_volume = volume
            if self.is_simulating:
                self.logger.info("User volume changed during skip simulation; cancelling")
                await self._cancel_locked()
            else:
                await self._step("set volume", self.transport.set_volume, volume)
        return volume

    async def wait_idle(self) -> None:
        """Wait until the current run, if any, has finished."""
        task = self._task
        if task is not None:
            await asyncio.wait({task})

    async def _cancel_locked(self) -> None:
        task = self._task
        self._task = None
        if task is not None and not task.done():
            task.cancel()
            await asyncio.wait({task})
            self.cancelled_count += 1
            self.logger.info("Skip simulation cancelled")
        # A task cancelled before its first step never reaches its finally block
        if self.is_simulating:
            await self._finish()

    async def _run(self, baseline_volume: float) -> None:
        completed = False
        try:
            was_playing = bool(self._query("playing state", self.transport.is_playing))
            if was_playing:
                # Marked first so a cancel during the pause still resumes
                self._paused_by_simulation = True
                if not await self._step("pause", self.transport.pause):
                    self._paused_by_simulation = False
            await self._step("mute", self.transport.set_volume, 0.0)
            target = self._target_position()

            self._set_state(SkipState.SEEKING)
            await asyncio.sleep(self.config.seek_delay_ms / 1000.0)
            if target is not None:
                await self._step("seek", self.transport.seek_to, target)

            self._set_state(SkipState.RESUMING)
            if was_playing and await self._step("resume", self.transport.play):
                self._paused_by_simulation = False

            self._set_state(SkipState.RAMPING_VOLUME)
            for index, fraction in enumerate(self.config.ramp_fractions):
                if index:
                    await asyncio.sleep(self.config.ramp_step_delay_ms / 1000.0)
                await self._step("ramp volume", self.transport.set_volume, baseline_volume * fraction)
            completed = True
        finally:
            await self._finish()
            if completed:
                self.completed_count += 1
                self.logger.info("Skip simulation complete at position %s",
                                 self._query("position", self.transport.get_position))

    def _query(self, name: str, read: Callable[[], Any]) -> Any:
        """Read transport state; a failure is logged and yields None."""
        try:
            return read()
        except Exception as e:
            self.failed_steps += 1
            self.logger.warning("Could not read transport %s: %s", name, e)
            return None

    def _target_position(self) -> Optional[int]:
        try:
            position = self.transport.get_position()
            duration = self.transport.get_duration()
        except Exception as e:
            self.failed_steps += 1
            self.logger.warning("Could not read transport position, skipping seek: %s", e)
            return None
        target = position + self._rng.randrange(self.config.min_skip_ms, self.config.max_skip_ms)
        if duration is not None and math.isfinite(duration) and duration > 0:
            target = min(target, int(duration))
        return target

    async def _step(self, name: str, operation: Callable[..., Awaitable[Any]], *args) -> bool:
        """Run one transport operation; a failure is logged and the step skipped."""
        try:
            await operation(*args)
            return True
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.failed_steps += 1
            self.logger.warning("Skip simulation step '%s' failed: %s", name, e)
            return False

    async def _finish(self) -> None:
        """Restore the user's volume (and playback the run paused), then go idle."""
        try:
            await self.transport.set_volume(self._user_volume)
        except Exception as e:
            self.logger.error("Failed to restore volume %.2f: %s", self._user_volume, e)
        if self._paused_by_simulation:
            self._paused_by_simulation = False
            await self._step("resume after cancel", self.transport.play)
        self._set_state(SkipState.IDLE)

    def _set_state(self, state: SkipState) -> None:
        if state is self._state:
            return
        self._state = state
        self.logger.debug("Skip simulation state: %s", state.name)
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as e:
                self.logger.error(f"Error in skip state listener: {e}", exc_info=True)
