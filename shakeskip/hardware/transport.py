"""
Audio transport abstraction for ShakeSkip.

A Transport is the controllable audio player the rest of the system drives:
play, pause, seek, volume, plus position/duration queries and a stream of
snapshots whenever its observable state changes. Decoding and output are the
implementation's business.

Commands are coroutines; queries are plain methods returning the latest state.
"""

import math
from abc import abstractmethod
from typing import Callable, List, Optional

from pydantic import BaseModel

from .base import BaseHardware

class TransportError(Exception):
    """A transport command could not be carried out (no media, bad seek target, ...)."""

class TransportSnapshot(BaseModel):
    """Observable transport state as seen by observers."""
    current_media_id: Optional[str] = None
    is_playing: bool = False
    position_ms: int = 0
    duration_ms: Optional[int] = None
    volume: float = 1.0

SnapshotListener = Callable[[TransportSnapshot], None]

class Transport(BaseHardware):
    """
    Base class for audio transports.

    Subclasses implement the commands and queries and call ``_notify()`` after
    every change to observable state.
    """

    def __init__(self, config=None, name: Optional[str] = None):
        super().__init__(config, name or "Transport")
        self._listeners: List[SnapshotListener] = []

    @abstractmethod
    async def play(self) -> None:
        """Start or resume playback."""

    @abstractmethod
    async def pause(self) -> None:
        """Pause playback, keeping the position."""

    @abstractmethod
    async def seek_to(self, position_ms: int) -> None:
        """Move the playhead to ``position_ms``."""

    @abstractmethod
    async def set_volume(self, volume: float) -> None:
        """Set output volume in [0.0, 1.0]."""

    @abstractmethod
    def get_position(self) -> int:
        """Current playhead position in ms."""

    @abstractmethod
    def get_duration(self) -> Optional[int]:
        """Duration of the current media in ms, or None when unknown."""

    @abstractmethod
    def is_playing(self) -> bool:
        """Whether audio is currently playing."""

    @abstractmethod
    def get_volume(self) -> float:
        """Current output volume."""

    @abstractmethod
    def get_media_id(self) -> Optional[str]:
        """Identity of the current media item."""

    def snapshot(self) -> TransportSnapshot:
        return TransportSnapshot(
            current_media_id=self.get_media_id(),
            is_playing=self.is_playing(),
            position_ms=self.get_position(),
            duration_ms=self.get_duration(),
            volume=self.get_volume(),
        )

    def add_listener(self, listener: SnapshotListener) -> None:
        """Observe snapshots; several observers can coexist."""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: SnapshotListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                self.logger.error("Error in transport listener", error=str(e), exc_info=True)


class InMemoryTransport(Transport):
    """
    Transport that models a single loaded track without producing sound.

    Playback time only moves when ``advance()`` is called, which keeps position
    deterministic for simulations and tests.
    """

    def __init__(self, volume: float = 1.0, name: Optional[str] = None):
        super().__init__(name=name or "InMemoryTransport")
        self._media_id: Optional[str] = None
        self._duration_ms: Optional[int] = None
        self._position_ms = 0
        self._playing = False
        self._volume = volume

    def is_available(self) -> bool:
        return True

    def load(self, media_id: str, duration_ms: Optional[int] = None, position_ms: int = 0) -> None:
        """Load a media item, stopped, at ``position_ms``."""
        self._media_id = media_id
        self._duration_ms = duration_ms
        self._position_ms = position_ms
        self._playing = False
        self.logger.info("Media loaded", media_id=media_id, duration_ms=duration_ms)
        self._notify()

    async def play(self) -> None:
        if self._media_id is None:
            raise TransportError("No media loaded")
        if not self._playing:
            self._playing = True
            self._notify()

    async def pause(self) -> None:
        if self._playing:
            self._playing = False
            self._notify()

    async def seek_to(self, position_ms: int) -> None:
        if self._media_id is None:
            raise TransportError("No media loaded")
        if position_ms < 0:
            raise TransportError(f"Seek target {position_ms} is negative")
        if self._duration_ms is not None and position_ms > self._duration_ms:
            raise TransportError(f"Seek target {position_ms} beyond duration {self._duration_ms}")
        self._position_ms = int(position_ms)
        self._notify()

    async def set_volume(self, volume: float) -> None:
        if not math.isfinite(volume) or not 0.0 <= volume <= 1.0:
            raise TransportError(f"Volume {volume} outside [0.0, 1.0]")
        self._volume = float(volume)
        self._notify()

    def advance(self, elapsed_ms: int) -> None:
        """Move playback time forward; playback stops at the end of the track."""
        if not self._playing or elapsed_ms <= 0:
            return
        self._position_ms += int(elapsed_ms)
        if self._duration_ms is not None and self._position_ms >= self._duration_ms:
            self._position_ms = self._duration_ms
            self._playing = False
        self._notify()

    def get_position(self) -> int:
        return self._position_ms

    def get_duration(self) -> Optional[int]:
        return self._duration_ms

    def is_playing(self) -> bool:
        return self._playing

    def get_volume(self) -> float:
        return self._volume

    def get_media_id(self) -> Optional[str]:
        return self._media_id
