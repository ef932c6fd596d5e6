"""
Base hardware abstraction for ShakeSkip.

This module provides the BaseHardware class that the capability interfaces
(transport, sensor source, haptic device) inherit from, defining the common
lifecycle and health interface.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import structlog

class BaseHardware(ABC):
    """
    Base class for all hardware abstractions.

    Connecting to and releasing the underlying platform resource is owned by the
    application, through ``initialize`` and ``shutdown``.
    """

    def __init__(self, config: Optional[Any] = None, name: Optional[str] = None):
        """
        Initialize the hardware component.

        Args:
            config: Optional hardware-specific configuration
            name: Optional name for this hardware instance
        """
        self.config = config
        self.name = name or self.__class__.__name__
        self.logger = structlog.get_logger(hardware=self.name)
        self._initialized = False
        self._lock = asyncio.Lock()

    async def initialize(self) -> None:
        """
        Initialize the hardware component.

        Calling this on an initialized component only logs a warning.
        """
        async with self._lock:
            if self._initialized:
                self.logger.warning("Hardware already initialized")
                return

            try:
                await self._initialize_impl()
                self._initialized = True
                self.logger.info("Hardware initialized")
            except Exception as e:
                self.logger.error("Error initializing hardware", error=str(e))
                raise

    async def shutdown(self) -> None:
        """
        Shut down the hardware component and release its resources.
        """
        async with self._lock:
            if not self._initialized:
                self.logger.warning("Hardware not initialized")
                return

            try:
                await self._shutdown_impl()
                self._initialized = False
                self.logger.info("Hardware shut down")
            except Exception as e:
                self.logger.error("Error shutting down hardware", error=str(e))
                raise

    def is_initialized(self) -> bool:
        return self._initialized

    async def _initialize_impl(self) -> None:
        """Implementation-specific initialization. No-op by default."""

    async def _shutdown_impl(self) -> None:
        """Implementation-specific shutdown. No-op by default."""

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the underlying device exists on this host."""

    async def check_health(self) -> Dict[str, Any]:
        """
        Report the health of the hardware component.

        Returns:
            Dictionary with health information
        """
        return {
            "name": self.name,
            "initialized": self._initialized,
            "available": self.is_available(),
            "status": "ok" if self.is_available() else "unavailable"
        }
