"""
Main entry point for ShakeSkip.

This module wires the core components, hardware and services together, sets up
logging and provides the ``shakeskip`` command, which runs a demo session:
a synthetic shake trace is replayed through the sensor path while a track plays
on an in-memory transport, and every detected shake triggers a CD-skip effect.
"""

import argparse
import asyncio
import logging
import random
import signal
import sys
from typing import Dict, Optional

import structlog

from shakeskip import __version__
from shakeskip.core import (
    ApplicationConfig, BaseService, EventBus, EventRegistry, EventTracer, EventType,
    ServiceRegistry, get_config
)
from shakeskip.core.config import LogLevel
from shakeskip.events.system import ApplicationStartupCompletedEvent
from shakeskip.hardware import (
    HapticDevice, InMemoryTransport, MockHapticDevice, SensorSource,
    SimulatedSensorSource, Transport, TransportSnapshot, generate_shake_trace
)
from shakeskip.services import PlaybackService, SettingsService, ShakeDetectionService

DEMO_MEDIA_ID = "demo-track"
DEMO_DURATION_MS = 180_000
CLOCK_TICK_MS = 50

def setup_logging(level: str = "INFO"):
    """Configure structured logging for the application."""
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper(), logging.INFO),
        stream=sys.stdout,
    )

class ShakeSkipApplication:
    """
    Main application class for ShakeSkip.

    Owns the event system, the hardware capabilities and the three services,
    and runs their lifecycle in dependency order.
    """

    NAME = "shakeskip"

    def __init__(self,
                 config: Optional[ApplicationConfig] = None,
                 transport: Optional[Transport] = None,
                 sensor_source: Optional[SensorSource] = None,
                 haptic_device: Optional[HapticDevice] = None,
                 rng: Optional[random.Random] = None):
        self.logger = structlog.get_logger(app=self.NAME)
        self.config = config or get_config()

        self.event_registry = EventRegistry()
        self.service_registry = ServiceRegistry()
        if self.config.event.tracing_enabled:
            self.event_tracer = EventTracer(max_events=self.config.event.max_trace_events)
        else:
            self.event_tracer = None
        self.event_bus = EventBus(self.event_registry, self.event_tracer)
        self.event_registry.register_event(
            EventType.APPLICATION_STARTUP_COMPLETED,
            ApplicationStartupCompletedEvent,
            "All services are running"
        )

        self.transport = transport or InMemoryTransport()
        self.sensor_source = sensor_source or SimulatedSensorSource(self.config.sensor)
        self.haptic_device = haptic_device or MockHapticDevice(self.config.haptic)

        self.detection = ShakeDetectionService(
            self.event_bus, self.service_registry,
            sensor_source=self.sensor_source,
            haptic_device=self.haptic_device,
            config=self.config.shake,
        )
        self.playback = PlaybackService(
            self.event_bus, self.service_registry,
            transport=self.transport,
            config=self.config.skip,
            rng=rng,
        )
        self.settings = SettingsService(
            self.event_bus, self.service_registry,
            config=self.config.settings,
        )
        # Settings publish on start, so their consumer must already be listening
        self.service_registry.register_dependency(self.settings.name, self.detection.name)

        self.services: Dict[str, BaseService] = {}
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    async def initialize(self):
        """Bring up hardware, start all services and announce startup."""
        self.logger.info("Initializing ShakeSkip", version=__version__)

        try:
            for device in self._devices():
                await device.initialize()

            for name in self.service_registry.get_start_order():
                service = self.service_registry.get_service(name)
                await service.start()
                self.services[name] = service

            self._running = True
            await self.event_bus.publish(
                ApplicationStartupCompletedEvent(producer_name=self.NAME),
                self.NAME
            )
            self.logger.info("ShakeSkip initialization complete", services=list(self.services))

        except Exception as e:
            self.logger.error("Failed to initialize application", error=str(e), exc_info=True)
            await self.shutdown()
            raise

    async def shutdown(self):
        """Stop services in reverse start order and release hardware."""
        if not self.services and not any(d.is_initialized() for d in self._devices()):
            return

        self._running = False
        self.logger.info("Shutting down ShakeSkip")

        for name, service in reversed(list(self.services.items())):
            try:
                self.logger.info(f"Stopping service: {name}")
                await service.stop()
            except Exception as e:
                self.logger.error(f"Error stopping service {name}: {e}")
        self.services.clear()

        for device in reversed(self._devices()):
            if device.is_initialized():
                await device.shutdown()

        self.logger.info("ShakeSkip shutdown complete")

    def _devices(self):
        return [self.transport, self.sensor_source, self.haptic_device]

    async def run_demo(self,
                       shakes: int = 3,
                       interval_s: float = 1.0,
                       volume: float = 0.8,
                       seed: Optional[int] = None,
                       realtime: bool = True) -> TransportSnapshot:
        """
        Play a demo track and replay a synthetic shake trace through the sensor path.

        Returns:
            The transport snapshot once every triggered simulation has finished
        """
        if isinstance(self.transport, InMemoryTransport):
            self.transport.load(DEMO_MEDIA_ID, duration_ms=DEMO_DURATION_MS)
        await self.playback.set_volume(volume)
        await self.playback.play()

        rate_hz = self.sensor_source.sampling_rate_hz
        trace = generate_shake_trace(shakes=shakes, interval_s=interval_s, rate_hz=rate_hz, seed=seed)
        self.logger.info("Replaying shake trace", samples=len(trace), rate_hz=rate_hz)

        clock = asyncio.create_task(self._playback_clock()) if realtime else None
        try:
            if isinstance(self.sensor_source, SimulatedSensorSource):
                await self.sensor_source.replay(trace, rate_hz=rate_hz, realtime=realtime)
            await self.detection.wait_for_notifications()
            await self.playback.controller.wait_idle()
        finally:
            if clock is not None:
                clock.cancel()
                await asyncio.gather(clock, return_exceptions=True)

        return self.playback.snapshot()

    async def _playback_clock(self):
        while True:
            await asyncio.sleep(CLOCK_TICK_MS / 1000.0)
            if isinstance(self.transport, InMemoryTransport):
                self.transport.advance(CLOCK_TICK_MS)

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shakeskip",
        description="Shake the (simulated) phone, hear the CD skip."
    )
    parser.add_argument("--shakes", type=int, default=3, help="number of shakes in the demo trace")
    parser.add_argument("--interval", type=float, default=1.0, help="seconds between shakes")
    parser.add_argument("--volume", type=float, default=0.8, help="user volume in [0, 1]")
    parser.add_argument("--log-level", default=None,
                        help="defaults to SHAKESKIP_LOG_LEVEL, else INFO",
                        choices=[level.value for level in LogLevel])
    parser.add_argument("--seed", type=int, default=None, help="seed for trace noise and skip distances")
    parser.add_argument("--fast", action="store_true", help="replay the trace without real-time pacing")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser

async def main(args: argparse.Namespace) -> int:
    """Application entry point."""
    rng = random.Random(args.seed) if args.seed is not None else None
    app = ShakeSkipApplication(rng=rng)

    loop = asyncio.get_running_loop()
    demo = None

    def handle_signal(sig):
        app.logger.info(f"Received signal {sig.name}, shutting down")
        if demo is not None:
            demo.cancel()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, lambda s=sig: handle_signal(s))
        except NotImplementedError:
            app.logger.debug("Signal handlers not supported on this platform")

    await app.initialize()
    try:
        demo = asyncio.create_task(app.run_demo(
            shakes=args.shakes,
            interval_s=args.interval,
            volume=args.volume,
            seed=args.seed,
            realtime=not args.fast,
        ))
        snapshot = await demo
    except asyncio.CancelledError:
        app.logger.info("Demo cancelled")
        return 130
    finally:
        await app.shutdown()

    print(f"Shakes detected: {app.detection.shake_count}")
    print(f"Skip simulations: {app.playback.controller.completed_count} completed, "
          f"{app.playback.controller.cancelled_count} cancelled")
    print(f"Transport: {snapshot.model_dump_json()}")
    return 0

def cli(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level or get_config().log_level.value)
    try:
        return asyncio.run(main(args))
    except Exception as e:
        logging.error(f"Fatal error: {e}", exc_info=True)
        return 1

if __name__ == "__main__":
    sys.exit(cli())
