from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Generic, Protocol, TypeVar

from avionx.telemetry.simulator import FlightSimulator
from avionx.telemetry.types import TelemetrySample
from avionx.util.config import SimulatorConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")

TelemetryCallback = Callable[[TelemetrySample], None]
StatusCallback = Callable[[bool], None]


class ObserverRegistry(Generic[T]):
    """
    Ordered set of callbacks.

    register/unregister may come from any thread. notify() calls a snapshot
    of the callbacks synchronously, in registration order, on the calling
    thread.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._callbacks: tuple[Callable[[T], None], ...] = ()

    def register(self, callback: Callable[[T], None]) -> None:
        with self._lock:
            if callback in self._callbacks:
                return
            self._callbacks = self._callbacks + (callback,)

    def unregister(self, callback: Callable[[T], None]) -> None:
        with self._lock:
            self._callbacks = tuple(c for c in self._callbacks if c != callback)

    def notify(self, value: T) -> None:
        with self._lock:
            callbacks = self._callbacks
        for callback in callbacks:
            callback(value)

    def __len__(self) -> int:
        with self._lock:
            return len(self._callbacks)


# ---------------------------------------- #


class TelemetrySource(Protocol):
    """Start/stop contract for anything that streams TelemetrySamples."""

    @property
    def is_connected(self) -> bool: ...

    def connect(self, port: str) -> None: ...

    def disconnect(self) -> None: ...

    def subscribe_telemetry(self, callback: TelemetryCallback) -> None: ...

    def unsubscribe_telemetry(self, callback: TelemetryCallback) -> None: ...

    def subscribe_connection_status(self, callback: StatusCallback) -> None: ...

    def unsubscribe_connection_status(self, callback: StatusCallback) -> None: ...


# ---------------------------------------- #


class SimulatedTelemetrySource:
    """
    Telemetry source backed by FlightSimulator.

    connect() spins up one daemon thread that ticks a fresh simulator at a
    fixed cadence and hands every sample to the telemetry subscribers.
    disconnect() sets the loop's stop event and returns without joining.

    Intended for:
    - UI development
    - Pipeline bring-up without hardware
    """

    def __init__(
        self,
        config: SimulatorConfig | None = None,
        simulator_factory: Callable[[], FlightSimulator] | None = None,
    ) -> None:
        self._config = config or SimulatorConfig()
        self._simulator_factory = simulator_factory or (
            lambda: FlightSimulator(self._config)
        )

        self._telemetry: ObserverRegistry[TelemetrySample] = ObserverRegistry()
        self._status: ObserverRegistry[bool] = ObserverRegistry()

        self._lock = threading.Lock()
        # Held around fan-out so disconnect() cannot interleave with a delivery.
        self._emit_lock = threading.RLock()
        self._connected = False
        self._port: str | None = None
        self._stop_event: threading.Event | None = None
        self._thread: threading.Thread | None = None

    # ---------------------------------------- #
    #   Subscriptions                          #
    # ---------------------------------------- #

    def subscribe_telemetry(self, callback: TelemetryCallback) -> None:
        self._telemetry.register(callback)

    def unsubscribe_telemetry(self, callback: TelemetryCallback) -> None:
        self._telemetry.unregister(callback)

    def subscribe_connection_status(self, callback: StatusCallback) -> None:
        self._status.register(callback)

    def unsubscribe_connection_status(self, callback: StatusCallback) -> None:
        self._status.unregister(callback)

    # ---------------------------------------- #
    #   Connection                             #
    # ---------------------------------------- #

    @property
    def is_connected(self) -> bool:
        with self._lock:
            return self._connected

    @property
    def port(self) -> str | None:
        return self._port

    # ---------------------------------------- #

    def connect(self, port: str) -> None:
        with self._lock:
            if self._connected:
                return
            self._connected = True
            self._port = port

            stop_event = threading.Event()
            self._stop_event = stop_event
            thread = threading.Thread(
                target=self._run,
                args=(stop_event, self._simulator_factory()),
                name="avionx-telemetry",
                daemon=True,
            )
            self._thread = thread

        logger.info("Simulated telemetry connected on %s", port)
        try:
            self._status.notify(True)
        finally:
            # The loop runs even when a status subscriber raises.
            thread.start()

    # ---------------------------------------- #

    def disconnect(self) -> None:
        with self._lock:
            if not self._connected:
                return
            self._connected = False
            stop_event = self._stop_event
            self._stop_event = None

        if stop_event is not None:
            with self._emit_lock:
                stop_event.set()

        logger.info("Simulated telemetry disconnected")
        self._status.notify(False)

    # ---------------------------------------- #

    def join(self, timeout: float | None = None) -> bool:
        """Wait for the most recent loop thread to exit. True if it has."""
        thread = self._thread
        if thread is None:
            return True
        if thread is threading.current_thread():
            return False
        thread.join(timeout)
        return not thread.is_alive()

    # ---------------------------------------- #
    #   Internal                               #
    # ---------------------------------------- #

    def _run(self, stop_event: threading.Event, simulator: FlightSimulator) -> None:
        interval = self._config.tick_interval_s
        next_tick = time.monotonic()

        while not stop_event.is_set():
            try:
                sample = simulator.step()
                with self._emit_lock:
                    if stop_event.is_set():
                        break
                    self._telemetry.notify(sample)
            except Exception:
                logger.exception(
                    "Telemetry tick failed; retrying in %.1fs",
                    self._config.error_backoff_s,
                )
                if stop_event.wait(self._config.error_backoff_s):
                    break
                next_tick = time.monotonic()
                continue

            next_tick += interval
            delay = next_tick - time.monotonic()
            if delay < 0:
                # Fell behind; don't try to catch up with a burst of ticks.
                next_tick = time.monotonic()
                delay = 0.0
            if stop_event.wait(delay):
                break

        logger.debug("Telemetry loop exited")
