import threading
import time

import pytest

from avionx.telemetry.simulator import FlightSimulator
from avionx.telemetry.source import ObserverRegistry, SimulatedTelemetrySource
from avionx.util.config import SimulatorConfig

FAST = SimulatorConfig(tick_interval_s=0.01, error_backoff_s=0.05, seed=1)


class Collector:
    def __init__(self):
        self.samples = []
        self.statuses = []
        self.got_samples = threading.Event()
        self.want = 5

    def on_sample(self, sample):
        self.samples.append(sample)
        if len(self.samples) >= self.want:
            self.got_samples.set()

    def on_status(self, connected):
        self.statuses.append(connected)


@pytest.fixture
def source():
    src = SimulatedTelemetrySource(FAST)
    yield src
    src.disconnect()
    assert src.join(timeout=2.0)


@pytest.fixture
def collector(source):
    c = Collector()
    source.subscribe_telemetry(c.on_sample)
    source.subscribe_connection_status(c.on_status)
    return c


def _loop_threads():
    return [t for t in threading.enumerate() if t.name == "avionx-telemetry" and t.is_alive()]


# ---------------------------------------- #


def test_connect_streams_samples(source, collector):
    source.connect("SIM")

    assert source.is_connected
    assert source.port == "SIM"
    assert collector.got_samples.wait(timeout=2.0)
    stamps = [s.timestamp for s in collector.samples]
    assert stamps == sorted(stamps)


def test_connected_notification_fires_before_connect_returns(source, collector):
    source.connect("SIM")
    assert collector.statuses == [True]


def test_connect_is_idempotent(source, collector):
    source.connect("SIM")
    source.connect("SIM")

    assert collector.statuses == [True]
    assert len(_loop_threads()) == 1


def test_disconnect_is_idempotent(source, collector):
    source.connect("SIM")
    source.disconnect()
    source.disconnect()

    assert collector.statuses == [True, False]


def test_disconnect_before_connect_is_a_no_op(source, collector):
    source.disconnect()
    assert collector.statuses == []
    assert not source.is_connected


def test_no_samples_after_disconnect(source, collector):
    source.connect("SIM")
    assert collector.got_samples.wait(timeout=2.0)

    source.disconnect()
    assert not source.is_connected
    count = len(collector.samples)

    time.sleep(0.1)
    assert len(collector.samples) == count
    assert source.join(timeout=2.0)


def test_disconnect_from_subscriber_callback(source):
    received = []

    def on_sample(sample):
        received.append(sample)
        source.disconnect()

    source.subscribe_telemetry(on_sample)
    source.connect("SIM")

    assert source.join(timeout=2.0)
    assert len(received) == 1
    assert not source.is_connected


def test_reconnect_starts_fresh_simulator():
    built = []

    def factory():
        sim = FlightSimulator(FAST)
        built.append(sim)
        return sim

    src = SimulatedTelemetrySource(FAST, simulator_factory=factory)
    src.connect("SIM")
    src.disconnect()
    assert src.join(timeout=2.0)
    src.connect("SIM")
    src.disconnect()
    assert src.join(timeout=2.0)

    assert len(built) == 2
    assert built[0] is not built[1]


def test_unsubscribed_callback_stops_receiving(source, collector):
    source.connect("SIM")
    assert collector.got_samples.wait(timeout=2.0)

    source.unsubscribe_telemetry(collector.on_sample)
    count = len(collector.samples)
    time.sleep(0.05)
    assert len(collector.samples) == count


def test_tick_failure_is_logged_and_loop_resumes(caplog):
    class FlakySimulator(FlightSimulator):
        calls = 0

        def step(self, dt=None):
            FlakySimulator.calls += 1
            if FlakySimulator.calls == 1:
                raise ArithmeticError("boom")
            return super().step(dt)

    src = SimulatedTelemetrySource(FAST, simulator_factory=lambda: FlakySimulator(FAST))
    c = Collector()
    src.subscribe_telemetry(c.on_sample)

    with caplog.at_level("ERROR", logger="avionx.telemetry.source"):
        src.connect("SIM")
        try:
            assert c.got_samples.wait(timeout=2.0)
            assert src.is_connected
        finally:
            src.disconnect()
            src.join(timeout=2.0)

    assert any("Telemetry tick failed" in r.getMessage() for r in caplog.records)


def test_tick_failure_backs_off_before_next_sample():
    cfg = SimulatorConfig(tick_interval_s=0.01, error_backoff_s=0.2, seed=1)

    class FailsSecondTick(FlightSimulator):
        calls = 0

        def step(self, dt=None):
            FailsSecondTick.calls += 1
            if FailsSecondTick.calls == 2:
                raise ArithmeticError("boom")
            return super().step(dt)

    src = SimulatedTelemetrySource(cfg, simulator_factory=lambda: FailsSecondTick(cfg))
    arrivals = []
    done = threading.Event()

    def on_sample(sample):
        arrivals.append(time.monotonic())
        if len(arrivals) >= 3:
            done.set()

    src.subscribe_telemetry(on_sample)
    src.connect("SIM")
    try:
        assert done.wait(timeout=2.0)
    finally:
        src.disconnect()
        src.join(timeout=2.0)

    assert arrivals[1] - arrivals[0] >= 0.18
    assert arrivals[2] - arrivals[1] < 0.18


def test_failing_status_subscriber_still_starts_loop(source):
    c = Collector()

    def bad(connected):
        raise RuntimeError("status subscriber bug")

    source.subscribe_connection_status(bad)
    source.subscribe_telemetry(c.on_sample)

    with pytest.raises(RuntimeError):
        source.connect("SIM")
    source.unsubscribe_connection_status(bad)

    assert source.is_connected
    assert c.got_samples.wait(timeout=2.0)
    assert len(_loop_threads()) == 1


def test_subscriber_error_does_not_end_stream(source):
    c = Collector()
    failed = []

    def bad(sample):
        if not failed:
            failed.append(sample)
            raise RuntimeError("subscriber bug")

    source.subscribe_telemetry(bad)
    source.subscribe_telemetry(c.on_sample)
    source.connect("SIM")

    assert c.got_samples.wait(timeout=2.0)
    assert failed


# ---------------------------------------- #


def test_registry_notifies_in_registration_order():
    registry = ObserverRegistry()
    calls = []
    registry.register(lambda v: calls.append(("a", v)))
    second = lambda v: calls.append(("b", v))  # noqa: E731
    registry.register(second)
    registry.register(second)

    registry.notify(1)
    assert calls == [("a", 1), ("b", 1)]
    assert len(registry) == 2

    registry.unregister(second)
    registry.notify(2)
    assert calls[-1] == ("a", 2)
    assert len(registry) == 1


def test_registry_tolerates_unregister_during_notify():
    registry = ObserverRegistry()
    calls = []

    def once(v):
        calls.append(v)
        registry.unregister(once)

    registry.register(once)
    registry.notify(1)
    registry.notify(2)
    assert calls == [1]
