import pytest

from avionx.display.view_model import TelemetryViewModel
from avionx.telemetry.types import GeoCoordinate, TelemetrySample
from avionx.util.config import DisplayConfig


def _sample(**overrides):
    values = dict(
        latitude=41.0082,
        longitude=28.9784,
        altitude=50.0,
        ground_speed=12.0,
        battery_level=99.6,
        roll=10.0,
        pitch=-2.0,
        heading=45.0,
        vertical_speed=1.25,
        timestamp=1_700_000_000.0,
    )
    values.update(overrides)
    return TelemetrySample(**values)


@pytest.fixture
def vm(qapp):
    model = TelemetryViewModel(DisplayConfig(history_size=5, flight_path_size=3))
    model.on_connection_status(True)
    return model


def test_formats_readouts(vm):
    vm.on_telemetry(_sample())

    assert vm.altitude_text == "50.0 m"
    assert vm.speed_text == "12.0 m/s"
    assert vm.air_speed_text == "13.2 m/s"
    assert vm.vertical_speed_text == "+1.2 m/s"
    assert vm.battery_text == "100%"
    assert vm.battery_level == 99.6
    assert vm.latitude_text == "41.00820"
    assert vm.longitude_text == "28.97840"
    assert vm.last_sample == _sample()


def test_smooths_attitude(vm):
    vm.on_telemetry(_sample(roll=0.0, pitch=0.0, heading=0.0))
    vm.on_telemetry(_sample(roll=20.0, pitch=10.0, heading=100.0))

    assert vm.roll_angle == pytest.approx(3.0)
    assert vm.pitch_angle == pytest.approx(1.5)
    assert vm.heading_angle == pytest.approx(15.0)


def test_histories_are_bounded(vm):
    for i in range(10):
        vm.on_telemetry(_sample(altitude=50.0 + i, latitude=41.0 + i * 0.001))

    assert vm.altitude_history.snapshot() == [55.0, 56.0, 57.0, 58.0, 59.0]
    assert len(vm.speed_history) == 5
    path = vm.flight_path.snapshot()
    assert len(path) == 3
    assert path[-1].latitude == pytest.approx(41.009)
    assert path[-1].altitude == 59.0
    assert vm.altitude_range() == (55.0, 59.0)


def test_altitude_range_empty(vm):
    assert vm.altitude_range() == (0.0, 0.0)


def test_home_distance_and_bearing(vm):
    vm.on_telemetry(_sample(latitude=41.0, longitude=29.0))
    assert vm.home == GeoCoordinate(41.0, 29.0, 50.0)
    assert vm.home_distance_text == "0 m"

    # ~1.1 km north of home: home lies due south.
    vm.on_telemetry(_sample(latitude=41.01, longitude=29.0))
    assert vm.home_distance_text == "1112 m"
    assert vm.home_bearing == pytest.approx(180.0)


def test_connection_status(vm):
    events = []
    vm.changed.connect(lambda: events.append("changed"))

    vm.on_connection_status(True)
    assert vm.is_connected
    assert vm.connection_status_text == "Connected (simulation)"

    vm.on_connection_status(False)
    assert not vm.is_connected
    assert vm.connection_status_text == "Disconnected"
    assert events == ["changed", "changed"]


def test_reconnect_resets_home_and_filters(vm):
    vm.on_connection_status(True)
    vm.on_telemetry(_sample(latitude=41.0, roll=0.0))
    vm.on_telemetry(_sample(latitude=41.5, roll=30.0))

    vm.on_connection_status(True)
    assert vm.home is None
    assert len(vm.flight_path) == 0

    vm.on_telemetry(_sample(latitude=42.0, roll=12.0))
    assert vm.home.latitude == 42.0
    assert vm.roll_angle == 12.0


def test_telemetry_emits_chart_update(vm):
    events = []
    vm.chart_update.connect(lambda: events.append("chart"))
    vm.on_telemetry(_sample())
    assert events == ["chart"]


def test_samples_after_disconnect_are_ignored(vm):
    vm.on_telemetry(_sample(altitude=60.0))
    vm.on_connection_status(False)

    vm.on_telemetry(_sample(altitude=70.0, latitude=45.0))
    assert vm.altitude_text == "60.0 m"
    assert vm.altitude_history.snapshot() == [60.0]

    # A stale sample must not become the next flight's home.
    vm.on_connection_status(True)
    vm.on_telemetry(_sample(latitude=42.0))
    assert vm.home.latitude == 42.0
    assert len(vm.flight_path) == 1
