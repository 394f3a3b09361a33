from __future__ import annotations

import logging

from PySide6 import QtCore

from avionx.display.filters import AttitudeFilter, RollingHistory
from avionx.telemetry.types import GeoCoordinate, TelemetrySample
from avionx.util.config import DisplayConfig

logger = logging.getLogger(__name__)


class TelemetryViewModel(QtCore.QObject):
    """
    Display state derived from the telemetry stream.

    Expects to be fed on the GUI thread (connect it to TelemetryWorker
    signals). Roll, pitch and heading are smoothed to hide sensor jitter;
    altitude, speed and position go into bounded histories for the chart
    and map. Samples arriving while disconnected are dropped.
    """

    changed = QtCore.Signal()
    chart_update = QtCore.Signal()

    def __init__(self, config: DisplayConfig | None = None, parent=None):
        super().__init__(parent)
        cfg = config or DisplayConfig()

        self._attitude = AttitudeFilter(cfg.smoothing_alpha)
        self.altitude_history: RollingHistory[float] = RollingHistory(cfg.history_size)
        self.speed_history: RollingHistory[float] = RollingHistory(cfg.history_size)
        self.flight_path: RollingHistory[GeoCoordinate] = RollingHistory(
            cfg.flight_path_size
        )

        self.is_connected = False
        self.connection_status_text = "Disconnected"

        self.last_sample: TelemetrySample | None = None
        self.home: GeoCoordinate | None = None

        self.roll_angle = 0.0
        self.pitch_angle = 0.0
        self.heading_angle = 0.0
        self.battery_level = 0.0

        self.altitude_text = "- m"
        self.speed_text = "- m/s"
        self.air_speed_text = "- m/s"
        self.vertical_speed_text = "- m/s"
        self.battery_text = "-%"
        self.latitude_text = "-"
        self.longitude_text = "-"
        self.home_distance_text = "- m"
        self.home_bearing = 0.0

    # ---------------------------------------- #

    @QtCore.Slot(bool)
    def on_connection_status(self, connected: bool) -> None:
        self.is_connected = connected
        self.connection_status_text = (
            "Connected (simulation)" if connected else "Disconnected"
        )
        if connected:
            # New connection, new flight.
            self.home = None
            self._attitude.reset()
            self.flight_path.clear()
        self.changed.emit()

    # ---------------------------------------- #

    @QtCore.Slot(object)
    def on_telemetry(self, sample: TelemetrySample) -> None:
        if not self.is_connected:
            # Queued from a loop that has since been stopped.
            return
        self.last_sample = sample

        self.altitude_text = f"{sample.altitude:.1f} m"
        self.speed_text = f"{sample.ground_speed:.1f} m/s"
        self.air_speed_text = f"{sample.ground_speed * 1.1:.1f} m/s"
        self.vertical_speed_text = f"{sample.vertical_speed:+.1f} m/s"
        self.battery_text = f"{sample.battery_level:.0f}%"
        self.battery_level = sample.battery_level
        self.latitude_text = f"{sample.latitude:.5f}"
        self.longitude_text = f"{sample.longitude:.5f}"

        self.roll_angle, self.pitch_angle, self.heading_angle = self._attitude.update(
            sample.roll, sample.pitch, sample.heading
        )

        position = GeoCoordinate(sample.latitude, sample.longitude, sample.altitude)
        if self.home is None:
            self.home = position
            logger.info("Home position set to %s", position)
        self.home_distance_text = f"{self.home.distance_to(position):.0f} m"
        if position != self.home:
            self.home_bearing = position.bearing_to(self.home)

        self.flight_path.append(position)
        self.altitude_history.append(sample.altitude)
        self.speed_history.append(sample.ground_speed)

        self.changed.emit()
        self.chart_update.emit()

    # ---------------------------------------- #

    def altitude_range(self) -> tuple[float, float]:
        """(min, max) of the altitude history, for chart scaling."""
        values = self.altitude_history.as_array()
        if values.size == 0:
            return 0.0, 0.0
        return float(values.min()), float(values.max())
