from __future__ import annotations

from dataclasses import asdict, dataclass

from avionx.telemetry import geodesy


@dataclass(frozen=True)
class TelemetrySample:
    """
    Canonical telemetry sample emitted once per simulator tick.

    Units are SI unless stated otherwise, angles are degrees.
    Timestamps are Unix time (seconds, float).
    """

    latitude: float  # degrees
    longitude: float  # degrees
    altitude: float  # meters above ground reference
    ground_speed: float  # meters per second
    battery_level: float  # percent, 0..100
    roll: float  # degrees, -60..60
    pitch: float  # degrees, -30..30
    heading: float  # degrees, 0..360 (exclusive)
    vertical_speed: float  # meters per second, positive up
    timestamp: float  # Unix timestamp in seconds

    def to_dict(self) -> dict[str, float]:
        return asdict(self)


# ---------------------------------------- #


@dataclass(frozen=True)
class GeoCoordinate:
    """Position snapshot used for simulator state and flight path history."""

    latitude: float
    longitude: float
    altitude: float = 0.0

    def __post_init__(self) -> None:
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"latitude out of range: {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError(f"longitude out of range: {self.longitude}")

    def distance_to(self, other: GeoCoordinate) -> float:
        return geodesy.distance(self, other)

    def bearing_to(self, other: GeoCoordinate) -> float:
        return geodesy.bearing(self, other)

    def __str__(self) -> str:
        return f"{self.latitude:.6f}°, {self.longitude:.6f}° @ {self.altitude:.1f}m"
