from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from enum import Enum
from typing import Final

import numpy as np

from avionx.telemetry import geodesy
from avionx.telemetry.types import TelemetrySample
from avionx.util.config import SimulatorConfig

logger = logging.getLogger(__name__)

ROLL_LIMIT_DEG: Final[float] = 60.0
PITCH_LIMIT_DEG: Final[float] = 30.0
MIN_ALTITUDE_M: Final[float] = 5.0
MIN_SPEED_MPS: Final[float] = 0.5
MAX_SPEED_MPS: Final[float] = 25.0
MAX_VERTICAL_SPEED_MPS: Final[float] = 8.0

CRUISE_ALT_MIN_M: Final[float] = 30.0
CRUISE_ALT_MAX_M: Final[float] = 150.0

LOW_BATTERY_PCT: Final[float] = 15.0

FIRST_MODE_CHANGE_S: Final[float] = 5.0
FIRST_ALTITUDE_VARIATION_S: Final[float] = 2.0
DWELL_RANGE_S: Final[tuple[float, float]] = (8.0, 20.0)
ALTITUDE_VARIATION_RANGE_S: Final[tuple[float, float]] = (3.0, 8.0)

ROLL_RATE: Final[float] = 1.2
PITCH_RATE: Final[float] = 1.5
VERTICAL_SPEED_RATE: Final[float] = 3.0
SPEED_RATE: Final[float] = 1.5
ALTITUDE_GAIN: Final[float] = 0.5
PITCH_SPEED_COUPLING: Final[float] = 0.15
TURN_RATE_PER_DEG_ROLL: Final[float] = 0.5
BANKING_TURN_MULTIPLIER: Final[float] = 1.5
SENSOR_NOISE_DEG: Final[float] = 0.1


class FlightMode(Enum):
    TAKE_OFF = "takeoff"
    CRUISE = "cruise"
    BANKING = "banking"
    CLIMBING = "climbing"
    DESCENDING = "descending"
    HOVERING = "hovering"
    LANDING = "landing"


TRANSITIONS: Final[dict[FlightMode, tuple[FlightMode, ...]]] = {
    FlightMode.TAKE_OFF: (FlightMode.CRUISE, FlightMode.HOVERING),
    FlightMode.CRUISE: (
        FlightMode.BANKING,
        FlightMode.CLIMBING,
        FlightMode.DESCENDING,
        FlightMode.HOVERING,
    ),
    FlightMode.BANKING: (FlightMode.CRUISE, FlightMode.BANKING),
    FlightMode.CLIMBING: (FlightMode.CRUISE, FlightMode.HOVERING),
    FlightMode.DESCENDING: (FlightMode.CRUISE, FlightMode.LANDING),
    FlightMode.HOVERING: (FlightMode.CRUISE, FlightMode.BANKING, FlightMode.LANDING),
    FlightMode.LANDING: (FlightMode.TAKE_OFF, FlightMode.HOVERING),
}


# ---------------------------------------- #


def _clamp(value: float, lo: float, hi: float) -> float:
    return min(hi, max(lo, value))


def _lerp(current: float, target: float, amount: float) -> float:
    return current + (target - current) * _clamp(amount, 0.0, 1.0)


# ---------------------------------------- #


@dataclass
class FlightState:
    """
    Mutable vehicle state owned by a single FlightSimulator.

    Times are seconds of simulated flight since the simulator was created.
    """

    latitude: float = 41.0082
    longitude: float = 28.9784
    altitude: float = 50.0
    speed: float = 12.0
    heading: float = 45.0
    roll: float = 0.0
    pitch: float = 0.0
    vertical_speed: float = 0.0
    battery: float = 100.0

    target_roll: float = 0.0
    target_pitch: float = 0.0
    target_altitude: float = 50.0
    target_speed: float = 12.0

    mode: FlightMode = FlightMode.CRUISE
    clock: float = 0.0
    mode_entered_at: float = 0.0
    next_mode_change: float = FIRST_MODE_CHANGE_S
    next_altitude_variation: float = FIRST_ALTITUDE_VARIATION_S

    @property
    def mode_elapsed(self) -> float:
        return self.clock - self.mode_entered_at

    @classmethod
    def from_config(cls, config: SimulatorConfig) -> FlightState:
        return cls(
            latitude=config.start_latitude,
            longitude=config.start_longitude,
            altitude=max(MIN_ALTITUDE_M, config.start_altitude_m),
            speed=_clamp(config.start_speed_mps, MIN_SPEED_MPS, MAX_SPEED_MPS),
            heading=geodesy.normalize_heading(config.start_heading_deg),
            target_altitude=config.start_altitude_m,
            target_speed=config.start_speed_mps,
        )


# ---------------------------------------- #


class FlightSimulator:
    """
    Synthetic autopilot + physics engine.

    A random flight-mode schedule picks setpoints; each step() chases them
    with first-order controllers and integrates the vehicle forward by dt.
    Not thread-safe: one simulator belongs to one loop.
    """

    def __init__(
        self, config: SimulatorConfig | None = None, seed: int | None = None
    ) -> None:
        self._config = config or SimulatorConfig()
        if seed is None:
            seed = self._config.seed
        self._rng = np.random.default_rng(seed)

        self._state = FlightState.from_config(self._config)
        self._apply_targets(self._state.mode)

    # ---------------------------------------- #

    @property
    def state(self) -> FlightState:
        return self._state

    @property
    def mode(self) -> FlightMode:
        return self._state.mode

    @property
    def battery_critical(self) -> bool:
        return self._state.battery < LOW_BATTERY_PCT

    # ---------------------------------------- #

    def set_mode(self, mode: FlightMode) -> None:
        """Enter a mode now, apply its setpoints and restart its dwell timer."""
        s = self._state
        if mode is not s.mode:
            logger.info("Flight mode %s -> %s", s.mode.value, mode.value)
        s.mode = mode
        s.mode_entered_at = s.clock
        s.next_mode_change = s.clock + self._uniform(*DWELL_RANGE_S)
        self._apply_targets(mode)

    # ---------------------------------------- #

    def step(self, dt: float | None = None) -> TelemetrySample:
        if dt is None:
            dt = self._config.dt_s

        s = self._state
        s.clock += dt

        self._update_mode()
        self._vary_cruise_altitude()

        self._update_attitude(dt)
        self._update_altitude(dt)
        self._update_speed(dt)
        self._update_battery(dt)
        self._update_heading(dt)
        self._update_position(dt)
        if self._config.turbulence:
            self._apply_turbulence()

        return self._sample()

    # ---------------------------------------- #
    #   Mode management                        #
    # ---------------------------------------- #

    def _uniform(self, lo: float, hi: float) -> float:
        return float(self._rng.uniform(lo, hi))

    def _jitter(self) -> float:
        return float(self._rng.uniform(-0.5, 0.5))

    # ---------------------------------------- #

    def _update_mode(self) -> None:
        s = self._state
        if s.clock < s.next_mode_change:
            return

        if self.battery_critical:
            # Forced landing holds until the simulator is discarded.
            s.next_mode_change = s.clock + self._uniform(*DWELL_RANGE_S)
            return

        options = TRANSITIONS[s.mode]
        self.set_mode(options[int(self._rng.integers(len(options)))])

    # ---------------------------------------- #

    def _vary_cruise_altitude(self) -> None:
        s = self._state
        if s.mode is not FlightMode.CRUISE or s.clock < s.next_altitude_variation:
            return

        s.target_altitude = _clamp(
            s.target_altitude + self._jitter() * 20.0,
            CRUISE_ALT_MIN_M,
            CRUISE_ALT_MAX_M,
        )
        s.next_altitude_variation = s.clock + self._uniform(*ALTITUDE_VARIATION_RANGE_S)

    # ---------------------------------------- #

    def _apply_targets(self, mode: FlightMode) -> None:
        s = self._state

        if mode is FlightMode.TAKE_OFF:
            s.target_altitude = 100.0
            s.target_speed = 8.0
            s.target_pitch = 15.0
            s.target_roll = 0.0
        elif mode is FlightMode.CRUISE:
            s.target_altitude = self._uniform(80.0, 120.0)
            s.target_speed = self._uniform(12.0, 18.0)
            s.target_pitch = 0.0
            s.target_roll = 0.0
        elif mode is FlightMode.BANKING:
            direction = 1.0 if self._rng.integers(2) == 0 else -1.0
            s.target_roll = direction * self._uniform(20.0, 45.0)
            s.target_pitch = -5.0
            s.target_speed = 10.0
        elif mode is FlightMode.CLIMBING:
            s.target_altitude = min(CRUISE_ALT_MAX_M, s.altitude + 30.0)
            s.target_speed = 8.0
            s.target_pitch = 12.0
            s.target_roll = 0.0
        elif mode is FlightMode.DESCENDING:
            s.target_altitude = max(CRUISE_ALT_MIN_M, s.altitude - 40.0)
            s.target_speed = 7.0
            s.target_pitch = -8.0
            s.target_roll = 0.0
        elif mode is FlightMode.HOVERING:
            s.target_speed = MIN_SPEED_MPS
            s.target_pitch = 0.0
            s.target_roll = 0.0
        elif mode is FlightMode.LANDING:
            s.target_altitude = MIN_ALTITUDE_M
            s.target_speed = 2.0
            s.target_pitch = -5.0
            s.target_roll = 0.0

    # ---------------------------------------- #
    #   Physics                                #
    # ---------------------------------------- #

    def _update_attitude(self, dt: float) -> None:
        s = self._state
        s.roll = _clamp(
            _lerp(s.roll, s.target_roll, dt * ROLL_RATE), -ROLL_LIMIT_DEG, ROLL_LIMIT_DEG
        )
        s.pitch = _clamp(
            _lerp(s.pitch, s.target_pitch, dt * PITCH_RATE),
            -PITCH_LIMIT_DEG,
            PITCH_LIMIT_DEG,
        )

    def _update_altitude(self, dt: float) -> None:
        s = self._state
        desired = _clamp(
            (s.target_altitude - s.altitude) * ALTITUDE_GAIN,
            -MAX_VERTICAL_SPEED_MPS,
            MAX_VERTICAL_SPEED_MPS,
        )
        s.vertical_speed = _lerp(s.vertical_speed, desired, dt * VERTICAL_SPEED_RATE)
        s.altitude = max(MIN_ALTITUDE_M, s.altitude + s.vertical_speed * dt)

    def _update_speed(self, dt: float) -> None:
        s = self._state
        # Nose down trades altitude for speed.
        target = s.target_speed - s.pitch * PITCH_SPEED_COUPLING
        s.speed = _clamp(
            _lerp(s.speed, target, dt * SPEED_RATE), MIN_SPEED_MPS, MAX_SPEED_MPS
        )

    def _update_battery(self, dt: float) -> None:
        s = self._state
        drain = (
            0.01
            + 0.0005 * abs(s.speed)
            + 0.002 * abs(s.vertical_speed)
            + 0.0001 * (abs(s.roll) + abs(s.pitch))
        ) * dt
        s.battery = _clamp(s.battery - drain, 0.0, 100.0)

        if self.battery_critical and s.mode is not FlightMode.LANDING:
            logger.warning("Battery at %.1f%%, forcing landing", s.battery)
            self.set_mode(FlightMode.LANDING)

    def _update_heading(self, dt: float) -> None:
        s = self._state
        turn_rate = s.roll * TURN_RATE_PER_DEG_ROLL
        if s.mode is FlightMode.BANKING:
            turn_rate *= BANKING_TURN_MULTIPLIER
        s.heading = geodesy.normalize_heading(s.heading + turn_rate * dt)

    def _update_position(self, dt: float) -> None:
        s = self._state
        heading_rad = math.radians(s.heading)
        travelled = s.speed * dt

        s.latitude, s.longitude = geodesy.offset(
            s.latitude,
            s.longitude,
            north_m=math.cos(heading_rad) * travelled,
            east_m=math.sin(heading_rad) * travelled,
        )

    def _apply_turbulence(self) -> None:
        s = self._state
        intensity = s.altitude / 200.0

        s.target_roll = _clamp(
            s.target_roll + self._jitter() * intensity, -ROLL_LIMIT_DEG, ROLL_LIMIT_DEG
        )
        s.target_pitch = _clamp(
            s.target_pitch + self._jitter() * intensity * 0.5,
            -PITCH_LIMIT_DEG,
            PITCH_LIMIT_DEG,
        )
        s.target_speed = _clamp(
            s.target_speed + self._jitter() * intensity * 0.5,
            MIN_SPEED_MPS,
            MAX_SPEED_MPS,
        )

    # ---------------------------------------- #

    def _sample(self) -> TelemetrySample:
        s = self._state

        roll = s.roll
        pitch = s.pitch
        if self._config.sensor_noise:
            roll += self._jitter() * 2 * SENSOR_NOISE_DEG
            pitch += self._jitter() * 2 * SENSOR_NOISE_DEG

        return TelemetrySample(
            latitude=s.latitude,
            longitude=s.longitude,
            altitude=s.altitude,
            ground_speed=s.speed,
            battery_level=s.battery,
            roll=_clamp(roll, -ROLL_LIMIT_DEG, ROLL_LIMIT_DEG),
            pitch=_clamp(pitch, -PITCH_LIMIT_DEG, PITCH_LIMIT_DEG),
            heading=s.heading,
            vertical_speed=s.vertical_speed,
            timestamp=time.time(),
        )
