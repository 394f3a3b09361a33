from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Callable

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILENAME = "avionx.toml"


@dataclass(frozen=True)
class SimulatorConfig:
    tick_interval_s: float = 0.05
    dt_s: float = 0.05
    seed: int | None = None
    error_backoff_s: float = 1.0
    start_latitude: float = 41.0082
    start_longitude: float = 28.9784
    start_altitude_m: float = 50.0
    start_speed_mps: float = 12.0
    start_heading_deg: float = 45.0
    turbulence: bool = True
    sensor_noise: bool = True


@dataclass(frozen=True)
class DisplayConfig:
    smoothing_alpha: float = 0.15
    history_size: int = 200
    flight_path_size: int = 300


@dataclass(frozen=True)
class AppConfig:
    simulator: SimulatorConfig = field(default_factory=SimulatorConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)


# Keys whose values are further constrained beyond their type.
_IN_RANGE: dict[str, Callable[[Any], bool]] = {
    "tick_interval_s": lambda v: v > 0,
    "dt_s": lambda v: v > 0,
    "error_backoff_s": lambda v: v >= 0,
    "start_latitude": lambda v: -90 <= v <= 90,
    "start_longitude": lambda v: -180 <= v <= 180,
    "smoothing_alpha": lambda v: 0 < v <= 1,
    "history_size": lambda v: v > 0,
    "flight_path_size": lambda v: v > 0,
}


# ---------------------------------------- #


def _accepts(expected: type, value: Any) -> bool:
    # bool is an int subclass; keep "turbulence = 1" from passing as a flag
    # and "seed = true" from passing as a number.
    if isinstance(value, bool):
        return expected is bool
    if expected is float:
        return isinstance(value, (int, float))
    return isinstance(value, expected)


# ---------------------------------------- #


def _load_table(cls: type, table: Any, section: str) -> Any:
    if not isinstance(table, dict):
        return cls()

    kwargs: dict[str, Any] = {}
    for f in fields(cls):
        if f.name not in table:
            continue
        value = table[f.name]

        default = getattr(cls(), f.name)
        expected = type(default) if default is not None else int
        if not _accepts(expected, value):
            logger.warning(
                "Ignoring [%s].%s=%r: expected %s",
                section,
                f.name,
                value,
                expected.__name__,
            )
            continue

        check = _IN_RANGE.get(f.name)
        if check is not None and not check(value):
            logger.warning(
                "Ignoring [%s].%s=%r: out of range", section, f.name, value
            )
            continue

        kwargs[f.name] = float(value) if expected is float else value

    return cls(**kwargs)


# ---------------------------------------- #


def load_config(path: Path | None = None) -> AppConfig:
    """
    Load application settings from a TOML file.

    A missing file yields defaults. Keys with the wrong type or an
    out-of-range value fall back to their defaults; malformed TOML raises
    tomllib.TOMLDecodeError.
    """
    if path is None:
        path = Path.cwd() / DEFAULT_CONFIG_FILENAME

    try:
        data: Any = tomllib.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        logger.debug("No config at %s, using defaults", path)
        return AppConfig()

    return AppConfig(
        simulator=_load_table(SimulatorConfig, data.get("simulator"), "simulator"),
        display=_load_table(DisplayConfig, data.get("display"), "display"),
    )
