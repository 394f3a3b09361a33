# avionx/app.py

import argparse
import dataclasses
import logging
import sys
from pathlib import Path

from PySide6 import QtCore, QtWidgets

from avionx.display.view_model import TelemetryViewModel
from avionx.telemetry.source import SimulatedTelemetrySource
from avionx.telemetry.worker import TelemetryWorker
from avionx.util.config import AppConfig, load_config
from avionx.util.log import setup_logging

logger = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="avionx", description="Ground station for simulated UAV telemetry"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to avionx.toml (default: ./avionx.toml)",
    )
    parser.add_argument("--port", default="SIM", help="Link identifier (unused by the simulator)")
    parser.add_argument("--seed", type=int, default=None, help="Seed for a reproducible flight")
    parser.add_argument("--log-level", default="INFO")
    parser.add_argument(
        "--headless",
        type=float,
        metavar="SECONDS",
        default=None,
        help="Run without a window and log telemetry for SECONDS",
    )
    return parser.parse_args(argv)


# ---------------------------------------- #


def _build(
    cfg: AppConfig, port: str
) -> tuple[SimulatedTelemetrySource, TelemetryWorker, TelemetryViewModel]:
    source = SimulatedTelemetrySource(cfg.simulator)
    worker = TelemetryWorker(source=source, port=port)
    worker.info.connect(logger.info)
    vm = TelemetryViewModel(cfg.display)
    return source, worker, vm


# ---------------------------------------- #


def _run_headless(cfg: AppConfig, port: str, seconds: float) -> int:
    app = QtCore.QCoreApplication(sys.argv)
    app.setApplicationName("AvionX")

    source, worker, vm = _build(cfg, port)
    worker.telemetry.connect(vm.on_telemetry)
    worker.connection.connect(vm.on_connection_status)

    def report() -> None:
        logger.info(
            "alt=%s spd=%s vs=%s batt=%s hdg=%.1f pos=%s,%s",
            vm.altitude_text,
            vm.speed_text,
            vm.vertical_speed_text,
            vm.battery_text,
            vm.heading_angle,
            vm.latitude_text,
            vm.longitude_text,
        )

    timer = QtCore.QTimer()
    timer.setInterval(1000)
    timer.timeout.connect(report)
    timer.start()

    QtCore.QTimer.singleShot(int(seconds * 1000), app.quit)
    worker.start()
    try:
        return app.exec()
    finally:
        timer.stop()
        worker.stop()
        source.join(timeout=2.0)


# ---------------------------------------- #


def main(argv: list[str] | None = None) -> int:
    """
    Application entry point.

    Responsibilities:
    - Configure logging and load avionx.toml
    - Create the telemetry worker and view model
    - Run either the Qt window or the headless logger
    """
    args = _parse_args(argv)
    setup_logging(args.log_level)

    cfg = load_config(args.config)
    if args.seed is not None:
        cfg = dataclasses.replace(
            cfg, simulator=dataclasses.replace(cfg.simulator, seed=args.seed)
        )

    if args.headless is not None:
        return _run_headless(cfg, args.port, args.headless)

    from avionx.ui.main_window import MainWindow
    from avionx.ui.style import APP_QSS

    app = QtWidgets.QApplication(sys.argv)
    app.setApplicationName("AvionX")
    if APP_QSS:
        app.setStyleSheet(APP_QSS)

    source, worker, vm = _build(cfg, args.port)
    w = MainWindow(worker, vm)
    w.resize(900, 480)
    w.show()

    try:
        return app.exec()
    finally:
        worker.stop()
        source.join(timeout=2.0)


if __name__ == "__main__":
    raise SystemExit(main())
