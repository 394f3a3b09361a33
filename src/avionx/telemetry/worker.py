from PySide6 import QtCore

from avionx.telemetry.source import SimulatedTelemetrySource, TelemetrySource
from avionx.telemetry.types import TelemetrySample


class TelemetryWorker(QtCore.QObject):
    """
    Bridges a TelemetrySource onto Qt signals.

    Source callbacks arrive on the source's loop thread; emitting them as
    signals lets Qt queue delivery onto each receiver's own thread, so
    widgets and view models are only touched from the GUI thread.
    """

    telemetry = QtCore.Signal(object)
    connection = QtCore.Signal(bool)
    state = QtCore.Signal(str)
    info = QtCore.Signal(str)

    # ---------------------------------------- #

    def __init__(
        self,
        source: TelemetrySource | None = None,
        port: str = "SIM",
        parent=None,
    ):
        super().__init__(parent)
        self._source: TelemetrySource = source or SimulatedTelemetrySource()
        self._port = port
        self._running = False

    # ---------------------------------------- #

    @property
    def source(self) -> TelemetrySource:
        return self._source

    @property
    def port(self) -> str:
        return self._port

    @property
    def is_running(self) -> bool:
        return self._running

    # ---------------------------------------- #

    def set_port(self, port: str) -> None:
        self._port = port

    # ---------------------------------------- #

    def _on_sample(self, sample: TelemetrySample) -> None:
        self.telemetry.emit(sample)

    def _on_status(self, connected: bool) -> None:
        self.connection.emit(connected)
        self.state.emit("connected" if connected else "disconnected")

    # ---------------------------------------- #

    @QtCore.Slot()
    def start(self) -> None:
        if self._running:
            return
        self._running = True

        self._source.subscribe_connection_status(self._on_status)
        self._source.subscribe_telemetry(self._on_sample)
        self._source.connect(self._port)
        self.info.emit(f"Telemetry connected: {self._port}")

    # ---------------------------------------- #

    @QtCore.Slot()
    def stop(self) -> None:
        if not self._running:
            return
        self._running = False

        self._source.unsubscribe_telemetry(self._on_sample)
        self._source.disconnect()
        self._source.unsubscribe_connection_status(self._on_status)
        self.info.emit("Telemetry disconnected")

    # ---------------------------------------- #

    @QtCore.Slot()
    def toggle(self) -> None:
        if self._running:
            self.stop()
        else:
            self.start()
