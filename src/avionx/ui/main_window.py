from PySide6 import QtCore, QtGui, QtWidgets

from avionx.display.view_model import TelemetryViewModel
from avionx.telemetry.worker import TelemetryWorker


class MainWindow(QtWidgets.QMainWindow):
    def __init__(self, worker: TelemetryWorker, view_model: TelemetryViewModel):
        super().__init__()
        self.setWindowTitle("AvionX Ground Station")

        self._worker = worker
        self._vm = view_model

        self.flight_box = QtWidgets.QGroupBox("Flight Data")
        self.t_alt = self._readout()
        self.t_speed = self._readout()
        self.t_air = self._readout()
        self.t_vs = self._readout()
        self.t_batt = self._readout()
        self.t_att = self._readout()
        self.t_hdg = self._readout()

        f_layout = QtWidgets.QFormLayout()
        f_layout.addRow("Altitude", self.t_alt)
        f_layout.addRow("Ground speed", self.t_speed)
        f_layout.addRow("Air speed", self.t_air)
        f_layout.addRow("Vertical speed", self.t_vs)
        f_layout.addRow("Battery", self.t_batt)
        f_layout.addRow("Roll / Pitch", self.t_att)
        f_layout.addRow("Heading", self.t_hdg)
        self.flight_box.setLayout(f_layout)

        self.nav_box = QtWidgets.QGroupBox("Navigation")
        self.t_lat = self._readout()
        self.t_lon = self._readout()
        self.t_home = self._readout()

        n_layout = QtWidgets.QFormLayout()
        n_layout.addRow("Latitude", self.t_lat)
        n_layout.addRow("Longitude", self.t_lon)
        n_layout.addRow("Home", self.t_home)
        self.nav_box.setLayout(n_layout)

        self.t_status = QtWidgets.QLabel()
        self.t_status.setObjectName("Status")

        self.btn_connect = QtWidgets.QPushButton("Connect (C)")
        self.btn_disconnect = QtWidgets.QPushButton("Disconnect (D)")

        btn_row = QtWidgets.QHBoxLayout()
        btn_row.addWidget(self.btn_connect)
        btn_row.addWidget(self.btn_disconnect)

        left = QtWidgets.QVBoxLayout()
        left.addWidget(self.flight_box)
        left.addStretch(1)

        right = QtWidgets.QVBoxLayout()
        right.addWidget(self.nav_box)
        right.addWidget(self.t_status)
        right.addLayout(btn_row)
        right.addStretch(1)

        root = QtWidgets.QWidget()
        layout = QtWidgets.QHBoxLayout(root)
        layout.addLayout(left, stretch=1)
        layout.addLayout(right, stretch=1)
        self.setCentralWidget(root)

        # Worker signals are queued onto this (GUI) thread.
        self._worker.telemetry.connect(self._vm.on_telemetry)
        self._worker.connection.connect(self._vm.on_connection_status)
        self._vm.changed.connect(self.refresh)

        self.btn_connect.clicked.connect(self.connect_telemetry)
        self.btn_disconnect.clicked.connect(self.disconnect_telemetry)
        self._install_actions()

        self.refresh()

    # ---------------------------------------- #

    def _readout(self) -> QtWidgets.QLabel:
        label = QtWidgets.QLabel("-")
        label.setObjectName("Readout")
        label.setTextInteractionFlags(
            QtCore.Qt.TextInteractionFlag.TextSelectableByMouse
        )
        return label

    # ---------------------------------------- #

    def _install_actions(self) -> None:
        # Window-level QActions fire regardless of which child has focus.
        for text, key, slot in (
            ("Connect", "C", self.connect_telemetry),
            ("Disconnect", "D", self.disconnect_telemetry),
            ("Toggle Connection", "Space", self.toggle_connection),
            ("Fullscreen", "F", self.toggle_fullscreen),
            ("Quit", "Ctrl+Q", self.close),
        ):
            action = QtGui.QAction(text, self)
            action.setShortcut(QtGui.QKeySequence(key))
            action.triggered.connect(slot)
            self.addAction(action)

    # ---------------------------------------- #

    def closeEvent(self, event: QtGui.QCloseEvent) -> None:
        self._worker.stop()
        super().closeEvent(event)

    # ---------------------------------------- #

    @QtCore.Slot()
    def refresh(self) -> None:
        vm = self._vm
        self.t_alt.setText(vm.altitude_text)
        self.t_speed.setText(vm.speed_text)
        self.t_air.setText(vm.air_speed_text)
        self.t_vs.setText(vm.vertical_speed_text)
        self.t_batt.setText(vm.battery_text)
        self.t_att.setText(f"{vm.roll_angle:+6.1f}° / {vm.pitch_angle:+6.1f}°")
        self.t_hdg.setText(f"{vm.heading_angle:05.1f}°")
        self.t_lat.setText(vm.latitude_text)
        self.t_lon.setText(vm.longitude_text)
        self.t_home.setText(f"{vm.home_distance_text} @ {vm.home_bearing:05.1f}°")

        self.t_status.setText(f"Status: {vm.connection_status_text}")
        # Re-polish so the [connected=...] stylesheet selector re-evaluates.
        self.t_status.setProperty("connected", "true" if vm.is_connected else "false")
        self.t_status.style().unpolish(self.t_status)
        self.t_status.style().polish(self.t_status)

        self.btn_connect.setEnabled(not vm.is_connected)
        self.btn_disconnect.setEnabled(vm.is_connected)

    # ---------------------------------------- #

    @QtCore.Slot()
    def connect_telemetry(self) -> None:
        self._worker.start()

    @QtCore.Slot()
    def disconnect_telemetry(self) -> None:
        self._worker.stop()

    @QtCore.Slot()
    def toggle_connection(self) -> None:
        self._worker.toggle()

    @QtCore.Slot()
    def toggle_fullscreen(self) -> None:
        if self.isFullScreen():
            self.showNormal()
        else:
            self.showFullScreen()
