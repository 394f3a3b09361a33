APP_QSS = """
/*
Ground station dark theme
- Flat panels, square corners
- Green accent for live values, amber for warnings
*/

QMainWindow, QWidget {
	background: #0B0F14;
	color: #D6DADF;
	font-family: sans-serif;
	font-size: 13px;
}

QGroupBox {
	background: #10151A;
	border: 2px solid #27313A;
	margin-top: 8px;
	padding: 10px;
	padding-top: 16px;
}

QGroupBox::title {
	subcontrol-origin: margin;
	left: 10px;
	padding: 0 4px;
	color: #9AA6B2;
}

QLabel#Readout {
	color: #2FE37A;
	font-family: monospace;
	font-size: 15px;
}

QLabel#Status[connected="false"] {
	color: #FFB347;
}

QLabel#Status[connected="true"] {
	color: #2FE37A;
}

QPushButton {
	background: #161D24;
	border: 2px solid #36424D;
	padding: 6px 14px;
}

QPushButton:hover {
	border-color: #7AA2FF;
}

QPushButton:disabled {
	color: #66727D;
	border-color: #27313A;
}
"""
