"""
Main Window

Main application window hosting the scanner view, a pause toggle and
the last recognized payload. Wires the ScanPipeline to the widgets.
"""

import logging
from typing import TYPE_CHECKING

from PySide6.QtWidgets import (
    QMainWindow, QWidget, QHBoxLayout, QVBoxLayout,
    QStatusBar, QMessageBox, QLabel, QPushButton
)

from qr_reader.core.exceptions import ScannerError
from qr_reader.core.mapping.result_mapper import RecognitionEvent
from qr_reader.services.scan_pipeline import PipelineState
from qr_reader.ui.widgets.scanner_widget import ScannerWidget

if TYPE_CHECKING:
    from qr_reader.services.config_service import ConfigService
    from qr_reader.services.scan_pipeline import ScanPipeline


logger = logging.getLogger(__name__)


class MainWindow(QMainWindow):
    """
    Main application window.

    Receives a configured ScanPipeline and starts it once shown.
    """

    def __init__(self, pipeline: "ScanPipeline", configService: "ConfigService"):
        """
        Initialize MainWindow.

        Args:
            pipeline: Scan pipeline driving camera and decoding.
            configService: Application configuration.
        """
        super().__init__()

        self._pipeline = pipeline
        self._configService = configService

        self._setupUI()
        self._setupConnections()

    def _setupUI(self):
        """Setup the main window UI."""
        self.setWindowTitle(self._configService.getWindowTitle())
        self.setMinimumSize(
            self._configService.getWindowMinWidth(),
            self._configService.getWindowMinHeight()
        )

        centralWidget = QWidget()
        self.setCentralWidget(centralWidget)

        mainLayout = QVBoxLayout(centralWidget)
        mainLayout.setContentsMargins(10, 10, 10, 10)
        mainLayout.setSpacing(10)

        displayConfig = self._configService.getDisplayConfig()
        self._scannerWidget = ScannerWidget(
            overlayColor=self._configService.getOverlayColor(),
            overlayThickness=displayConfig.get("overlayThickness", 1),
            shadeOpacity=displayConfig.get("shadeOpacity", 0.3),
            scanBarColor=self._configService.getScanBarColor(),
            scanBarThickness=displayConfig.get("scanBarThickness", 3),
            scanBarPeriodMs=displayConfig.get("scanBarPeriodMs", 1300)
        )
        self._scannerWidget.setScanArea(self._pipeline.scanArea)
        mainLayout.addWidget(self._scannerWidget, stretch=1)

        controlsLayout = QHBoxLayout()
        self._pauseButton = QPushButton("Pause")
        self._pauseButton.setCheckable(True)
        self._pauseButton.setChecked(self._pipeline.config.pause)
        controlsLayout.addWidget(self._pauseButton)

        self._resultLabel = QLabel("No QR code recognized yet")
        self._resultLabel.setWordWrap(True)
        controlsLayout.addWidget(self._resultLabel, stretch=1)
        mainLayout.addLayout(controlsLayout)

        self._statusBar = QStatusBar()
        self.setStatusBar(self._statusBar)
        self._statusBar.showMessage("Ready")

    def _setupConnections(self):
        """Setup signal/slot connections."""
        self._pauseButton.toggled.connect(self._onPauseToggled)
        self._pipeline.overlayChanged.connect(self._scannerWidget.setOverlay)
        self._pipeline.recognized.connect(self._onRecognized)
        self._pipeline.stateChanged.connect(self._onStateChanged)
        self._pipeline.scanAreaChanged.connect(self._scannerWidget.setScanArea)
        self._pipeline.errorOccurred.connect(self._onError)
        self._pipeline.streamService.addFrameListener(self._scannerWidget.updateFrame)

    def startScanning(self) -> None:
        """Start the pipeline, reporting acquisition failures to the user."""
        try:
            self._pipeline.start()
        except ScannerError as e:
            logger.error(f"Failed to start scanner: {e}")
            self._scannerWidget.showPlaceholder("Failed to open camera")
            QMessageBox.warning(self, "Camera Error", str(e))

    def _onPauseToggled(self, paused: bool):
        try:
            self._pipeline.setPaused(paused)
        except ScannerError as e:
            logger.error(f"Failed to resume scanner: {e}")
            QMessageBox.warning(self, "Camera Error", str(e))

    def _onRecognized(self, event: RecognitionEvent):
        self._resultLabel.setText(event.payload)
        self._statusBar.showMessage("QR code recognized")

    def _onStateChanged(self, state: PipelineState):
        self._scannerWidget.setPaused(state != PipelineState.RUNNING)
        self._pauseButton.setText("Resume" if state == PipelineState.PAUSED else "Pause")
        self._statusBar.showMessage(f"Scanner {state.value}")

    def _onError(self, message: str):
        self._statusBar.showMessage(f"Error: {message}")

    def closeEvent(self, event):
        """Handle window close event."""
        self._pipeline.teardown()
        logger.info("Application closed")
        event.accept()
