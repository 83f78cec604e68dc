"""
Scanner Widget

Widget for displaying the camera feed with the scan area, the
recognized-code overlay and the sweeping scan bar.
"""

import logging
import time
from typing import Optional
import numpy as np
import cv2

from PySide6.QtCore import Qt
from PySide6.QtGui import QImage, QPixmap
from PySide6.QtWidgets import QWidget, QLabel, QVBoxLayout

from qr_reader.core.geometry.scan_area import ScanAreaGeometry
from qr_reader.core.mapping.result_mapper import OverlayRect


logger = logging.getLogger(__name__)


def scanBarProgress(elapsedMs: float, periodMs: float) -> float:
    """
    Position of the scan bar within the scan area, from 0 (top) to 1 (bottom).

    The bar sweeps down for one period, then back up (alternate),
    eased in and out at both ends.

    Args:
        elapsedMs: Animation time in milliseconds.
        periodMs: Duration of one sweep in milliseconds.

    Returns:
        float: Progress in [0, 1].
    """
    if periodMs <= 0:
        return 0.0

    cycle = elapsedMs / periodMs
    sweep = int(cycle)
    t = cycle - sweep
    if sweep % 2 == 1:
        t = 1.0 - t

    # Smoothstep easing
    return t * t * (3.0 - 2.0 * t)


class ScannerWidget(QWidget):
    """
    Widget for displaying the scanner view.

    Darkens everything outside the scan area, outlines the last
    recognized code and animates a scan bar while running.
    """

    def __init__(
        self,
        parent=None,
        overlayColor: tuple[int, int, int] = (0, 0, 255),
        overlayThickness: int = 1,
        shadeOpacity: float = 0.3,
        scanBarColor: tuple[int, int, int] = (0, 255, 0),
        scanBarThickness: int = 3,
        scanBarPeriodMs: int = 1300
    ):
        """
        Initialize ScannerWidget.

        Args:
            parent: Parent widget.
            overlayColor: Color of the recognized-code rectangle (BGR).
            overlayThickness: Line thickness of the rectangle.
            shadeOpacity: Darkening applied outside the scan area (0.0-1.0).
            scanBarColor: Scan bar color (BGR).
            scanBarThickness: Scan bar thickness.
            scanBarPeriodMs: Duration of one scan bar sweep.
        """
        super().__init__(parent)

        self._overlayColor = overlayColor
        self._overlayThickness = overlayThickness
        self._shadeOpacity = max(0.0, min(1.0, shadeOpacity))
        self._scanBarColor = scanBarColor
        self._scanBarThickness = scanBarThickness
        self._scanBarPeriodMs = scanBarPeriodMs

        self._scanArea: Optional[ScanAreaGeometry] = None
        self._overlay = OverlayRect.empty()
        self._currentFrame: Optional[np.ndarray] = None

        # Scan bar animation clock, frozen while paused
        self._paused = False
        self._animationStart = time.monotonic()
        self._pausedElapsedMs = 0.0

        self._setupUI()

    def _setupUI(self):
        """Setup the widget UI."""
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        self._videoLabel = QLabel()
        self._videoLabel.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._videoLabel.setMinimumSize(320, 320)
        layout.addWidget(self._videoLabel)

        self.showPlaceholder()

    def setScanArea(self, geometry: ScanAreaGeometry) -> None:
        self._scanArea = geometry

    def setOverlay(self, overlay: OverlayRect) -> None:
        self._overlay = overlay

    def getOverlay(self) -> OverlayRect:
        return self._overlay

    def setPaused(self, paused: bool) -> None:
        """Freeze or restart the scan bar animation."""
        if paused == self._paused:
            return
        if paused:
            self._pausedElapsedMs = self._elapsedMs()
        else:
            self._animationStart = time.monotonic() - self._pausedElapsedMs / 1000
        self._paused = paused

    def _elapsedMs(self) -> float:
        if self._paused:
            return self._pausedElapsedMs
        return (time.monotonic() - self._animationStart) * 1000

    def updateFrame(self, frame: np.ndarray) -> None:
        """
        Update displayed frame.

        Args:
            frame: Camera frame (BGR format).
        """
        self._currentFrame = frame
        displayFrame = self.renderFrame(frame.copy())

        rgbFrame = cv2.cvtColor(displayFrame, cv2.COLOR_BGR2RGB)
        height, width, channels = rgbFrame.shape
        qImage = QImage(
            rgbFrame.data,
            width,
            height,
            channels * width,
            QImage.Format.Format_RGB888
        )

        pixmap = QPixmap.fromImage(qImage)
        scaledPixmap = pixmap.scaled(
            self._videoLabel.size(),
            Qt.AspectRatioMode.KeepAspectRatio,
            Qt.TransformationMode.SmoothTransformation
        )
        self._videoLabel.setPixmap(scaledPixmap)

    def renderFrame(self, frame: np.ndarray) -> np.ndarray:
        """
        Draw scan area shading, overlay and scan bar on a frame.

        Args:
            frame: Frame to draw on (modified in place).

        Returns:
            Frame with overlays.
        """
        if self._scanArea is not None:
            frame = self._drawShade(frame, self._scanArea)
            self._drawScanBar(frame, self._scanArea)

        if not self._overlay.isEmpty():
            x1 = int(round(self._overlay.left))
            y1 = int(round(self._overlay.top))
            x2 = int(round(self._overlay.left + self._overlay.width))
            y2 = int(round(self._overlay.top + self._overlay.height))
            cv2.rectangle(frame, (x1, y1), (x2, y2), self._overlayColor, self._overlayThickness)

        return frame

    def _drawShade(self, frame: np.ndarray, geometry: ScanAreaGeometry) -> np.ndarray:
        """Darken the frame outside the scan area."""
        left, top, width, height = geometry.toPixelRect()

        shaded = (frame * (1.0 - self._shadeOpacity)).astype(np.uint8)
        y1, x1 = max(top, 0), max(left, 0)
        shaded[y1:top + height, x1:left + width] = frame[y1:top + height, x1:left + width]
        return shaded

    def _drawScanBar(self, frame: np.ndarray, geometry: ScanAreaGeometry) -> None:
        left, top, width, height = geometry.toPixelRect()
        progress = scanBarProgress(self._elapsedMs(), self._scanBarPeriodMs)
        y = int(round(top + progress * height))
        cv2.line(frame, (left, y), (left + width, y), self._scanBarColor, self._scanBarThickness)

    def getCurrentFrame(self) -> Optional[np.ndarray]:
        """Get the current frame (without overlays)."""
        return self._currentFrame

    def showPlaceholder(self, message: str = "Camera not connected"):
        """
        Show placeholder text instead of video.

        Args:
            message: Placeholder message to display.
        """
        self._videoLabel.clear()
        self._videoLabel.setText(message)
        self._videoLabel.setStyleSheet(
            "background-color: #1a1a1a; color: #666666; font-size: 16px;"
        )
        self._currentFrame = None
