"""
ZXing QR Code Detector Implementation.

This module provides QR code decoding using the zxing-cpp library.
zxing-cpp is a high-performance C++ implementation with Python bindings.
"""

import logging
from typing import Optional

import cv2
import numpy as np

from qr_reader.core.interfaces.qr_detector_interface import (
    IQrDetector,
    QrDetectionResult,
    Point,
    toImage
)


class ZxingQrDetector(IQrDetector):
    """
    QR code decoder using zxing-cpp library.
    
    Returns the first valid QR code in the buffer.
    """
    
    def __init__(
        self,
        tryRotate: bool = True,
        tryDownscale: bool = True,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize ZxingQrDetector.
        
        Args:
            tryRotate: Try rotated barcodes (90/270 degrees)
            tryDownscale: Try downscaled versions for better detection
            logger: Logger instance for debug output
        """
        self._tryRotate = tryRotate
        self._tryDownscale = tryDownscale
        self._logger = logger or logging.getLogger(__name__)
        self._zxingcpp = None
        
        self._logger.info(
            f"ZxingQrDetector initialized "
            f"(tryRotate={tryRotate}, tryDownscale={tryDownscale})"
        )
    
    def _ensureZxing(self) -> None:
        """Lazily import zxing-cpp module."""
        if self._zxingcpp is None:
            try:
                import zxingcpp
                self._zxingcpp = zxingcpp
                self._logger.info("zxing-cpp module loaded successfully")
            except ImportError as e:
                self._logger.error(
                    f"Failed to import zxing-cpp. "
                    f"Please install: pip install zxing-cpp. Error: {e}"
                )
                raise
    
    def decode(
        self,
        pixels: np.ndarray,
        width: int,
        height: int
    ) -> Optional[QrDetectionResult]:
        self._ensureZxing()
        
        image = toImage(pixels, width, height)
        
        # Grayscale gives zxing a single luminance plane
        if image.ndim == 3 and image.shape[2] == 4:
            grayImage = cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
        elif image.ndim == 3:
            grayImage = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
        else:
            grayImage = image
        
        barcodes = self._zxingcpp.read_barcodes(
            grayImage,
            formats=self._zxingcpp.BarcodeFormat.QRCode,
            try_rotate=self._tryRotate,
            try_downscale=self._tryDownscale
        )
        
        for barcode in barcodes:
            if not barcode.valid:
                continue
            
            position = barcode.position
            polygon = [
                (position.top_left.x, position.top_left.y),
                (position.top_right.x, position.top_right.y),
                (position.bottom_right.x, position.bottom_right.y),
                (position.bottom_left.x, position.bottom_left.y)
            ]
            
            xs = [p[0] for p in polygon]
            ys = [p[1] for p in polygon]
            rect = (min(xs), min(ys), max(xs) - min(xs), max(ys) - min(ys))
            
            self._logger.debug(f"QR code decoded: {barcode.text}")
            
            return QrDetectionResult(
                text=barcode.text,
                topLeft=Point(position.top_left.x, position.top_left.y),
                bottomRight=Point(position.bottom_right.x, position.bottom_right.y),
                polygon=polygon,
                rect=rect
            )
        
        self._logger.debug("No QR code in buffer")
        return None
