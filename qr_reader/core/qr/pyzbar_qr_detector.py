"""
Pyzbar QR Detector Implementation.

This module provides QR code decoding using the pyzbar library.
"""

import logging
from typing import Optional, List

import numpy as np
from pyzbar.pyzbar import decode, ZBarSymbol, Decoded

from qr_reader.core.interfaces.qr_detector_interface import (
    IQrDetector,
    QrDetectionResult,
    Point,
    toImage
)


class PyzbarQrDetector(IQrDetector):
    """
    QR code decoder using pyzbar library.
    
    zbar reports the code outline as an unordered polygon, so the
    top-left and bottom-right corners are picked by coordinate sum.
    """
    
    def __init__(
        self, 
        symbolTypes: Optional[List[ZBarSymbol]] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize PyzbarQrDetector.
        
        Args:
            symbolTypes: List of barcode types to detect (default: QRCODE only)
            logger: Logger instance for debug output
        """
        self._symbolTypes = symbolTypes or [ZBarSymbol.QRCODE]
        self._logger = logger or logging.getLogger(__name__)
    
    def decode(
        self,
        pixels: np.ndarray,
        width: int,
        height: int
    ) -> Optional[QrDetectionResult]:
        image = toImage(pixels, width, height)
        
        results: List[Decoded] = decode(image, symbols=self._symbolTypes)
        
        if not results:
            self._logger.debug("No QR code in buffer")
            return None
        
        # Take the first QR code found
        qr = results[0]
        text = qr.data.decode('utf-8')
        
        polygon = [(p.x, p.y) for p in qr.polygon]
        if not polygon:
            polygon = [
                (qr.rect.left, qr.rect.top),
                (qr.rect.left + qr.rect.width, qr.rect.top + qr.rect.height)
            ]
        
        topLeft = min(polygon, key=lambda p: p[0] + p[1])
        bottomRight = max(polygon, key=lambda p: p[0] + p[1])
        
        self._logger.debug(f"QR code decoded: {text}")
        
        return QrDetectionResult(
            text=text,
            topLeft=Point(*topLeft),
            bottomRight=Point(*bottomRight),
            polygon=polygon,
            rect=(qr.rect.left, qr.rect.top, qr.rect.width, qr.rect.height)
        )
