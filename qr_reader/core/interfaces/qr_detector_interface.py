"""
QR Detector Interface Module.

This module defines the interface and data classes for QR code decoding.
A decoder receives a raw pixel buffer with its size and either returns a
match with corner coordinates or None when nothing was found.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, List, Tuple
import numpy as np


@dataclass(frozen=True)
class Point:
    """Pixel coordinate."""
    x: float
    y: float


@dataclass
class QrDetectionResult:
    """
    Result of QR code decoding.
    
    Coordinates are local to the decoded buffer, not to the camera frame.
    
    Attributes:
        text: Decoded QR payload
        topLeft: Top-left corner of the code
        bottomRight: Bottom-right corner of the code
        polygon: All detected corners [(x,y), ...]
        rect: Bounding rectangle (left, top, width, height)
    """
    text: str
    topLeft: Point
    bottomRight: Point
    polygon: List[Tuple[int, int]] = field(default_factory=list)
    rect: Tuple[int, int, int, int] = (0, 0, 0, 0)


class IQrDetector(ABC):
    """
    Interface for QR code decoder.
    
    Implementations must be safe to call from a worker thread.
    """
    
    @abstractmethod
    def decode(
        self,
        pixels: np.ndarray,
        width: int,
        height: int
    ) -> Optional[QrDetectionResult]:
        """
        Decode a QR code from a raster buffer.
        
        Args:
            pixels: Pixel data, either shaped (height, width[, channels]) or flat
            width: Buffer width in pixels
            height: Buffer height in pixels
            
        Returns:
            QrDetectionResult if a QR code was found, None otherwise
        """
        pass


def toImage(pixels: np.ndarray, width: int, height: int) -> np.ndarray:
    """
    Reshape a raster buffer into an image array.
    
    Flat buffers are interpreted as row-major with as many channels as
    the length allows (1, 3 or 4).
    """
    if pixels.ndim >= 2:
        return pixels
    
    channels = pixels.size // max(width * height, 1)
    if channels <= 1:
        return pixels.reshape((height, width))
    return pixels.reshape((height, width, channels))
