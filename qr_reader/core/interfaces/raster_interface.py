"""
Raster Surface Interface Module

Defines the drawing surface the scan area is cropped into
and the CaptureFrame it produces.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
import numpy as np

from qr_reader.core.geometry.scan_area import ScanAreaGeometry


@dataclass
class CaptureFrame:
    """
    One cropped sample ready for decoding.
    
    Attributes:
        pixels: Pixel buffer shaped (height, width, 3), BGR uint8.
        width: Buffer width in pixels.
        height: Buffer height in pixels.
    """
    pixels: np.ndarray
    width: int
    height: int


class IRasterSurface(ABC):
    """
    Interface for a drawing surface sized to the scan area.
    """
    
    @property
    @abstractmethod
    def width(self) -> int:
        """Surface width in pixels."""
        pass
    
    @property
    @abstractmethod
    def height(self) -> int:
        """Surface height in pixels."""
        pass
    
    @abstractmethod
    def drawSubRegion(self, frame: np.ndarray, geometry: ScanAreaGeometry) -> None:
        """
        Draw the region of the source frame described by geometry
        onto the surface origin.
        
        Args:
            frame: Source frame (BGR).
            geometry: Region of the source frame to copy.
        """
        pass
    
    @abstractmethod
    def readPixels(self) -> CaptureFrame:
        """
        Read the surface content.
        
        Returns:
            CaptureFrame: A copy of the surface pixels.
        """
        pass
