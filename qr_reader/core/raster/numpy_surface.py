"""
Numpy Raster Surface

Implements IRasterSurface on top of a preallocated numpy buffer.
"""

import logging
import numpy as np

from qr_reader.core.exceptions import SurfaceUnavailableError
from qr_reader.core.geometry.scan_area import ScanAreaGeometry
from qr_reader.core.interfaces.raster_interface import IRasterSurface, CaptureFrame


logger = logging.getLogger(__name__)


class NumpyRasterSurface(IRasterSurface):
    """
    Drawing surface backed by a (height, width, 3) uint8 buffer.
    
    Parts of the requested region that fall outside the source frame
    are left black, like an unpainted canvas.
    """
    
    def __init__(self, width: int, height: int, channels: int = 3):
        """
        Initialize NumpyRasterSurface.
        
        Args:
            width: Surface width in pixels.
            height: Surface height in pixels.
            channels: Number of color channels.
            
        Raises:
            SurfaceUnavailableError: If the size is not positive.
        """
        if width <= 0 or height <= 0:
            errorMsg = f"Cannot create {width}x{height} raster surface"
            logger.error(errorMsg)
            raise SurfaceUnavailableError(errorMsg)
        
        self._width = int(width)
        self._height = int(height)
        self._buffer = np.zeros((self._height, self._width, channels), dtype=np.uint8)
        
        logger.debug(f"Raster surface created ({self._width}x{self._height})")
    
    @classmethod
    def forScanArea(cls, geometry: ScanAreaGeometry) -> "NumpyRasterSurface":
        """Create a surface sized to a scan area."""
        _, _, width, height = geometry.toPixelRect()
        return cls(width, height)
    
    @property
    def width(self) -> int:
        return self._width
    
    @property
    def height(self) -> int:
        return self._height
    
    def drawSubRegion(self, frame: np.ndarray, geometry: ScanAreaGeometry) -> None:
        left, top, width, height = geometry.toPixelRect()
        width = min(width, self._width)
        height = min(height, self._height)
        
        self._buffer.fill(0)
        
        if frame.ndim == 2:
            frame = np.stack([frame] * self._buffer.shape[2], axis=-1)
        
        frameHeight, frameWidth = frame.shape[:2]
        
        # Clip source region to the frame
        srcX1 = max(left, 0)
        srcY1 = max(top, 0)
        srcX2 = min(left + width, frameWidth)
        srcY2 = min(top + height, frameHeight)
        
        if srcX2 <= srcX1 or srcY2 <= srcY1:
            return
        
        dstX = srcX1 - left
        dstY = srcY1 - top
        channels = self._buffer.shape[2]
        self._buffer[
            dstY:dstY + (srcY2 - srcY1),
            dstX:dstX + (srcX2 - srcX1)
        ] = frame[srcY1:srcY2, srcX1:srcX2, :channels]
    
    def readPixels(self) -> CaptureFrame:
        return CaptureFrame(
            pixels=self._buffer.copy(),
            width=self._width,
            height=self._height
        )
