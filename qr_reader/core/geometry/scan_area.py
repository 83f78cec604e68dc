"""
Scan Area Geometry

Derives the centered scan rectangle from the container size and the
scan area ratio (percentage of the container that is scanned).
"""

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class ScanAreaGeometry:
    """
    Centered sub-rectangle in container pixel space.
    
    Attributes:
        top: Distance from the container top edge.
        left: Distance from the container left edge.
        width: Scan area width.
        height: Scan area height.
    """
    top: float
    left: float
    width: float
    height: float
    
    def toPixelRect(self) -> Tuple[int, int, int, int]:
        """
        Integer (left, top, width, height) used for cropping.
        
        Returns:
            Tuple[int, int, int, int]: Rounded pixel rectangle.
        """
        return (
            int(round(self.left)),
            int(round(self.top)),
            int(round(self.width)),
            int(round(self.height))
        )


def computeScanArea(
    containerWidth: float,
    containerHeight: float,
    scanAreaRatio: float
) -> ScanAreaGeometry:
    """
    Compute the scan rectangle centered in the container.
    
    The ratio is expected in [0, 100]. Values outside that range are not
    rejected and give a degenerate or oversized rectangle.
    
    Args:
        containerWidth: Container width in pixels.
        containerHeight: Container height in pixels.
        scanAreaRatio: Percentage of each dimension that is scanned.
        
    Returns:
        ScanAreaGeometry: The centered scan rectangle.
        
    Examples:
        >>> computeScanArea(500, 500, 70)
        ScanAreaGeometry(top=75.0, left=75.0, width=350.0, height=350.0)
    """
    marginRatio = (100 - scanAreaRatio) / 200
    ratio = scanAreaRatio / 100
    
    return ScanAreaGeometry(
        top=containerHeight * marginRatio,
        left=containerWidth * marginRatio,
        width=containerWidth * ratio,
        height=containerHeight * ratio
    )
