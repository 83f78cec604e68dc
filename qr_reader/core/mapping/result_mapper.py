"""
Result Mapper

Translates decoded corner points from scan-area-local coordinates into
container coordinates and notifies the recognition callback.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from qr_reader.core.geometry.scan_area import ScanAreaGeometry
from qr_reader.core.interfaces.decode_channel_interface import DecodeResponse
from qr_reader.core.interfaces.qr_detector_interface import QrDetectionResult


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OverlayRect:
    """Rectangle around a decoded code, in container coordinates."""
    top: float
    left: float
    width: float
    height: float
    
    @classmethod
    def empty(cls) -> "OverlayRect":
        """Hidden overlay."""
        return cls(0, 0, 0, 0)
    
    def isEmpty(self) -> bool:
        return self.width == 0 and self.height == 0


@dataclass
class RecognitionEvent:
    """
    Payload handed to the recognition callback.
    
    Attributes:
        payload: Decoded text.
        result: Raw decode result with scan-area-local corners.
        overlay: Overlay rectangle in container coordinates.
    """
    payload: str
    result: QrDetectionResult
    overlay: OverlayRect


RecognizeCallback = Callable[[RecognitionEvent], None]


def mapToOverlay(result: QrDetectionResult, geometry: ScanAreaGeometry) -> OverlayRect:
    """
    Map a decode result into container coordinates.
    
    Corners may arrive in any orientation, so the top-left of the
    overlay is the per-axis minimum of the two points.
    
    Args:
        result: Decode match with scan-area-local corners.
        geometry: Scan area the sample was cropped with.
        
    Returns:
        OverlayRect: Overlay in container coordinates.
    """
    topLeft, bottomRight = result.topLeft, result.bottomRight
    return OverlayRect(
        top=min(topLeft.y, bottomRight.y) + geometry.top,
        left=min(topLeft.x, bottomRight.x) + geometry.left,
        width=abs(bottomRight.x - topLeft.x),
        height=abs(bottomRight.y - topLeft.y)
    )


class ResultMapper:
    """
    Applies decode responses to the overlay state.
    
    The overlay is only published when showFrame is enabled; the
    callback fires for every match regardless.
    """
    
    def __init__(
        self,
        showFrame: bool = True,
        onRecognize: Optional[RecognizeCallback] = None,
        onOverlayChanged: Optional[Callable[[OverlayRect], None]] = None
    ):
        """
        Initialize ResultMapper.
        
        Args:
            showFrame: Whether matches update the overlay.
            onRecognize: Called with a RecognitionEvent for each match.
            onOverlayChanged: Called whenever the overlay changes.
        """
        self._showFrame = showFrame
        self._onRecognize = onRecognize
        self._onOverlayChanged = onOverlayChanged
        self._overlay = OverlayRect.empty()
    
    @property
    def overlay(self) -> OverlayRect:
        return self._overlay
    
    @property
    def showFrame(self) -> bool:
        return self._showFrame
    
    def setShowFrame(self, enabled: bool) -> None:
        """Enable or disable the overlay. Disabling hides the current one."""
        self._showFrame = enabled
        if not enabled:
            self.clear()
    
    def setRecognizeCallback(self, callback: Optional[RecognizeCallback]) -> None:
        self._onRecognize = callback
    
    def clear(self) -> None:
        """Hide the overlay."""
        self._publish(OverlayRect.empty())
    
    def apply(self, response: DecodeResponse) -> Optional[RecognitionEvent]:
        """
        Apply one decode response.
        
        Args:
            response: Decode outcome carrying its submission geometry.
            
        Returns:
            RecognitionEvent for a match, None when nothing was found.
        """
        if response.result is None:
            return None
        
        result = response.result
        overlay = mapToOverlay(result, response.geometry)
        logger.info(f"QR recognized: {result.text}")
        
        if self._showFrame:
            self._publish(overlay)
        
        event = RecognitionEvent(payload=result.text, result=result, overlay=overlay)
        
        if self._onRecognize is not None:
            try:
                self._onRecognize(event)
            except Exception as e:
                logger.error(f"Recognition callback failed: {e}")
        
        return event
    
    def _publish(self, overlay: OverlayRect) -> None:
        if overlay == self._overlay:
            return
        self._overlay = overlay
        if self._onOverlayChanged is not None:
            self._onOverlayChanged(overlay)
