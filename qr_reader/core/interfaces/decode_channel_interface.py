"""
Decode Channel Interface Module.

Defines the request/response exchange for offloaded decoding.
The scan area active at submission travels with the request so the
result can be mapped back without reading mutable state.
"""

from abc import ABC, abstractmethod
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Optional

from qr_reader.core.geometry.scan_area import ScanAreaGeometry
from qr_reader.core.interfaces.qr_detector_interface import QrDetectionResult
from qr_reader.core.interfaces.raster_interface import CaptureFrame


@dataclass
class DecodeRequest:
    """
    One submitted sample.
    
    Attributes:
        requestId: Monotonic id assigned by the channel.
        frame: Cropped sample to decode.
        geometry: Scan area the sample was cropped with.
    """
    requestId: int
    frame: CaptureFrame
    geometry: ScanAreaGeometry


@dataclass
class DecodeResponse:
    """
    Outcome of one decode request.
    
    Attributes:
        requestId: Id of the originating request.
        geometry: Scan area the sample was cropped with.
        result: Decoded code, or None when nothing was found.
        processingTimeMs: Decode time on the worker.
    """
    requestId: int
    geometry: ScanAreaGeometry
    result: Optional[QrDetectionResult]
    processingTimeMs: float = 0.0
    
    @property
    def found(self) -> bool:
        return self.result is not None


class IDecodeChannel(ABC):
    """
    Interface for an asynchronous decode boundary.
    """
    
    @abstractmethod
    def submit(
        self,
        frame: CaptureFrame,
        geometry: ScanAreaGeometry
    ) -> "Future[DecodeResponse]":
        """
        Queue a sample for decoding.
        
        Args:
            frame: Cropped sample.
            geometry: Scan area active at submission.
            
        Returns:
            Future resolving to the DecodeResponse.
        """
        pass
    
    @abstractmethod
    def pendingCount(self) -> int:
        """Number of submitted requests that have not resolved yet."""
        pass
    
    @abstractmethod
    def close(self) -> None:
        """Stop accepting work and release the worker."""
        pass
