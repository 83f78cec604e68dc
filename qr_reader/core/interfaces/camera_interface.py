"""
Camera Interface Module

Camera source contract and the stream request handed to it.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple, Optional
import numpy as np


FACING_ENVIRONMENT = "environment"
FACING_USER = "user"


@dataclass
class CameraInfo:
    """Data class representing camera device information."""
    index: int
    name: str
    
    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class VideoConstraints:
    """Requested video track: which camera and at what resolution."""
    facingMode: str = FACING_ENVIRONMENT
    width: int = 500
    height: int = 500


@dataclass(frozen=True)
class CameraRequest:
    """
    Stream request handed to the camera source.
    
    Attributes:
        video: Video track constraints.
        audio: Always False, audio is never captured.
    """
    video: VideoConstraints = field(default_factory=VideoConstraints)
    audio: bool = False
    
    def toDict(self) -> Dict[str, Any]:
        """Request in the {audio, video: {facingMode, width, height}} shape."""
        return {
            "audio": self.audio,
            "video": {
                "facingMode": self.video.facingMode,
                "width": self.video.width,
                "height": self.video.height,
            },
        }


class ICameraCapture(ABC):
    """
    Camera source used by the stream service.
    
    open() either succeeds or raises a CameraAcquisitionError subclass;
    it never leaves a half-open device behind.
    """
    
    @abstractmethod
    def listAvailableCameras(self) -> List[CameraInfo]:
        """Devices that can currently be opened."""
        pass
    
    @abstractmethod
    def open(self, request: CameraRequest) -> None:
        """
        Open the camera device matching a stream request.
        
        Args:
            request: Facing mode and resolution to acquire.
            
        Raises:
            PermissionDeniedError: If the device refused access.
            DeviceUnavailableError: If no device matches the request.
        """
        pass
    
    @abstractmethod
    def read(self) -> Tuple[bool, Optional[np.ndarray]]:
        """
        Grab the next frame.
        
        Returns:
            (True, BGR frame) on success, (False, None) otherwise.
        """
        pass
    
    @abstractmethod
    def release(self) -> None:
        """Close the device. Must be safe on a closed camera."""
        pass
    
    @abstractmethod
    def isOpened(self) -> bool:
        pass
