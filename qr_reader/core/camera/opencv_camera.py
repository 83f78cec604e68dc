"""
OpenCV Camera Implementation

Implements ICameraCapture using OpenCV's VideoCapture.
Follows SRP: Only handles camera capture operations.
"""

import os
import logging
from typing import Dict, List, Tuple, Optional
import numpy as np
import cv2

from qr_reader.core.exceptions import DeviceUnavailableError, PermissionDeniedError
from qr_reader.core.interfaces.camera_interface import (
    ICameraCapture,
    CameraInfo,
    CameraRequest,
    FACING_ENVIRONMENT,
    FACING_USER
)


logger = logging.getLogger(__name__)


class OpenCVCamera(ICameraCapture):
    """
    Camera capture implementation using OpenCV VideoCapture.
    
    OpenCV has no notion of facing mode, so each facing mode is
    mapped to a device index.
    """
    
    def __init__(
        self,
        maxCameraSearch: int = 10,
        facingModeIndices: Optional[Dict[str, int]] = None
    ):
        """
        Initialize OpenCVCamera.
        
        Args:
            maxCameraSearch: Maximum number of camera indices to search for available cameras.
            facingModeIndices: Device index to open for each facing mode.
        """
        self._capture: Optional[cv2.VideoCapture] = None
        self._cameraIndex: int = -1
        self._maxCameraSearch = maxCameraSearch
        self._facingModeIndices = facingModeIndices or {
            FACING_ENVIRONMENT: 0,
            FACING_USER: 1,
        }
    
    def listAvailableCameras(self) -> List[CameraInfo]:
        """
        List all available camera devices by probing camera indices.
        
        Returns:
            List[CameraInfo]: List of available cameras.
        """
        cameras = []
        
        for index in range(self._maxCameraSearch):
            try:
                tempCapture = cv2.VideoCapture(index)
                if tempCapture.isOpened():
                    ret, _ = tempCapture.read()
                    if ret:
                        cameras.append(CameraInfo(index=index, name=f"Camera {index}"))
                    tempCapture.release()
            except cv2.error as e:
                logger.debug(f"Error probing camera {index}: {e}")
                continue
        
        if not cameras:
            logger.warning("No cameras found in the system")
        else:
            logger.info(f"Found {len(cameras)} camera(s)")
        
        return cameras
    
    def resolveIndex(self, facingMode: str) -> int:
        """
        Map a facing mode to a device index.
        
        Raises:
            DeviceUnavailableError: If the facing mode is unknown.
        """
        if facingMode not in self._facingModeIndices:
            errorMsg = f"No camera configured for facing mode '{facingMode}'"
            logger.error(errorMsg)
            raise DeviceUnavailableError(errorMsg)
        return self._facingModeIndices[facingMode]
    
    def open(self, request: CameraRequest) -> None:
        """
        Open the camera matching the request.
        
        Args:
            request: Stream request (facing mode and resolution).
            
        Raises:
            PermissionDeniedError: If the device node exists but is not readable.
            DeviceUnavailableError: If the device could not be opened.
        """
        # Release any existing camera first
        if self._capture is not None:
            self.release()
        
        cameraIndex = self.resolveIndex(request.video.facingMode)
        width, height = request.video.width, request.video.height
        
        try:
            capture = cv2.VideoCapture(cameraIndex)
        except cv2.error as e:
            logger.error(f"Error opening camera {cameraIndex}: {e}")
            raise DeviceUnavailableError(f"Camera {cameraIndex} unavailable: {e}") from e
        
        if not capture.isOpened():
            capture.release()
            devicePath = f"/dev/video{cameraIndex}"
            if os.path.exists(devicePath) and not os.access(devicePath, os.R_OK):
                logger.error(f"Permission denied for camera {cameraIndex} ({devicePath})")
                raise PermissionDeniedError(f"Permission denied for {devicePath}")
            logger.error(f"Failed to open camera {cameraIndex}")
            raise DeviceUnavailableError(f"Camera {cameraIndex} could not be opened")
        
        capture.set(cv2.CAP_PROP_FRAME_WIDTH, width)
        capture.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
        capture.set(cv2.CAP_PROP_BUFFERSIZE, 1)
        
        self._capture = capture
        self._cameraIndex = cameraIndex
        logger.info(
            f"Camera {cameraIndex} opened "
            f"(facingMode={request.video.facingMode}, {width}x{height})"
        )
    
    def read(self) -> Tuple[bool, Optional[np.ndarray]]:
        """
        Read a frame from the opened camera.
        
        Returns:
            Tuple[bool, Optional[np.ndarray]]: Success flag and frame.
        """
        if self._capture is None or not self._capture.isOpened():
            return (False, None)
        
        try:
            ret, frame = self._capture.read()
            return (ret, frame if ret else None)
        except cv2.error as e:
            logger.error(f"Error reading frame: {e}")
            return (False, None)
    
    def release(self) -> None:
        """
        Release the camera device and free resources.
        """
        if self._capture is not None:
            try:
                self._capture.release()
                logger.info(f"Camera {self._cameraIndex} released")
            except cv2.error as e:
                logger.error(f"Error releasing camera: {e}")
            finally:
                self._capture = None
                self._cameraIndex = -1
    
    def isOpened(self) -> bool:
        return self._capture is not None and self._capture.isOpened()
