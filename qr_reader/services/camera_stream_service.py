"""
Camera Stream Service Implementation.

Owns the live camera stream: acquisition, pause/resume and release.
Frames are polled on a QTimer and the latest one is kept for preview
and sampling, so the stream plays independently of the scan timer.

Follows:
- SRP: Only handles the live stream
- DIP: Depends on ICameraCapture abstraction (interface)
"""

import time
from typing import Callable, List, Optional

import cv2
import numpy as np
from PySide6.QtCore import QTimer

from qr_reader.core.camera.opencv_camera import OpenCVCamera
from qr_reader.core.exceptions import CameraAcquisitionError
from qr_reader.core.interfaces.camera_interface import (
    ICameraCapture,
    CameraRequest
)
from qr_reader.services.base_service import BaseService


FrameListener = Callable[[np.ndarray], None]


class CameraStreamService(BaseService):
    """
    Live camera stream.
    
    Pausing stops frame polling but keeps the device open; only
    release() closes it.
    """
    
    SERVICE_NAME = "camera_stream"
    
    def __init__(
        self,
        camera: Optional[ICameraCapture] = None,
        previewInterval: int = 33,
        maxCameraSearch: int = 2,
        debugBasePath: str = "output/debug",
        debugEnabled: bool = False
    ):
        """
        Initialize CameraStreamService.
        
        Args:
            camera: Camera implementation. An OpenCVCamera is created if omitted.
            previewInterval: Frame polling period in milliseconds.
            maxCameraSearch: Maximum number of camera indices to search.
            debugBasePath: Base path for debug output.
            debugEnabled: Whether to save debug output.
        """
        BaseService.__init__(
            self,
            serviceName=self.SERVICE_NAME,
            debugBasePath=debugBasePath,
            debugEnabled=debugEnabled
        )
        
        self._camera: ICameraCapture = camera or OpenCVCamera(
            maxCameraSearch=maxCameraSearch
        )
        self._request: Optional[CameraRequest] = None
        self._latestFrame: Optional[np.ndarray] = None
        self._listeners: List[FrameListener] = []
        self._acquired = False
        
        self._pollTimer = QTimer()
        self._pollTimer.setInterval(previewInterval)
        self._pollTimer.timeout.connect(self._pollFrame)
        
        self._logger.info(
            f"CameraStreamService initialized (previewInterval={previewInterval}ms)"
        )
    
    def acquire(self, request: CameraRequest) -> None:
        """
        Open the camera for a request and start playing.
        
        Args:
            request: Facing mode and resolution to acquire.
            
        Raises:
            CameraAcquisitionError: If the camera could not be opened.
        """
        if self._acquired:
            self.release()
        
        self._logger.info(f"Acquiring camera stream: {request.toDict()}")
        try:
            self._camera.open(request)
        except CameraAcquisitionError as e:
            available = ", ".join(str(camera) for camera in self._camera.listAvailableCameras())
            self._logger.error(f"Camera acquisition failed: {e} (available: {available or 'none'})")
            raise
        
        self._request = request
        self._acquired = True
        self.resume()
    
    def pause(self) -> None:
        """Stop polling frames. The device stays open."""
        if self._pollTimer.isActive():
            self._pollTimer.stop()
            self._logger.info("Camera stream paused")
    
    def resume(self) -> None:
        """Resume polling frames from an acquired stream."""
        if not self._acquired:
            return
        if not self._pollTimer.isActive():
            self._pollTimer.start()
            self._logger.info("Camera stream playing")
    
    def release(self) -> None:
        """Stop polling and close the device. Safe to call repeatedly."""
        self._pollTimer.stop()
        if not self._acquired:
            return
        
        self._camera.release()
        self._acquired = False
        self._request = None
        self._latestFrame = None
        self._logger.info("Camera stream released")
    
    def isAcquired(self) -> bool:
        return self._acquired
    
    def isPlaying(self) -> bool:
        return self._acquired and self._pollTimer.isActive()
    
    def getRequest(self) -> Optional[CameraRequest]:
        """Request the current stream was acquired with."""
        return self._request
    
    def setPreviewInterval(self, intervalMs: int) -> None:
        self._pollTimer.setInterval(intervalMs)
    
    def addFrameListener(self, listener: FrameListener) -> None:
        """Register a callable receiving every polled frame."""
        self._listeners.append(listener)
    
    def currentFrame(self) -> Optional[np.ndarray]:
        """
        Latest frame of the stream.
        
        While paused this is the frame shown when the stream stopped.
        
        Returns:
            Frame (BGR) or None if nothing has been read yet.
        """
        if self._latestFrame is None and self.isPlaying():
            self._pollFrame()
        return self._latestFrame
    
    def _pollFrame(self) -> None:
        """Read one frame from the device and hand it to listeners."""
        startTime = time.perf_counter()
        success, frame = self._camera.read()
        
        if not success or frame is None:
            self._logger.debug("Failed to read frame from camera")
            return
        
        # Container coordinates are frame coordinates, so match the request
        if self._request is not None:
            width, height = self._request.video.width, self._request.video.height
            if frame.shape[1] != width or frame.shape[0] != height:
                frame = cv2.resize(frame, (width, height))
        
        self._latestFrame = frame
        self._logTiming("poll", self._measureTime(startTime))
        
        for listener in self._listeners:
            listener(frame)
