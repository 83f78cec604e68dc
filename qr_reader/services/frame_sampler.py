"""
Frame Sampler

Timer-driven loop: once per interval, crop the current camera frame to the
scan area and submit it to the decode channel. Results come back on the
Qt thread through the decodeCompleted signal.
"""

import logging
from concurrent.futures import Future
from functools import partial
from typing import Callable, Optional

import numpy as np
import shiboken6
from PySide6.QtCore import QObject, QTimer, Signal

from qr_reader.core.geometry.scan_area import ScanAreaGeometry
from qr_reader.core.interfaces.decode_channel_interface import IDecodeChannel
from qr_reader.core.interfaces.raster_interface import IRasterSurface


logger = logging.getLogger(__name__)


class FrameSampler(QObject):
    """
    Periodic capture-and-offload loop.
    
    Each tick submits at most one request and never waits for it.
    With skipWhileBusy, a tick is skipped while an earlier request of the
    same run is still unresolved. Results of a run that has been stopped
    are dropped.
    """
    
    decodeCompleted = Signal(object)  # DecodeResponse
    
    # Internal: carries a finished future from the worker to the Qt thread
    _futureDone = Signal(object, int)
    
    def __init__(
        self,
        frameSource: Callable[[], Optional[np.ndarray]],
        channel: IDecodeChannel,
        skipWhileBusy: bool = True,
        parent: Optional[QObject] = None
    ):
        """
        Initialize FrameSampler.
        
        Args:
            frameSource: Returns the current camera frame, or None.
            channel: Decode channel receiving the crops.
            skipWhileBusy: Skip ticks while a decode is in flight.
            parent: Parent QObject.
        """
        super().__init__(parent)
        
        self._frameSource = frameSource
        self._channel = channel
        self._skipWhileBusy = skipWhileBusy
        
        self._geometry: Optional[ScanAreaGeometry] = None
        self._surface: Optional[IRasterSurface] = None
        self._inFlight = 0
        self._generation = 0
        self._running = False
        
        self._timer = QTimer(self)
        self._timer.timeout.connect(self.captureOnce)
        self._futureDone.connect(self._handleFutureDone)
    
    def setScanArea(self, geometry: ScanAreaGeometry, surface: IRasterSurface) -> None:
        """
        Set the region to crop and the surface to crop into.
        
        Requests already submitted keep the geometry they were sent with.
        """
        self._geometry = geometry
        self._surface = surface
    
    def setSkipWhileBusy(self, enabled: bool) -> None:
        self._skipWhileBusy = enabled
    
    def start(self, intervalMs: int) -> None:
        """Start ticking every intervalMs milliseconds."""
        self._running = True
        self._timer.start(intervalMs)
        logger.info(f"Frame sampler started (interval={intervalMs}ms)")
    
    def stop(self) -> None:
        """Stop ticking. Pending results of this run will be dropped."""
        if not self._running and not self._timer.isActive():
            return
        self._timer.stop()
        self._running = False
        self._generation += 1
        self._inFlight = 0
        logger.info("Frame sampler stopped")
    
    def setInterval(self, intervalMs: int) -> None:
        self._timer.setInterval(intervalMs)
    
    def interval(self) -> int:
        return self._timer.interval()
    
    def isActive(self) -> bool:
        return self._timer.isActive()
    
    def inFlightCount(self) -> int:
        return self._inFlight
    
    def captureOnce(self) -> Optional[Future]:
        """
        Run one capture step.
        
        Returns:
            Future of the submitted request, or None if the tick was skipped.
        """
        if self._surface is None or self._geometry is None:
            return None
        
        if self._skipWhileBusy and self._inFlight > 0:
            logger.debug("Previous decode still running, skipping tick")
            return None
        
        frame = self._frameSource()
        if frame is None:
            return None
        
        geometry = self._geometry
        self._surface.drawSubRegion(frame, geometry)
        capture = self._surface.readPixels()
        
        future = self._channel.submit(capture, geometry)
        self._inFlight += 1
        
        generation = self._generation
        future.add_done_callback(partial(self._forwardFuture, generation=generation))
        return future
    
    def _forwardFuture(self, future: Future, generation: int) -> None:
        # Runs on the decode worker. The sampler may already be stopped
        # or deleted with its pipeline.
        if generation != self._generation or not shiboken6.isValid(self):
            return
        self._futureDone.emit(future, generation)
    
    def _handleFutureDone(self, future: Future, generation: int) -> None:
        if generation != self._generation:
            return
        
        self._inFlight = max(self._inFlight - 1, 0)
        
        if future.cancelled() or not self._running:
            return
        
        error = future.exception()
        if error is not None:
            logger.error(f"Decode request failed: {error}")
            return
        
        self.decodeCompleted.emit(future.result())
