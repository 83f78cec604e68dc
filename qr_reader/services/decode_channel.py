"""
Decode Offload Channel Implementation.

Runs QR decoding on a dedicated worker thread so the capture loop and the
UI never wait on decode latency. Each request carries the scan area it was
cropped with, and the response hands it back unchanged.
"""

import itertools
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional

from qr_reader.core.exceptions import ChannelClosedError
from qr_reader.core.geometry.scan_area import ScanAreaGeometry
from qr_reader.core.interfaces.decode_channel_interface import (
    IDecodeChannel,
    DecodeRequest,
    DecodeResponse
)
from qr_reader.core.interfaces.qr_detector_interface import IQrDetector, QrDetectionResult
from qr_reader.core.interfaces.raster_interface import CaptureFrame
from qr_reader.services.base_service import BaseService


class DecodeOffloadChannel(IDecodeChannel, BaseService):
    """
    Asynchronous decode boundary backed by a single-worker thread pool.
    
    One channel belongs to one pipeline and lives until close().
    A single worker serializes calls into the decoder, so decoders
    need not be thread-safe among themselves.
    """
    
    SERVICE_NAME = "decode_channel"
    
    def __init__(
        self,
        detector: IQrDetector,
        debugBasePath: str = "output/debug",
        debugEnabled: bool = False
    ):
        """
        Initialize DecodeOffloadChannel.
        
        Args:
            detector: QR decoder run on the worker thread.
            debugBasePath: Base path for debug output.
            debugEnabled: Whether to save matched crops.
        """
        BaseService.__init__(
            self,
            serviceName=self.SERVICE_NAME,
            debugBasePath=debugBasePath,
            debugEnabled=debugEnabled
        )
        
        self._detector = detector
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="qr-decode")
        self._requestIds = itertools.count(1)
        self._lock = threading.Lock()
        self._pending = 0
        self._closed = False
        
        self._logger.info("DecodeOffloadChannel initialized")
    
    def submit(
        self,
        frame: CaptureFrame,
        geometry: ScanAreaGeometry
    ) -> "Future[DecodeResponse]":
        """
        Queue a sample for decoding.
        
        Raises:
            ChannelClosedError: If the channel has been closed.
        """
        with self._lock:
            if self._closed:
                raise ChannelClosedError("Decode channel is closed")
            request = DecodeRequest(
                requestId=next(self._requestIds),
                frame=frame,
                geometry=geometry
            )
            self._pending += 1
        
        try:
            future = self._executor.submit(self._process, request)
        except RuntimeError as e:
            self._onRequestDone(None)
            raise ChannelClosedError(f"Decode channel is closed: {e}") from e
        
        future.add_done_callback(self._onRequestDone)
        return future
    
    def pendingCount(self) -> int:
        with self._lock:
            return self._pending
    
    def isClosed(self) -> bool:
        return self._closed
    
    def close(self) -> None:
        """Stop accepting requests and cancel queued ones. Idempotent."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
        
        self._executor.shutdown(wait=False, cancel_futures=True)
        self._logger.info("DecodeOffloadChannel closed")
    
    def _process(self, request: DecodeRequest) -> DecodeResponse:
        """Decode one request. Runs on the worker thread."""
        startTime = time.perf_counter()
        frame = request.frame
        name = f"request_{request.requestId}"
        
        result: Optional[QrDetectionResult]
        try:
            result = self._detector.decode(frame.pixels, frame.width, frame.height)
        except Exception as e:
            self._logger.error(f"[{name}] Decoder failed: {e}")
            result = None
        
        processingTimeMs = self._measureTime(startTime)
        self._logTiming(name, processingTimeMs)
        
        if result is not None:
            self._saveDebugImage(name, frame.pixels)
            self._saveDebugJson(name, {
                "text": result.text,
                "topLeft": [result.topLeft.x, result.topLeft.y],
                "bottomRight": [result.bottomRight.x, result.bottomRight.y],
                "geometry": vars(request.geometry),
                "processingTimeMs": round(processingTimeMs, 2),
            })
        
        return DecodeResponse(
            requestId=request.requestId,
            geometry=request.geometry,
            result=result,
            processingTimeMs=processingTimeMs
        )
    
    def _onRequestDone(self, future: Optional[Future]) -> None:
        with self._lock:
            self._pending -= 1
