"""
Scan Pipeline

Lifecycle controller of the scanner. Owns the camera stream, the decode
channel, the raster surface and the frame sampler, and drives them through
Uninitialized -> Running <-> Paused -> Torn Down.

Pipeline per tick:
1. Frame Sampler: crop the current frame to the scan area
2. Decode Channel: decode the crop on the worker thread
3. Result Mapper: map corners to container coordinates, notify
"""

import logging
from enum import Enum
from typing import Callable, Optional

import numpy as np
from PySide6.QtCore import QObject, Signal

from qr_reader.core.exceptions import ScannerError
from qr_reader.core.geometry.scan_area import ScanAreaGeometry, computeScanArea
from qr_reader.core.interfaces.camera_interface import (
    ICameraCapture,
    CameraRequest,
    VideoConstraints
)
from qr_reader.core.interfaces.decode_channel_interface import DecodeResponse, IDecodeChannel
from qr_reader.core.interfaces.qr_detector_interface import IQrDetector
from qr_reader.core.interfaces.raster_interface import IRasterSurface
from qr_reader.core.mapping.result_mapper import OverlayRect, ResultMapper
from qr_reader.core.qr import createQrDetector
from qr_reader.core.raster.numpy_surface import NumpyRasterSurface
from qr_reader.services.camera_stream_service import CameraStreamService
from qr_reader.services.config_service import CAMERA_FIELDS, GEOMETRY_FIELDS, ScannerConfig
from qr_reader.services.decode_channel import DecodeOffloadChannel
from qr_reader.services.frame_sampler import FrameSampler


logger = logging.getLogger(__name__)


class PipelineState(Enum):
    """Lifecycle state of a ScanPipeline."""
    UNINITIALIZED = "uninitialized"
    RUNNING = "running"
    PAUSED = "paused"
    TORN_DOWN = "torn_down"


SurfaceFactory = Callable[[ScanAreaGeometry], IRasterSurface]


class ScanPipeline(QObject):
    """
    Orchestrates camera stream, sampler, decode channel and result mapping.

    Responsibilities:
    - Acquire the stream and start sampling, or surface the failure
    - Pause/resume without releasing the camera
    - Apply configuration changes with the least churn
    - Release everything on teardown, from any state

    Usable as a context manager so the camera is released on every exit path.
    """

    overlayChanged = Signal(object)   # OverlayRect
    recognized = Signal(object)       # RecognitionEvent
    stateChanged = Signal(object)     # PipelineState
    scanAreaChanged = Signal(object)  # ScanAreaGeometry
    errorOccurred = Signal(str)

    def __init__(
        self,
        config: Optional[ScannerConfig] = None,
        camera: Optional[ICameraCapture] = None,
        detector: Optional[IQrDetector] = None,
        streamService: Optional[CameraStreamService] = None,
        channelFactory: Optional[Callable[[], IDecodeChannel]] = None,
        surfaceFactory: SurfaceFactory = NumpyRasterSurface.forScanArea,
        parent: Optional[QObject] = None
    ):
        """
        Initialize the scan pipeline.

        Args:
            config: Pipeline configuration. Defaults to ScannerConfig().
            camera: Camera device used when streamService is not given.
            detector: QR decoder. A zxing decoder is created if omitted.
            streamService: Live stream service.
            channelFactory: Creates the decode channel at start.
            surfaceFactory: Creates the raster surface for a scan area.
            parent: Parent QObject.
        """
        super().__init__(parent)

        self._config = config or ScannerConfig()
        self._state = PipelineState.UNINITIALIZED
        self._lastError: Optional[Exception] = None

        self._stream = streamService or CameraStreamService(
            camera=camera,
            previewInterval=self._config.previewInterval
        )
        self._detector = detector
        self._channelFactory = channelFactory or self._createChannel
        self._surfaceFactory = surfaceFactory
        self._channel: Optional[IDecodeChannel] = None
        self._surface: Optional[IRasterSurface] = None
        self._sampler: Optional[FrameSampler] = None

        self._scanArea = computeScanArea(
            self._config.width,
            self._config.height,
            self._config.scanAreaRatio
        )

        self._mapper = ResultMapper(
            showFrame=self._config.showQRFrame,
            onRecognize=self._config.onRecognize,
            onOverlayChanged=self.overlayChanged.emit
        )

        logger.info(
            f"ScanPipeline initialized "
            f"({self._config.width}x{self._config.height}, "
            f"ratio={self._config.scanAreaRatio}, interval={self._config.timerInterval}ms)"
        )

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # Accessors
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def config(self) -> ScannerConfig:
        return self._config

    @property
    def scanArea(self) -> ScanAreaGeometry:
        return self._scanArea

    @property
    def overlay(self) -> OverlayRect:
        return self._mapper.overlay

    @property
    def lastError(self) -> Optional[Exception]:
        return self._lastError

    @property
    def streamService(self) -> CameraStreamService:
        return self._stream

    @property
    def sampler(self) -> Optional[FrameSampler]:
        return self._sampler

    def currentFrame(self) -> Optional[np.ndarray]:
        """Latest camera frame, for display."""
        return self._stream.currentFrame()

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # Lifecycle
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def start(self) -> None:
        """
        Start the pipeline.

        When configured paused, nothing is acquired until resumed.

        Raises:
            CameraAcquisitionError: If the camera could not be acquired.
            SurfaceUnavailableError: If the raster surface could not be created.
            ScannerError: If the pipeline was already torn down.
        """
        if self._state == PipelineState.TORN_DOWN:
            raise ScannerError("Pipeline has been torn down")
        if self._state != PipelineState.UNINITIALIZED:
            logger.warning(f"start() ignored in state {self._state.value}")
            return

        self._ensureSampler()

        if self._config.pause:
            logger.info("Pipeline starting paused, camera not acquired")
            self._setState(PipelineState.PAUSED)
            return

        self._run()

    def setPaused(self, paused: bool) -> None:
        """
        Pause or resume sampling and the camera stream.

        Raises:
            CameraAcquisitionError: If resuming needs to acquire the camera and fails.
        """
        self._config = self._config.update(pause=paused)

        if paused and self._state == PipelineState.RUNNING:
            self._sampler.stop()
            self._stream.pause()
            self._setState(PipelineState.PAUSED)
        elif not paused and self._state == PipelineState.PAUSED:
            self._stream.resume()
            self._run()

    def applyConfig(self, config: ScannerConfig) -> None:
        """
        Apply a new configuration.

        Only camera fields (width, height, facingMode) reacquire the stream.
        Ratio and size changes rebuild the scan area; interval changes
        retime the sampler; display fields only touch the mapper.
        """
        previous = self._config
        changed = config.changedFields(previous)
        self._config = config

        if not changed or self._state == PipelineState.TORN_DOWN:
            return

        logger.debug(f"Configuration changed: {changed}")

        if "showQRFrame" in changed:
            self._mapper.setShowFrame(config.showQRFrame)
        if "onRecognize" in changed:
            self._mapper.setRecognizeCallback(config.onRecognize)
        if "previewInterval" in changed:
            self._stream.setPreviewInterval(config.previewInterval)
        if "skipWhileBusy" in changed and self._sampler is not None:
            self._sampler.setSkipWhileBusy(config.skipWhileBusy)

        if any(name in changed for name in GEOMETRY_FIELDS):
            self._scanArea = computeScanArea(config.width, config.height, config.scanAreaRatio)
            logger.info(f"Scan area updated: {self._scanArea}")
            self.scanAreaChanged.emit(self._scanArea)

        isActive = self._state in (PipelineState.RUNNING, PipelineState.PAUSED)

        try:
            if isActive and self._stream.isAcquired() and any(
                name in changed for name in CAMERA_FIELDS
            ):
                self._stream.acquire(self._buildRequest())
                if self._state == PipelineState.PAUSED:
                    self._stream.pause()

            if isActive and self._surface is not None and any(
                name in changed for name in GEOMETRY_FIELDS
            ):
                self._surface = self._surfaceFactory(self._scanArea)
                self._sampler.setScanArea(self._scanArea, self._surface)
        except ScannerError as e:
            self._fail(e)
            raise

        if "timerInterval" in changed and self._sampler is not None and self._sampler.isActive():
            self._sampler.setInterval(config.timerInterval)

        if "pause" in changed:
            self.setPaused(config.pause)

    def teardown(self) -> None:
        """
        Stop sampling, close the decode channel and release the camera.

        Safe to call from any state and more than once.
        """
        if self._state == PipelineState.TORN_DOWN:
            return

        try:
            if self._sampler is not None:
                self._sampler.stop()
            if self._channel is not None:
                self._channel.close()
        finally:
            self._stream.release()
            self._surface = None
            self._setState(PipelineState.TORN_DOWN)
            logger.info("ScanPipeline torn down")

    def __enter__(self) -> "ScanPipeline":
        self.start()
        return self

    def __exit__(self, excType, excValue, traceback) -> None:
        self.teardown()

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # Internals
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def _createChannel(self) -> IDecodeChannel:
        if self._detector is None:
            self._detector = createQrDetector()
        return DecodeOffloadChannel(self._detector)

    def _ensureSampler(self) -> None:
        """Create the decode channel and sampler once per pipeline lifetime."""
        if self._channel is None:
            self._channel = self._channelFactory()
        if self._sampler is None:
            self._sampler = FrameSampler(
                frameSource=self._stream.currentFrame,
                channel=self._channel,
                skipWhileBusy=self._config.skipWhileBusy,
                parent=self
            )
            self._sampler.decodeCompleted.connect(self._onDecodeCompleted)

    def _buildRequest(self) -> CameraRequest:
        return CameraRequest(
            video=VideoConstraints(
                facingMode=self._config.facingMode,
                width=self._config.width,
                height=self._config.height
            )
        )

    def _run(self) -> None:
        """Acquire what is missing and start sampling."""
        try:
            if not self._stream.isAcquired():
                self._stream.acquire(self._buildRequest())
            if self._surface is None:
                self._surface = self._surfaceFactory(self._scanArea)
        except ScannerError as e:
            self._fail(e)
            raise

        self._sampler.setScanArea(self._scanArea, self._surface)
        self._sampler.start(self._config.timerInterval)
        self._lastError = None
        self._setState(PipelineState.RUNNING)

    def _fail(self, error: Exception) -> None:
        """Release everything acquired so far and fall back to Uninitialized."""
        logger.error(f"Pipeline failed to start: {error}")
        if self._sampler is not None:
            self._sampler.stop()
        self._stream.release()
        self._surface = None
        self._lastError = error
        self._setState(PipelineState.UNINITIALIZED)
        self.errorOccurred.emit(str(error))

    def _setState(self, state: PipelineState) -> None:
        if state == self._state:
            return
        logger.info(f"Pipeline state: {self._state.value} -> {state.value}")
        self._state = state
        self.stateChanged.emit(state)

    def _onDecodeCompleted(self, response: DecodeResponse) -> None:
        if self._state != PipelineState.RUNNING:
            return
        event = self._mapper.apply(response)
        if event is not None:
            self.recognized.emit(event)
