"""Pytest configuration and shared fixtures for the QR reader tests.

Provides fake camera and decoder implementations so the pipeline can be
exercised without hardware, and runs Qt on the offscreen platform.
"""
import os
import sys
import threading
import logging
from pathlib import Path
from typing import List, Optional, Tuple

import numpy as np
import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

# Add the project root to Python path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from qr_reader.core.geometry.scan_area import computeScanArea
from qr_reader.core.interfaces.camera_interface import CameraInfo, CameraRequest, ICameraCapture
from qr_reader.core.interfaces.qr_detector_interface import IQrDetector, Point, QrDetectionResult
from qr_reader.services.config_service import ScannerConfig
from qr_reader.services.decode_channel import DecodeOffloadChannel
from qr_reader.services.scan_pipeline import ScanPipeline


logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler()]
)


class FakeCamera(ICameraCapture):
    """Camera returning a fixed frame and counting open/release calls."""

    def __init__(self, frame: Optional[np.ndarray] = None, error: Optional[Exception] = None):
        self.frame = frame if frame is not None else np.zeros((500, 500, 3), dtype=np.uint8)
        self.error = error
        self.requests: List[CameraRequest] = []
        self.openCount = 0
        self.releaseCount = 0
        self._opened = False

    def listAvailableCameras(self) -> List[CameraInfo]:
        return [CameraInfo(index=0, name="Fake camera")]

    def open(self, request: CameraRequest) -> None:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        self.openCount += 1
        self._opened = True

    def read(self) -> Tuple[bool, Optional[np.ndarray]]:
        if not self._opened:
            return (False, None)
        return (True, self.frame.copy())

    def release(self) -> None:
        self.releaseCount += 1
        self._opened = False

    def isOpened(self) -> bool:
        return self._opened


class FakeDetector(IQrDetector):
    """Decoder returning a preset result, optionally blocking on a gate."""

    def __init__(
        self,
        result: Optional[QrDetectionResult] = None,
        gate: Optional[threading.Event] = None,
        error: Optional[Exception] = None
    ):
        self.result = result
        self.gate = gate
        self.error = error
        self.calls: List[Tuple[int, int, tuple]] = []
        self.lastPixels: Optional[np.ndarray] = None

    def decode(self, pixels, width, height):
        self.calls.append((width, height, pixels.shape))
        self.lastPixels = pixels
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if self.error is not None:
            raise self.error
        return self.result


def makeResult(text="hello", topLeft=(10, 20), bottomRight=(60, 80)) -> QrDetectionResult:
    return QrDetectionResult(
        text=text,
        topLeft=Point(*topLeft),
        bottomRight=Point(*bottomRight)
    )


@pytest.fixture
def defaultGeometry():
    """Scan area of the default 500x500 container at 70%."""
    return computeScanArea(500, 500, 70)


@pytest.fixture
def fakeCamera():
    return FakeCamera()


@pytest.fixture
def matchDetector():
    return FakeDetector(result=makeResult())


@pytest.fixture
def emptyDetector():
    return FakeDetector(result=None)


@pytest.fixture
def gate():
    event = threading.Event()
    yield event
    event.set()


@pytest.fixture
def channelFactory():
    """Create decode channels and close them after the test."""
    channels = []

    def create(detector):
        channel = DecodeOffloadChannel(detector)
        channels.append(channel)
        return channel

    yield create
    for channel in channels:
        channel.close()


@pytest.fixture
def pipelineFactory(qtbot):
    """Create pipelines with fakes and tear them down after the test."""
    pipelines = []

    def create(camera=None, detector=None, **configValues):
        config = ScannerConfig(**configValues)
        pipeline = ScanPipeline(
            config=config,
            camera=camera or FakeCamera(),
            detector=detector or FakeDetector()
        )
        pipelines.append(pipeline)
        return pipeline

    yield create
    for pipeline in pipelines:
        pipeline.teardown()
