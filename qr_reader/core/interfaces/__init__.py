"""Core interfaces."""

from qr_reader.core.interfaces.camera_interface import (
    ICameraCapture,
    CameraInfo,
    CameraRequest,
    VideoConstraints,
    FACING_ENVIRONMENT,
    FACING_USER
)
from qr_reader.core.interfaces.qr_detector_interface import (
    IQrDetector,
    QrDetectionResult,
    Point
)
from qr_reader.core.interfaces.raster_interface import IRasterSurface, CaptureFrame
from qr_reader.core.interfaces.decode_channel_interface import (
    IDecodeChannel,
    DecodeRequest,
    DecodeResponse
)

__all__ = [
    "ICameraCapture",
    "CameraInfo",
    "CameraRequest",
    "VideoConstraints",
    "FACING_ENVIRONMENT",
    "FACING_USER",
    "IQrDetector",
    "QrDetectionResult",
    "Point",
    "IRasterSurface",
    "CaptureFrame",
    "IDecodeChannel",
    "DecodeRequest",
    "DecodeResponse",
]
