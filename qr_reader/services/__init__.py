"""
Services Package.

Exports the Qt-aware services of the QR reader pipeline.
"""

from qr_reader.services.config_service import ConfigService, ScannerConfig
from qr_reader.services.camera_stream_service import CameraStreamService
from qr_reader.services.decode_channel import DecodeOffloadChannel
from qr_reader.services.frame_sampler import FrameSampler
from qr_reader.services.scan_pipeline import ScanPipeline, PipelineState


__all__ = [
    "ConfigService",
    "ScannerConfig",
    "CameraStreamService",
    "DecodeOffloadChannel",
    "FrameSampler",
    "ScanPipeline",
    "PipelineState",
]
