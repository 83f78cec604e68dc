"""QR decoding module."""

from qr_reader.core.qr.qr_detector_factory import (
    createQrDetector,
    getSupportedQrBackends,
    isQrBackendAvailable
)

__all__ = [
    'createQrDetector',
    'getSupportedQrBackends',
    'isQrBackendAvailable'
]
