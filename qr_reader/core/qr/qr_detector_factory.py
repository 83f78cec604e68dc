"""
QR Detector Factory Module.

Creates the decoder used by the decode channel from the `qr.backend`
configuration value.
"""

import importlib.util
import logging
from typing import Callable, Dict, List

from qr_reader.core.interfaces.qr_detector_interface import IQrDetector


logger = logging.getLogger(__name__)


def _zxing(tryRotate: bool, tryDownscale: bool) -> IQrDetector:
    from qr_reader.core.qr.zxing_qr_detector import ZxingQrDetector
    return ZxingQrDetector(tryRotate=tryRotate, tryDownscale=tryDownscale)


def _pyzbar(tryRotate: bool, tryDownscale: bool) -> IQrDetector:
    # zbar scans all orientations itself and has no downscale option
    from qr_reader.core.qr.pyzbar_qr_detector import PyzbarQrDetector
    return PyzbarQrDetector()


# Backend name -> (builder, module that must be importable)
_BACKENDS: Dict[str, tuple[Callable[[bool, bool], IQrDetector], str]] = {
    "zxing": (_zxing, "zxingcpp"),
    "pyzbar": (_pyzbar, "pyzbar"),
}


def createQrDetector(
    backend: str = "zxing",
    zxingTryRotate: bool = True,
    zxingTryDownscale: bool = True
) -> IQrDetector:
    """
    Create a QR decoder.

    Args:
        backend: "zxing" (zxing-cpp) or "pyzbar" (ZBar).
        zxingTryRotate: (zxing) Also look for codes rotated by 90/270 degrees.
        zxingTryDownscale: (zxing) Also scan downscaled copies of the buffer.

    Returns:
        IQrDetector: Decoder for the chosen backend.

    Raises:
        ValueError: If the backend name is unknown.

    Examples:
        >>> detector = createQrDetector("pyzbar")
    """
    name = backend.lower().strip()
    if name not in _BACKENDS:
        message = f"Invalid QR backend: '{backend}'. Supported backends: {getSupportedQrBackends()}"
        logger.error(message)
        raise ValueError(message)

    builder, _ = _BACKENDS[name]
    logger.info(
        f"Creating {name} QR detector "
        f"(tryRotate={zxingTryRotate}, tryDownscale={zxingTryDownscale})"
    )
    return builder(zxingTryRotate, zxingTryDownscale)


def getSupportedQrBackends() -> List[str]:
    return list(_BACKENDS)


def isQrBackendAvailable(backend: str) -> bool:
    """True if the library behind a backend is installed."""
    entry = _BACKENDS.get(backend.lower().strip())
    if entry is None:
        return False
    return importlib.util.find_spec(entry[1]) is not None
