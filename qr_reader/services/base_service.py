"""
Base Service Module.

Helper base class for the scanner services that run per frame: a named
logger, timing of each sample and optional dumps of decoded crops.
"""

from pathlib import Path
from typing import Any, Dict, Optional
import json
import logging
import time

import cv2
import numpy as np


class BaseService:
    """
    Shared plumbing for the camera stream and decode channel.

    Debug output goes to <debugBasePath>/<serviceName>/ and is only written
    while debug is enabled. Failing to write it never fails the caller.
    """

    def __init__(
        self,
        serviceName: str,
        debugBasePath: str = "output/debug",
        debugEnabled: bool = False
    ):
        self._serviceName = serviceName
        self._debugDir = Path(debugBasePath) / serviceName
        self._debugEnabled = False
        self._logger = logging.getLogger(serviceName)

        self.setDebugEnabled(debugEnabled)

    @property
    def serviceName(self) -> str:
        return self._serviceName

    def setDebugEnabled(self, enabled: bool) -> None:
        """Toggle crop dumps, creating the output directory on first use."""
        if enabled:
            self._debugDir.mkdir(parents=True, exist_ok=True)
        if enabled != self._debugEnabled:
            self._logger.debug(f"Debug output {'on' if enabled else 'off'}: {self._debugDir}")
        self._debugEnabled = enabled

    def isDebugEnabled(self) -> bool:
        return self._debugEnabled

    def _debugFile(self, name: str, extension: str) -> Path:
        return self._debugDir / f"{name}.{extension}"

    def _saveDebugImage(self, name: str, image: Optional[np.ndarray]) -> Optional[Path]:
        """
        Write a sample as PNG.

        Args:
            name: File stem, usually the request id.
            image: BGR or grayscale pixels.

        Returns:
            Path written, or None when disabled or the write failed.
        """
        if not self._debugEnabled or image is None:
            return None

        path = self._debugFile(name, "png")
        if not cv2.imwrite(str(path), image):
            self._logger.warning(f"Could not write debug image {path}")
            return None
        return path

    def _saveDebugJson(self, name: str, data: Dict[str, Any]) -> Optional[Path]:
        """Write decode metadata next to the matching image."""
        if not self._debugEnabled:
            return None

        path = self._debugFile(name, "json")
        try:
            path.write_text(json.dumps(data, indent=2, ensure_ascii=False, default=str), encoding="utf-8")
        except OSError as e:
            self._logger.warning(f"Could not write debug JSON {path}: {e}")
            return None
        return path

    def _measureTime(self, startTime: float) -> float:
        """Milliseconds elapsed since a time.perf_counter() reading."""
        return (time.perf_counter() - startTime) * 1000

    def _logTiming(self, name: str, elapsedMs: float) -> None:
        # Once per sample, keep it out of INFO
        self._logger.debug(f"[{name}] {elapsedMs:.2f}ms")
