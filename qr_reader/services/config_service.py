"""
Config Service Implementation.

Centralized configuration management for the QR reader.
Loads configuration from application_config.json organized by section
(app, camera, scanner, qr, display, debug).

Follows:
- SRP: Only handles configuration management
- DIP: Provides configuration to other services as plain values
"""

import json
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from qr_reader.core.exceptions import ConfigError
from qr_reader.core.interfaces.camera_interface import FACING_ENVIRONMENT


logger = logging.getLogger(__name__)


# Fields that require the camera stream to be reacquired when changed
CAMERA_FIELDS = ("width", "height", "facingMode")

# Fields that change the scan area
GEOMETRY_FIELDS = ("width", "height", "scanAreaRatio")


@dataclass(frozen=True)
class ScannerConfig:
    """
    Configuration surface of the scan pipeline.
    
    Immutable: derive changed configs with update() and hand them to
    ScanPipeline.applyConfig().
    
    Attributes:
        width: Container (and requested video) width in pixels.
        height: Container (and requested video) height in pixels.
        pause: Whether sampling and the camera stream are paused.
        showQRFrame: Whether matches are outlined by the overlay.
        timerInterval: Sampling period in milliseconds.
        scanAreaRatio: Percentage (0-100) of the container that is scanned.
        facingMode: Which camera to open ("environment" or "user").
        onRecognize: Called with a RecognitionEvent for each match.
        previewInterval: Period of the live preview refresh in milliseconds.
        skipWhileBusy: Skip a tick while the previous decode is in flight.
    """
    width: int = 500
    height: int = 500
    pause: bool = False
    showQRFrame: bool = True
    timerInterval: int = 300
    scanAreaRatio: float = 70
    facingMode: str = FACING_ENVIRONMENT
    onRecognize: Optional[Callable] = field(default=None, compare=False)
    previewInterval: int = 33
    skipWhileBusy: bool = True
    
    def update(self, **changes: Any) -> "ScannerConfig":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)
    
    def changedFields(self, other: "ScannerConfig") -> List[str]:
        """
        List field names whose values differ from another config.
        
        The callback is compared by identity.
        """
        changed = [
            name for name in (
                "width", "height", "pause", "showQRFrame", "timerInterval",
                "scanAreaRatio", "facingMode", "previewInterval", "skipWhileBusy"
            )
            if getattr(self, name) != getattr(other, name)
        ]
        if self.onRecognize is not other.onRecognize:
            changed.append("onRecognize")
        return changed


class ConfigService:
    """
    Loads and manages application configuration from application_config.json.
    
    Values missing from the file fall back to the ScannerConfig defaults.
    """
    
    def __init__(self, configPath: str = "config/application_config.json"):
        """
        Initialize ConfigService.
        
        Args:
            configPath: Path to the configuration file.
            
        Raises:
            ConfigError: If the file is missing or not valid JSON.
        """
        self._config: Dict[str, Any] = {}
        self._configPath = Path(configPath)
        self._debugEnabled = False
        
        if not self.loadConfig(configPath):
            raise ConfigError(f"Failed to load configuration from: {configPath}")
    
    def loadConfig(self, configPath: str) -> bool:
        """Load configuration from JSON file."""
        path = Path(configPath)
        if not path.exists():
            logger.error(f"Config file not found: {configPath}")
            return False
        
        try:
            with open(path, 'r', encoding='utf-8') as f:
                self._config = json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON in config file: {e}")
            return False
        except OSError as e:
            logger.error(f"Failed to load config: {e}")
            return False
        
        self._debugEnabled = self.get("debug.enabled", False)
        
        logger.info(f"Configuration loaded from: {path.absolute()}")
        return True
    
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # Generic Config Access
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    
    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by key with dot notation support.
        
        Examples:
            get("camera.width") -> 500
            get("scanner.scanAreaRatio") -> 70
        """
        value = self._config
        for part in key.split('.'):
            if not isinstance(value, dict):
                return default
            value = value.get(part)
            if value is None:
                return default
        return value
    
    def getSectionConfig(self, sectionName: str) -> Dict[str, Any]:
        """
        Get all configuration for a section.
        
        Args:
            sectionName: Section name (e.g., "camera", "scanner")
            
        Returns:
            Configuration dictionary for the section.
        """
        config = self._config.get(sectionName, {})
        return config if isinstance(config, dict) else {}
    
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # Debug Settings
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    
    def getDebugBasePath(self) -> str:
        """Get base path for debug output."""
        return self.get("debug.basePath", "output/debug")
    
    def isDebugEnabled(self) -> bool:
        return self._debugEnabled
    
    def setDebugEnabled(self, enabled: bool) -> None:
        """Enable or disable debug mode at runtime."""
        self._debugEnabled = enabled
        logger.info(f"Debug mode {'enabled' if enabled else 'disabled'}")
    
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # App Settings
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    
    def getWindowTitle(self) -> str:
        return self.get("app.windowTitle", "QR Reader")
    
    def getWindowMinWidth(self) -> int:
        return self.get("app.windowMinWidth", 600)
    
    def getWindowMinHeight(self) -> int:
        return self.get("app.windowMinHeight", 650)
    
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # Camera Settings
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    
    def getMaxCameraSearch(self) -> int:
        return self.get("camera.maxCameraSearch", 2)
    
    def getFacingModeIndices(self) -> Dict[str, int]:
        """Device index for each facing mode."""
        return self.get("camera.facingModeIndices", {"environment": 0, "user": 1})
    
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # QR Settings
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    
    def getQrBackend(self) -> str:
        return self.get("qr.backend", "zxing")
    
    def isQrTryRotate(self) -> bool:
        return self.get("qr.zxingTryRotate", True)
    
    def isQrTryDownscale(self) -> bool:
        return self.get("qr.zxingTryDownscale", True)
    
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # Display Settings
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    
    def getDisplayConfig(self) -> Dict[str, Any]:
        return self.getSectionConfig("display")
    
    def getOverlayColor(self) -> Tuple[int, int, int]:
        """Overlay rectangle color (BGR)."""
        return tuple(self.get("display.overlayColor", [0, 0, 255]))
    
    def getScanBarColor(self) -> Tuple[int, int, int]:
        """Scan bar color (BGR)."""
        return tuple(self.get("display.scanBarColor", [0, 255, 0]))
    
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # Scanner Settings
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    
    def getScannerConfig(self, onRecognize: Optional[Callable] = None) -> ScannerConfig:
        """
        Build the pipeline configuration from the camera and scanner sections.
        
        Args:
            onRecognize: Recognition callback to attach.
        """
        defaults = ScannerConfig()
        return ScannerConfig(
            width=self.get("camera.width", defaults.width),
            height=self.get("camera.height", defaults.height),
            pause=self.get("scanner.pause", defaults.pause),
            showQRFrame=self.get("scanner.showQRFrame", defaults.showQRFrame),
            timerInterval=self.get("scanner.timerInterval", defaults.timerInterval),
            scanAreaRatio=self.get("scanner.scanAreaRatio", defaults.scanAreaRatio),
            facingMode=self.get("camera.facingMode", defaults.facingMode),
            onRecognize=onRecognize,
            previewInterval=self.get("camera.previewInterval", defaults.previewInterval),
            skipWhileBusy=self.get("scanner.skipWhileBusy", defaults.skipWhileBusy)
        )
