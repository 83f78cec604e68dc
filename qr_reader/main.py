"""
QR Reader Application

Main entry point for the QR reader desktop application.

Architecture:
- ConfigService: Reads config and provides parameters
- ScanPipeline: Owns camera stream, sampler, decode channel and mapper
- MainWindow: Displays the feed and drives pause/resume
"""

import sys
import os
import logging

from PySide6.QtWidgets import QApplication

from qr_reader import __version__
from qr_reader.core.camera.opencv_camera import OpenCVCamera
from qr_reader.core.qr import createQrDetector
from qr_reader.services.camera_stream_service import CameraStreamService
from qr_reader.services.config_service import ConfigService
from qr_reader.services.decode_channel import DecodeOffloadChannel
from qr_reader.services.scan_pipeline import ScanPipeline
from qr_reader.ui.main_window import MainWindow


def setupLogging(debugMode: bool = False) -> None:
    """
    Setup application logging.

    Args:
        debugMode: If True, set log level to DEBUG.
    """
    level = logging.DEBUG if debugMode else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )


def createPipeline(configService: ConfigService) -> ScanPipeline:
    """
    Build the scan pipeline from configuration.

    Args:
        configService: Loaded application configuration.

    Returns:
        ScanPipeline: Pipeline ready to start.
    """
    debugBasePath = configService.getDebugBasePath()
    debugEnabled = configService.isDebugEnabled()
    scannerConfig = configService.getScannerConfig()

    camera = OpenCVCamera(
        maxCameraSearch=configService.getMaxCameraSearch(),
        facingModeIndices=configService.getFacingModeIndices()
    )
    streamService = CameraStreamService(
        camera=camera,
        previewInterval=scannerConfig.previewInterval,
        debugBasePath=debugBasePath,
        debugEnabled=debugEnabled
    )
    detector = createQrDetector(
        backend=configService.getQrBackend(),
        zxingTryRotate=configService.isQrTryRotate(),
        zxingTryDownscale=configService.isQrTryDownscale()
    )

    return ScanPipeline(
        config=scannerConfig,
        detector=detector,
        streamService=streamService,
        channelFactory=lambda: DecodeOffloadChannel(
            detector,
            debugBasePath=debugBasePath,
            debugEnabled=debugEnabled
        )
    )


def createApplication(configPath: str = "config/application_config.json") -> tuple:
    """
    Create and wire up all application components.

    Args:
        configPath: Path to the application configuration file.

    Returns:
        Tuple of (QApplication, MainWindow, ScanPipeline).
    """
    app = QApplication(sys.argv)
    app.setApplicationName("QR Reader")
    app.setApplicationVersion(__version__)

    configService = ConfigService(configPath)
    pipeline = createPipeline(configService)
    mainWindow = MainWindow(pipeline, configService)

    return app, mainWindow, pipeline


def main():
    """Main entry point."""
    setupLogging(debugMode=os.environ.get("DEBUG", "").lower() == "true")

    logger = logging.getLogger(__name__)
    logger.info(f"Starting QR Reader application v{__version__}")

    configPath = os.environ.get("QR_READER_CONFIG", "config/application_config.json")

    try:
        app, mainWindow, pipeline = createApplication(configPath)
    except Exception as e:
        logger.error(f"Application failed to start: {e}")
        sys.exit(1)

    try:
        mainWindow.show()
        mainWindow.startScanning()
        exitCode = app.exec()
    finally:
        pipeline.teardown()

    logger.info("Application terminated")
    sys.exit(exitCode)


if __name__ == "__main__":
    main()
