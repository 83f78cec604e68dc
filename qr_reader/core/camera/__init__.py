"""Camera capture module."""

from qr_reader.core.camera.opencv_camera import OpenCVCamera

__all__ = ['OpenCVCamera']
