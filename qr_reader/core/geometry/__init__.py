"""Scan area geometry module."""

from qr_reader.core.geometry.scan_area import ScanAreaGeometry, computeScanArea

__all__ = [
    'ScanAreaGeometry',
    'computeScanArea'
]
