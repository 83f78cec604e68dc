"""Raster surface module."""

from qr_reader.core.raster.numpy_surface import NumpyRasterSurface

__all__ = ['NumpyRasterSurface']
