# Core module for QR Reader
# Contains interfaces and framework-free implementations for
# camera, raster surface, decoding, geometry and result mapping
