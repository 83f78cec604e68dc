"""Custom exceptions for the scanner pipeline."""


class ScannerError(Exception):
    """Base scanner error."""
    pass


class CameraAcquisitionError(ScannerError):
    """Camera stream could not be acquired."""
    pass


class PermissionDeniedError(CameraAcquisitionError):
    """Access to the camera device was refused."""
    pass


class DeviceUnavailableError(CameraAcquisitionError):
    """No camera device matches the request."""
    pass


class SurfaceUnavailableError(ScannerError):
    """Raster surface for the scan area could not be created."""
    pass


class ChannelClosedError(ScannerError):
    """Decode channel was used after it was closed."""
    pass


class ConfigError(ScannerError):
    """Configuration-related errors."""
    pass
