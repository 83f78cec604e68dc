# Widgets module

from qr_reader.ui.widgets.scanner_widget import ScannerWidget, scanBarProgress

__all__ = [
    "ScannerWidget",
    "scanBarProgress",
]
