# UI module for QR Reader
# Contains PySide6 widgets and windows

from qr_reader.ui.main_window import MainWindow
from qr_reader.ui.widgets.scanner_widget import ScannerWidget

__all__ = [
    "MainWindow",
    "ScannerWidget",
]
