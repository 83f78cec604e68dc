"""
QR Reader

Live camera QR code scanner with a centered scan area.
Frames are sampled on a timer, cropped, and decoded off the UI thread.
"""

__version__ = "1.0.0"
