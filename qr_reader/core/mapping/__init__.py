"""Decode result mapping module."""

from qr_reader.core.mapping.result_mapper import (
    OverlayRect,
    RecognitionEvent,
    ResultMapper,
    mapToOverlay
)

__all__ = [
    'OverlayRect',
    'RecognitionEvent',
    'ResultMapper',
    'mapToOverlay'
]
