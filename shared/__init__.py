"""
Shared data structures used by the sources, the detectors and the entry point.
"""

from .models import (
    INVALID_TIMESTAMP,
    MAX_TIMESTAMP,
    EndOfStream,
    Sample,
    TimestampOverflowError,
    Transition,
)
from .settings import ExtractionSettings

__all__ = [
    "INVALID_TIMESTAMP",
    "MAX_TIMESTAMP",
    "EndOfStream",
    "ExtractionSettings",
    "Sample",
    "TimestampOverflowError",
    "Transition",
]
