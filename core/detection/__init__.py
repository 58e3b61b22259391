from .base import (
    DETECTOR_REGISTRY,
    TransitionDetector,
    create_detector,
    get_detector_class,
    register_detector,
)
from .edge import EdgeDetector, is_inflection, is_peak_confirmed

__all__ = [
    "TransitionDetector",
    "DETECTOR_REGISTRY",
    "create_detector",
    "get_detector_class",
    "register_detector",
    "EdgeDetector",
    "is_inflection",
    "is_peak_confirmed",
]
