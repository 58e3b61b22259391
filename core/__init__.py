"""Core transition extraction."""

from .compare import ComparisonResult, compare_transitions
from .detection import EdgeDetector
from .extractor import TransitionExtractor, extract_transitions, iter_transitions, read_samples
from shared.models import EndOfStream, Sample, Transition

__all__ = [
    "Sample",
    "Transition",
    "EndOfStream",
    "EdgeDetector",
    "TransitionExtractor",
    "extract_transitions",
    "iter_transitions",
    "read_samples",
    "ComparisonResult",
    "compare_transitions",
]
