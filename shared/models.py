from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple

import numpy as np


# ----------------------------
# Timestamp arithmetic
# ----------------------------

# Reserved out-of-band timestamp. Checked conversion below refuses anything
# above MAX_TIMESTAMP, so a computed timestamp can never equal it.
INVALID_TIMESTAMP = (1 << 64) - 1
MAX_TIMESTAMP = INVALID_TIMESTAMP - 1


class TimestampOverflowError(OverflowError):
    """Raised when index * time_per_sample does not fit a u64 timestamp."""


def timestamp_for_index(index: int, time_per_sample: float) -> int:
    """Return the timestamp of the `index`-th sample of a channel stream.

    The product is computed in double precision and truncated toward zero.
    """
    value = index * time_per_sample
    if not math.isfinite(value) or value < 0 or value > MAX_TIMESTAMP:
        raise TimestampOverflowError(
            f"timestamp for sample {index} at {time_per_sample} per sample is out of range"
        )
    return int(value)


def timestamps_for_indices(first_index: int, count: int, time_per_sample: float) -> np.ndarray:
    """Vectorised `timestamp_for_index` for `count` consecutive ordinals."""
    if count <= 0:
        return np.zeros((0,), dtype=np.uint64)
    # Bounds are checked on the last ordinal; the sequence is monotonic.
    timestamp_for_index(first_index + count - 1, time_per_sample)
    indices = np.arange(first_index, first_index + count, dtype=np.float64)
    return np.trunc(indices * time_per_sample).astype(np.uint64)


# ----------------------------
# Streaming data models
# ----------------------------

@dataclass(frozen=True)
class Sample:
    """One channel reading at one recording instant."""

    index: int
    timestamp: int
    value: int

    def __post_init__(self) -> None:
        if self.index < 0:
            raise ValueError("index must be non-negative")
        if not -32768 <= self.value <= 32767:
            raise ValueError(f"value {self.value} is outside the int16 range")


@dataclass(frozen=True)
class Transition:
    """Confirmed on/off edge.

    Attributes:
        is_on: True when the confirmed peak is positive (low-to-high edge).
        timestamp: Timestamp of the peak sample, i.e. the sample immediately
            preceding the one that confirmed it.
        frame_number: Ordinal of the confirming sample in the channel stream.
        channel: Channel index the transition was detected on.
        source: Recording kind the transition came from.
    """

    is_on: bool
    timestamp: int
    frame_number: int = 0
    channel: int = 0
    source: str = "DAT"

    def __post_init__(self) -> None:
        if not 0 <= self.timestamp <= MAX_TIMESTAMP:
            raise ValueError("timestamp must be a valid u64 timestamp")
        if self.frame_number < 0:
            raise ValueError("frame_number must be non-negative")
        if self.channel < 0:
            raise ValueError("channel must be non-negative")

    @property
    def key(self) -> Tuple[bool, int]:
        """The (is_on, timestamp) pair extraction results are compared on."""
        return (self.is_on, self.timestamp)


def _restore_end_of_stream() -> "_EndOfStreamSentinel":
    return EndOfStream


class _EndOfStreamSentinel:
    __slots__ = ()

    def __repr__(self) -> str:
        return "EndOfStream"

    def __reduce__(self):
        return (_restore_end_of_stream, ())


EndOfStream = _EndOfStreamSentinel()


__all__ = [
    "INVALID_TIMESTAMP",
    "MAX_TIMESTAMP",
    "TimestampOverflowError",
    "timestamp_for_index",
    "timestamps_for_indices",
    "Sample",
    "Transition",
    "EndOfStream",
]
