from __future__ import annotations

"""
Base class for pull-based sample sources.

Goals:
- Simple, stable contract for consumers: one Sample per call, then EndOfStream.
- Clean lifecycle: idle → open → exhausted/closed, with the backing resource
  released on every exit path.
- Consistent timebase: the ordinal index, and therefore the timestamp, runs
  across block refills without resetting.

Subclasses implement the *_impl() methods to integrate a concrete backing
store (files, in-memory streams) while relying on the bookkeeping here.
"""

import math
from abc import ABC, abstractmethod
from typing import Iterator, Literal, Optional, Tuple, Union

import numpy as np

from shared.models import EndOfStream, Sample, timestamp_for_index, timestamps_for_indices


State = Literal["idle", "open", "exhausted", "closed"]


class SampleSource(ABC):
    """
    Abstract base for sources that deliver one channel of a recording.

    Typical flow:
        with Source(..., channel_index=0, n_channels=64, time_per_sample=31.25) as src:
            sample = src.read_sample()
            while sample is not EndOfStream:
                ...
                sample = src.read_sample()

    or simply ``for sample in src: ...``.
    """

    def __init__(self, channel_index: int, n_channels: int, time_per_sample: float) -> None:
        if n_channels < 1:
            raise ValueError("n_channels must be at least 1")
        if not 0 <= channel_index < n_channels:
            raise ValueError(f"channel_index {channel_index} out of range for {n_channels} channels")
        if not math.isfinite(time_per_sample) or time_per_sample <= 0:
            raise ValueError("time_per_sample must be positive and finite")

        self._channel_index = int(channel_index)
        self._n_channels = int(n_channels)
        self._time_per_sample = float(time_per_sample)

        self._state: State = "idle"
        self._next_index: int = 0

        # Current block: a view of the selected channel valid until the next refill
        self._block: Optional[np.ndarray] = None
        self._block_len: int = 0
        self._cursor: int = 0

    # ---- Properties --------------------------------------------------------

    @property
    def channel_index(self) -> int:
        return self._channel_index

    @property
    def n_channels(self) -> int:
        return self._n_channels

    @property
    def time_per_sample(self) -> float:
        return self._time_per_sample

    @property
    def state(self) -> State:
        return self._state

    @property
    def exhausted(self) -> bool:
        return self._state in ("exhausted", "closed")

    @property
    def closed(self) -> bool:
        return self._state == "closed"

    @property
    def samples_read(self) -> int:
        """Number of samples handed out so far."""
        return self._next_index

    # ---- Pull API ----------------------------------------------------------

    def read_sample(self) -> Union[Sample, object]:
        """Return the next Sample of the selected channel, or EndOfStream."""
        while self._cursor >= self._block_len:
            if not self._advance_block():
                return EndOfStream

        value = int(self._block[self._cursor])
        index = self._next_index
        self._cursor += 1
        self._next_index += 1
        return Sample(index=index, timestamp=timestamp_for_index(index, self._time_per_sample), value=value)

    def iter_blocks(self) -> Iterator[Tuple[int, np.ndarray]]:
        """
        Yield ``(first_index, values)`` for the rest of the stream.

        `values` is a copy of the channel data, so it stays valid after the
        internal buffer is refilled. Shares its position with `read_sample`.
        """
        while True:
            if self._cursor >= self._block_len and not self._advance_block():
                return
            values = np.array(self._block[self._cursor:], copy=True)
            first = self._next_index
            self._next_index += values.size
            self._cursor = self._block_len
            yield first, values

    def iter_timestamped_blocks(self) -> Iterator[Tuple[np.ndarray, np.ndarray]]:
        """Like `iter_blocks`, with the ordinals converted to timestamps."""
        for first, values in self.iter_blocks():
            yield timestamps_for_indices(first, values.size, self._time_per_sample), values

    def __iter__(self) -> Iterator[Sample]:
        return self

    def __next__(self) -> Sample:
        sample = self.read_sample()
        if sample is EndOfStream:
            raise StopIteration
        return sample

    # ---- Lifecycle ---------------------------------------------------------

    def close(self) -> None:
        if self._state == "open":
            self._close_impl()
        self._state = "closed"
        self._block = None
        self._block_len = 0
        self._cursor = 0

    def __enter__(self) -> "SampleSource":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ---- Internals ---------------------------------------------------------

    def _advance_block(self) -> bool:
        if self._state == "idle":
            self._state = "open" if self._open_impl() else "exhausted"
        if self._state != "open":
            return False

        block = self._next_block_impl()
        if block is None or block.size == 0:
            self._finish()
            return False

        self._block = block
        self._block_len = int(block.size)
        self._cursor = 0
        return True

    def _finish(self) -> None:
        self._close_impl()
        self._state = "exhausted"
        self._block = None
        self._block_len = 0
        self._cursor = 0
        self._on_exhausted()

    def _on_exhausted(self) -> None:
        """Hook called once when the backing store runs dry."""

    @abstractmethod
    def _open_impl(self) -> bool:
        """Acquire the backing store. Return False to behave as an empty stream."""
        raise NotImplementedError

    @abstractmethod
    def _next_block_impl(self) -> Optional[np.ndarray]:
        """Return the selected channel's values for the next block, or None at the end."""
        raise NotImplementedError

    @abstractmethod
    def _close_impl(self) -> None:
        """Release the backing store. Must be safe to call more than once."""
        raise NotImplementedError


__all__ = ["SampleSource", "State"]
