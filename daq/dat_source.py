# daq/dat_source.py
"""Chunked reader for interleaved multi-channel DAT recordings."""

from __future__ import annotations

import io
import logging
import os
from pathlib import Path
from typing import BinaryIO, Optional, Union

import numpy as np

from shared.settings import DEFAULT_CHUNK_FRAMES, ExtractionSettings

from .base_source import SampleSource

logger = logging.getLogger(__name__)

PathOrStream = Union[str, "os.PathLike[str]", BinaryIO]


class ChunkedSampleSource(SampleSource):
    """
    Stream one channel out of a headerless interleaved int16 recording.

    The file is a plain sequence of frames, each frame holding `n_channels`
    consecutive signed 16-bit values. Frames are pulled `chunk_frames` at a
    time into a single reusable buffer and the selected channel is read out
    of it with a fixed stride, so memory stays bounded regardless of the
    file size.

    Behaviour worth knowing:
    - A missing or unopenable path is an empty stream, not an error.
    - A truncated frame at the physical end of the file is dropped whole.
    - Short reads are stitched: a partial frame is carried to the front of
      the buffer and completed by the next read.
    - Paths are opened lazily on the first read and closed as soon as the
      stream is exhausted. Caller-provided streams are never closed here.
    """

    def __init__(
        self,
        source: PathOrStream,
        channel_index: int,
        n_channels: int,
        time_per_sample: float,
        *,
        chunk_frames: int = DEFAULT_CHUNK_FRAMES,
        dtype: Union[str, np.dtype] = "<i2",
    ) -> None:
        super().__init__(channel_index, n_channels, time_per_sample)
        if chunk_frames < 1:
            raise ValueError("chunk_frames must be at least 1")
        dt = np.dtype(dtype)
        if dt.kind != "i" or dt.itemsize != 2:
            raise ValueError(f"Unsupported sample dtype {dt}; expected signed 16-bit")

        if isinstance(source, (str, os.PathLike)):
            self._path: Optional[Path] = Path(source)
            self._stream: Optional[BinaryIO] = None
            self._owns_stream = True
        else:
            self._path = None
            self._stream = source
            self._owns_stream = False

        self._chunk_frames = int(chunk_frames)
        self._frame_bytes = dt.itemsize * self._n_channels

        # Decode buffer: raw bytes plus a typed view over the same memory
        self._raw = bytearray(self._frame_bytes * self._chunk_frames)
        self._values = np.frombuffer(self._raw, dtype=dt)
        self._carry: int = 0          # bytes of a partial frame at the buffer start
        self._used: int = 0           # bytes handed out as full frames last refill
        self._filled: int = 0         # bytes valid in the buffer after last refill
        self._frames_read: int = 0
        self._discarded_bytes: int = 0

    @classmethod
    def from_settings(cls, source: PathOrStream, settings: ExtractionSettings) -> "ChunkedSampleSource":
        return cls(
            source,
            settings.channel_index,
            settings.n_channels,
            settings.time_per_sample,
            chunk_frames=settings.chunk_frames,
        )

    # ---- Properties ----

    @property
    def chunk_frames(self) -> int:
        return self._chunk_frames

    @property
    def frames_read(self) -> int:
        """Number of complete frames decoded so far."""
        return self._frames_read

    @property
    def discarded_bytes(self) -> int:
        """Bytes of a truncated trailing frame that were dropped at EOF."""
        return self._discarded_bytes

    @property
    def label(self) -> str:
        if self._path is not None:
            return str(self._path)
        return getattr(self._stream, "name", None) or "<stream>"

    # ---- SampleSource implementation ----

    def _open_impl(self) -> bool:
        if self._path is None:
            return self._stream is not None

        if not self._path.is_file():
            logger.warning("Recording not found: %s (treating as empty)", self._path)
            return False
        try:
            self._stream = open(self._path, "rb")
        except OSError as exc:
            logger.warning("Failed to open recording %s: %s (treating as empty)", self._path, exc)
            return False

        logger.info(
            "Opened recording: %s (channel %d of %d, %d frames per chunk)",
            self._path.name,
            self._channel_index,
            self._n_channels,
            self._chunk_frames,
        )
        return True

    def _next_block_impl(self) -> Optional[np.ndarray]:
        if self._stream is None:
            return None

        # Move the partial frame left over from the previous refill to the front.
        leftover = self._filled - self._used
        if leftover:
            self._raw[:leftover] = self._raw[self._used:self._filled]
        self._carry = leftover
        self._used = 0
        self._filled = 0

        while True:
            n = self._stream.readinto(memoryview(self._raw)[self._carry:])
            if not n:
                if self._carry:
                    logger.debug(
                        "Discarding truncated trailing frame of %s (%d bytes)",
                        self.label,
                        self._carry,
                    )
                    self._discarded_bytes += self._carry
                    self._carry = 0
                return None

            total = self._carry + n
            n_frames = total // self._frame_bytes
            if n_frames:
                break
            # Short read inside the first frame; keep reading.
            self._carry = total

        self._filled = total
        self._used = n_frames * self._frame_bytes
        self._carry = 0
        self._frames_read += n_frames

        logger.debug(
            "Read %d frames from %s (total %d)", n_frames, self.label, self._frames_read
        )
        stop = n_frames * self._n_channels
        return self._values[self._channel_index:stop:self._n_channels]

    def _close_impl(self) -> None:
        if self._stream is not None and self._owns_stream:
            try:
                self._stream.close()
            except OSError as e:
                logger.debug("Failed to close recording %s: %s", self.label, e)
            self._stream = None

    def _on_exhausted(self) -> None:
        logger.info(
            "Finished %s: %d frames, %d samples on channel %d",
            self.label,
            self._frames_read,
            self._next_index,
            self._channel_index,
        )


def source_from_bytes(
    data: bytes,
    channel_index: int,
    n_channels: int,
    time_per_sample: float,
    **kwargs,
) -> ChunkedSampleSource:
    """Build a source over an in-memory recording."""
    return ChunkedSampleSource(io.BytesIO(data), channel_index, n_channels, time_per_sample, **kwargs)


__all__ = ["ChunkedSampleSource", "source_from_bytes"]
