"""Writer for headerless interleaved int16 DAT recordings."""
from __future__ import annotations

import logging
import os
from typing import BinaryIO, Optional, Union

import numpy as np

logger = logging.getLogger(__name__)

INT16_MIN = -32768
INT16_MAX = 32767


class DatWriter:
    """
    Appends frames to a DAT file: `n_channels` int16 values per frame,
    channel-interleaved, no header and no padding.
    """

    def __init__(
        self,
        out_path: Union[str, "os.PathLike[str]"],
        n_channels: int,
        *,
        dtype: Union[str, np.dtype] = "<i2",
    ) -> None:
        if n_channels < 1:
            raise ValueError("n_channels must be at least 1")
        dt = np.dtype(dtype)
        if dt.kind != "i" or dt.itemsize != 2:
            raise ValueError(f"Unsupported sample dtype {dt}; expected signed 16-bit")

        self._out_path = os.fspath(out_path)
        self._n_channels = int(n_channels)
        self._dtype = dt
        self._frames_written: int = 0

        out_dir = os.path.dirname(self._out_path)
        if out_dir:
            os.makedirs(out_dir, exist_ok=True)
        try:
            self._f: Optional[BinaryIO] = open(self._out_path, "wb")
        except OSError as exc:
            logger.error("Failed to open DAT file %s: %s", self._out_path, exc)
            raise
        logger.info("DatWriter opened: %s (ch=%d)", self._out_path, self._n_channels)

    @property
    def frames_written(self) -> int:
        return self._frames_written

    @property
    def closed(self) -> bool:
        return self._f is None

    def write_frames(self, samples: np.ndarray) -> int:
        """
        Write `samples` shaped (n_channels, n_frames); a 1D array is accepted
        for single-channel files. Values are clipped to the int16 range.

        Returns the number of frames written.
        """
        if self._f is None:
            raise RuntimeError("DatWriter is closed")

        arr = np.asarray(samples)
        if arr.ndim == 1:
            arr = arr.reshape(1, -1)
        if arr.ndim != 2 or arr.shape[0] != self._n_channels:
            raise ValueError(
                f"samples must be shaped ({self._n_channels}, n_frames), got {arr.shape}"
            )
        if arr.shape[1] == 0:
            return 0

        # Transpose to (frames, channels) so a C-order dump interleaves.
        interleaved = np.clip(arr.T, INT16_MIN, INT16_MAX)
        interleaved = np.ascontiguousarray(interleaved, dtype=self._dtype)
        self._f.write(interleaved.tobytes())
        self._frames_written += interleaved.shape[0]
        return interleaved.shape[0]

    def write_bytes(self, data: bytes) -> None:
        """Append raw bytes, e.g. to emulate a truncated trailing frame."""
        if self._f is None:
            raise RuntimeError("DatWriter is closed")
        self._f.write(data)

    def close(self) -> None:
        if self._f is None:
            return
        self._f.close()
        self._f = None
        logger.info("DatWriter closed: %s (%d frames)", self._out_path, self._frames_written)

    def __enter__(self) -> "DatWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def write_dat(out_path: Union[str, "os.PathLike[str]"], samples: np.ndarray) -> int:
    """Write a whole recording in one go; returns the frame count."""
    arr = np.asarray(samples)
    n_channels = 1 if arr.ndim == 1 else arr.shape[0]
    with DatWriter(out_path, n_channels) as writer:
        return writer.write_frames(arr)


__all__ = ["DatWriter", "write_dat"]
