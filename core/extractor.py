"""Public entry point: recording path + channel layout in, Transitions out."""

from __future__ import annotations

import logging
import os
from typing import Iterator, Tuple, Union

import numpy as np

from daq.dat_source import ChunkedSampleSource
from shared.models import Transition
from shared.settings import DEFAULT_CHUNK_FRAMES, ExtractionSettings

from .detection import create_detector, get_detector_class

logger = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]


class TransitionExtractor:
    """
    Wire a recording and its sampling parameters into a sample source and a
    detector.

    There is a single detection path: `iter_transitions` pulls samples
    through the detector on demand, and `extract` simply drains it. Both
    forms therefore yield identical sequences. Every call starts a fresh
    pass over the file; the handle is released when the pass ends or the
    generator is closed.
    """

    def __init__(
        self,
        path: PathLike,
        channel_index: int,
        n_channels: int,
        time_per_sample: float,
        *,
        chunk_frames: int = DEFAULT_CHUNK_FRAMES,
        detector: str = "edge",
    ) -> None:
        # Validates the parameters up front so bad input fails at construction.
        self._settings = ExtractionSettings(
            channel_index=channel_index,
            n_channels=n_channels,
            time_per_sample=time_per_sample,
            chunk_frames=chunk_frames,
            detector=detector,
        )
        self._path = path
        get_detector_class(detector)

    @classmethod
    def from_settings(cls, path: PathLike, settings: ExtractionSettings) -> "TransitionExtractor":
        return cls(
            path,
            settings.channel_index,
            settings.n_channels,
            settings.time_per_sample,
            chunk_frames=settings.chunk_frames,
            detector=settings.detector,
        )

    @property
    def path(self) -> PathLike:
        return self._path

    @property
    def settings(self) -> ExtractionSettings:
        return self._settings

    def open_source(self) -> ChunkedSampleSource:
        return ChunkedSampleSource.from_settings(self._path, self._settings)

    def iter_transitions(self) -> Iterator[Transition]:
        """Yield Transitions one at a time as the file is read."""
        detector = create_detector(self._settings.detector, channel=self._settings.channel_index)
        with self.open_source() as source:
            yield from detector.process(source)
            yield from detector.finalize()

    def __iter__(self) -> Iterator[Transition]:
        return self.iter_transitions()

    def extract(self) -> Tuple[Transition, ...]:
        """Return every Transition in the recording, in time order."""
        transitions = tuple(self.iter_transitions())
        logger.info("Extracted %d transitions from %s", len(transitions), self._path)
        return transitions

    def read_samples(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        Read the selected channel eagerly.

        Returns
        -------
        timestamps : np.ndarray
            uint64 timestamps, one per frame.
        values : np.ndarray
            int16 raw values of the selected channel.
        """
        timestamps = []
        values = []
        with self.open_source() as source:
            for ts, vals in source.iter_timestamped_blocks():
                timestamps.append(ts)
                values.append(vals)
        if not values:
            return np.zeros((0,), dtype=np.uint64), np.zeros((0,), dtype=np.int16)
        return np.concatenate(timestamps), np.concatenate(values).astype(np.int16, copy=False)


def iter_transitions(
    path: PathLike,
    channel_index: int,
    n_channels: int,
    time_per_sample: float,
    **kwargs,
) -> Iterator[Transition]:
    """On-demand form of `extract_transitions`."""
    return TransitionExtractor(path, channel_index, n_channels, time_per_sample, **kwargs).iter_transitions()


def extract_transitions(
    path: PathLike,
    channel_index: int,
    n_channels: int,
    time_per_sample: float,
    **kwargs,
) -> Tuple[Transition, ...]:
    """Extract every Transition from the recording at `path`.

    A missing file yields an empty tuple.
    """
    return TransitionExtractor(path, channel_index, n_channels, time_per_sample, **kwargs).extract()


def read_samples(
    path: PathLike,
    channel_index: int,
    n_channels: int,
    time_per_sample: float,
    **kwargs,
) -> Tuple[np.ndarray, np.ndarray]:
    return TransitionExtractor(path, channel_index, n_channels, time_per_sample, **kwargs).read_samples()


__all__ = [
    "TransitionExtractor",
    "iter_transitions",
    "extract_transitions",
    "read_samples",
]
