"""
Contract tests for SampleSource implementations.

These tests define the behavioural contract every way of feeding a
recording into the pipeline must satisfy: a path opened lazily, a
caller-provided stream, and a stream that returns short reads.

Contract invariants being verified:
- Samples come out in order with consecutive indices
- EndOfStream is returned once the data runs out, and keeps being returned
- close() is idempotent and ends the stream
- Block and per-sample access share one position
"""
from __future__ import annotations

import io
from pathlib import Path
from typing import Callable

import numpy as np
import pytest

from daq.base_source import SampleSource
from daq.dat_source import ChunkedSampleSource
from shared.models import EndOfStream, Sample
from test.fixtures.signal_generators import to_dat_bytes

N_CHANNELS = 3
CHANNEL = 1
SAMPLES = np.arange(-60, 60, dtype=np.int16).reshape(N_CHANNELS, 40)


class TrickleStream(io.RawIOBase):
    """Returns at most 5 bytes per read."""

    def __init__(self, data: bytes) -> None:
        self._buf = io.BytesIO(data)

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        chunk = self._buf.read(min(len(buffer), 5))
        buffer[: len(chunk)] = chunk
        return len(chunk)


def _from_path(tmp_path: Path) -> SampleSource:
    path = tmp_path / "contract.dat"
    path.write_bytes(to_dat_bytes(SAMPLES))
    return ChunkedSampleSource(path, CHANNEL, N_CHANNELS, 2.0, chunk_frames=7)


def _from_stream(tmp_path: Path) -> SampleSource:
    return ChunkedSampleSource(io.BytesIO(to_dat_bytes(SAMPLES)), CHANNEL, N_CHANNELS, 2.0, chunk_frames=7)


def _from_trickle(tmp_path: Path) -> SampleSource:
    return ChunkedSampleSource(TrickleStream(to_dat_bytes(SAMPLES)), CHANNEL, N_CHANNELS, 2.0, chunk_frames=7)


SOURCE_FACTORIES = [_from_path, _from_stream, _from_trickle]


@pytest.fixture(params=SOURCE_FACTORIES, ids=lambda f: f.__name__.lstrip("_"))
def source(request, tmp_path: Path) -> SampleSource:
    factory: Callable[[Path], SampleSource] = request.param
    src = factory(tmp_path)
    yield src
    src.close()


class TestSourceContract:
    def test_samples_in_order(self, source: SampleSource):
        samples = list(source)
        assert all(isinstance(s, Sample) for s in samples)
        assert [s.index for s in samples] == list(range(40))
        assert [s.timestamp for s in samples] == [2 * i for i in range(40)]
        assert [s.value for s in samples] == SAMPLES[CHANNEL].tolist()
        assert source.samples_read == 40

    def test_end_of_stream_repeats(self, source: SampleSource):
        for _ in source:
            pass
        assert source.exhausted
        for _ in range(3):
            assert source.read_sample() is EndOfStream

    def test_close_is_idempotent(self, source: SampleSource):
        source.read_sample()
        source.close()
        source.close()
        assert source.closed
        assert source.read_sample() is EndOfStream
        assert list(source.iter_blocks()) == []

    def test_mixed_access_shares_position(self, source: SampleSource):
        head = [source.read_sample().value for _ in range(3)]
        rest = np.concatenate([values for _, values in source.iter_blocks()])
        assert head + rest.tolist() == SAMPLES[CHANNEL].tolist()

    def test_state_transitions(self, source: SampleSource):
        assert source.state == "idle"
        source.read_sample()
        assert source.state == "open"
        list(source)
        assert source.state == "exhausted"
        source.close()
        assert source.state == "closed"
