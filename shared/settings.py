from __future__ import annotations

import json
import logging
import math
from dataclasses import asdict, dataclass, replace
from pathlib import Path
from typing import Any, Mapping, Union

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_FRAMES = 10_000
MICROSECONDS_PER_SECOND = 1_000_000


@dataclass(frozen=True)
class ExtractionSettings:
    """Sampling parameters of the device that produced a recording.

    There are no defaults for the channel layout or timing: they must match
    the recording. `time_per_sample` is in whatever unit the caller wants the
    timestamps in (microseconds when built with `from_sample_rate`).
    """

    channel_index: int
    n_channels: int
    time_per_sample: float
    chunk_frames: int = DEFAULT_CHUNK_FRAMES
    detector: str = "edge"

    def __post_init__(self) -> None:
        if self.n_channels < 1:
            raise ValueError("n_channels must be at least 1")
        if not 0 <= self.channel_index < self.n_channels:
            raise ValueError(
                f"channel_index {self.channel_index} out of range for {self.n_channels} channels"
            )
        if not math.isfinite(self.time_per_sample) or self.time_per_sample <= 0:
            raise ValueError("time_per_sample must be positive and finite")
        if self.chunk_frames < 1:
            raise ValueError("chunk_frames must be at least 1")
        if not self.detector:
            raise ValueError("detector must be a non-empty string")

    @classmethod
    def from_sample_rate(
        cls,
        sample_rate_hz: float,
        *,
        channel_index: int,
        n_channels: int,
        **kwargs: Any,
    ) -> "ExtractionSettings":
        """Build settings with microsecond timestamps for `sample_rate_hz`."""
        if sample_rate_hz <= 0:
            raise ValueError("sample_rate_hz must be positive")
        return cls(
            channel_index=channel_index,
            n_channels=n_channels,
            time_per_sample=MICROSECONDS_PER_SECOND / float(sample_rate_hz),
            **kwargs,
        )

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "ExtractionSettings":
        if not isinstance(payload, Mapping):
            raise TypeError("settings payload must be a mapping")
        data = dict(payload)
        sample_rate = data.pop("sample_rate_hz", None)
        try:
            if sample_rate is not None and "time_per_sample" not in data:
                return cls.from_sample_rate(
                    float(sample_rate),
                    channel_index=int(data.pop("channel_index")),
                    n_channels=int(data.pop("n_channels")),
                    **data,
                )
            return cls(
                channel_index=int(data["channel_index"]),
                n_channels=int(data["n_channels"]),
                time_per_sample=float(data["time_per_sample"]),
                chunk_frames=int(data.get("chunk_frames", DEFAULT_CHUNK_FRAMES)),
                detector=str(data.get("detector", "edge")),
            )
        except KeyError as exc:
            raise ValueError(f"settings payload is missing {exc.args[0]!r}") from exc

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def with_updates(self, **kwargs: Any) -> "ExtractionSettings":
        return replace(self, **kwargs)


def load_extraction_settings(path: Union[str, Path]) -> ExtractionSettings:
    """Read settings from a JSON file."""
    path = Path(path)
    data = json.loads(path.read_text())
    settings = ExtractionSettings.from_mapping(data)
    logger.debug("Loaded extraction settings from %s: %s", path, settings)
    return settings


def save_extraction_settings(settings: ExtractionSettings, path: Union[str, Path]) -> Path:
    path = Path(path)
    if path.suffix.lower() != ".json":
        path = path.with_suffix(".json")
    path.write_text(json.dumps(settings.to_dict(), indent=2))
    logger.debug("Saved extraction settings to %s", path)
    return path


__all__ = [
    "DEFAULT_CHUNK_FRAMES",
    "MICROSECONDS_PER_SECOND",
    "ExtractionSettings",
    "load_extraction_settings",
    "save_extraction_settings",
]
