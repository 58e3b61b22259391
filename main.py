"""Command-line entry point: print the transitions found in a DAT recording.

Examples::

    python main.py NlxCSG.dat --channels 64 --sample-rate 32000
    python main.py NlxCSG.dat --channels 64 --channel 3 --time-per-sample 31.25 --limit 20
    python main.py NlxCSG.dat --config vtsync.json --compare
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional, Sequence

from core.compare import compare_transitions
from core.detection import DETECTOR_REGISTRY
from core.extractor import TransitionExtractor
from shared.settings import (
    DEFAULT_CHUNK_FRAMES,
    MICROSECONDS_PER_SECOND,
    ExtractionSettings,
    load_extraction_settings,
)

logger = logging.getLogger("vtsync")


def _non_negative_int(text: str) -> int:
    value = int(text)
    if value < 0:
        raise argparse.ArgumentTypeError(f"must be >= 0, got {value}")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Extract on/off sync transitions from an interleaved int16 DAT recording.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__.split("Examples::", 1)[-1],
    )
    parser.add_argument("path", type=Path, help="Recording to read")
    parser.add_argument("-c", "--config", type=Path, default=None,
                        help="JSON file with channel_index, n_channels and time_per_sample or sample_rate_hz")
    parser.add_argument("-n", "--channels", dest="n_channels", type=int, default=None,
                        help="Number of interleaved channels in the recording")
    parser.add_argument("-i", "--channel", dest="channel_index", type=int, default=None,
                        help="0-based channel carrying the sync waveform (default: 0)")
    timing = parser.add_mutually_exclusive_group()
    timing.add_argument("-r", "--sample-rate", type=float, default=None,
                        help="Sample rate in Hz; timestamps are reported in microseconds")
    timing.add_argument("-t", "--time-per-sample", type=float, default=None,
                        help="Duration of one sample in the timestamp unit")
    parser.add_argument("--chunk-frames", type=int, default=None,
                        help=f"Frames per read (default: {DEFAULT_CHUNK_FRAMES})")
    parser.add_argument("--detector", choices=sorted(DETECTOR_REGISTRY), default=None)
    parser.add_argument("--limit", type=_non_negative_int, default=None,
                        help="Print at most this many transitions")
    parser.add_argument("--compare", action="store_true",
                        help="Time the eager and the streaming forms and check they agree. Both "
                             "share one detection path, so this is a timing run, not a cross-check "
                             "of two implementations")
    parser.add_argument("-v", "--verbose", action="count", default=0)
    return parser


def resolve_settings(args: argparse.Namespace) -> ExtractionSettings:
    """Merge a config file (if any) with command-line overrides."""
    if args.config is not None:
        settings = load_extraction_settings(args.config)
        overrides = {}
        if args.n_channels is not None:
            overrides["n_channels"] = args.n_channels
        if args.channel_index is not None:
            overrides["channel_index"] = args.channel_index
        if args.sample_rate is not None:
            if args.sample_rate <= 0:
                raise ValueError("sample_rate_hz must be positive")
            overrides["time_per_sample"] = MICROSECONDS_PER_SECOND / args.sample_rate
        if args.time_per_sample is not None:
            overrides["time_per_sample"] = args.time_per_sample
        if args.chunk_frames is not None:
            overrides["chunk_frames"] = args.chunk_frames
        if args.detector is not None:
            overrides["detector"] = args.detector
        return settings.with_updates(**overrides) if overrides else settings

    if args.n_channels is None:
        raise ValueError("--channels is required without --config")
    extra = {}
    if args.chunk_frames is not None:
        extra["chunk_frames"] = args.chunk_frames
    if args.detector is not None:
        extra["detector"] = args.detector
    channel_index = args.channel_index if args.channel_index is not None else 0
    if args.sample_rate is not None:
        return ExtractionSettings.from_sample_rate(
            args.sample_rate, channel_index=channel_index, n_channels=args.n_channels, **extra
        )
    if args.time_per_sample is None:
        raise ValueError("one of --sample-rate or --time-per-sample is required")
    return ExtractionSettings(
        channel_index=channel_index,
        n_channels=args.n_channels,
        time_per_sample=args.time_per_sample,
        **extra,
    )


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def run_compare(extractor: TransitionExtractor) -> int:
    start = time.perf_counter()
    eager = extractor.extract()
    eager_s = time.perf_counter() - start

    start = time.perf_counter()
    streamed: List = []
    for transition in extractor:
        streamed.append(transition)
    streamed_s = time.perf_counter() - start

    result = compare_transitions(eager, streamed)
    logger.info("Eager pass: %d transitions in %.3f s", len(eager), eager_s)
    logger.info("Streaming pass: %d transitions in %.3f s", len(streamed), streamed_s)
    print(result.describe() if result.equal else f"NOPE: {result.describe()}")
    return 0 if result.equal else 1


def run_extract(extractor: TransitionExtractor, limit: Optional[int]) -> int:
    start = time.perf_counter()
    count = 0
    for transition in extractor:
        if limit is None or count < limit:
            print(f"{'on ' if transition.is_on else 'off'} {transition.timestamp} frame={transition.frame_number}")
        count += 1
    elapsed = time.perf_counter() - start
    logger.info("Found %d transitions in %.3f s", count, elapsed)
    if limit is not None and count > limit:
        print(f"... {count - limit} more")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    # The extractor treats a missing file as empty; surface it here instead.
    if not args.path.is_file():
        print(f"error: recording not found: {args.path}", file=sys.stderr)
        return 2

    try:
        settings = resolve_settings(args)
    except (OSError, ValueError, TypeError) as exc:
        parser.error(str(exc))

    extractor = TransitionExtractor.from_settings(args.path, settings)
    logger.info(
        "Reading %s: channel %d of %d, %.6g per sample",
        args.path,
        settings.channel_index,
        settings.n_channels,
        settings.time_per_sample,
    )
    if args.compare:
        return run_compare(extractor)
    return run_extract(extractor, args.limit)


if __name__ == "__main__":
    raise SystemExit(main())
