from __future__ import annotations

import logging
from typing import Iterable, Iterator, List, Optional

from shared.models import Sample, Transition
from .base import register_detector

logger = logging.getLogger(__name__)


def is_inflection(prev: Sample, nxt: Sample) -> bool:
    """True when the pair crosses or touches zero. Zero counts as both signs."""
    low_to_high = prev.value <= 0 and nxt.value > 0
    high_to_low = prev.value >= 0 and nxt.value < 0
    return low_to_high or high_to_low


def is_peak_confirmed(prev: Sample, nxt: Sample) -> bool:
    """True when the signal has started retreating from `prev`."""
    return (prev.value > 0 and prev.value > nxt.value) or (prev.value < 0 and prev.value < nxt.value)


@register_detector
class EdgeDetector:
    """
    Two-phase sign-edge detector for quasi-square sync channels.

    Phase 1 waits for an inflection (a sign change between consecutive
    samples). Phase 2 waits for the first sample that retreats from the
    running extreme on the new side; the sample before it is the peak, and
    a Transition is emitted with the peak's timestamp. The detector then
    returns to phase 1. Noise wobbling around zero inside a half-cycle
    therefore yields at most one Transition.

    Only the previous sample and one phase flag are kept, so memory is
    constant. A half-cycle still waiting for its peak when the stream ends
    produces nothing.
    """

    name = "edge"
    display_name = "Sign Edge (Inflection + Peak)"

    def __init__(self, channel: int = 0, source: str = "DAT") -> None:
        self._channel = int(channel)
        self._source = source
        self._prev: Optional[Sample] = None
        self._found_inflection: bool = False
        self._emitted: int = 0

    @property
    def pending(self) -> bool:
        """True while an inflection is waiting for its peak."""
        return self._found_inflection

    @property
    def emitted(self) -> int:
        return self._emitted

    def reset(self) -> None:
        self._prev = None
        self._found_inflection = False
        self._emitted = 0

    def step(self, sample: Sample) -> Optional[Transition]:
        prev = self._prev
        self._prev = sample
        if prev is None:
            return None

        if not self._found_inflection:
            self._found_inflection = is_inflection(prev, sample)
            return None

        if not is_peak_confirmed(prev, sample):
            return None

        self._found_inflection = False
        self._emitted += 1
        return Transition(
            is_on=prev.value > 0,
            timestamp=prev.timestamp,
            frame_number=sample.index,
            channel=self._channel,
            source=self._source,
        )

    def process(self, samples: Iterable[Sample]) -> Iterator[Transition]:
        for sample in samples:
            transition = self.step(sample)
            if transition is not None:
                yield transition

    def finalize(self) -> List[Transition]:
        if self._found_inflection:
            logger.debug("Stream ended with an unconfirmed half-cycle after %s", self._prev)
        return []
