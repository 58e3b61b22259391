from __future__ import annotations

from dataclasses import dataclass
from itertools import zip_longest
from typing import Iterable, Optional, Tuple

from shared.models import Transition


@dataclass(frozen=True)
class ComparisonResult:
    """Outcome of comparing two transition sequences on (is_on, timestamp)."""

    equal: bool
    compared: int
    lhs_count: int
    rhs_count: int
    first_mismatch: Optional[int] = None
    lhs_item: Optional[Transition] = None
    rhs_item: Optional[Transition] = None

    def describe(self) -> str:
        if self.equal:
            return f"Values equal ({self.compared} transitions)"
        return (
            f"Mismatch at position {self.first_mismatch}: "
            f"{_fmt(self.lhs_item)} != {_fmt(self.rhs_item)} "
            f"(lhs={self.lhs_count}, rhs={self.rhs_count})"
        )


def _fmt(item: Optional[Transition]) -> str:
    if item is None:
        return "<missing>"
    return f"({'on' if item.is_on else 'off'}, {item.timestamp})"


def compare_transitions(lhs: Iterable[Transition], rhs: Iterable[Transition]) -> ComparisonResult:
    """Element-wise comparison; a length difference counts as a mismatch."""
    lhs_count = 0
    rhs_count = 0
    mismatch: Optional[Tuple[int, Optional[Transition], Optional[Transition]]] = None
    for position, (a, b) in enumerate(zip_longest(lhs, rhs)):
        if a is not None:
            lhs_count += 1
        if b is not None:
            rhs_count += 1
        if mismatch is not None:
            continue
        if a is None or b is None or a.key != b.key:
            mismatch = (position, a, b)

    if mismatch is None:
        return ComparisonResult(equal=True, compared=lhs_count, lhs_count=lhs_count, rhs_count=rhs_count)
    position, a, b = mismatch
    return ComparisonResult(
        equal=False,
        compared=position,
        lhs_count=lhs_count,
        rhs_count=rhs_count,
        first_mismatch=position,
        lhs_item=a,
        rhs_item=b,
    )


__all__ = ["ComparisonResult", "compare_transitions"]
