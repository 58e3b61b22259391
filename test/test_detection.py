import pytest

from core.detection import (
    DETECTOR_REGISTRY,
    EdgeDetector,
    create_detector,
    get_detector_class,
    is_inflection,
    is_peak_confirmed,
)
from shared.models import Sample


def _samples(values, tps=1.0):
    return [Sample(index=i, timestamp=int(i * tps), value=v) for i, v in enumerate(values)]


def _keys(transitions):
    return [t.key for t in transitions]


@pytest.mark.parametrize(
    "prev, nxt, expected",
    [
        (-3, 4, True),
        (0, 1, True),
        (5, -1, True),
        (0, -1, True),
        (0, 0, False),
        (2, 0, False),
        (-2, 0, False),
        (3, 7, False),
        (-3, -7, False),
    ],
)
def test_is_inflection_treats_zero_as_both_sides(prev, nxt, expected):
    a, b = _samples([prev, nxt])
    assert is_inflection(a, b) is expected


@pytest.mark.parametrize(
    "prev, nxt, expected",
    [
        (5, 3, True),
        (5, 5, False),
        (5, 6, False),
        (-4, 2, True),
        (-4, -4, False),
        (-4, -5, False),
        (0, -1, False),
        (0, 1, False),
    ],
)
def test_is_peak_confirmed(prev, nxt, expected):
    a, b = _samples([prev, nxt])
    assert is_peak_confirmed(a, b) is expected


def test_single_channel_sanity_sequence():
    detector = EdgeDetector()
    transitions = list(detector.process(_samples([0, 5, 3, -1, -4, 2])))

    assert _keys(transitions) == [(True, 1), (False, 4)]
    # frame_number records the confirming sample
    assert [t.frame_number for t in transitions] == [2, 5]
    assert detector.emitted == 2
    assert not detector.pending


def test_first_sample_only_seeds_the_detector():
    detector = EdgeDetector()
    first, = _samples([-5])
    assert detector.step(first) is None
    assert not detector.pending


def test_timestamp_is_the_peak_not_the_inflection():
    # Inflection at 1 -> 2, plateau climbing until index 4, retreat at 5.
    transitions = list(EdgeDetector().process(_samples([-1, -1, 1, 2, 9, 8], tps=10.0)))
    assert _keys(transitions) == [(True, 40)]


def test_plateau_ripple_emits_once_per_half_cycle():
    # Ripple on each plateau never crosses zero, so it cannot re-arm the detector.
    values = [-5, 4, 9, 7, 8, 6, 9, 5, -3, -8, -6, -9, -7, 2]
    detector = EdgeDetector()
    transitions = list(detector.process(_samples(values)))
    assert _keys(transitions) == [(True, 2), (False, 9)]
    # The final rise is still waiting for its peak.
    assert detector.pending


def test_polarity_alternation_is_not_guaranteed():
    # A crossing that immediately retreats confirms an early "peak"; the next
    # crossing back up then yields a second on-edge in a row.
    values = [-10, 3, -2, 4, 8, 12, 11, 10, -3, -9, -12, -4]
    transitions = list(EdgeDetector().process(_samples(values)))
    assert _keys(transitions) == [(True, 1), (True, 5), (False, 10)]


def test_pending_half_cycle_is_not_emitted_at_end():
    detector = EdgeDetector()
    transitions = list(detector.process(_samples([-3, 2, 5, 9])))
    assert transitions == []
    assert detector.pending
    assert detector.finalize() == []


@pytest.mark.parametrize(
    "values, expected",
    [
        # 5 -> 0 is not a crossing; 0 -> 3 is, with zero on the low side.
        ([5, 0, 3, 2], [(True, 2)]),
        # and on the high side when the signal goes negative.
        ([-5, 0, -3, -1], [(False, 2)]),
        # a run of zeros does not arm the detector by itself.
        ([0, 0, 0, 0], []),
    ],
)
def test_zero_samples(values, expected):
    transitions = list(EdgeDetector().process(_samples(values)))
    assert _keys(transitions) == expected


def test_reset_restores_initial_phase():
    detector = EdgeDetector()
    list(detector.process(_samples([-3, 2, 5])))
    assert detector.pending

    detector.reset()
    assert not detector.pending
    assert detector.emitted == 0
    assert list(detector.process(_samples([0, 5, 3]))) != []


def test_channel_is_recorded_on_transitions():
    detector = EdgeDetector(channel=7)
    transitions = list(detector.process(_samples([0, 5, 3])))
    assert transitions[0].channel == 7
    assert transitions[0].source == "DAT"


def test_registry_contains_edge_detector():
    assert DETECTOR_REGISTRY["edge"] is EdgeDetector
    assert isinstance(create_detector("edge", channel=1), EdgeDetector)
    with pytest.raises(KeyError):
        create_detector("does-not-exist")


def test_get_detector_class_does_not_instantiate():
    assert get_detector_class("edge") is EdgeDetector
    with pytest.raises(KeyError, match="available: .*edge"):
        get_detector_class("does-not-exist")
