from core.compare import compare_transitions
from shared.models import Transition


def _t(is_on, ts, frame=0):
    return Transition(is_on=is_on, timestamp=ts, frame_number=frame)


def test_equal_sequences_ignore_frame_numbers():
    lhs = [_t(True, 10, 2), _t(False, 40, 5)]
    rhs = iter([_t(True, 10, 99), _t(False, 40, 100)])
    result = compare_transitions(lhs, rhs)
    assert result.equal
    assert result.compared == 2
    assert result.describe() == "Values equal (2 transitions)"


def test_first_mismatch_is_reported():
    lhs = [_t(True, 10), _t(False, 40), _t(True, 70)]
    rhs = [_t(True, 10), _t(False, 41), _t(True, 70)]
    result = compare_transitions(lhs, rhs)
    assert not result.equal
    assert result.first_mismatch == 1
    assert result.lhs_item.timestamp == 40
    assert result.rhs_item.timestamp == 41
    assert result.describe() == "Mismatch at position 1: (off, 40) != (off, 41) (lhs=3, rhs=3)"


def test_length_difference_is_a_mismatch():
    lhs = [_t(True, 10)]
    rhs = [_t(True, 10), _t(False, 20)]
    result = compare_transitions(lhs, rhs)
    assert not result.equal
    assert result.first_mismatch == 1
    assert result.lhs_item is None
    assert (result.lhs_count, result.rhs_count) == (1, 2)
    assert "<missing>" in result.describe()


def test_empty_sequences_are_equal():
    assert compare_transitions([], []).equal
