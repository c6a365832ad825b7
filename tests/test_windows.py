import pytest

from parkwise.errors import CrossDayWindow, InvalidWindow, PastWindow
from parkwise.windows import Window, overlaps, validate_window
from tests.helpers import NOW, at, window


def test_partial_overlap_is_detected():
    assert overlaps([window(10, 12)], window(11, 13))
    assert overlaps([window(11, 13)], window(10, 12))


def test_equal_starts_overlap():
    assert overlaps([window(10, 11)], window(10, 14))


def test_containment_overlaps_both_ways():
    # the old start-or-end containment check missed the outer case
    assert overlaps([window(11, 12)], window(10, 14))
    assert overlaps([window(10, 14)], window(11, 12))


def test_touching_windows_do_not_overlap():
    assert not overlaps([window(10, 12)], window(12, 14))
    assert not overlaps([window(12, 14)], window(10, 12))


def test_no_existing_windows():
    assert not overlaps([], window(10, 12))


def test_any_of_several_existing():
    existing = [window(8, 9), window(13, 15), window(18, 20)]
    assert overlaps(existing, window(14, 16))
    assert not overlaps(existing, window(9, 13))


def test_contains_is_half_open():
    w = window(10, 12)
    assert w.contains(at(10))
    assert w.contains(at(11, 59))
    assert not w.contains(at(12))


def test_validate_accepts_future_same_day_window():
    validate_window(window(10, 12), NOW)


def test_validate_rejects_reversed_or_empty_window():
    with pytest.raises(InvalidWindow):
        validate_window(window(12, 10), NOW)
    with pytest.raises(InvalidWindow):
        validate_window(window(12, 12), NOW)


def test_validate_rejects_cross_day_window():
    with pytest.raises(CrossDayWindow) as excinfo:
        validate_window(Window(at(22), at(1, days=1)), NOW)
    assert "start" in excinfo.value.details


def test_validate_rejects_past_start():
    with pytest.raises(PastWindow):
        validate_window(window(7, 9), NOW)


def test_window_starting_now_is_allowed():
    validate_window(Window(NOW, at(9)), NOW)
