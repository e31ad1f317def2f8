import pytest

from hand_rom.utils import mean_of_last, mean_of_top, round2


def test_mean_of_last():
    assert mean_of_last([]) == 0.0
    assert mean_of_last([1, 2, 3, 4, 5, 6], window=3) == pytest.approx(5.0)
    assert mean_of_last([4, 6], window=5) == pytest.approx(5.0)


def test_mean_of_top():
    assert mean_of_top([]) == 0.0
    assert mean_of_top([5, 1, 9, 7]) == pytest.approx(7.0)
    assert mean_of_top([5, 1, 9, 7], count=1) == pytest.approx(9.0)


def test_round2():
    assert round2(12.3456) == 12.35
    assert isinstance(round2(3), float)
