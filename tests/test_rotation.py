"""Tests for strike and bowler rotation."""

import pytest

from cricket_scorer.engine.rotation import bowler_eligible, fill, next_strike, should_swap, vacate


@pytest.mark.parametrize("runs,over_completed,swapped", [
    (0, False, False),
    (1, False, True),
    (2, False, False),
    (3, False, True),
    (4, False, False),
    (0, True, True),
    (1, True, False),
    (2, True, True),
    (3, True, False),
])
def test_should_swap(runs, over_completed, swapped):
    assert should_swap(runs, over_completed) is swapped


def test_next_strike_is_deterministic():
    assert next_strike(1, 2, 1, False) == (2, 1)
    assert next_strike(1, 2, 1, False) == next_strike(1, 2, 1, False)
    assert next_strike(1, 2, 1, True) == (1, 2)


def test_vacate_and_fill():
    pair = (7, 8)
    assert vacate(pair, 7) == "striker"
    assert vacate(pair, 8) == "non_striker"
    assert fill(pair, "striker", 9) == (9, 8)
    assert fill(pair, "non_striker", 9) == (7, 9)


def test_vacate_unknown_player():
    with pytest.raises(ValueError):
        vacate((7, 8), 10)


def test_bowler_eligible():
    assert bowler_eligible(None, 5)
    assert bowler_eligible(4, 5)
    assert not bowler_eligible(5, 5)
