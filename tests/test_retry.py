"""Tests for bounded polling."""
import pytest

from lxcctl.core.retry import poll


def test_returns_on_first_success():
    sleeps = []

    result = poll(lambda: True, attempts=10, interval=0.5, sleep=sleeps.append)

    assert result.ok and result.attempts == 1
    assert sleeps == []


def test_counts_attempts_until_success():
    answers = iter([False, False, True])
    sleeps = []

    result = poll(lambda: next(answers), attempts=10, interval=0.1, sleep=sleeps.append)

    assert bool(result) is True
    assert result.attempts == 3
    assert sleeps == [0.1, 0.1]


def test_exhausting_attempts_is_not_an_error():
    sleeps = []

    result = poll(lambda: False, attempts=4, interval=0.1, sleep=sleeps.append)

    assert not result
    assert result.attempts == 4
    assert len(sleeps) == 3


def test_at_least_one_attempt():
    result = poll(lambda: True, attempts=0, interval=0.1, sleep=lambda s: None)
    assert result.ok


def test_condition_errors_propagate():
    def broken():
        raise RuntimeError("inspector exploded")

    with pytest.raises(RuntimeError):
        poll(broken, attempts=5, interval=0.1, sleep=lambda s: None)
