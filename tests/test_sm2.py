# tests/test_sm2.py
from datetime import datetime, timedelta

import pytest

from vocab_trainer.errors import InvalidQuality
from vocab_trainer.models import Schedule
from vocab_trainer.sm2 import apply_sm2_update, next_ease_factor

NOW = datetime(2026, 3, 10, 12, 0)


def test_sm2_first_review_correct():
    """First correct answer: interval=1, repetitions=1, ease unchanged at quality 4."""
    result = apply_sm2_update(Schedule(), quality=4, now=NOW)
    assert result.repetitions == 1
    assert result.interval == 1
    assert result.ease_factor == 2.5


def test_sm2_second_review_correct():
    """Second correct answer: interval=6."""
    result = apply_sm2_update(Schedule(repetitions=1, interval=1), quality=4, now=NOW)
    assert result.interval == 6
    assert result.repetitions == 2


def test_sm2_third_review_correct():
    """Third+ correct: interval = old_interval * old ease_factor."""
    result = apply_sm2_update(Schedule(repetitions=2, interval=6), quality=4, now=NOW)
    assert result.interval == 15  # round(6 * 2.5)
    assert result.repetitions == 3


def test_sm2_uses_previous_ease_for_interval():
    result = apply_sm2_update(Schedule(repetitions=2, interval=6, ease_factor=2.6), quality=5, now=NOW)
    assert result.interval == 16  # round(6 * 2.6), not 6 * 2.7
    assert result.ease_factor == 2.7


def test_sm2_incorrect_resets():
    """Quality < 3 resets repetitions and interval."""
    result = apply_sm2_update(Schedule(repetitions=5, interval=30), quality=2, now=NOW)
    assert result.repetitions == 0
    assert result.interval == 1


def test_sm2_golden_ease_factors():
    expected = {5: 2.6, 4: 2.5, 3: 2.36, 2: 2.18, 1: 1.96}
    for quality, ease in expected.items():
        assert apply_sm2_update(Schedule(), quality, NOW).ease_factor == ease


def test_sm2_quality_one_golden():
    result = apply_sm2_update(Schedule(), quality=1, now=NOW)
    assert result.repetitions == 0
    assert result.interval == 1
    assert result.ease_factor == 1.96
    assert result.last_quality == 1


def test_sm2_ease_factor_minimum():
    """Ease factor never drops below 1.3, even after repeated failures."""
    schedule = Schedule()
    eases = []
    for _ in range(4):
        schedule = apply_sm2_update(schedule, quality=1, now=NOW)
        eases.append(schedule.ease_factor)
    assert eases == [1.96, 1.42, 1.3, 1.3]


def test_sm2_ease_factor_has_no_ceiling():
    assert next_ease_factor(4.0, 5) == 4.1


def test_sm2_sets_review_timestamps():
    result = apply_sm2_update(Schedule(repetitions=1, interval=1), quality=3, now=NOW)
    assert result.last_review == NOW
    assert result.next_review == NOW + timedelta(days=6)
    assert result.last_quality == 3
    assert result.next_review >= result.last_review


def test_sm2_is_pure():
    schedule = Schedule(repetitions=2, interval=6)
    first = apply_sm2_update(schedule, quality=4, now=NOW)
    second = apply_sm2_update(schedule, quality=4, now=NOW)
    assert first == second
    assert schedule == Schedule(repetitions=2, interval=6)


# --- Edge case tests ---


@pytest.mark.parametrize("quality", [0, 6, -1, 3.5, "4", None, True])
def test_sm2_rejects_invalid_quality(quality):
    with pytest.raises(InvalidQuality):
        apply_sm2_update(Schedule(), quality=quality, now=NOW)


def test_invalid_quality_is_value_error():
    with pytest.raises(ValueError):
        apply_sm2_update(Schedule(), quality=0, now=NOW)


def test_sm2_lapse_after_long_streak_keeps_reduced_ease():
    schedule = Schedule(repetitions=6, interval=120, ease_factor=2.8)
    result = apply_sm2_update(schedule, quality=2, now=NOW)
    assert result.interval == 1
    assert result.next_review == NOW + timedelta(days=1)
    assert result.ease_factor == 2.48
