"""SM-2 spaced repetition algorithm."""
from dataclasses import replace
from datetime import datetime, timedelta

from vocab_trainer.errors import InvalidQuality
from vocab_trainer.models import MIN_EASE_FACTOR, Schedule

MIN_QUALITY = 1
MAX_QUALITY = 5
PASSING_QUALITY = 3


def validate_quality(quality) -> int:
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise InvalidQuality(quality)
    if not MIN_QUALITY <= quality <= MAX_QUALITY:
        raise InvalidQuality(quality)
    return quality


def next_ease_factor(ease_factor: float, quality: int) -> float:
    new_ef = ease_factor + (0.1 - (5 - quality) * (0.08 + (5 - quality) * 0.02))
    return round(max(MIN_EASE_FACTOR, new_ef), 2)


def apply_sm2_update(schedule: Schedule, quality: int, now: datetime) -> Schedule:
    """Calculate the next schedule for a card using SM-2.

    Args:
        schedule: Current schedule of the card (left untouched)
        quality: Rating 1-5 (1=complete failure, 5=perfect recall)
        now: Time of the review

    Returns:
        A new Schedule with updated interval, repetitions, ease factor and
        review timestamps.

    Raises:
        InvalidQuality: quality is not an integer from 1 to 5.
    """
    quality = validate_quality(quality)

    if quality >= PASSING_QUALITY:
        repetitions = schedule.repetitions + 1
        if repetitions == 1:
            interval = 1
        elif repetitions == 2:
            interval = 6
        else:
            interval = round(schedule.interval * schedule.ease_factor)
    else:
        # Lapse: quality 1 and 2 share this branch, there is no blackout reset
        repetitions = 0
        interval = 1

    return replace(
        schedule,
        ease_factor=next_ease_factor(schedule.ease_factor, quality),
        interval=interval,
        repetitions=repetitions,
        last_review=now,
        next_review=now + timedelta(days=interval),
        last_quality=quality,
    )
