"""Due-set selection and priority ordering for quiz sessions."""
import logging
import random
from datetime import datetime

from vocab_trainer.models import Card

logger = logging.getLogger(__name__)

DUE = "due"
NEW = "new"
REVIEW = "review"
RANDOM = "random"

MODES = (DUE, NEW, REVIEW, RANDOM)

# Due buckets, most urgent first
_OVERDUE, _DUE_TODAY, _NOT_DUE = 0, 1, 2


def _priority_key(card: Card, now: datetime):
    next_review = card.schedule.next_review
    if next_review is None:
        # Never scheduled: after every timestamped card
        return (_NOT_DUE, 1, 0.0, card.schedule.ease_factor, card.id)
    if next_review.date() < now.date():
        bucket = _OVERDUE
    elif next_review.date() == now.date():
        bucket = _DUE_TODAY
    else:
        bucket = _NOT_DUE
    overdue_seconds = (now - next_review).total_seconds()
    return (bucket, 0, -overdue_seconds, card.schedule.ease_factor, card.id)


def order_by_priority(cards: list[Card], now: datetime) -> list[Card]:
    """Order cards most urgent first.

    Overdue cards come before cards due today, which come before cards that
    are not due yet. Within a bucket the most overdue card leads; ties go to
    the lower ease factor, then to the lower id.
    """
    return sorted(cards, key=lambda card: _priority_key(card, now))


def is_due(card: Card, now: datetime) -> bool:
    next_review = card.schedule.next_review
    return next_review is not None and next_review <= now


def filter_by_mode(cards: list[Card], mode: str, now: datetime) -> list[Card]:
    if mode == DUE:
        return [c for c in cards if is_due(c, now)]
    if mode == NEW:
        return [c for c in cards if c.schedule.repetitions == 0]
    if mode == REVIEW:
        return [c for c in cards if c.schedule.repetitions > 0]
    if mode == RANDOM:
        return list(cards)
    raise ValueError(f"Unknown session mode: {mode!r} (expected one of {', '.join(MODES)})")


def select_session(
    cards: list[Card],
    mode: str,
    now: datetime,
    limit: int | None = None,
    rng: random.Random | None = None,
) -> list[Card]:
    """Pick and order the cards for one quiz session.

    Args:
        cards: The full card collection, in insertion order
        mode: One of "due", "new", "review", "random"
        now: Reference time for due-ness
        limit: Maximum session size, None for no cap
        rng: Random source for the "random" mode

    Returns:
        The ordered session cards. An empty list is a valid result.
    """
    if limit is not None and limit < 0:
        raise ValueError(f"Session limit must not be negative, got {limit}")

    selected = filter_by_mode(cards, mode, now)
    if mode in (DUE, REVIEW):
        selected = order_by_priority(selected, now)
    elif mode == RANDOM:
        (rng or random.Random()).shuffle(selected)

    if limit is not None:
        selected = selected[:limit]
    logger.debug("Selected %d of %d cards for %s session", len(selected), len(cards), mode)
    return selected


def count_by_mode(cards: list[Card], now: datetime) -> dict[str, int]:
    """Size of each mode's pool before truncation."""
    return {mode: len(filter_by_mode(cards, mode, now)) for mode in MODES}
