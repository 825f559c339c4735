"""Data classes for cards, schedules and quiz session bookkeeping."""
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

SOURCE_TO_TARGET = "source-to-target"
TARGET_TO_SOURCE = "target-to-source"
RANDOM_DIRECTION = "random"

DIRECTIONS = (SOURCE_TO_TARGET, TARGET_TO_SOURCE)
DIRECTION_MODES = DIRECTIONS + (RANDOM_DIRECTION,)

DEFAULT_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3


@dataclass
class Schedule:
    ease_factor: float = DEFAULT_EASE_FACTOR
    interval: int = 1
    repetitions: int = 0
    last_review: Optional[datetime] = None
    next_review: Optional[datetime] = None
    last_quality: Optional[int] = None

    @property
    def is_new(self) -> bool:
        return self.next_review is None


@dataclass
class Card:
    id: str
    front: str
    back: str
    tags: list[str] = field(default_factory=list)
    notes: str = ""
    schedule: Schedule = field(default_factory=Schedule)

    def sides(self, direction: str) -> tuple[str, str]:
        """Return (prompt, answer) for the given review direction."""
        if direction == SOURCE_TO_TARGET:
            return self.front, self.back
        if direction == TARGET_TO_SOURCE:
            return self.back, self.front
        raise ValueError(f"Unknown review direction: {direction!r}")


def new_card_id() -> str:
    return f"custom-{uuid.uuid4().hex}"


def clean_tags(tags) -> list[str]:
    """Trim labels, drop empties and repeats while keeping first-seen order."""
    cleaned = []
    for tag in tags or ():
        tag = str(tag).strip()
        if tag and tag not in cleaned:
            cleaned.append(tag)
    return cleaned


def make_card(front: str, back: str, tags=(), notes: str = "", card_id: str | None = None,
              schedule: Schedule | None = None) -> Card:
    """Build a validated card with trimmed text and a default schedule."""
    front = (front or "").strip()
    back = (back or "").strip()
    if not front:
        raise ValueError("Card front is required")
    if not back:
        raise ValueError("Card back is required")
    return Card(
        id=card_id or new_card_id(),
        front=front,
        back=back,
        tags=clean_tags(tags),
        notes=(notes or "").strip(),
        schedule=schedule or Schedule(),
    )


@dataclass
class SessionResult:
    card: Card
    quality: int
    direction: str = SOURCE_TO_TARGET

    @property
    def is_correct(self) -> bool:
        return self.quality >= 3


@dataclass
class SessionStats:
    correct: int = 0
    total: int = 0
    streak: int = 0
    max_streak: int = 0

    def record(self, quality: int) -> None:
        self.total += 1
        if quality >= 3:
            self.correct += 1
            self.streak += 1
        else:
            self.streak = 0
        self.max_streak = max(self.max_streak, self.streak)

    @property
    def accuracy(self) -> float:
        """Percentage of correct answers, rounded to one decimal."""
        if self.total == 0:
            return 0.0
        return round((self.correct / self.total) * 100, 1)
