"""User settings stored in the database."""
import logging
from dataclasses import dataclass

from vocab_trainer.db import get_connection
from vocab_trainer.models import DIRECTION_MODES, SOURCE_TO_TARGET

logger = logging.getLogger(__name__)

DEFAULT_WORDS_PER_QUIZ = 20


@dataclass
class QuizSettings:
    words_per_quiz: int = DEFAULT_WORDS_PER_QUIZ
    direction: str = SOURCE_TO_TARGET


def get_setting(db_path: str, key: str, default: str | None = None) -> str | None:
    conn = get_connection(db_path)
    row = conn.execute("SELECT value FROM user_settings WHERE key = ?", (key,)).fetchone()
    conn.close()
    return row["value"] if row else default


def set_setting(db_path: str, key: str, value: str) -> None:
    conn = get_connection(db_path)
    conn.execute(
        "INSERT INTO user_settings (key, value) VALUES (?, ?) ON CONFLICT(key) DO UPDATE SET value=?",
        (key, value, value),
    )
    conn.commit()
    conn.close()


def load_quiz_settings(db_path: str) -> QuizSettings:
    settings = QuizSettings()
    raw_words = get_setting(db_path, "words_per_quiz")
    if raw_words is not None:
        try:
            words = int(raw_words)
        except ValueError:
            words = 0
        if words > 0:
            settings.words_per_quiz = words
        else:
            logger.warning("Ignoring invalid words_per_quiz setting %r", raw_words)
    direction = get_setting(db_path, "direction")
    if direction is not None:
        if direction in DIRECTION_MODES:
            settings.direction = direction
        else:
            logger.warning("Ignoring invalid direction setting %r", direction)
    return settings


def save_quiz_settings(db_path: str, settings: QuizSettings) -> None:
    if settings.words_per_quiz < 1:
        raise ValueError("words_per_quiz must be at least 1")
    if settings.direction not in DIRECTION_MODES:
        raise ValueError(f"Unknown direction mode: {settings.direction!r}")
    set_setting(db_path, "words_per_quiz", str(settings.words_per_quiz))
    set_setting(db_path, "direction", settings.direction)
