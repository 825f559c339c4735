import pytest

from vocab_trainer.db import init_db
from vocab_trainer.models import Card, Schedule


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_vocab.db")
    return db_path


@pytest.fixture
def ready_db(tmp_db):
    """A temporary database with all tables created."""
    init_db(tmp_db)
    return tmp_db


class FakeStore:
    """In-memory CardStore that records persist calls."""

    def __init__(self, cards=None, result=True, error=None):
        self.cards = list(cards or [])
        self.result = result
        self.error = error
        self.calls = []

    def load_all(self):
        return list(self.cards)

    def persist(self, card_id, schedule):
        self.calls.append((card_id, schedule))
        if self.error is not None:
            raise self.error
        return self.result


def make_test_card(card_id, next_review=None, ease_factor=2.5, repetitions=0, interval=1):
    return Card(
        id=card_id,
        front=f"front-{card_id}",
        back=f"back-{card_id}",
        schedule=Schedule(
            ease_factor=ease_factor,
            interval=interval,
            repetitions=repetitions,
            next_review=next_review,
        ),
    )
