"""SQLite card store: loading, scheduling writes and card management."""
import json
import logging
from datetime import datetime
from typing import Protocol

from vocab_trainer.db import get_connection
from vocab_trainer.errors import CardNotFound, DuplicateCard
from vocab_trainer.models import Card, Schedule, make_card

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("front", "back", "tags", "notes")


class CardStore(Protocol):
    """What a quiz session needs from durable storage."""

    def load_all(self) -> list[Card]:
        ...

    def persist(self, card_id: str, schedule: Schedule) -> bool:
        ...


def _to_iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _from_iso(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def row_to_card(row) -> Card:
    return Card(
        id=row["id"],
        front=row["front"],
        back=row["back"],
        tags=json.loads(row["tags"] or "[]"),
        notes=row["notes"] or "",
        schedule=Schedule(
            ease_factor=row["ease_factor"],
            interval=row["interval"],
            repetitions=row["repetitions"],
            last_review=_from_iso(row["last_review"]),
            next_review=_from_iso(row["next_review"]),
            last_quality=row["last_quality"],
        ),
    )


def _insert_card(conn, card: Card) -> None:
    s = card.schedule
    conn.execute(
        """INSERT INTO cards (id, front, back, tags, notes, ease_factor, interval, repetitions,
            last_review, next_review, last_quality)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        (card.id, card.front, card.back, json.dumps(card.tags), card.notes,
         s.ease_factor, s.interval, s.repetitions,
         _to_iso(s.last_review), _to_iso(s.next_review), s.last_quality),
    )


def _is_duplicate(conn, front: str, back: str, exclude_id: str | None = None) -> bool:
    row = conn.execute(
        "SELECT 1 FROM cards WHERE (front = ? OR back = ?) AND id IS NOT ? LIMIT 1",
        (front, back, exclude_id),
    ).fetchone()
    return row is not None


def load_cards(db_path: str) -> list[Card]:
    """All cards in insertion order."""
    conn = get_connection(db_path)
    rows = conn.execute("SELECT * FROM cards ORDER BY seq").fetchall()
    conn.close()
    return [row_to_card(r) for r in rows]


def get_card(db_path: str, card_id: str) -> Card:
    conn = get_connection(db_path)
    row = conn.execute("SELECT * FROM cards WHERE id = ?", (card_id,)).fetchone()
    conn.close()
    if row is None:
        raise CardNotFound(card_id)
    return row_to_card(row)


def persist_schedule(db_path: str, card_id: str, schedule: Schedule) -> bool:
    """Write a card's schedule and log the rating. False if the card is gone."""
    conn = get_connection(db_path)
    cursor = conn.execute(
        """UPDATE cards SET ease_factor=?, interval=?, repetitions=?, last_review=?,
            next_review=?, last_quality=?
        WHERE id=?""",
        (schedule.ease_factor, schedule.interval, schedule.repetitions,
         _to_iso(schedule.last_review), _to_iso(schedule.next_review),
         schedule.last_quality, card_id),
    )
    if cursor.rowcount == 0:
        conn.close()
        logger.warning("No card with id %s to persist", card_id)
        return False
    if schedule.last_quality is not None:
        conn.execute(
            "INSERT INTO review_log (card_id, quality, reviewed_at) VALUES (?, ?, ?)",
            (card_id, schedule.last_quality, _to_iso(schedule.last_review)),
        )
    conn.commit()
    conn.close()
    return True


def check_duplicate(db_path: str, front: str, back: str, exclude_id: str | None = None) -> bool:
    """True when another card already has this front or this back."""
    conn = get_connection(db_path)
    found = _is_duplicate(conn, front.strip(), back.strip(), exclude_id)
    conn.close()
    return found


def add_card(db_path: str, front: str, back: str, tags=(), notes: str = "") -> Card:
    card = make_card(front, back, tags=tags, notes=notes)
    conn = get_connection(db_path)
    if _is_duplicate(conn, card.front, card.back):
        conn.close()
        raise DuplicateCard(f"A card with front {card.front!r} or back {card.back!r} already exists")
    _insert_card(conn, card)
    conn.commit()
    conn.close()
    logger.info("Added card %s", card.id)
    return card


def add_cards(db_path: str, cards: list[Card]) -> tuple[list[Card], int]:
    """Insert a batch in one transaction. Returns (added, skipped duplicates)."""
    added = []
    skipped = 0
    conn = get_connection(db_path)
    for card in cards:
        if _is_duplicate(conn, card.front, card.back):
            skipped += 1
            continue
        _insert_card(conn, card)
        added.append(card)
    conn.commit()
    conn.close()
    logger.info("Added %d cards, skipped %d duplicates", len(added), skipped)
    return added, skipped


def update_card(db_path: str, card_id: str, **fields) -> Card:
    """Edit front, back, tags or notes of a card."""
    unknown = set(fields) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValueError(f"Cannot edit fields: {', '.join(sorted(unknown))}")
    current = get_card(db_path, card_id)
    edited = make_card(
        fields.get("front", current.front),
        fields.get("back", current.back),
        tags=fields.get("tags", current.tags),
        notes=fields.get("notes", current.notes),
        card_id=card_id,
        schedule=current.schedule,
    )
    conn = get_connection(db_path)
    if _is_duplicate(conn, edited.front, edited.back, exclude_id=card_id):
        conn.close()
        raise DuplicateCard(f"Another card already uses {edited.front!r} or {edited.back!r}")
    conn.execute(
        "UPDATE cards SET front=?, back=?, tags=?, notes=? WHERE id=?",
        (edited.front, edited.back, json.dumps(edited.tags), edited.notes, card_id),
    )
    conn.commit()
    conn.close()
    return edited


def delete_card(db_path: str, card_id: str) -> None:
    conn = get_connection(db_path)
    deleted = conn.execute("DELETE FROM cards WHERE id = ?", (card_id,)).rowcount
    conn.commit()
    conn.close()
    if deleted == 0:
        raise CardNotFound(card_id)
    logger.info("Deleted card %s", card_id)


def get_collection_stats(db_path: str, now: datetime) -> dict:
    """Totals for the collection overview."""
    conn = get_connection(db_path)
    row = conn.execute(
        """SELECT COUNT(*) as total,
            SUM(CASE WHEN repetitions > 0 THEN 1 ELSE 0 END) as learned,
            SUM(CASE WHEN next_review IS NOT NULL AND next_review <= ? THEN 1 ELSE 0 END) as to_review
        FROM cards""",
        (now.isoformat(),),
    ).fetchone()
    conn.close()
    total = row["total"]
    learned = row["learned"] or 0
    return {
        "total": total,
        "learned": learned,
        "to_review": row["to_review"] or 0,
        "available": total - learned,
    }


class SqliteCardStore:
    """CardStore backed by the trainer's SQLite database."""

    def __init__(self, db_path: str):
        self.db_path = db_path

    def load_all(self) -> list[Card]:
        return load_cards(self.db_path)

    def persist(self, card_id: str, schedule: Schedule) -> bool:
        return persist_schedule(self.db_path, card_id, schedule)
