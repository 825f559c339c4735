"""Card import from JSON, YAML and CSV files, and the bundled starter deck."""
import csv
import json
import logging
from datetime import datetime
from pathlib import Path

import yaml

from vocab_trainer.db import get_connection
from vocab_trainer.models import Card, Schedule, make_card
from vocab_trainer.sm2 import MAX_QUALITY, MIN_QUALITY
from vocab_trainer.store import add_cards

logger = logging.getLogger(__name__)

CONTENT_DIR = Path(__file__).parent / "content"
STARTER_DECK = CONTENT_DIR / "starter_cards.json"

# Alternative key names accepted for the two card sides
FRONT_KEYS = ("front", "it", "source")
BACK_KEYS = ("back", "de", "target")


def _first(entry: dict, keys: tuple) -> str:
    for key in keys:
        if entry.get(key):
            return str(entry[key])
    return ""


def _parse_time(value) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, (int, float)):
        # Epoch milliseconds
        return datetime.fromtimestamp(value / 1000)
    parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is not None:
        # Stored times are naive local time
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def parse_schedule(data: dict | None) -> Schedule:
    """Read an embedded schedule, accepting camelCase or snake_case keys."""
    if not data:
        return Schedule()
    if not isinstance(data, dict):
        raise ValueError(f"schedule must be a mapping, got {type(data).__name__}")

    def pick(*keys, default=None):
        for key in keys:
            if data.get(key) is not None:
                return data[key]
        return default

    interval = int(pick("interval", default=1))
    repetitions = int(pick("repetitions", default=0))
    last_review = _parse_time(pick("last_review", "lastReview"))
    next_review = _parse_time(pick("next_review", "nextReview"))
    last_quality = pick("last_quality", "lastQuality", "quality")
    if last_quality is not None:
        last_quality = int(last_quality)

    if interval < 1:
        raise ValueError(f"interval must be at least 1 day, got {interval}")
    if repetitions < 0:
        raise ValueError(f"repetitions cannot be negative, got {repetitions}")
    if last_quality is not None and not MIN_QUALITY <= last_quality <= MAX_QUALITY:
        raise ValueError(f"quality must be between {MIN_QUALITY} and {MAX_QUALITY}, got {last_quality}")
    if last_review and next_review and next_review < last_review:
        raise ValueError("next review is earlier than the last review")

    return Schedule(
        ease_factor=max(1.3, float(pick("ease_factor", "easeFactor", default=2.5))),
        interval=interval,
        repetitions=repetitions,
        last_review=last_review,
        next_review=next_review,
        last_quality=last_quality,
    )


def entry_to_card(entry: dict) -> Card:
    if not isinstance(entry, dict):
        raise ValueError(f"expected a mapping, got {type(entry).__name__}")
    tags = entry.get("tags") or []
    if isinstance(tags, str):
        tags = tags.split(";")
    return make_card(
        _first(entry, FRONT_KEYS),
        _first(entry, BACK_KEYS),
        tags=tags,
        notes=entry.get("notes") or "",
        schedule=parse_schedule(entry.get("sm2") or entry.get("schedule")),
    )


def read_cards_file(file_path: str) -> list[dict]:
    """Read raw card entries from a .json, .yaml/.yml or .csv file."""
    path = Path(file_path)
    suffix = path.suffix.lower()

    if suffix == ".csv":
        with path.open(newline="", encoding="utf-8") as fh:
            return list(csv.DictReader(fh))
    if suffix == ".json":
        data = json.loads(path.read_text(encoding="utf-8"))
    elif suffix in (".yaml", ".yml"):
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    else:
        raise ValueError(f"Unsupported card file type: {suffix or path.name}")

    if isinstance(data, dict):
        data = data.get("cards")
    if not isinstance(data, list):
        raise ValueError(f"{path.name}: expected a list of cards or a 'cards' list")
    return data


def import_cards(db_path: str, file_path: str) -> dict:
    """Import cards from a file, skipping invalid entries and duplicates."""
    entries = read_cards_file(file_path)
    cards = []
    invalid = 0
    for entry in entries:
        try:
            cards.append(entry_to_card(entry))
        except (ValueError, TypeError) as e:
            invalid += 1
            logger.warning("Skipping card entry %r: %s", entry, e)
    added, duplicates = add_cards(db_path, cards)
    logger.info("Imported %d cards from %s", len(added), file_path)
    return {
        "filename": Path(file_path).name,
        "imported": len(added),
        "skipped": duplicates + invalid,
    }


def is_seeded(db_path: str) -> bool:
    """Check whether the collection already has cards."""
    conn = get_connection(db_path)
    count = conn.execute("SELECT COUNT(*) FROM cards").fetchone()[0]
    conn.close()
    return count > 0


def seed_starter_cards(db_path: str) -> int:
    """Load the bundled starter deck into an empty collection."""
    if is_seeded(db_path):
        return 0
    result = import_cards(db_path, str(STARTER_DECK))
    return result["imported"]
