# tests/test_importer.py
import json
from datetime import datetime

import pytest

from vocab_trainer.importer import (
    STARTER_DECK, entry_to_card, import_cards, is_seeded, parse_schedule, read_cards_file,
    seed_starter_cards,
)
from vocab_trainer.store import load_cards


def test_read_json_cards_document(tmp_path):
    f = tmp_path / "deck.json"
    f.write_text(json.dumps({"meta": {"version": 1}, "cards": [{"it": "ciao", "de": "hallo"}]}))
    assert read_cards_file(str(f)) == [{"it": "ciao", "de": "hallo"}]


def test_read_json_bare_list(tmp_path):
    f = tmp_path / "deck.json"
    f.write_text(json.dumps([{"front": "uno", "back": "eins"}]))
    assert read_cards_file(str(f))[0]["front"] == "uno"


def test_read_yaml_file(tmp_path):
    f = tmp_path / "deck.yaml"
    f.write_text("cards:\n  - front: il sole\n    back: die Sonne\n    tags: [nature]\n")
    entries = read_cards_file(str(f))
    assert entries == [{"front": "il sole", "back": "die Sonne", "tags": ["nature"]}]


def test_read_csv_file(tmp_path):
    f = tmp_path / "deck.csv"
    f.write_text("front,back,tags,notes\nla luna,der Mond,nature;sky,feminine\n", encoding="utf-8")
    card = entry_to_card(read_cards_file(str(f))[0])
    assert card.front == "la luna"
    assert card.tags == ["nature", "sky"]
    assert card.notes == "feminine"


def test_read_unsupported_file(tmp_path):
    f = tmp_path / "deck.pdf"
    f.write_text("nope")
    with pytest.raises(ValueError):
        read_cards_file(str(f))


def test_read_json_without_cards(tmp_path):
    f = tmp_path / "deck.json"
    f.write_text(json.dumps({"meta": {}}))
    with pytest.raises(ValueError):
        read_cards_file(str(f))


def test_parse_schedule_camel_case():
    schedule = parse_schedule({
        "easeFactor": 2.2, "interval": 6, "repetitions": 2,
        "lastReview": "2026-03-01T09:30:00", "nextReview": "2026-03-07T09:30:00", "quality": 4,
    })
    assert schedule.ease_factor == 2.2
    assert schedule.interval == 6
    assert schedule.repetitions == 2
    assert schedule.last_review == datetime(2026, 3, 1, 9, 30)
    assert schedule.next_review == datetime(2026, 3, 7, 9, 30)
    assert schedule.last_quality == 4


def test_parse_schedule_clamps_ease_and_defaults():
    schedule = parse_schedule({"easeFactor": 0.9, "nextReview": None})
    assert schedule.ease_factor == 1.3
    assert schedule.next_review is None
    assert parse_schedule(None).repetitions == 0


def test_import_cards(tmp_path, ready_db):
    f = tmp_path / "deck.json"
    f.write_text(json.dumps({"cards": [
        {"it": "il mare", "de": "das Meer", "tags": ["nature"]},
        {"it": "il fiume", "de": "der Fluss", "sm2": {"repetitions": 1, "interval": 1,
                                                    "nextReview": "2026-03-02T08:00:00"}},
        {"it": "", "de": "leer"},
        {"it": "il mare", "de": "die See"},
    ]}))
    result = import_cards(ready_db, str(f))
    assert result == {"filename": "deck.json", "imported": 2, "skipped": 2}
    cards = load_cards(ready_db)
    assert [c.front for c in cards] == ["il mare", "il fiume"]
    assert cards[1].schedule.repetitions == 1


def test_seed_starter_cards_is_idempotent(ready_db):
    assert not is_seeded(ready_db)
    added = seed_starter_cards(ready_db)
    assert added > 0
    assert is_seeded(ready_db)
    assert seed_starter_cards(ready_db) == 0
    assert len(load_cards(ready_db)) == added


def test_starter_deck_is_bundled():
    assert STARTER_DECK.exists()
    entries = read_cards_file(str(STARTER_DECK))
    assert all(entry_to_card(e).schedule.is_new for e in entries)


@pytest.mark.parametrize("data", [
    {"interval": 0, "repetitions": 2},
    {"interval": -3},
    {"repetitions": -1},
    {"quality": 9},
    {"lastQuality": 0},
    {"lastReview": "2026-03-09T10:00:00", "nextReview": "2026-03-01T10:00:00"},
    "2026-03-01",
])
def test_parse_schedule_rejects_broken_schedules(data):
    with pytest.raises(ValueError):
        parse_schedule(data)


def test_parse_schedule_accepts_same_day_next_review():
    schedule = parse_schedule({
        "interval": 1, "repetitions": 1, "lastQuality": 5,
        "lastReview": "2026-03-01T10:00:00", "nextReview": "2026-03-01T10:00:00",
    })
    assert schedule.next_review == schedule.last_review
    assert schedule.last_quality == 5


def test_entry_to_card_rejects_non_mapping():
    with pytest.raises(ValueError):
        entry_to_card("stray")
    with pytest.raises(ValueError):
        entry_to_card(["ciao", "hallo"])


def test_import_skips_non_mapping_entries(tmp_path, ready_db):
    f = tmp_path / "deck.json"
    f.write_text(json.dumps({"cards": [{"it": "ciao", "de": "hallo"}, "stray", 42, None]}))
    result = import_cards(ready_db, str(f))
    assert result == {"filename": "deck.json", "imported": 1, "skipped": 3}
    assert [c.front for c in load_cards(ready_db)] == ["ciao"]


def test_import_yaml_with_scalar_items(tmp_path, ready_db):
    f = tmp_path / "deck.yaml"
    f.write_text("- front: il sole\n  back: die Sonne\n- just a word\n")
    result = import_cards(ready_db, str(f))
    assert result["imported"] == 1
    assert result["skipped"] == 1


def test_import_skips_cards_with_broken_schedule(tmp_path, ready_db):
    f = tmp_path / "deck.json"
    f.write_text(json.dumps({"cards": [
        {"it": "il mare", "de": "das Meer", "sm2": {"interval": 0, "repetitions": 2}},
        {"it": "il fiume", "de": "der Fluss", "sm2": {"repetitions": -1}},
        {"it": "il lago", "de": "der See", "sm2": {"lastReview": "2026-03-09T00:00:00",
                                                  "nextReview": "2026-03-01T00:00:00",
                                                  "lastQuality": 9}},
        {"it": "il monte", "de": "der Berg", "sm2": {"interval": 6, "repetitions": 2}},
    ]}))
    result = import_cards(ready_db, str(f))
    assert result["imported"] == 1
    assert result["skipped"] == 3
    cards = load_cards(ready_db)
    assert [c.front for c in cards] == ["il monte"]
    assert cards[0].schedule.interval == 6
