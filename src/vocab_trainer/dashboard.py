"""Progress statistics for the collection and the review history."""
from datetime import datetime

from vocab_trainer.db import get_connection
from vocab_trainer.store import get_collection_stats


# (minimum score, label, colour), highest band first
RETENTION_BANDS = [
    (85, "STRONG", "green"),
    (70, "STEADY", "yellow"),
    (50, "SHAKY", "dark_orange"),
    (0, "WEAK", "red"),
]


def _retention_band(score: float) -> tuple:
    for minimum, label, color in RETENTION_BANDS:
        if score >= minimum:
            return label, color
    return RETENTION_BANDS[-1][1:]


def get_retention_label(score: float) -> str:
    return _retention_band(score)[0]


def get_retention_color(score: float) -> str:
    return _retention_band(score)[1]


def get_retention(db_path: str) -> float:
    """Share of logged reviews rated 3 or better, as a percentage."""
    conn = get_connection(db_path)
    row = conn.execute(
        "SELECT COUNT(*) as t, SUM(CASE WHEN quality >= 3 THEN 1 ELSE 0 END) as c FROM review_log"
    ).fetchone()
    conn.close()
    if not row["t"]:
        return 0.0
    return round((row["c"] / row["t"]) * 100, 1)


def get_quality_counts(db_path: str) -> dict[int, int]:
    """How often each quality 1-5 was given."""
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT quality, COUNT(*) as n FROM review_log GROUP BY quality"
    ).fetchall()
    conn.close()
    counts = {q: 0 for q in range(1, 6)}
    for r in rows:
        counts[r["quality"]] = r["n"]
    return counts


def get_study_stats(db_path: str, now: datetime) -> dict:
    stats = get_collection_stats(db_path, now)
    conn = get_connection(db_path)
    reviews = conn.execute("SELECT COUNT(*) FROM review_log").fetchone()[0]
    reviews_today = conn.execute(
        "SELECT COUNT(*) FROM review_log WHERE reviewed_at >= ?",
        (now.replace(hour=0, minute=0, second=0, microsecond=0).isoformat(),),
    ).fetchone()[0]
    conn.close()
    stats.update({
        "reviews": reviews,
        "reviews_today": reviews_today,
        "retention": get_retention(db_path),
    })
    return stats
