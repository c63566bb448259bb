"""SQLite persistence for the progress store."""
import logging
import sqlite3
from datetime import date, datetime
from pathlib import Path

from flashdeck.models import DeckProgress, GlobalStats, ProgressStore, StudySettings
from flashdeck.sm2 import CardScheduleState

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = str(Path.home() / ".flashdeck" / "progress.db")

SCHEMA = """
CREATE TABLE IF NOT EXISTS card_states (
    deck TEXT NOT NULL,
    card_id TEXT NOT NULL,
    ease_factor REAL NOT NULL DEFAULT 2.5,
    interval INTEGER NOT NULL DEFAULT 0,
    repetitions INTEGER NOT NULL DEFAULT 0,
    next_review_at TEXT,
    PRIMARY KEY (deck, card_id)
);

CREATE TABLE IF NOT EXISTS deck_progress (
    deck TEXT PRIMARY KEY,
    studied INTEGER NOT NULL DEFAULT 0,
    mastered INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS user_stats (
    id INTEGER PRIMARY KEY CHECK (id = 1),
    total_studied INTEGER NOT NULL DEFAULT 0,
    current_streak INTEGER NOT NULL DEFAULT 0,
    last_study_date TEXT,
    today_studied INTEGER NOT NULL DEFAULT 0,
    total_time_seconds INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS user_settings (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    key TEXT NOT NULL UNIQUE,
    value TEXT
);
"""

_SETTING_KEYS = ("new_cards_per_day", "review_cards_per_day")


class ProgressSaveError(Exception):
    """Raised when the progress store could not be written. Safe to retry."""


def get_connection(db_path: str = DEFAULT_DB_PATH) -> sqlite3.Connection:
    """Return a SQLite connection with row factory enabled."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn


def init_db(db_path: str = DEFAULT_DB_PATH) -> None:
    """Initialize the database, creating all tables if they don't exist."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = get_connection(db_path)
    conn.executescript(SCHEMA)
    conn.commit()
    conn.close()


def get_setting(conn: sqlite3.Connection, key: str, default: str = None) -> str | None:
    row = conn.execute("SELECT value FROM user_settings WHERE key = ?", (key,)).fetchone()
    return row["value"] if row else default


def set_setting(conn: sqlite3.Connection, key: str, value: str) -> None:
    conn.execute(
        "INSERT INTO user_settings (key, value) VALUES (?, ?) ON CONFLICT(key) DO UPDATE SET value=?",
        (key, value, value),
    )


def _read_store(conn: sqlite3.Connection) -> ProgressStore:
    store = ProgressStore()
    for row in conn.execute("SELECT * FROM card_states"):
        next_review = row["next_review_at"]
        store.cards.setdefault(row["deck"], {})[row["card_id"]] = CardScheduleState(
            ease_factor=row["ease_factor"],
            interval=row["interval"],
            repetitions=row["repetitions"],
            next_review_at=datetime.fromisoformat(next_review) if next_review else None,
        )
    for row in conn.execute("SELECT * FROM deck_progress"):
        store.decks[row["deck"]] = DeckProgress(studied=row["studied"], mastered=row["mastered"])

    row = conn.execute("SELECT * FROM user_stats WHERE id = 1").fetchone()
    if row:
        store.stats = GlobalStats(
            total_studied=row["total_studied"],
            current_streak=row["current_streak"],
            last_study_date=date.fromisoformat(row["last_study_date"]) if row["last_study_date"] else None,
            today_studied=row["today_studied"],
            total_time_seconds=row["total_time_seconds"],
        )

    settings = StudySettings()
    for key in _SETTING_KEYS:
        value = get_setting(conn, key)
        if value is not None:
            setattr(settings, key, int(value))
    store.settings = settings
    return store


def load_progress(db_path: str = DEFAULT_DB_PATH) -> ProgressStore:
    """Load the progress store. An unreadable database yields an empty store."""
    try:
        init_db(db_path)
        conn = get_connection(db_path)
        try:
            return _read_store(conn)
        finally:
            conn.close()
    except (sqlite3.Error, OSError, ValueError, TypeError) as e:
        logger.warning("Could not load progress from %s, starting fresh: %s", db_path, e)
        return ProgressStore()


def save_progress(db_path: str, store: ProgressStore) -> None:
    """Write the whole store in a single transaction."""
    stats = store.stats
    try:
        init_db(db_path)
        conn = get_connection(db_path)
        try:
            with conn:
                conn.execute("DELETE FROM card_states")
                conn.executemany(
                    """INSERT INTO card_states
                    (deck, card_id, ease_factor, interval, repetitions, next_review_at)
                    VALUES (?, ?, ?, ?, ?, ?)""",
                    [
                        (
                            deck, card_id, s.ease_factor, s.interval, s.repetitions,
                            s.next_review_at.isoformat() if s.next_review_at else None,
                        )
                        for deck, states in store.cards.items()
                        for card_id, s in states.items()
                    ],
                )
                conn.execute("DELETE FROM deck_progress")
                conn.executemany(
                    "INSERT INTO deck_progress (deck, studied, mastered) VALUES (?, ?, ?)",
                    [(deck, p.studied, p.mastered) for deck, p in store.decks.items()],
                )
                conn.execute(
                    """INSERT OR REPLACE INTO user_stats
                    (id, total_studied, current_streak, last_study_date, today_studied, total_time_seconds)
                    VALUES (1, ?, ?, ?, ?, ?)""",
                    (
                        stats.total_studied, stats.current_streak,
                        stats.last_study_date.isoformat() if stats.last_study_date else None,
                        stats.today_studied, stats.total_time_seconds,
                    ),
                )
                for key in _SETTING_KEYS:
                    set_setting(conn, key, str(getattr(store.settings, key)))
        finally:
            conn.close()
    except (sqlite3.Error, OSError) as e:
        raise ProgressSaveError(f"Could not save progress to {db_path}: {e}") from e


def reset_progress(db_path: str = DEFAULT_DB_PATH) -> None:
    """Delete all card states, deck progress and stats. Settings are kept."""
    init_db(db_path)
    conn = get_connection(db_path)
    conn.execute("DELETE FROM card_states")
    conn.execute("DELETE FROM deck_progress")
    conn.execute("DELETE FROM user_stats")
    conn.commit()
    conn.close()
    logger.info("Progress reset in %s", db_path)
