"""Runtime configuration loaded from environment variables."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from flashdeck.db import DEFAULT_DB_PATH
from flashdeck.decks import CONTENT_DIR

DEFAULT_LOG_LEVEL = "WARNING"


@dataclass(frozen=True)
class AppSettings:
    """Where progress lives, where decks come from, how chatty logging is."""

    db_path: str
    decks_dir: str
    log_level: str

    @classmethod
    def from_env(cls) -> AppSettings:
        db_path = os.getenv("FLASHDECK_DB") or DEFAULT_DB_PATH
        decks_dir = os.getenv("FLASHDECK_DECKS") or str(CONTENT_DIR)
        log_level = os.getenv("FLASHDECK_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()

        if not isinstance(logging.getLevelName(log_level), int):
            raise RuntimeError(f"FLASHDECK_LOG_LEVEL must be a logging level name, got {log_level!r}.")

        return cls(
            db_path=os.path.expanduser(db_path),
            decks_dir=os.path.expanduser(decks_dir),
            log_level=log_level,
        )
