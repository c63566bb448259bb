from datetime import datetime, timezone

import pytest


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_progress.db")
    return db_path


@pytest.fixture
def noon():
    """Local noon on 2025-01-02, expressed in UTC.

    Streaks and daily counts use the local calendar date, so the fixture is
    anchored to local time to keep those dates stable in every timezone.
    """
    return datetime(2025, 1, 2, 12, 0).astimezone().astimezone(timezone.utc)
