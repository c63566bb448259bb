# tests/test_dashboard.py
from datetime import date

from flashdeck.dashboard import (
    get_deck_overview, get_mastery_color, get_mastery_label, get_study_stats,
)
from flashdeck.models import Card, Deck, SessionSummary
from flashdeck.progress import apply_rating, fold_session, new_progress_store
from flashdeck.sm2 import CardScheduleState, Rating


def _deck(name, n):
    return Deck(name=name, icon="*", cards=[Card(id=str(i), deck=name, prompt="Q", answer="A") for i in range(n)])


def test_mastery_label():
    assert get_mastery_label(85) == "MASTERED"
    assert get_mastery_label(60) == "SOLID"
    assert get_mastery_label(25) == "LEARNING"
    assert get_mastery_label(0) == "STARTING"


def test_mastery_color():
    assert get_mastery_color(100) == "green"
    assert get_mastery_color(10) == "red"


def test_deck_overview_empty_store():
    overview = get_deck_overview(new_progress_store(), [_deck("JS", 4), _deck("Empty", 0)])
    assert overview[0] == {
        "name": "JS", "icon": "*", "total": 4, "studied": 0,
        "mastered": 0, "percent": 0, "label": "STARTING",
    }
    assert overview[1]["percent"] == 0


def test_deck_overview_with_mastered_cards(noon):
    store = new_progress_store()
    store.cards["JS"] = {
        "0": CardScheduleState(ease_factor=2.5, interval=15, repetitions=3),
        "1": CardScheduleState(ease_factor=2.5, interval=6, repetitions=2),
    }
    apply_rating(store, "JS", "1", Rating.GOOD, now=noon)
    overview = get_deck_overview(store, [_deck("JS", 3)])[0]
    assert overview["mastered"] == 2
    assert overview["percent"] == 67
    assert overview["label"] == "SOLID"


def test_study_stats(noon):
    store = new_progress_store()
    apply_rating(store, "JS", "0", Rating.GOOD, now=noon)
    apply_rating(store, "JS", "1", Rating.AGAIN, now=noon)
    fold_session(store, SessionSummary(deck="JS", studied=2, correct=1, accuracy=50, duration_seconds=150))
    stats = get_study_stats(store, date(2025, 1, 2))
    assert stats == {
        "total_studied": 2,
        "mastered": 0,
        "current_streak": 1,
        "today": 2,
        "study_minutes": 2,
    }
    assert get_study_stats(store, date(2025, 1, 3))["today"] == 0
