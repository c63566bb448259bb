"""Progress dashboard figures per deck and overall."""
from datetime import date

from flashdeck.models import Deck, ProgressStore
from flashdeck.progress import deck_mastered_count, get_deck_progress, today_count, total_mastered


def get_mastery_label(percent: float) -> str:
    if percent >= 80:
        return "MASTERED"
    elif percent >= 50:
        return "SOLID"
    elif percent >= 20:
        return "LEARNING"
    return "STARTING"


def get_mastery_color(percent: float) -> str:
    if percent >= 80:
        return "green"
    elif percent >= 50:
        return "yellow"
    elif percent >= 20:
        return "dark_orange"
    return "red"


def get_deck_overview(store: ProgressStore, decks: list[Deck]) -> list[dict]:
    results = []
    for deck in decks:
        total = len(deck.cards)
        mastered = deck_mastered_count(store, deck.name)
        percent = round(mastered / total * 100) if total else 0
        results.append({
            "name": deck.name,
            "icon": deck.icon,
            "total": total,
            "studied": get_deck_progress(store, deck.name).studied,
            "mastered": mastered,
            "percent": percent,
            "label": get_mastery_label(percent),
        })
    return results


def get_study_stats(store: ProgressStore, today: date) -> dict:
    stats = store.stats
    return {
        "total_studied": stats.total_studied,
        "mastered": total_mastered(store),
        "current_streak": stats.current_streak,
        "today": today_count(store, today),
        "study_minutes": round(stats.total_time_seconds / 60),
    }
