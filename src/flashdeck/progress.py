"""Card repository: schedule state per card, deck progress and global stats."""
import json
import logging
from dataclasses import asdict, replace
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Optional

from flashdeck.models import (
    Deck, DeckProgress, GlobalStats, ProgressStore, SessionSummary, StudySettings,
)
from flashdeck.session import mastered_count, update_streak
from flashdeck.sm2 import CardScheduleState, Rating, is_due, new_card_state, rate

logger = logging.getLogger(__name__)

SESSION_MODES = ("due", "all")


def new_progress_store() -> ProgressStore:
    return ProgressStore()


def get_card_state(store: ProgressStore, deck: str, card_id: str) -> CardScheduleState:
    """Return the stored state, or a fresh one for a card never rated."""
    return store.cards.get(deck, {}).get(card_id) or new_card_state()


def get_deck_progress(store: ProgressStore, deck: str) -> DeckProgress:
    return store.decks.get(deck) or DeckProgress()


def deck_mastered_count(store: ProgressStore, deck: str) -> int:
    return mastered_count(store.cards.get(deck, {}).values())


def total_mastered(store: ProgressStore) -> int:
    return sum(mastered_count(states.values()) for states in store.cards.values())


def today_count(store: ProgressStore, today: date) -> int:
    if store.stats.last_study_date == today:
        return store.stats.today_studied
    return 0


def apply_rating(
    store: ProgressStore,
    deck: str,
    card_id: str,
    rating: Rating,
    now: Optional[datetime] = None,
) -> CardScheduleState:
    """Rate one card and fold the result into the store.

    The schedule state is created on first rating. Deck progress, totals
    and the streak are refreshed in the same step.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    updated = rate(get_card_state(store, deck, card_id), rating, now=now)

    deck_states = store.cards.setdefault(deck, {})
    deck_states[card_id] = updated

    previous = get_deck_progress(store, deck)
    store.decks[deck] = DeckProgress(
        studied=max(previous.studied, len(deck_states)),
        mastered=mastered_count(deck_states.values()),
    )

    today = now.astimezone().date()
    stats = store.stats
    today_studied = stats.today_studied if stats.last_study_date == today else 0
    stats = replace(
        stats,
        total_studied=stats.total_studied + 1,
        today_studied=today_studied + 1,
    )
    store.stats = update_streak(stats, today)
    logger.debug("Rated %s/%s as %s: %s", deck, card_id, Rating.parse(rating).value, updated)
    return updated


def clear_progress(store: ProgressStore) -> ProgressStore:
    """Forget every card state and stat, keeping the study settings."""
    store.cards.clear()
    store.decks.clear()
    store.stats = GlobalStats()
    return store


def fold_session(store: ProgressStore, summary: SessionSummary) -> ProgressStore:
    store.stats = replace(
        store.stats,
        total_time_seconds=store.stats.total_time_seconds + summary.duration_seconds,
    )
    return store


def select_session_cards(
    store: ProgressStore,
    deck: Deck,
    now: Optional[datetime] = None,
    mode: str = "due",
) -> list:
    """Pick the cards for a session.

    ``due`` mode yields overdue reviews (oldest first) followed by unseen
    cards, each capped by the study settings. ``all`` yields the whole deck.
    """
    if mode not in SESSION_MODES:
        raise ValueError(f"Unknown session mode: {mode!r}")
    if mode == "all":
        return list(deck.cards)
    if now is None:
        now = datetime.now(timezone.utc)

    states = store.cards.get(deck.name, {})
    reviews = []
    new_cards = []
    for card in deck.cards:
        state = states.get(card.id)
        if state is None:
            new_cards.append(card)
        elif is_due(state, now):
            reviews.append((state.next_review_at, card))
    reviews.sort(key=lambda item: item[0])

    settings = store.settings
    selected = [card for _, card in reviews[:settings.review_cards_per_day]]
    selected.extend(new_cards[:settings.new_cards_per_day])
    return selected


def _state_to_dict(state: CardScheduleState) -> dict:
    return {
        "ease_factor": state.ease_factor,
        "interval": state.interval,
        "repetitions": state.repetitions,
        "next_review_at": state.next_review_at.isoformat() if state.next_review_at else None,
    }


def _state_from_dict(data: dict) -> CardScheduleState:
    next_review = data.get("next_review_at")
    return CardScheduleState(
        ease_factor=float(data["ease_factor"]),
        interval=int(data["interval"]),
        repetitions=int(data["repetitions"]),
        next_review_at=datetime.fromisoformat(next_review) if next_review else None,
    )


def store_to_dict(store: ProgressStore) -> dict:
    stats = asdict(store.stats)
    if store.stats.last_study_date:
        stats["last_study_date"] = store.stats.last_study_date.isoformat()
    return {
        "cards": {
            deck: {card_id: _state_to_dict(state) for card_id, state in states.items()}
            for deck, states in store.cards.items()
        },
        "decks": {deck: asdict(progress) for deck, progress in store.decks.items()},
        "stats": stats,
        "settings": asdict(store.settings),
    }


def store_from_dict(data: dict) -> ProgressStore:
    stats = dict(data.get("stats", {}))
    if stats.get("last_study_date"):
        stats["last_study_date"] = date.fromisoformat(stats["last_study_date"])
    return ProgressStore(
        cards={
            deck: {card_id: _state_from_dict(state) for card_id, state in states.items()}
            for deck, states in data.get("cards", {}).items()
        },
        decks={deck: DeckProgress(**progress) for deck, progress in data.get("decks", {}).items()},
        stats=GlobalStats(**stats),
        settings=StudySettings(**data.get("settings", {})),
    )


def export_progress(store: ProgressStore, file_path: str) -> Path:
    """Write the whole store as pretty-printed JSON."""
    path = Path(file_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(store_to_dict(store), indent=2))
    logger.info("Exported progress to %s", path)
    return path
