"""Study session bookkeeping: per-session counters, summaries and streaks."""
from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, Optional

from flashdeck.models import Card, GlobalStats, SessionStats, SessionSummary
from flashdeck.sm2 import CardScheduleState, Rating, is_mastered, is_successful


class EmptyDeck(Exception):
    """Raised when a session is started with no cards to study."""


@dataclass
class StudySession:
    cards: list[Card]
    stats: SessionStats
    index: int = 0

    @property
    def deck(self) -> str:
        return self.stats.deck

    @property
    def is_complete(self) -> bool:
        return self.index >= len(self.cards)

    @property
    def current_card(self) -> Optional[Card]:
        if self.is_complete:
            return None
        return self.cards[self.index]

    @property
    def progress_percent(self) -> float:
        return self.index / len(self.cards) * 100

    def advance(self) -> None:
        self.index += 1


def start_session(deck: str, cards: Iterable[Card], now: Optional[datetime] = None) -> StudySession:
    cards = list(cards)
    if not cards:
        raise EmptyDeck(f"Deck {deck!r} has no cards to study")
    if now is None:
        now = datetime.now(timezone.utc)
    return StudySession(cards=cards, stats=SessionStats(deck=deck, started_at=now))


def record_rating(stats: SessionStats, rating: Rating) -> SessionStats:
    correct = is_successful(rating)
    stats.studied_count += 1
    if correct:
        stats.correct_count += 1
    return stats


def end_session(stats: SessionStats, now: Optional[datetime] = None) -> SessionSummary:
    """Summarize a finished session. Global progress is left untouched."""
    if now is None:
        now = datetime.now(timezone.utc)
    if stats.studied_count > 0:
        accuracy = round(stats.correct_count / stats.studied_count * 100)
    else:
        accuracy = 0
    duration = max(0, int((now - stats.started_at).total_seconds()))
    return SessionSummary(
        deck=stats.deck,
        studied=stats.studied_count,
        correct=stats.correct_count,
        accuracy=accuracy,
        duration_seconds=duration,
    )


def update_streak(stats: GlobalStats, today: date) -> GlobalStats:
    """Return stats with the daily streak advanced for a study event on ``today``."""
    last = stats.last_study_date
    if last == today:
        return stats
    if last is not None and last == today - timedelta(days=1):
        streak = stats.current_streak + 1
    else:
        streak = 1
    return replace(stats, current_streak=streak, last_study_date=today)


def mastered_count(states: Iterable[CardScheduleState]) -> int:
    return sum(1 for state in states if is_mastered(state))
