"""Data classes for decks, cards and study progress."""
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from flashdeck.sm2 import CardScheduleState


@dataclass
class Card:
    id: str
    deck: str
    prompt: str
    answer: str
    title: str = ""
    difficulty: str = "Medium"
    frequency: str = ""
    tags: list[str] = field(default_factory=list)


@dataclass
class Deck:
    name: str
    path: str = ""
    description: str = ""
    icon: str = ""
    category: str = "by-topic"
    cards: list[Card] = field(default_factory=list)


@dataclass
class DeckProgress:
    studied: int = 0
    mastered: int = 0


@dataclass
class GlobalStats:
    total_studied: int = 0
    current_streak: int = 0
    last_study_date: Optional[date] = None
    today_studied: int = 0
    total_time_seconds: int = 0


@dataclass
class StudySettings:
    new_cards_per_day: int = 20
    review_cards_per_day: int = 100


@dataclass
class ProgressStore:
    """Everything that persists between sessions.

    ``cards`` is keyed by deck name, then by card id.
    """
    cards: dict[str, dict[str, CardScheduleState]] = field(default_factory=dict)
    decks: dict[str, DeckProgress] = field(default_factory=dict)
    stats: GlobalStats = field(default_factory=GlobalStats)
    settings: StudySettings = field(default_factory=StudySettings)


@dataclass
class SessionStats:
    deck: str
    started_at: datetime
    studied_count: int = 0
    correct_count: int = 0


@dataclass
class SessionSummary:
    deck: str
    studied: int
    correct: int
    accuracy: int
    duration_seconds: int = 0
