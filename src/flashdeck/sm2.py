"""SM-2 spaced repetition algorithm."""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

MIN_EASE_FACTOR = 1.3
DEFAULT_EASE_FACTOR = 2.5
MASTERED_REPETITIONS = 3


class InvalidRating(ValueError):
    """Raised when a rating is not one of Again, Hard, Good or Easy."""


class Rating(Enum):
    AGAIN = "again"
    HARD = "hard"
    GOOD = "good"
    EASY = "easy"

    @classmethod
    def parse(cls, value) -> "Rating":
        """Return the Rating named by ``value`` (a Rating or its name)."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise InvalidRating(f"Unknown rating: {value!r}")


# Recall-quality weights; only the scheduler sees these numbers.
_WEIGHTS = {
    Rating.AGAIN: 0,
    Rating.HARD: 1,
    Rating.GOOD: 2,
    Rating.EASY: 3,
}


class CardStatus(Enum):
    NEW = "new"
    LEARNING = "learning"
    MASTERED = "mastered"


@dataclass(frozen=True)
class CardScheduleState:
    ease_factor: float = DEFAULT_EASE_FACTOR
    interval: int = 0
    repetitions: int = 0
    next_review_at: Optional[datetime] = None

    def __post_init__(self):
        if self.ease_factor < MIN_EASE_FACTOR:
            raise ValueError(f"ease_factor must be >= {MIN_EASE_FACTOR}, got {self.ease_factor}")
        if self.interval < 0:
            raise ValueError(f"interval must be >= 0, got {self.interval}")
        if self.repetitions < 0:
            raise ValueError(f"repetitions must be >= 0, got {self.repetitions}")


def new_card_state() -> CardScheduleState:
    return CardScheduleState()


def is_successful(rating: Rating) -> bool:
    """True for Good and Easy, the ratings that count as a correct recall."""
    return _WEIGHTS[Rating.parse(rating)] >= _WEIGHTS[Rating.GOOD]


def rate(
    state: CardScheduleState,
    rating: Rating,
    now: Optional[datetime] = None,
) -> CardScheduleState:
    """Calculate the next schedule for a card using SM-2.

    Args:
        state: Current schedule state of the card (not modified).
        rating: How well the answer was recalled.
        now: Reference time for the next review date, defaults to UTC now.

    Returns:
        A new CardScheduleState with updated interval, repetitions,
        ease factor and next review time.

    Raises:
        InvalidRating: if ``rating`` is not a recognised rating.
    """
    weight = _WEIGHTS[Rating.parse(rating)]
    if now is None:
        now = datetime.now(timezone.utc)

    if weight >= _WEIGHTS[Rating.GOOD]:
        # Correct response
        if state.repetitions == 0:
            new_interval = 1
        elif state.repetitions == 1:
            new_interval = 6
        else:
            new_interval = round(state.interval * state.ease_factor)
        new_repetitions = state.repetitions + 1
    else:
        # Incorrect, reset
        new_repetitions = 0
        new_interval = 1

    miss = 3 - weight
    new_ef = state.ease_factor + (0.1 - miss * (0.08 + miss * 0.02))
    new_ef = max(MIN_EASE_FACTOR, new_ef)

    return CardScheduleState(
        ease_factor=round(new_ef, 2),
        interval=new_interval,
        repetitions=new_repetitions,
        next_review_at=now + timedelta(days=new_interval),
    )


def is_due(state: CardScheduleState, now: Optional[datetime] = None) -> bool:
    if state.next_review_at is None:
        return True
    if now is None:
        now = datetime.now(timezone.utc)
    return state.next_review_at <= now


def is_mastered(state: CardScheduleState) -> bool:
    return state.repetitions >= MASTERED_REPETITIONS and state.ease_factor >= DEFAULT_EASE_FACTOR


def card_status(state: CardScheduleState) -> CardStatus:
    if is_mastered(state):
        return CardStatus.MASTERED
    if state.repetitions == 0:
        return CardStatus.NEW
    return CardStatus.LEARNING
