"""
Domain models for SM-2 scheduling.

These are pure data structures with no I/O or external dependencies.
Every model validates itself on construction so invalid review state
is rejected before the scheduler does any arithmetic.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum, IntEnum
from typing import Any

from studyflow.domain import constants as c
from studyflow.domain.exceptions import SchedulingContractError


class QualityRating(IntEnum):
    """
    Recall quality on the SuperMemo 0-5 scale.

    Attributes:
        BLACKOUT: Complete blackout, no memory at all.
        INCORRECT: Incorrect, but the answer seemed familiar once shown.
        INCORRECT_EASY_RECALL: Incorrect, but the answer was easy to recall once shown.
        CORRECT_DIFFICULT: Correct with serious difficulty.
        CORRECT_HESITANT: Correct after some hesitation.
        PERFECT: Perfect response with no hesitation.
    """

    BLACKOUT = 0
    INCORRECT = 1
    INCORRECT_EASY_RECALL = 2
    CORRECT_DIFFICULT = 3
    CORRECT_HESITANT = 4
    PERFECT = 5

    @property
    def is_failure(self) -> bool:
        return self < QualityRating.CORRECT_DIFFICULT

    @classmethod
    def coerce(cls, value: Any) -> "QualityRating":
        """Convert a plain int into a QualityRating, rejecting anything outside 0-5."""
        if isinstance(value, cls):
            return value
        if isinstance(value, bool) or not isinstance(value, int):
            raise SchedulingContractError(f"Quality must be an integer 0-5, got {value!r}")
        try:
            return cls(value)
        except ValueError:
            raise SchedulingContractError(
                f"Quality must be an integer 0-5, got {value!r}"
            ) from None


class SimplifiedRating(str, Enum):
    """The four review buttons shown to a learner."""

    AGAIN = "again"
    HARD = "hard"
    GOOD = "good"
    EASY = "easy"

    @classmethod
    def coerce(cls, value: Any) -> "SimplifiedRating":
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise SchedulingContractError(f"Unknown rating {value!r}")
        try:
            return cls(value)
        except ValueError:
            choices = ", ".join(r.value for r in cls)
            raise SchedulingContractError(
                f"Unknown rating {value!r} (expected one of: {choices})"
            ) from None


class CardStatus(str, Enum):
    NEW = "new"
    LEARNING = "learning"
    REVIEW = "review"
    MASTERED = "mastered"


def _check_count(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise SchedulingContractError(f"{name} must be a non-negative integer, got {value!r}")


def check_interval(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise SchedulingContractError(f"{name} must be a number, got {value!r}")
    if not math.isfinite(value) or value < 0:
        raise SchedulingContractError(f"{name} must be a finite number >= 0, got {value!r}")


def _check_ease_factor(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise SchedulingContractError(f"{name} must be a number, got {value!r}")
    if not math.isfinite(value) or value <= 0:
        raise SchedulingContractError(f"{name} must be a finite number > 0, got {value!r}")


@dataclass(frozen=True)
class SM2Parameters:
    """
    Tunables read by the SM-2 scheduler.

    The defaults reproduce the canonical schedule: a 10 minute relearning
    step, 1 and 6 day graduation steps, a 1.3x easy bonus, a 0.8x hard
    penalty, a one year cap and mastery at 21 days or 5 repetitions.
    """

    min_ease_factor: float = c.MIN_EASE_FACTOR
    max_ease_factor: float = c.MAX_EASE_FACTOR
    relearning_steps_minutes: tuple[int, ...] = c.RELEARNING_STEPS_MINUTES
    first_interval_days: int = c.FIRST_INTERVAL_DAYS
    second_interval_days: int = c.SECOND_INTERVAL_DAYS
    easy_bonus: float = c.EASY_BONUS
    hard_penalty: float = c.HARD_PENALTY
    max_interval_days: int = c.MAX_INTERVAL_DAYS
    mastery_threshold_days: int = c.MASTERY_THRESHOLD_DAYS
    mastery_threshold_reps: int = c.MASTERY_THRESHOLD_REPS

    def __post_init__(self) -> None:
        steps = tuple(self.relearning_steps_minutes)
        if not steps:
            raise SchedulingContractError("relearning_steps_minutes must not be empty")
        if any(isinstance(s, bool) or not isinstance(s, int) or s <= 0 for s in steps):
            raise SchedulingContractError(
                f"relearning steps must be positive integers, got {list(steps)!r}"
            )
        object.__setattr__(self, "relearning_steps_minutes", steps)

        _check_ease_factor("min_ease_factor", self.min_ease_factor)
        _check_ease_factor("max_ease_factor", self.max_ease_factor)
        if self.min_ease_factor > self.max_ease_factor:
            raise SchedulingContractError(
                f"min_ease_factor ({self.min_ease_factor}) exceeds "
                f"max_ease_factor ({self.max_ease_factor})"
            )
        for name in ("first_interval_days", "second_interval_days", "max_interval_days"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise SchedulingContractError(f"{name} must be an integer >= 1, got {value!r}")
        for name in ("easy_bonus", "hard_penalty"):
            _check_ease_factor(name, getattr(self, name))
        _check_count("mastery_threshold_days", self.mastery_threshold_days)
        _check_count("mastery_threshold_reps", self.mastery_threshold_reps)


@dataclass(frozen=True)
class CardScheduleState:
    """
    Scheduling state a caller stores per card between reviews.

    Attributes:
        ease_factor: Interval growth multiplier, kept within [1.3, 3.0] by the scheduler.
        interval: Current interval in days (fractional while relearning).
        repetitions: Consecutive successful reviews since the last lapse.
        lapses: Total number of failed reviews.
        status: Status computed by the most recent review.
    """

    ease_factor: float = c.DEFAULT_EASE_FACTOR
    interval: float = c.DEFAULT_INTERVAL
    repetitions: int = c.DEFAULT_REPETITIONS
    lapses: int = c.DEFAULT_LAPSES
    status: CardStatus = CardStatus.NEW

    def __post_init__(self) -> None:
        _check_ease_factor("ease_factor", self.ease_factor)
        check_interval("interval", self.interval)
        _check_count("repetitions", self.repetitions)
        _check_count("lapses", self.lapses)
        try:
            object.__setattr__(self, "status", CardStatus(self.status))
        except ValueError:
            raise SchedulingContractError(f"Unknown card status {self.status!r}") from None

    @classmethod
    def new(cls) -> "CardScheduleState":
        """State of a card that has never been reviewed."""
        return cls()


@dataclass(frozen=True)
class SM2Input:
    """A single review event: the card's current state plus the quality given."""

    quality: QualityRating
    current_ease_factor: float = c.DEFAULT_EASE_FACTOR
    current_interval: float = c.DEFAULT_INTERVAL
    repetitions: int = c.DEFAULT_REPETITIONS
    lapses: int = c.DEFAULT_LAPSES

    def __post_init__(self) -> None:
        object.__setattr__(self, "quality", QualityRating.coerce(self.quality))
        _check_ease_factor("current_ease_factor", self.current_ease_factor)
        check_interval("current_interval", self.current_interval)
        _check_count("repetitions", self.repetitions)
        _check_count("lapses", self.lapses)

    @classmethod
    def from_state(cls, state: CardScheduleState, quality: int) -> "SM2Input":
        return cls(
            quality=quality,
            current_ease_factor=state.ease_factor,
            current_interval=state.interval,
            repetitions=state.repetitions,
            lapses=state.lapses,
        )


@dataclass(frozen=True)
class SM2Result:
    """Outcome of one review: the new state and when the card is next due."""

    next_review: datetime
    interval: float  # Days, fractional while relearning
    ease_factor: float
    repetitions: int
    lapses: int
    status: CardStatus

    def to_state(self) -> CardScheduleState:
        return CardScheduleState(
            ease_factor=self.ease_factor,
            interval=self.interval,
            repetitions=self.repetitions,
            lapses=self.lapses,
            status=self.status,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "next_review": self.next_review.isoformat(),
            "interval": self.interval,
            "ease_factor": self.ease_factor,
            "repetitions": self.repetitions,
            "lapses": self.lapses,
            "status": self.status.value,
        }
