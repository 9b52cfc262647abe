"""
SM-2 review scheduler.

Derived from SuperMemo-2 (Piotr Wozniak). Given a card's current state and a
recall quality, computes the next interval, ease factor, repetition and lapse
counts, status and next review time.

Failed reviews (quality < 3) drop the card into a short relearning step
measured in minutes. Successful reviews graduate 1 day, then 6 days, then
grow by the ease factor with a bonus for "easy" and a penalty for "hard".

This is a pure computation module with no I/O. The current time is an
explicit argument so results are reproducible.
"""

import logging
from collections.abc import Iterable
from datetime import datetime, timedelta

from studyflow.application.utils.clock import resolve_now
from studyflow.application.utils.rounding import round_half_up
from studyflow.domain import constants as c
from studyflow.domain.scheduling.models import (
    CardScheduleState,
    CardStatus,
    QualityRating,
    SimplifiedRating,
    SM2Input,
    SM2Parameters,
    SM2Result,
)

from .formatting import format_interval

logger = logging.getLogger(__name__)

DEFAULT_PARAMETERS = SM2Parameters()

_SIMPLIFIED_TO_QUALITY: dict[SimplifiedRating, QualityRating] = {
    SimplifiedRating.AGAIN: QualityRating.INCORRECT,
    SimplifiedRating.HARD: QualityRating.CORRECT_DIFFICULT,
    SimplifiedRating.GOOD: QualityRating.CORRECT_HESITANT,
    SimplifiedRating.EASY: QualityRating.PERFECT,
}


def simplified_to_quality(rating: SimplifiedRating | str) -> QualityRating:
    """
    Map a review button onto the SM-2 quality scale.

    again -> 1, hard -> 3, good -> 4, easy -> 5. Qualities 0 and 2 are not
    reachable from the buttons but remain valid for calculate_sm2.
    """
    return _SIMPLIFIED_TO_QUALITY[SimplifiedRating.coerce(rating)]


def calculate_new_ease_factor(
    current_ease_factor: float,
    quality: int,
    params: SM2Parameters | None = None,
) -> float:
    """
    EF' = EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02)), clamped to [min, max].
    """
    params = params or DEFAULT_PARAMETERS
    q = QualityRating.coerce(quality)
    delta = 0.1 - (5 - q) * (0.08 + (5 - q) * 0.02)
    new_ef = current_ease_factor + delta
    return max(params.min_ease_factor, min(params.max_ease_factor, new_ef))


def determine_status(
    interval: float,
    repetitions: int,
    quality: int,
    params: SM2Parameters | None = None,
) -> CardStatus:
    """Status for the outcome of a single review."""
    params = params or DEFAULT_PARAMETERS
    if QualityRating.coerce(quality).is_failure:
        return CardStatus.LEARNING

    if (
        interval >= params.mastery_threshold_days
        or repetitions >= params.mastery_threshold_reps
    ):
        return CardStatus.MASTERED

    return CardStatus.REVIEW


def _relearning_delay_minutes(lapses: int, params: SM2Parameters) -> int:
    steps = params.relearning_steps_minutes
    step_index = min(lapses - 1, len(steps) - 1)
    return steps[max(0, step_index)]


def _saturation_ceiling(params: SM2Parameters) -> float:
    """
    Bound for the raw interval product before it is rounded.

    Any product at or above this bound still lands on max_interval_days after
    the easy bonus or hard penalty, so clamping to it leaves results unchanged
    while keeping huge intervals (1e308 * 2.5 is inf) out of round_half_up.
    """
    smallest_factor = min(1.0, params.easy_bonus, params.hard_penalty)
    return (params.max_interval_days + 1) / smallest_factor + 1


def calculate_sm2(
    sm2_input: SM2Input,
    now: datetime | None = None,
    params: SM2Parameters | None = None,
) -> SM2Result:
    """
    Apply one review to a card.

    Args:
        sm2_input: Current card state and the quality of this review.
        now: Review time. Defaults to the current UTC time.
        params: Scheduler tunables. Defaults to the canonical SM-2 values.

    Returns:
        A new SM2Result. The input is never modified.
    """
    params = params or DEFAULT_PARAMETERS
    now = resolve_now(now)
    quality = sm2_input.quality

    if quality.is_failure:
        # Forgotten: reset the streak and relearn in minutes
        new_lapses = sm2_input.lapses + 1
        delay_minutes = _relearning_delay_minutes(new_lapses, params)
        logger.debug(
            f"Lapse #{new_lapses} (quality {int(quality)}), relearning in {delay_minutes}m"
        )

        return SM2Result(
            next_review=now + timedelta(minutes=delay_minutes),
            interval=delay_minutes / c.MINUTES_PER_DAY,
            ease_factor=calculate_new_ease_factor(
                sm2_input.current_ease_factor, quality, params
            ),
            repetitions=0,
            lapses=new_lapses,
            status=CardStatus.LEARNING,
        )

    new_repetitions = sm2_input.repetitions + 1
    new_ease_factor = calculate_new_ease_factor(sm2_input.current_ease_factor, quality, params)

    if new_repetitions == 1:
        new_interval = params.first_interval_days
    elif new_repetitions == 2:
        new_interval = params.second_interval_days
    else:
        ceiling = _saturation_ceiling(params)
        new_interval = round_half_up(
            min(sm2_input.current_interval * new_ease_factor, ceiling)
        )

        if quality == QualityRating.PERFECT:
            new_interval = round_half_up(min(new_interval * params.easy_bonus, ceiling))
        elif quality == QualityRating.CORRECT_DIFFICULT:
            new_interval = max(1, round_half_up(new_interval * params.hard_penalty))

    new_interval = min(new_interval, params.max_interval_days)

    return SM2Result(
        next_review=now + timedelta(days=new_interval),
        interval=new_interval,
        ease_factor=new_ease_factor,
        repetitions=new_repetitions,
        lapses=sm2_input.lapses,
        status=determine_status(new_interval, new_repetitions, quality, params),
    )


def get_initial_sm2_for_new_card(
    quality: int,
    now: datetime | None = None,
    params: SM2Parameters | None = None,
) -> SM2Result:
    """Schedule the first review of a card that has never been studied."""
    return calculate_sm2(
        SM2Input.from_state(CardScheduleState.new(), quality),
        now=now,
        params=params,
    )


def get_preview_intervals(
    ease_factor: float,
    interval: float,
    repetitions: int,
    lapses: int,
    now: datetime | None = None,
    params: SM2Parameters | None = None,
) -> dict[SimplifiedRating, str]:
    """
    Formatted next interval for each review button, without committing to any.

    Every rating is evaluated independently against the same state, through
    the same calculate_sm2 path a real review takes.
    """
    now = resolve_now(now)
    previews: dict[SimplifiedRating, str] = {}

    for rating in SimplifiedRating:
        result = calculate_sm2(
            SM2Input(
                quality=simplified_to_quality(rating),
                current_ease_factor=ease_factor,
                current_interval=interval,
                repetitions=repetitions,
                lapses=lapses,
            ),
            now=now,
            params=params,
        )
        previews[rating] = format_interval(result.interval)

    return previews


def schedule_batch(
    reviews: Iterable[tuple[CardScheduleState, int]],
    now: datetime | None = None,
    params: SM2Parameters | None = None,
) -> list[SM2Result]:
    """
    Apply one review to each card in a batch, sharing a single review time.

    Results are returned in input order. Every input is validated before
    any card is scheduled, so a bad entry rejects the whole batch.
    """
    now = resolve_now(now)
    inputs = [SM2Input.from_state(state, quality) for state, quality in reviews]
    logger.debug(f"Scheduling batch of {len(inputs)} reviews")
    return [calculate_sm2(item, now=now, params=params) for item in inputs]
