"""Tests for the SM-2 scheduler."""

from datetime import datetime, timedelta, timezone

import pytest

from studyflow.application.scheduling.formatting import format_interval
from studyflow.application.scheduling.sm2 import (
    calculate_new_ease_factor,
    calculate_sm2,
    determine_status,
    get_initial_sm2_for_new_card,
    get_preview_intervals,
    schedule_batch,
    simplified_to_quality,
)
from studyflow.domain.exceptions import SchedulingContractError
from studyflow.domain.scheduling.models import (
    CardScheduleState,
    CardStatus,
    SimplifiedRating,
    SM2Input,
    SM2Parameters,
)

RELEARN_INTERVAL = 10 / 1440


def review(quality, now, ease=2.5, interval=0, repetitions=0, lapses=0, params=None):
    return calculate_sm2(
        SM2Input(
            quality=quality,
            current_ease_factor=ease,
            current_interval=interval,
            repetitions=repetitions,
            lapses=lapses,
        ),
        now=now,
        params=params,
    )


class TestSimplifiedToQuality:
    @pytest.mark.parametrize(
        "rating, expected",
        [("again", 1), ("hard", 3), ("good", 4), ("easy", 5)],
    )
    def test_mapping(self, rating, expected):
        assert simplified_to_quality(rating) == expected
        assert simplified_to_quality(SimplifiedRating(rating)) == expected

    def test_unknown_rating_raises(self):
        with pytest.raises(SchedulingContractError):
            simplified_to_quality("meh")


class TestEaseFactor:
    @pytest.mark.parametrize(
        "quality, expected",
        [(5, 2.6), (4, 2.5), (3, 2.36), (2, 2.18), (1, 1.96), (0, 1.7)],
    )
    def test_delta_formula(self, quality, expected):
        assert calculate_new_ease_factor(2.5, quality) == pytest.approx(expected)

    def test_clamped_to_minimum(self):
        assert calculate_new_ease_factor(1.3, 0) == 1.3

    def test_clamped_to_maximum(self):
        assert calculate_new_ease_factor(3.0, 5) == 3.0

    @pytest.mark.parametrize("ease", [1.3, 1.8, 2.5, 2.95, 3.0])
    def test_monotonic_in_quality(self, ease):
        values = [calculate_new_ease_factor(ease, q) for q in range(6)]
        assert values == sorted(values)

    def test_rejects_invalid_quality(self):
        with pytest.raises(SchedulingContractError):
            calculate_new_ease_factor(2.5, 6)


class TestSuccessfulReviews:
    def test_first_success_is_one_day(self, fixed_now):
        result = review(4, fixed_now)
        assert result.interval == 1
        assert result.repetitions == 1
        assert result.status is CardStatus.REVIEW
        assert result.next_review == fixed_now + timedelta(days=1)

    def test_first_success_ignores_prior_interval(self, fixed_now):
        result = review(4, fixed_now, interval=40, repetitions=0)
        assert result.interval == 1

    def test_second_success_is_six_days(self, fixed_now):
        result = review(4, fixed_now, interval=1, repetitions=1)
        assert result.interval == 6
        assert result.repetitions == 2

    def test_fixed_steps_skip_bonus_and_penalty(self, fixed_now):
        assert review(5, fixed_now, interval=1, repetitions=1).interval == 6
        assert review(3, fixed_now, interval=1, repetitions=1).interval == 6
        assert review(5, fixed_now).interval == 1
        assert review(3, fixed_now).interval == 1

    def test_third_success_multiplies_by_ease(self, fixed_now):
        # 6 * 2.5 = 15
        result = review(4, fixed_now, interval=6, repetitions=2)
        assert result.interval == 15
        assert result.repetitions == 3

    def test_easy_bonus(self, fixed_now):
        # EF 2.6, round(6 * 2.6) = 16, round(16 * 1.3) = 21
        result = review(5, fixed_now, interval=6, repetitions=2)
        assert result.interval == 21

    def test_hard_penalty(self, fixed_now):
        # EF 2.36, round(6 * 2.36) = 14, round(14 * 0.8) = 11
        result = review(3, fixed_now, interval=6, repetitions=2)
        assert result.interval == 11

    def test_hard_penalty_never_below_one_day(self, fixed_now):
        result = review(3, fixed_now, ease=1.3, interval=0, repetitions=2)
        assert result.interval == 1

    def test_interval_capped_at_one_year(self, fixed_now):
        result = review(5, fixed_now, interval=300, repetitions=10)
        assert result.interval == 365
        assert result.next_review == fixed_now + timedelta(days=365)

    @pytest.mark.parametrize("quality", [3, 4, 5])
    def test_huge_interval_saturates_at_cap(self, fixed_now, quality):
        # 1e308 * 2.5 overflows to inf before the cap is applied
        result = review(quality, fixed_now, interval=1e308, repetitions=2)
        assert result.interval == 365
        assert result.next_review == fixed_now + timedelta(days=365)
        assert result.status == CardStatus.MASTERED

    def test_hard_penalty_applied_before_cap(self, fixed_now):
        # EF 2.36, round(200 * 2.36) = 472, round(472 * 0.8) = 378, capped to 365
        assert review(3, fixed_now, interval=200, repetitions=5).interval == 365
        # EF 2.36, round(150 * 2.36) = 354, round(354 * 0.8) = 283
        assert review(3, fixed_now, interval=150, repetitions=5).interval == 283

    def test_saturation_with_shrinking_factors(self, fixed_now):
        params = SM2Parameters(easy_bonus=0.5, hard_penalty=0.5)
        assert review(5, fixed_now, interval=1e308, repetitions=2, params=params).interval == 365
        assert review(3, fixed_now, interval=1e308, repetitions=2, params=params).interval == 365
        # round(1000 * 2.36) = 2360, halved to 1180, capped to 365
        assert review(3, fixed_now, interval=1000, repetitions=2, params=params).interval == 365

    def test_lapses_unchanged(self, fixed_now):
        assert review(4, fixed_now, lapses=3).lapses == 3

    def test_rounds_half_up(self, fixed_now):
        # 5 * 2.5 = 12.5 rounds to 13
        assert review(4, fixed_now, interval=5, repetitions=2).interval == 13


class TestFailedReviews:
    def test_failure_resets_and_relearns(self, fixed_now):
        result = review(1, fixed_now, ease=2.6, interval=6, repetitions=2, lapses=0)
        assert result.status is CardStatus.LEARNING
        assert result.repetitions == 0
        assert result.lapses == 1
        assert result.interval == pytest.approx(RELEARN_INTERVAL)
        assert result.next_review == fixed_now + timedelta(minutes=10)

    def test_ease_still_decreases(self, fixed_now):
        result = review(1, fixed_now, ease=2.6, interval=6, repetitions=2)
        assert result.ease_factor == pytest.approx(2.06)

    @pytest.mark.parametrize("quality", [0, 1, 2])
    def test_every_failing_quality_relearns(self, fixed_now, quality):
        result = review(quality, fixed_now, repetitions=5, lapses=2)
        assert result.repetitions == 0
        assert result.lapses == 3
        assert 0 < result.interval < 1

    def test_single_step_table_reused_for_every_lapse(self, fixed_now):
        for lapses in (0, 1, 7):
            assert review(1, fixed_now, lapses=lapses).interval == pytest.approx(
                RELEARN_INTERVAL
            )

    def test_relearning_ladder(self, fixed_now):
        params = SM2Parameters(relearning_steps_minutes=(1, 10, 60))
        delays = [
            review(0, fixed_now, lapses=lapses, params=params).next_review - fixed_now
            for lapses in (0, 1, 2, 5)
        ]
        assert delays == [
            timedelta(minutes=1),
            timedelta(minutes=10),
            timedelta(minutes=60),
            timedelta(minutes=60),
        ]


class TestStatus:
    def test_mastered_by_interval(self, fixed_now):
        # EF 2.6, round(15 * 2.6) = 39, round(39 * 1.3) = 51
        result = review(5, fixed_now, interval=15, repetitions=3)
        assert result.interval == 51
        assert result.status is CardStatus.MASTERED

    def test_mastered_by_repetitions(self, fixed_now):
        result = review(4, fixed_now, interval=6, repetitions=4)
        assert result.repetitions == 5
        assert result.status is CardStatus.MASTERED

    def test_review_when_below_thresholds(self, fixed_now):
        assert review(4, fixed_now, interval=1, repetitions=1).status is CardStatus.REVIEW

    def test_failure_always_learning(self):
        assert determine_status(100, 9, 2) is CardStatus.LEARNING

    def test_thresholds_from_parameters(self):
        params = SM2Parameters(mastery_threshold_days=30, mastery_threshold_reps=10)
        assert determine_status(21, 5, 4, params) is CardStatus.REVIEW
        assert determine_status(30, 5, 4, params) is CardStatus.MASTERED


class TestInvariants:
    STATES = [
        CardScheduleState.new(),
        CardScheduleState(ease_factor=1.3, interval=RELEARN_INTERVAL, repetitions=0, lapses=4),
        CardScheduleState(ease_factor=2.5, interval=1, repetitions=1),
        CardScheduleState(ease_factor=2.6, interval=6, repetitions=2),
        CardScheduleState(ease_factor=3.0, interval=200, repetitions=8, lapses=1),
        CardScheduleState(ease_factor=2.9, interval=365, repetitions=12),
    ]

    @pytest.mark.parametrize("quality", range(6))
    @pytest.mark.parametrize("state", STATES)
    def test_bounds_and_counters(self, fixed_now, state, quality):
        result = calculate_sm2(SM2Input.from_state(state, quality), now=fixed_now)

        assert 1.3 <= result.ease_factor <= 3.0
        assert 0 <= result.interval <= 365
        if quality < 3:
            assert result.repetitions == 0
            assert result.lapses == state.lapses + 1
        else:
            assert result.repetitions == state.repetitions + 1
            assert result.lapses == state.lapses
        assert result.next_review > fixed_now

    def test_input_not_mutated(self, fixed_now):
        sm2_input = SM2Input(quality=1, current_ease_factor=2.6, current_interval=6, repetitions=2)
        before = SM2Input(**vars(sm2_input))
        calculate_sm2(sm2_input, now=fixed_now)
        assert sm2_input == before

    def test_deterministic_for_fixed_time(self, fixed_now):
        assert review(5, fixed_now, interval=6, repetitions=2) == review(
            5, fixed_now, interval=6, repetitions=2
        )

    def test_naive_now_treated_as_utc(self):
        result = review(4, datetime(2024, 3, 15, 12, 0))
        assert result.next_review == datetime(2024, 3, 16, 12, 0, tzinfo=timezone.utc)

    def test_defaults_to_current_time(self):
        before = datetime.now(timezone.utc)
        result = get_initial_sm2_for_new_card(4)
        assert result.next_review.tzinfo is not None
        assert result.next_review >= before + timedelta(days=1)


class TestInitialReview:
    def test_good(self, fixed_now):
        result = get_initial_sm2_for_new_card(4, now=fixed_now)
        assert (result.interval, result.repetitions, result.lapses) == (1, 1, 0)
        assert result.status is CardStatus.REVIEW

    def test_failed_first_attempt(self, fixed_now):
        result = get_initial_sm2_for_new_card(1, now=fixed_now)
        assert result.status is CardStatus.LEARNING
        assert result.repetitions == 0
        assert result.lapses == 1

    def test_matches_calculate_with_defaults(self, fixed_now):
        assert get_initial_sm2_for_new_card(5, now=fixed_now) == calculate_sm2(
            SM2Input(quality=5, current_ease_factor=2.5, current_interval=0), now=fixed_now
        )


class TestPreviewIntervals:
    def test_literal_previews(self, fixed_now):
        previews = get_preview_intervals(2.5, 6, 2, 0, now=fixed_now)
        assert {rating.value: label for rating, label in previews.items()} == {
            "again": "10m",
            "hard": "11d",
            "good": "15d",
            "easy": "21d",
        }

    def test_new_card_previews(self):
        previews = get_preview_intervals(2.5, 0, 0, 0)
        assert previews[SimplifiedRating.AGAIN] == "10m"
        assert previews[SimplifiedRating.HARD] == "1d"
        assert previews[SimplifiedRating.GOOD] == "1d"
        assert previews[SimplifiedRating.EASY] == "1d"

    @pytest.mark.parametrize("state", TestInvariants.STATES)
    def test_preview_matches_commit_path(self, fixed_now, state):
        previews = get_preview_intervals(
            state.ease_factor, state.interval, state.repetitions, state.lapses, now=fixed_now
        )
        for rating in SimplifiedRating:
            result = calculate_sm2(
                SM2Input.from_state(state, simplified_to_quality(rating)), now=fixed_now
            )
            assert previews[rating] == format_interval(result.interval)

    def test_rejects_invalid_state(self):
        with pytest.raises(SchedulingContractError):
            get_preview_intervals(2.5, -1, 0, 0)


class TestScheduleBatch:
    def test_results_in_input_order(self, fixed_now):
        reviews = [
            (CardScheduleState.new(), 4),
            (CardScheduleState(ease_factor=2.6, interval=6, repetitions=2), 1),
            (CardScheduleState(interval=1, repetitions=1), 5),
        ]
        results = schedule_batch(reviews, now=fixed_now)

        assert [r.status for r in results] == [
            CardStatus.REVIEW,
            CardStatus.LEARNING,
            CardStatus.REVIEW,
        ]
        assert [r.interval for r in results] == [1, pytest.approx(RELEARN_INTERVAL), 6]

    def test_invalid_entry_rejects_batch(self, fixed_now):
        with pytest.raises(SchedulingContractError):
            schedule_batch(
                [(CardScheduleState.new(), 4), (CardScheduleState.new(), 8)], now=fixed_now
            )

    def test_empty_batch(self, fixed_now):
        assert schedule_batch([], now=fixed_now) == []
