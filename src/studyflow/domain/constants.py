"""Centralized constants for the studyflow scheduler.

All magic numbers and defaults live here so every layer
imports from a single source of truth.
"""

# ---------- Card defaults ----------
DEFAULT_EASE_FACTOR = 2.5
DEFAULT_INTERVAL = 0.0
DEFAULT_REPETITIONS = 0
DEFAULT_LAPSES = 0

# ---------- Ease factor band ----------
MIN_EASE_FACTOR = 1.3
MAX_EASE_FACTOR = 3.0

# ---------- Steps (minutes) ----------
RELEARNING_STEPS_MINUTES = (10,)  # When a review card is forgotten

# ---------- Intervals (days) ----------
FIRST_INTERVAL_DAYS = 1
SECOND_INTERVAL_DAYS = 6
MAX_INTERVAL_DAYS = 365
EASY_BONUS = 1.3
HARD_PENALTY = 0.8

# ---------- Mastery ----------
MASTERY_THRESHOLD_DAYS = 21  # Mastered once interval reaches 21+ days
MASTERY_THRESHOLD_REPS = 5  # Or 5+ consecutive successful reviews

# ---------- Time ----------
MINUTES_PER_DAY = 24 * 60
MONTH_DAYS = 30
YEAR_DAYS = 365
