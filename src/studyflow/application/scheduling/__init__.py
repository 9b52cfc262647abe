# Application Scheduling Package
from .formatting import format_interval
from .queue import effective_due_date, is_card_due, sort_cards_by_urgency
from .sm2 import (
    calculate_new_ease_factor,
    calculate_sm2,
    determine_status,
    get_initial_sm2_for_new_card,
    get_preview_intervals,
    schedule_batch,
    simplified_to_quality,
)

__all__ = [
    "simplified_to_quality",
    "calculate_new_ease_factor",
    "determine_status",
    "calculate_sm2",
    "get_initial_sm2_for_new_card",
    "get_preview_intervals",
    "schedule_batch",
    "format_interval",
    "is_card_due",
    "effective_due_date",
    "sort_cards_by_urgency",
]
