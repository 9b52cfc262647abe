"""
Progress summary for a deck of cards.

This is a pure computation module with no I/O.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from studyflow.application.scheduling.queue import card_field, is_card_due
from studyflow.application.utils.clock import resolve_now
from studyflow.application.utils.rounding import round_half_up
from studyflow.domain.exceptions import SchedulingContractError
from studyflow.domain.scheduling.models import CardStatus


@dataclass
class DeckProgress:
    """
    Counts shown on a deck overview.

    Attributes:
        total: Number of cards in the deck.
        mastered: Cards whose latest review marked them mastered.
        percentage: Mastered share of the deck, 0-100 (0 for an empty deck).
        due: Cards due for review at the summary time.
        by_status: Card count for every status, including zeroes.
    """

    total: int = 0
    mastered: int = 0
    percentage: int = 0
    due: int = 0
    by_status: dict[CardStatus, int] = field(
        default_factory=lambda: {status: 0 for status in CardStatus}
    )

    @property
    def fully_mastered(self) -> bool:
        return self.total > 0 and self.mastered == self.total

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "mastered": self.mastered,
            "percentage": self.percentage,
            "due": self.due,
            "fully_mastered": self.fully_mastered,
            "by_status": {status.value: count for status, count in self.by_status.items()},
        }


def summarize_progress(cards: Iterable[Any], now: datetime | None = None) -> DeckProgress:
    """
    Summarize mastery and due counts for a collection of cards.

    Cards follow the same shape as sort_cards_by_urgency: mappings or objects
    with "status" and "next_review".
    """
    now = resolve_now(now)
    progress = DeckProgress()

    for card in cards:
        raw_status = card_field(card, "status")
        try:
            status = CardStatus(raw_status)
        except ValueError:
            raise SchedulingContractError(f"Unknown card status {raw_status!r}") from None

        progress.total += 1
        progress.by_status[status] += 1
        if is_card_due(card_field(card, "next_review"), now):
            progress.due += 1

    progress.mastered = progress.by_status[CardStatus.MASTERED]
    if progress.total:
        progress.percentage = round_half_up(progress.mastered / progress.total * 100)
    return progress
