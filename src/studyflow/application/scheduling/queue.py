"""
Due checks and urgency ordering for study sessions.

Cards are plain records supplied by the caller: either mappings with
"next_review" and "status" keys, or objects exposing those attributes.
"""

import logging
from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any, TypeVar

from studyflow.application.utils.clock import resolve_now, to_datetime
from studyflow.domain.scheduling.models import CardStatus

logger = logging.getLogger(__name__)

CardT = TypeVar("CardT")


def card_field(card: Any, name: str) -> Any:
    """Read a field from a mapping or an attribute from an object."""
    if isinstance(card, Mapping):
        return card.get(name)
    return getattr(card, name, None)


def is_card_due(next_review: datetime | str | None, now: datetime | None = None) -> bool:
    """
    Whether a card should be shown now.

    Cards without a scheduled review (brand-new cards) are always due.
    """
    review_at = to_datetime(next_review)
    if review_at is None:
        return True
    return review_at <= resolve_now(now)


def effective_due_date(card: Any, now: datetime | None = None) -> datetime:
    """Scheduled review time of a card, or `now` when it has none."""
    review_at = to_datetime(card_field(card, "next_review"))
    return review_at if review_at is not None else resolve_now(now)


def sort_cards_by_urgency(cards: Iterable[CardT], now: datetime | None = None) -> list[CardT]:
    """
    Order cards for a study session: new cards first, then most overdue first.

    Returns a new list; the input collection is left untouched. The sort is
    stable, so cards with equal keys keep their relative order.
    """
    now = resolve_now(now)

    def urgency(card: CardT) -> tuple[int, datetime]:
        is_new = card_field(card, "status") == CardStatus.NEW
        return (0 if is_new else 1, effective_due_date(card, now))

    ordered = sorted(cards, key=urgency)
    logger.debug(f"Sorted {len(ordered)} cards by urgency")
    return ordered
