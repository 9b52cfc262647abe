# Domain Scheduling Package
from .models import (
    CardScheduleState,
    CardStatus,
    QualityRating,
    SimplifiedRating,
    SM2Input,
    SM2Parameters,
    SM2Result,
)

__all__ = [
    "QualityRating",
    "SimplifiedRating",
    "CardStatus",
    "CardScheduleState",
    "SM2Input",
    "SM2Result",
    "SM2Parameters",
]
