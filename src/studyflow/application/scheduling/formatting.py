"""Human-readable interval strings for review buttons and card lists."""

from studyflow.application.utils.rounding import round_half_up
from studyflow.domain import constants as c
from studyflow.domain.scheduling.models import check_interval


def format_interval(interval_days: float) -> str:
    """
    Format an interval in days as a short label.

    < 1 hour -> minutes ("10m"), < 1 day -> hours ("12h"), < 30 days -> days
    ("6d"), < 365 days -> 30-day months ("3mo"), otherwise years with one
    decimal ("1.5y").

    Raises SchedulingContractError for negative or non-finite intervals.
    """
    check_interval("interval_days", interval_days)

    if interval_days < 1 / 24:
        return f"{round_half_up(interval_days * c.MINUTES_PER_DAY)}m"
    if interval_days < 1:
        return f"{round_half_up(interval_days * 24)}h"
    if interval_days < c.MONTH_DAYS:
        return f"{round_half_up(interval_days)}d"
    if interval_days < c.YEAR_DAYS:
        return f"{round_half_up(interval_days / c.MONTH_DAYS)}mo"

    years = round_half_up(interval_days / c.YEAR_DAYS * 10) / 10
    if years.is_integer():
        return f"{int(years)}y"
    return f"{years}y"
