"""
Contract date helpers used to cross-check terms against start and end dates.
"""

from datetime import date

from waterfall.errors import InvalidInput
from waterfall.utils.date import DateLike, add_months, month_end, months_between, to_date

# Month lengths differ, so an end date may drift up to a month from start + term.
END_DATE_TOLERANCE_DAYS = 31


def end_date_for(start: DateLike, term_months: int) -> date:
    """Last day of the final recognition period."""
    if term_months <= 0:
        raise InvalidInput("Term months must be greater than 0")
    return month_end(add_months(start, term_months - 1))


def term_from_dates(start: DateLike, end: DateLike) -> int:
    """Number of recognition periods from the month of ``start`` through the month of ``end``."""
    if to_date(end) < to_date(start):
        raise InvalidInput("End date must be after start date")
    return months_between(start, end) + 1


def check_contract_dates(start: DateLike, end: DateLike, term_months: int) -> None:
    """
    Raise InvalidInput when the end date does not agree with start + term.
    """
    start_date, end_date = to_date(start), to_date(end)
    if end_date <= start_date:
        raise InvalidInput("End date must be after start date")
    expected = end_date_for(start_date, term_months)
    if abs((end_date - expected).days) > END_DATE_TOLERANCE_DAYS:
        raise InvalidInput(
            f"End date doesn't match term months. Expected approximately {expected.isoformat()}"
        )
