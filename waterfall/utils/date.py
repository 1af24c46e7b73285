from typing import List, Union
from datetime import datetime, date
from dateutil.relativedelta import relativedelta
from pandas import Timestamp

from waterfall.errors import InvalidInput

DATE_FMT = "%Y-%m-%d"
COMPACT_FMT = "%Y%m%d"

DateLike = Union[str, date, datetime, Timestamp]


def to_date(date_like: DateLike) -> date:
    """
    Convert a string, datetime or Timestamp to a plain date.
    Accepts 'YYYY-MM-DD' and 'YYYYMMDD' string formats.
    """
    if isinstance(date_like, Timestamp):
        return date_like.date()
    if isinstance(date_like, datetime):
        return date_like.date()
    if isinstance(date_like, date):
        return date_like
    if isinstance(date_like, str):
        for fmt in (DATE_FMT, COMPACT_FMT):
            try:
                return datetime.strptime(date_like, fmt).date()
            except ValueError:
                continue
        raise InvalidInput(f"Unsupported date string format: {date_like!r}")
    raise InvalidInput(f"Unsupported type for date: {type(date_like)}")


def month_start(date_like: DateLike) -> date:
    """
    First day of the month containing 'date_like'. Periods are keyed by this date.
    """
    dt = to_date(date_like)
    return dt.replace(day=1)


def month_end(date_like: DateLike) -> date:
    """
    Last day of the month containing 'date_like'.
    """
    return month_start(date_like) + relativedelta(months=1, days=-1)


def add_months(date_like: DateLike, months: int) -> date:
    return to_date(date_like) + relativedelta(months=months)


def year_start(date_like: DateLike) -> date:
    dt = to_date(date_like)
    return date(dt.year, 1, 1)


def month_range(start: DateLike, count: int) -> List[date]:
    """
    'count' consecutive period keys beginning with the month containing 'start'.
    """
    first = month_start(start)
    return [first + relativedelta(months=i) for i in range(count)]


def months_between(start: DateLike, end: DateLike) -> int:
    """
    Whole calendar months from the month of 'start' to the month of 'end'.
    """
    s, e = to_date(start), to_date(end)
    return (e.year - s.year) * 12 + (e.month - s.month)
