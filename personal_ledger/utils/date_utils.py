"""Date manipulation utilities"""

import calendar
from datetime import date, datetime, timezone

from dateutil.relativedelta import relativedelta


def utc_today() -> date:
    """Calendar date in UTC, the zone the store stamps rows in"""
    return datetime.now(timezone.utc).date()


def last_day_of_month(day: date) -> date:
    """Last calendar day of the month containing ``day``"""
    return day.replace(day=calendar.monthrange(day.year, day.month)[1])


def is_last_day_of_month(day: date) -> bool:
    return day == last_day_of_month(day)


def days_until_month_end(day: date) -> int:
    """Whole days from ``day`` to the end of its month (0 on the last day)"""
    return (last_day_of_month(day) - day).days


def add_months(start: date | datetime, months: int) -> date:
    """Calendar month addition, clamping to the month's last day (Jan 31 + 1 -> Feb 28)"""
    if isinstance(start, datetime):
        start = start.date()
    return start + relativedelta(months=months)
