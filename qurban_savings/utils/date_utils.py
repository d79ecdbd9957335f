"""Date manipulation utilities"""

from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo


def next_weekday(from_date: date, iso_weekday: int) -> date:
    """First date on or after from_date falling on iso_weekday (1=Monday .. 7=Sunday)"""
    offset = (iso_weekday - from_date.isoweekday()) % 7
    return from_date + timedelta(days=offset)


def add_months(from_date: date, months: int, day: int) -> date:
    """Same day-of-month `months` later; day must be <= 28 so every month has it"""
    month_index = from_date.month - 1 + months
    year = from_date.year + month_index // 12
    return date(year, month_index % 12 + 1, day)


def next_month_day(from_date: date, day: int) -> date:
    """First date on or after from_date whose day-of-month is `day`"""
    if from_date.day <= day:
        return from_date.replace(day=day)
    return add_months(from_date, 1, day)


def current_year(tz_name: str) -> int:
    """Calendar year in the given timezone"""
    return datetime.now(ZoneInfo(tz_name)).year
