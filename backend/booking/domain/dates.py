from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta

SUNDAY = 6  # date.weekday()
CUTOFF_HOUR = 18
WINDOW_DAYS = 180


def _day(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


def is_sunday(value: date | datetime) -> bool:
    return _day(value).weekday() == SUNDAY


def is_eligible(
    value: date | datetime,
    min_date: date | datetime | None = None,
    max_date: date | datetime | None = None,
) -> bool:
    """Return True if ``value`` can be picked as an appointment day.

    Sundays are never eligible. Bounds are inclusive and compared by calendar
    day only.
    """
    day = _day(value)
    if is_sunday(day):
        return False
    if min_date is not None and day < _day(min_date):
        return False
    if max_date is not None and day > _day(max_date):
        return False
    return True


def earliest_available_date(now: datetime, *, cutoff_hour: int = CUTOFF_HOUR) -> date:
    day = now.date()
    if now.hour >= cutoff_hour:
        day += timedelta(days=1)
    # Single skip: a Saturday evening rolls to Sunday, then to Monday.
    if is_sunday(day):
        day += timedelta(days=1)
    return day


@dataclass(frozen=True)
class DateWindow:
    earliest: date
    latest: date

    def contains(self, value: date | datetime) -> bool:
        return is_eligible(value, self.earliest, self.latest)


def date_window(
    now: datetime,
    *,
    cutoff_hour: int = CUTOFF_HOUR,
    days: int = WINDOW_DAYS,
) -> DateWindow:
    earliest = earliest_available_date(now, cutoff_hour=cutoff_hour)
    return DateWindow(earliest=earliest, latest=earliest + timedelta(days=days))
