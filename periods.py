from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional
from zoneinfo import ZoneInfo

from config import get_settings


class InvalidPeriodError(ValueError):
    pass


@dataclass(frozen=True)
class Period:
    """A window of calendar dates.

    Half-open (``start <= d < end``) unless ``closed`` is set, in which case
    ``end`` is itself the last day. Windows reaching ``date.max`` are closed.
    """

    slug: str
    start: date
    end: date
    closed: bool = False

    @property
    def is_empty(self) -> bool:
        if self.closed:
            return self.end < self.start
        return self.end <= self.start

    @property
    def last_day(self) -> date:
        if self.closed:
            return self.end
        return self.end - date.resolution


def local_today() -> date:
    settings = get_settings()
    tz = ZoneInfo(settings.timezone)
    return datetime.now(tz).date()


def add_months(d: date, count: int) -> date:
    month_index = (d.year * 12) + (d.month - 1) + count
    year = month_index // 12
    month = (month_index % 12) + 1
    return date(year, month, 1)


def validate_month(month: int, year: int) -> None:
    if not 1 <= month <= 12:
        raise InvalidPeriodError(f"Month must be between 1 and 12, got {month}")
    if not 1 <= year <= 9998:
        raise InvalidPeriodError(f"Year out of range: {year}")


def month_period(year: int, month: int) -> Period:
    validate_month(month, year)
    start = date(year, month, 1)
    return Period("month", start, add_months(start, 1))


def year_period(year: int) -> Period:
    validate_month(1, year)
    return Period("year", date(year, 1, 1), date(year + 1, 1, 1))


def _through(slug: str, start: date, last_day: date) -> Period:
    if last_day == date.max:
        return Period(slug, start, last_day, closed=True)
    return Period(slug, start, last_day + date.resolution)


def range_period(start: date, end: date) -> Period:
    # Both bounds are inclusive calendar dates; an inverted range is empty.
    if end < start:
        return Period("custom", start, start)
    return _through("custom", start, end)


def trailing_period(today: date, months: int) -> Period:
    if months < 1:
        raise InvalidPeriodError("Trailing window needs at least one month")
    first = add_months(today.replace(day=1), -(months - 1))
    return _through("trailing", first, today)


def month_starts(period: Period) -> list[date]:
    if period.is_empty:
        return []
    first = period.start.replace(day=1)
    last = period.last_day
    count = (last.year - first.year) * 12 + (last.month - first.month) + 1
    return [add_months(first, offset) for offset in range(count)]


def resolve_period(
    period: Optional[str],
    start: Optional[str],
    end: Optional[str],
    *,
    today: Optional[date] = None,
) -> Period:
    today = today or local_today()
    if period == "last_month":
        last = add_months(today.replace(day=1), -1)
        return month_period(last.year, last.month)
    if period == "custom" or (not period and (start or end)):
        if not start or not end:
            raise InvalidPeriodError("Custom period requires start and end dates")
        try:
            start_date = date.fromisoformat(start)
            end_date = date.fromisoformat(end)
        except ValueError as exc:
            raise InvalidPeriodError(str(exc)) from exc
        return range_period(start_date, end_date)
    if period and period != "this_month":
        raise InvalidPeriodError(f"Unknown period: {period}")
    return month_period(today.year, today.month)
