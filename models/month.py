"""Calendar month value object (YYYY-MM)."""

import calendar
import re
from dataclasses import dataclass
from datetime import date
from typing import Iterator, Optional

from dateutil.relativedelta import relativedelta

from errors import ValidationError

# ASCII digits only; callers must match the whole string
MONTH_PATTERN = r"^[0-9]{4}-[0-9]{2}$"
_MONTH_RE = re.compile(MONTH_PATTERN)

MIN_YEAR = 1900
MAX_YEAR = 2100


@dataclass(frozen=True, order=True)
class Month:
    """A calendar month without a day component.

    Ordering compares year first, then month, so ``Month`` values can be used
    directly in window checks like ``start <= month <= end``.

    Attributes:
        year: Four digit year (1900-2100).
        month: Month number (1-12).
    """

    year: int
    month: int

    def __post_init__(self):
        if self.month < 1 or self.month > 12:
            raise ValidationError("Month must be between 1 and 12")
        if self.year < MIN_YEAR or self.year > MAX_YEAR:
            raise ValidationError(
                f"Year must be between {MIN_YEAR} and {MAX_YEAR}"
            )

    @classmethod
    def parse(cls, value: str) -> "Month":
        """Parse a strict YYYY-MM string.

        Args:
            value: Month string, e.g. "2025-06".

        Returns:
            Month instance.

        Raises:
            ValidationError: If the string is not exactly YYYY-MM or is out of range.
        """
        if not isinstance(value, str) or not _MONTH_RE.fullmatch(value):
            raise ValidationError(
                f"Invalid month format: {value!r}. Use YYYY-MM"
            )
        year_str, month_str = value.split("-")
        return cls(int(year_str), int(month_str))

    @classmethod
    def from_date(cls, value: date) -> "Month":
        return cls(value.year, value.month)

    @classmethod
    def current(cls, today: Optional[date] = None) -> "Month":
        """Get the month containing ``today`` (defaults to the system date)."""
        return cls.from_date(today or date.today())

    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    def last_day(self) -> date:
        return date(self.year, self.month, calendar.monthrange(self.year, self.month)[1])

    def clamp_day(self, day: int) -> date:
        """Get the date for a day-of-month anchor, clamped to this month's length.

        Day 31 in a 30-day month becomes day 30; day 30 or 31 in February
        becomes the 28th (or 29th in leap years).
        """
        last = calendar.monthrange(self.year, self.month)[1]
        return date(self.year, self.month, min(day, last))

    def previous(self) -> "Month":
        return Month.from_date(self.first_day() - relativedelta(months=1))

    def next(self) -> "Month":
        return Month.from_date(self.first_day() + relativedelta(months=1))

    def contains(self, value: date) -> bool:
        return value.year == self.year and value.month == self.month

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


def months_between(start: Month, end: Month) -> Iterator[Month]:
    """Iterate months from start to end, inclusive.

    Yields nothing when end is before start.
    """
    current = start
    while current <= end:
        yield current
        current = current.next()
