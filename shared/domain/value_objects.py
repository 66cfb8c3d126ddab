"""
Common Value Objects

- DateRange: an inclusive range of calendar days (availability windows,
  booking periods)
- to_calendar_date: normalises timestamps to a date-only value
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Iterator

from shared.domain.base import ValueObject


def to_calendar_date(value, tz: tzinfo = timezone.utc) -> date:
    """
    Normalise a date-like value to a calendar day

    Accepts date objects, datetimes and ISO-8601 strings. Aware datetimes
    are first converted to ``tz`` so two timestamps on the same calendar
    day always map to the same date regardless of their time component.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(tz)
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("Empty date value")
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
        try:
            parsed = datetime.fromisoformat(text.replace('Z', '+00:00'))
        except ValueError:
            raise ValueError(f"Invalid date value: {value!r}") from None
        return to_calendar_date(parsed, tz)
    raise TypeError(f"Cannot interpret {type(value).__name__} as a date")


@dataclass(frozen=True)
class DateRange(ValueObject):
    """
    Inclusive day-granularity interval [start_date, end_date]

    A single-day range (start_date == end_date) is valid. An inverted
    range can be constructed so callers can report it; ``is_valid`` tells
    them apart.
    """
    start_date: date
    end_date: date

    @classmethod
    def from_values(cls, start, end, tz: tzinfo = timezone.utc) -> 'DateRange':
        return cls(to_calendar_date(start, tz), to_calendar_date(end, tz))

    @property
    def is_valid(self) -> bool:
        return self.start_date <= self.end_date

    def overlaps(self, other: 'DateRange') -> bool:
        """
        True if both ranges share at least one calendar day

        Examples:
            - DateRange(05, 10) overlaps DateRange(08, 15) -> True
            - DateRange(05, 10) overlaps DateRange(10, 12) -> True (shared day)
            - DateRange(05, 10) overlaps DateRange(11, 12) -> False
        """
        if not isinstance(other, DateRange):
            raise TypeError("Can only check overlap with another DateRange")
        return self.start_date <= other.end_date and other.start_date <= self.end_date

    def contains(self, other: 'DateRange') -> bool:
        """True if ``other`` lies entirely within this range"""
        if not isinstance(other, DateRange):
            raise TypeError("Can only check containment of another DateRange")
        return self.start_date <= other.start_date and other.end_date <= self.end_date

    def includes(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    def days(self) -> Iterator[date]:
        current = self.start_date
        while current <= self.end_date:
            yield current
            current += timedelta(days=1)

    def __len__(self) -> int:
        """Number of calendar days covered (0 for an inverted range)"""
        return max((self.end_date - self.start_date).days + 1, 0)

    def __str__(self):
        return f"{self.start_date.isoformat()} - {self.end_date.isoformat()}"

    def __repr__(self):
        return f"DateRange({self.start_date}, {self.end_date})"
