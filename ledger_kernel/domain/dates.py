"""
Calendar date handling for report parameters and records.

Responsibility:
    Parse report date arguments, truncate timestamps to calendar days and
    represent inclusive reporting windows.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - All filtering happens on calendar dates.  A timestamp anywhere inside
      a day belongs to that day, so an inclusive ``end`` date covers the
      whole day through 23:59:59.999.
    - ``DateRange.start <= DateRange.end``.

Failure modes:
    - InvalidDateError for unparseable input.
    - InvalidDateRangeError when start falls after end.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta

from ledger_kernel.exceptions import InvalidDateError, InvalidDateRangeError


def as_calendar_date(value: date | datetime) -> date:
    """Truncate a datetime to its calendar day; dates pass through."""
    if isinstance(value, datetime):
        return value.date()
    return value


def parse_report_date(
    value: date | datetime | str | None,
    field_name: str,
    default: date | None = None,
) -> date:
    """
    Parse a report date argument.

    Accepts ``date``, ``datetime`` (truncated), ISO ``YYYY-MM-DD`` strings and
    full ISO timestamps.  ``None`` or an empty string yields ``default``.

    Raises:
        InvalidDateError: The value cannot be parsed, or it is missing and
            no default was given.
    """
    if value is None or value == "":
        if default is None:
            raise InvalidDateError(field_name, value)
        return default
    if isinstance(value, (date, datetime)):
        return as_calendar_date(value)
    if isinstance(value, str):
        text = value.strip()
        try:
            if len(text) == 10:
                return date.fromisoformat(text)
            return datetime.fromisoformat(text).date()
        except ValueError:
            raise InvalidDateError(field_name, value) from None
    raise InvalidDateError(field_name, value)


@dataclass(frozen=True)
class DateRange:
    """
    Inclusive reporting window ``[start, end]``.

    Guarantees:
        - start <= end.
    """

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise InvalidDateRangeError(self.start, self.end)

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    @property
    def day_before_start(self) -> date:
        """The as-of date used for brought-forward balances."""
        return self.start - timedelta(days=1)
