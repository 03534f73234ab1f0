"""
Workday math and calendar helpers.
Pure functions over the worked-day mapping: no I/O besides diagnostics.
"""

import calendar
import logging
import re
from dataclasses import dataclass
from datetime import date
from numbers import Real
from typing import Any, Dict, Iterator, List, Mapping, Optional, Set, Tuple, Union

logger = logging.getLogger(__name__)

DAY_KEY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

Number = Union[int, float]


@dataclass(frozen=True)
class WorkdayEntry:
    """
    One calendar day's record.

    Stored values come in two shapes: a bare boolean (worked at the
    default rate) and a mapping with its own rate. Both normalise to
    this type so callers never branch on the stored shape.
    """

    worked: bool = True
    rate: Optional[Number] = None

    def __post_init__(self):
        if self.rate is not None:
            if isinstance(self.rate, bool) or not isinstance(self.rate, Real):
                raise TypeError(f"rate must be a number, got {self.rate!r}")
            if self.rate < 0:
                raise ValueError(f"rate must be >= 0, got {self.rate}")

    @classmethod
    def from_raw(cls, value: Any) -> "WorkdayEntry":
        """
        Normalise a stored value.

        Args:
            value: True/False/None, a {"worked", "rate"} mapping, or an entry

        Returns:
            WorkdayEntry (worked=False for False/None)
        """
        if isinstance(value, cls):
            return value
        if value is None or isinstance(value, bool):
            return cls(worked=bool(value))
        if isinstance(value, Mapping):
            return cls(worked=value.get("worked") is True, rate=value.get("rate"))
        raise TypeError(f"unsupported workday value {value!r}")

    def effective_rate(self, default_rate: Number) -> Number:
        return self.rate if self.rate is not None else default_rate

    def to_document(self) -> Dict[str, Any]:
        doc: Dict[str, Any] = {"worked": self.worked}
        if self.rate is not None:
            doc["rate"] = self.rate
        return doc


def day_key(day_date: date) -> str:
    """ISO key used in the workday mapping."""
    return day_date.isoformat()


def parse_day_key(key: Any) -> Optional[date]:
    """Parse a strict YYYY-MM-DD key; None if it is not a calendar date."""
    if not isinstance(key, str) or not DAY_KEY_RE.match(key):
        return None
    try:
        return date.fromisoformat(key)
    except ValueError:
        return None


def _worked_entries(workdays: Mapping[str, Any]) -> Iterator[Tuple[date, WorkdayEntry]]:
    """Yield (date, entry) for every worked day; bad keys and values are skipped."""
    for key, value in workdays.items():
        day_date = parse_day_key(key)
        if day_date is None:
            logger.warning("Skipping workday with invalid date key %r", key)
            continue
        try:
            entry = WorkdayEntry.from_raw(value)
        except (TypeError, ValueError) as e:
            logger.warning("Skipping workday %s: %s", key, e)
            continue
        if entry.worked:
            yield day_date, entry


def _in_interval(day_date: date, start: Optional[date], end: Optional[date]) -> bool:
    if start is not None and day_date < start:
        return False
    if end is not None and day_date > end:
        return False
    return True


def worked_days_in_interval(workdays: Mapping[str, Any], start: Optional[date], end: Optional[date]) -> int:
    """
    Count worked days with start <= date <= end.

    Args:
        workdays: Mapping of ISO date -> stored value
        start: First day (None = unbounded)
        end: Last day (None = unbounded)

    Returns:
        Number of worked days in the interval
    """
    return sum(1 for day_date, _ in _worked_entries(workdays) if _in_interval(day_date, start, end))


def earnings_in_interval(
    workdays: Mapping[str, Any],
    start: Optional[date],
    end: Optional[date],
    default_rate: Number,
) -> Number:
    """
    Sum effective rates of worked days with start <= date <= end.

    Args:
        workdays: Mapping of ISO date -> stored value
        start: First day (None = unbounded)
        end: Last day (None = unbounded)
        default_rate: Rate for days without their own

    Returns:
        Total earnings in the interval
    """
    return sum(
        entry.effective_rate(default_rate)
        for day_date, entry in _worked_entries(workdays)
        if _in_interval(day_date, start, end)
    )


def month_interval(reference: date) -> Tuple[date, date]:
    """First and last day of the reference date's month."""
    last = calendar.monthrange(reference.year, reference.month)[1]
    return date(reference.year, reference.month, 1), date(reference.year, reference.month, last)


def monthly_days(workdays: Mapping[str, Any], reference: date) -> int:
    return worked_days_in_interval(workdays, *month_interval(reference))


def monthly_earnings(workdays: Mapping[str, Any], reference: date, default_rate: Number) -> Number:
    return earnings_in_interval(workdays, *month_interval(reference), default_rate)


def total_days(workdays: Mapping[str, Any]) -> int:
    return worked_days_in_interval(workdays, None, None)


def total_earnings(workdays: Mapping[str, Any], default_rate: Number) -> Number:
    return earnings_in_interval(workdays, None, None, default_rate)


def marked_days(workdays: Mapping[str, Any]) -> Set[date]:
    """Dates to highlight on the calendar."""
    return {day_date for day_date, _ in _worked_entries(workdays)}


def month_grid(year: int, month: int) -> List[List[Optional[date]]]:
    """
    Generate a calendar grid for the given month.

    Args:
        year: Year (e.g., 2024)
        month: Month (1-12)

    Returns:
        List of weeks, each containing 7 days (None for empty cells)
    """
    grid = []
    for week in calendar.monthcalendar(year, month):
        grid.append([date(year, month, day) if day else None for day in week])
    return grid


def get_month_name(month: int) -> str:
    """Month heading for the summary and calendar, e.g. 3 -> "March"."""
    return calendar.month_name[month]


def add_months(source_date: date, months: int) -> date:
    """
    Shift a date by whole months for calendar navigation.

    The day is clamped to the target month, so Jan 31 + 1 month is the
    last day of February.
    """
    year_shift, month_index = divmod(source_date.month - 1 + months, 12)
    year = source_date.year + year_shift
    last_day = calendar.monthrange(year, month_index + 1)[1]
    return source_date.replace(year=year, month=month_index + 1, day=min(source_date.day, last_day))


def format_money(amount: Number, currency: str) -> str:
    """1800 -> '1,800 UAH'; fractional amounts keep two decimals."""
    if float(amount).is_integer():
        return f"{int(amount):,} {currency}"
    return f"{amount:,.2f} {currency}"
