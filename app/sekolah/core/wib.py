# app/sekolah/core/wib.py
"""
WIB (Asia/Jakarta, UTC+7) date and time helpers.

Every attendance cutoff is evaluated against these functions instead of the
host's local clock, so the service behaves the same on a UTC server as on a
laptop in Jakarta.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Iterator, Optional, Union
from zoneinfo import ZoneInfo

WIB_TZ = ZoneInfo("Asia/Jakarta")

# Index matches date.weekday(): Monday == 0
DAY_NAMES = ["Senin", "Selasa", "Rabu", "Kamis", "Jumat", "Sabtu", "Minggu"]
MONTH_NAMES = [
    "Januari", "Februari", "Maret", "April", "Mei", "Juni",
    "Juli", "Agustus", "September", "Oktober", "November", "Desember",
]
FRIDAY = 4


def _to_wib(moment: Optional[datetime]) -> datetime:
    if moment is None:
        return datetime.now(WIB_TZ)
    if moment.tzinfo is None:
        # Naive datetimes coming from the database are UTC.
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(WIB_TZ)


def _to_date(day: Union[date, str]) -> date:
    if isinstance(day, datetime):
        return _to_wib(day).date()
    if isinstance(day, date):
        return day
    return date.fromisoformat(day)


def now_wib() -> datetime:
    """Current moment as an aware datetime in WIB."""
    return datetime.now(WIB_TZ)


def wib_date(moment: Optional[datetime] = None) -> date:
    """Calendar date observed in WIB at ``moment`` (default: now)."""
    return _to_wib(moment).date()


def wib_date_str(moment: Optional[datetime] = None) -> str:
    """``YYYY-MM-DD`` in WIB."""
    return wib_date(moment).isoformat()


def wib_time_hm(moment: Optional[datetime] = None) -> str:
    """24-hour ``HH:MM`` in WIB."""
    return _to_wib(moment).strftime("%H:%M")


def wib_date_from_iso(iso: str) -> date:
    """WIB calendar date of an ISO-8601 timestamp such as ``2026-10-19T18:30:00Z``."""
    if iso.endswith("Z"):
        iso = iso[:-1] + "+00:00"
    return wib_date(datetime.fromisoformat(iso))


def wib_weekday_name(day: Union[date, str]) -> str:
    """Indonesian weekday name, the value stored in ``schedules.day``."""
    return DAY_NAMES[_to_date(day).weekday()]


def format_wib_clock(moment: Optional[datetime] = None) -> str:
    return _to_wib(moment).strftime("%H.%M.%S")


def format_wib_long_date(moment: Optional[datetime] = None) -> str:
    """e.g. ``Senin, 19 Oktober 2026``"""
    current = _to_wib(moment)
    return f"{DAY_NAMES[current.weekday()]}, {current.day} {MONTH_NAMES[current.month - 1]} {current.year}"


def wib_day_bounds(day: date) -> tuple[datetime, datetime]:
    """Start (inclusive) and end (exclusive) of a WIB calendar day as aware datetimes."""
    start = datetime.combine(day, time.min, tzinfo=WIB_TZ)
    return start, start + timedelta(days=1)


def is_friday(day: Union[date, str]) -> bool:
    return _to_date(day).weekday() == FRIDAY


def parse_hhmm(value: Union[str, time]) -> time:
    """Parses ``HH:MM`` or ``HH:MM:SS``. Raises ValueError on anything else."""
    if isinstance(value, time):
        return value
    parts = value.strip().split(":")
    if len(parts) not in (2, 3):
        raise ValueError(f"Invalid time value: {value!r}")
    hour, minute = int(parts[0]), int(parts[1])
    second = int(parts[2]) if len(parts) == 3 else 0
    return time(hour, minute, second)


def format_hhmm(value: Union[str, time]) -> str:
    return parse_hhmm(value).strftime("%H:%M")


def minutes_of_day(value: Union[str, time]) -> int:
    parsed = parse_hhmm(value)
    return parsed.hour * 60 + parsed.minute


def minutes_until(target: Union[str, time], current: Union[str, time]) -> int:
    """Whole minutes from ``current`` to ``target`` on the same day; negative once passed."""
    return minutes_of_day(target) - minutes_of_day(current)


def iter_dates(start: date, end: date) -> Iterator[date]:
    """Every calendar date from ``start`` to ``end``, both inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)
