from datetime import date, datetime, timedelta, timezone
from email.utils import parsedate_to_datetime
from typing import NamedTuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from runclub.core.constants import DEFAULT_TIMEZONE, HHMM_RE, ISO_DATE_RE, LOOSE_TIME_RE
from runclub.core.errors import InvalidDateFormat, InvalidTimeFormat, NonexistentLocalTime


class WallTime(NamedTuple):
    """Civil date/time as read on a clock in some zone (month is 1-based)."""

    year: int
    month: int
    day: int
    hour: int
    minute: int
    second: int = 0

    def naive(self) -> datetime:
        return datetime(self.year, self.month, self.day, self.hour, self.minute, self.second)


def get_zone(tz_name: str | None = None) -> ZoneInfo:
    name = tz_name or DEFAULT_TIMEZONE
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone: {name}") from exc


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops tzinfo) and convert aware ones."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def from_utc_instant(instant: datetime, tz_name: str | None = None) -> WallTime:
    """Render a UTC instant as wall-clock fields in `tz_name`.

    Naive instants are assumed to be UTC.
    """
    local = ensure_utc(instant).astimezone(get_zone(tz_name))
    return WallTime(local.year, local.month, local.day, local.hour, local.minute, local.second)


def to_utc_instant(
    year: int,
    month: int,
    day: int,
    hour: int,
    minute: int,
    tz_name: str | None = None,
) -> datetime:
    """Convert a civil wall-clock time in `tz_name` into an aware UTC datetime.

    Fixed-point correction:
      1. pretend the wall-clock fields are already UTC (the guess)
      2. render the guess in the zone, take the difference to the intended
         wall time and subtract it from the guess
      3. repeat 2 until the rendered wall time matches

    Whatever offset is in force on that calendar date falls out of step 2,
    so DST is handled without any hard-coded offsets. One pass is enough
    except within a few hours after a transition, where the guess sits on
    the other side of it and a second pass settles it.

    Repeated wall times (fall-back) resolve to the earlier occurrence.
    Skipped wall times (spring-forward) never settle and raise
    NonexistentLocalTime.
    """
    try:
        intended = WallTime(year, month, day, hour, minute)
        target = intended.naive()
    except ValueError as exc:
        raise InvalidDateFormat(f"{year}-{month}-{day} {hour}:{minute}") from exc

    instant = target.replace(tzinfo=timezone.utc)
    try:
        for _ in range(3):
            delta = from_utc_instant(instant, tz_name).naive() - target
            if not delta:
                return instant
            instant = instant - delta
    except OverflowError as exc:
        # within a day of datetime.min/max the zone shift leaves the range
        raise InvalidDateFormat(f"{year:04d}-{month:02d}-{day:02d}") from exc

    wall = f"{year:04d}-{month:02d}-{day:02d} {hour:02d}:{minute:02d}"
    raise NonexistentLocalTime(wall, tz_name or DEFAULT_TIMEZONE)


def utc_offset(instant: datetime, tz_name: str | None = None) -> timedelta:
    """UTC offset in force in `tz_name` at `instant`."""
    return ensure_utc(instant).astimezone(get_zone(tz_name)).utcoffset()


def parse_calendar_date(raw) -> date:
    """Parse a run date into calendar components.

    Accepts:
      - 'YYYY-MM-DD' (taken literally, no timezone involved)
      - ISO 8601 timestamps, e.g. '2025-08-27T00:00:00.000Z'
      - RFC 2822 dates, e.g. 'Wed, 27 Aug 2025 00:00:00 GMT'
      - a few common human formats ('08/27/2025', 'Aug 27, 2025')

    For anything carrying a time of day the UTC calendar fields are used,
    never the host's local ones. Naive timestamps count as UTC.
    """
    if isinstance(raw, datetime):
        return ensure_utc(raw).date()
    if isinstance(raw, date):
        return raw
    if not isinstance(raw, str) or not raw.strip():
        raise InvalidDateFormat(raw)
    s = raw.strip()

    m = ISO_DATE_RE.match(s)
    if m:
        try:
            return date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
        except ValueError as exc:
            raise InvalidDateFormat(raw) from exc

    parsed = None
    try:
        parsed = datetime.fromisoformat(s.replace("Z", "+00:00"))
    except ValueError:
        pass
    if parsed is None:
        try:
            parsed = parsedate_to_datetime(s)
        except (TypeError, ValueError, IndexError):
            parsed = None
    if parsed is None:
        candidates = [
            "%m/%d/%Y",
            "%m/%d/%Y %H:%M",
            "%b %d, %Y",
            "%B %d, %Y",
            "%d %b %Y",
            "%d %B %Y",
        ]
        for fmt in candidates:
            try:
                parsed = datetime.strptime(s, fmt)
                break
            except ValueError:
                continue
    if parsed is None:
        raise InvalidDateFormat(raw)
    return ensure_utc(parsed).date()


def parse_time_of_day(raw) -> tuple[int, int]:
    """Parse a run start time into (hour, minute), 24h.

    'HH:MM' passes through; otherwise 'H:MM' with an optional AM/PM suffix
    (with or without a space) is converted to 24h.
    """
    if not isinstance(raw, str):
        raise InvalidTimeFormat(raw, "Time must be a string")
    s = raw.strip()

    m = HHMM_RE.match(s)
    if m:
        return int(m.group(1)), int(m.group(2))

    m = LOOSE_TIME_RE.match(s)
    if not m:
        raise InvalidTimeFormat(raw)
    hours, minutes = int(m.group(1)), int(m.group(2))
    period = m.group(3).upper() if m.group(3) else None
    if minutes > 59:
        raise InvalidTimeFormat(raw)
    if period is None:
        if hours > 23:
            raise InvalidTimeFormat(raw)
        return hours, minutes
    if not 1 <= hours <= 12:
        raise InvalidTimeFormat(raw)
    if period == "PM" and hours != 12:
        hours += 12
    elif period == "AM" and hours == 12:
        hours = 0
    return hours, minutes


def time_to_hhmm(hour: int, minute: int) -> str:
    return f"{hour:02d}:{minute:02d}"


def format_instant(instant: datetime) -> str:
    """UTC ISO 8601 with a 'Z' suffix, second precision."""
    return ensure_utc(instant).strftime("%Y-%m-%dT%H:%M:%SZ")
