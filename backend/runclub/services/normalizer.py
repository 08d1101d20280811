"""Validation and normalization of run create/update payloads."""
from __future__ import annotations

import logging
import re
from typing import Any, Iterable, Mapping, Optional

from runclub.core.constants import PACE_RE, REQUIRED_RUN_FIELDS
from runclub.core.errors import InvalidPaceFormat, MissingField, ValidationFailed
from runclub.core.time_utils import (
    parse_calendar_date,
    parse_time_of_day,
    time_to_hhmm,
    to_utc_instant,
)
from runclub.schemas.run import CanonicalRun, ImportEntryError

logger = logging.getLogger(__name__)


def title_case_location(raw: str) -> str:
    """Trim and capitalize every whitespace-delimited word.

    Every token is treated the same, articles and prepositions included
    ('walk in the park' -> 'Walk In The Park'). Clients depend on this.
    """
    return re.sub(r"\S+", lambda m: m.group(0)[:1].upper() + m.group(0)[1:].lower(), raw.strip())


def normalize_pace(raw: str) -> str:
    pace = raw.strip()
    if not PACE_RE.match(pace):
        raise InvalidPaceFormat(raw)
    return pace


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def normalize_run(payload: Mapping[str, Any], tz_name: Optional[str] = None) -> CanonicalRun:
    """Turn a raw run payload into its canonical stored form.

    Expects `date`, `time`, `location` and `pace`; `description` is optional.
    The date/time pair is read as wall-clock time in `tz_name` (the club's
    reference zone) and pinned to an exact UTC instant. Any `id` in the
    payload is ignored; on update the id comes from the URL.
    """
    if not isinstance(payload, Mapping):
        raise ValidationFailed("Run payload must be a JSON object")
    for field in REQUIRED_RUN_FIELDS:
        if _is_blank(payload.get(field)):
            raise MissingField(field)

    day = parse_calendar_date(payload["date"])
    hour, minute = parse_time_of_day(payload["time"])
    instant = to_utc_instant(day.year, day.month, day.day, hour, minute, tz_name)

    location = payload["location"]
    pace = payload["pace"]
    if not isinstance(location, str):
        raise ValidationFailed("location must be a string")
    if not isinstance(pace, str):
        raise InvalidPaceFormat(pace)

    description = payload.get("description") or ""
    if not isinstance(description, str):
        raise ValidationFailed("description must be a string")

    return CanonicalRun(
        local_date=day.isoformat(),
        display_time=time_to_hhmm(hour, minute),
        instant=instant,
        location=title_case_location(location),
        pace=normalize_pace(pace),
        description=description.strip(),
    )


def normalize_many(
    payloads: Iterable[Any], tz_name: Optional[str] = None
) -> tuple[list[tuple[int, CanonicalRun]], list[ImportEntryError]]:
    """Normalize a batch, skipping bad entries instead of failing the lot.

    Returns (index, run) pairs for the good entries and one error per bad
    entry, both keyed by position in the input.
    """
    good: list[tuple[int, CanonicalRun]] = []
    errors: list[ImportEntryError] = []
    for idx, payload in enumerate(payloads):
        try:
            good.append((idx, normalize_run(payload, tz_name)))
        except ValidationFailed as exc:
            logger.warning("Skipping run #%d in batch: %s", idx, exc.message)
            errors.append(
                ImportEntryError(
                    index=idx,
                    error=exc.message,
                    field=getattr(exc, "field", None),
                )
            )
    return good, errors
