from datetime import datetime, timezone

import pytest

from runclub.core.errors import (
    InvalidDateFormat,
    InvalidPaceFormat,
    InvalidTimeFormat,
    MissingField,
    NonexistentLocalTime,
)
from runclub.services.normalizer import normalize_many, normalize_run, title_case_location

TZ = "America/New_York"


def test_create_run_scenario(run_payload):
    run = normalize_run(run_payload, TZ)

    assert run.instant == datetime(2025, 8, 27, 21, 30, tzinfo=timezone.utc)
    assert run.location == "Central Park"
    assert run.pace == "8:30/mile"
    assert run.display_time == "17:30"
    assert run.local_date == "2025-08-27"
    assert run.description == "Easy loop"


def test_invalid_pace_is_rejected(run_payload):
    run_payload["pace"] = "fast"
    with pytest.raises(InvalidPaceFormat):
        normalize_run(run_payload, TZ)


@pytest.mark.parametrize("pace", ["8:30/mile", " 5:15/km ", "9/mile", "4:05:10/km"])
def test_pace_grammar_accepts(run_payload, pace):
    run_payload["pace"] = pace
    assert normalize_run(run_payload, TZ).pace == pace.strip()


@pytest.mark.parametrize("pace", ["8:30", "8:30/mi", "8:30 /mile", "eight/mile", "8:30/MILE"])
def test_pace_grammar_rejects(run_payload, pace):
    run_payload["pace"] = pace
    with pytest.raises(InvalidPaceFormat):
        normalize_run(run_payload, TZ)


@pytest.mark.parametrize("field", ["date", "time", "location", "pace"])
def test_missing_required_field(run_payload, field):
    del run_payload[field]
    with pytest.raises(MissingField) as exc:
        normalize_run(run_payload, TZ)
    assert exc.value.field == field
    assert field in exc.value.message


def test_blank_required_field_counts_as_missing(run_payload):
    run_payload["location"] = "   "
    with pytest.raises(MissingField):
        normalize_run(run_payload, TZ)


def test_twelve_hour_time_is_converted(run_payload):
    run_payload["time"] = "5:30 PM"
    run = normalize_run(run_payload, TZ)
    assert run.display_time == "17:30"
    assert run.instant == datetime(2025, 8, 27, 21, 30, tzinfo=timezone.utc)


def test_bad_time_is_rejected(run_payload):
    run_payload["time"] = "half past five"
    with pytest.raises(InvalidTimeFormat):
        normalize_run(run_payload, TZ)


def test_bad_date_is_rejected(run_payload):
    run_payload["date"] = "someday"
    with pytest.raises(InvalidDateFormat):
        normalize_run(run_payload, TZ)


def test_iso_timestamp_date_uses_utc_calendar_day(run_payload):
    # what older clients send: midnight UTC of the chosen day
    run_payload["date"] = "2025-08-27T00:00:00.000Z"
    run = normalize_run(run_payload, TZ)
    assert run.local_date == "2025-08-27"
    assert run.instant == datetime(2025, 8, 27, 21, 30, tzinfo=timezone.utc)


def test_winter_run_uses_standard_offset(run_payload):
    run_payload.update(date="2025-01-15", time="06:00")
    run = normalize_run(run_payload, TZ)
    assert run.instant == datetime(2025, 1, 15, 11, 0, tzinfo=timezone.utc)


def test_spring_forward_gap_is_rejected(run_payload):
    run_payload.update(date="2025-03-09", time="02:30")
    with pytest.raises(NonexistentLocalTime):
        normalize_run(run_payload, TZ)


def test_description_defaults_to_empty(run_payload):
    del run_payload["description"]
    assert normalize_run(run_payload, TZ).description == ""
    run_payload["description"] = None
    assert normalize_run(run_payload, TZ).description == ""


def test_payload_id_is_ignored(run_payload):
    run_payload["id"] = "not-yours"
    run = normalize_run(run_payload, TZ)
    assert not hasattr(run, "id")


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("central park", "Central Park"),
        ("  BROOKLYN bridge  ", "Brooklyn Bridge"),
        ("walk in the park", "Walk In The Park"),
        ("prospect  park", "Prospect  Park"),
        ("o'neill field", "O'neill Field"),
    ],
)
def test_location_title_case(raw, expected):
    assert title_case_location(raw) == expected


@pytest.mark.parametrize(
    "payload",
    [
        {"date": "2025-08-27", "time": "17:30", "location": "central park", "pace": "8:30/mile"},
        {"date": "2025-08-27T00:00:00Z", "time": "5:30 pm", "location": "the HIGH line", "pace": " 5:15/km "},
        {"date": "2025-11-02", "time": "1:30 AM", "location": "river path", "pace": "9:00/mile"},
        {"date": "2025-03-09", "time": "22:45", "location": "track", "pace": "7:00/mile", "description": " x "},
    ],
)
def test_normalizing_twice_changes_nothing(payload):
    once = normalize_run(payload, TZ)
    twice = normalize_run(once.payload(), TZ)

    assert twice.instant == once.instant
    assert twice.pace == once.pace
    assert twice.location == once.location
    assert twice == once


def test_batch_skips_bad_entries_and_keeps_going(run_payload):
    bad_pace = {**run_payload, "pace": "fast"}
    no_date = {k: v for k, v in run_payload.items() if k != "date"}
    later = {**run_payload, "date": "2025-09-01"}

    good, errors = normalize_many([run_payload, bad_pace, "nope", no_date, later], TZ)

    assert [idx for idx, _ in good] == [0, 4]
    assert [e.index for e in errors] == [1, 2, 3]
    assert "pace" in errors[0].error
    assert errors[2].field == "date"


@pytest.mark.parametrize(("day", "at"), [("9999-12-31", "23:00"), ("0001-01-01", "00:00")])
def test_out_of_range_date_is_rejected(run_payload, day, at):
    with pytest.raises(InvalidDateFormat):
        normalize_run({**run_payload, "date": day, "time": at}, TZ)


def test_batch_keeps_going_past_out_of_range_date(run_payload):
    edge = {**run_payload, "date": "0001-01-01", "time": "00:00"}

    good, errors = normalize_many([run_payload, edge], TZ)

    assert [idx for idx, _ in good] == [0]
    assert [e.index for e in errors] == [1]
