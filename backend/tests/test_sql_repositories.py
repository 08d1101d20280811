"""Behaviour that only the relational store has to get right."""
from datetime import datetime, timezone

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from runclub.api.deps import sql_repositories
from runclub.core.errors import NotFound
from runclub.models.leaderboard_user import LeaderboardUser as LeaderboardUserRow
from runclub.models.rsvp import RSVP as RSVPRow
from runclub.services.leaderboard import LeaderboardStatsStore
from runclub.services.rsvp import RSVPService
from runclub.services.runs import RunService

NOW = datetime(2025, 8, 20, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def sql(db):
    return sql_repositories(db)


def test_instant_survives_round_trip_as_utc(sql, run_payload):
    run = RunService(sql.runs, "America/New_York").create(run_payload)

    loaded = sql.runs.get(run.id)
    assert loaded.instant == datetime(2025, 8, 27, 21, 30, tzinfo=timezone.utc)
    assert loaded.instant.tzinfo is not None
    assert loaded.local_date == "2025-08-27"
    assert loaded.display_time == "17:30"


def test_runs_list_sorted_by_instant(sql, run_payload):
    service = RunService(sql.runs, "America/New_York")
    late = service.create({**run_payload, "date": "2025-09-10"})
    early = service.create({**run_payload, "date": "2025-08-01"})

    assert [r.id for r in service.list()] == [early.id, late.id]


def test_replace_missing_run(sql, run_payload):
    service = RunService(sql.runs, "America/New_York")
    with pytest.raises(NotFound):
        service.update("missing", run_payload)


def test_unique_index_blocks_second_live_rsvp(db, sql, run_payload):
    run = RunService(sql.runs, "America/New_York").create(run_payload)
    RSVPService(sql.runs, sql.rsvps).submit(
        run.id, {"firstName": "Amy", "lastName": "C", "username": "amy", "status": "yes"}, NOW
    )

    db.add(
        RSVPRow(
            id="dup",
            run_id=run.id,
            first_name="Amy",
            last_name="C",
            username="AMY",
            status="no",
            timestamp=NOW,
        )
    )
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


def test_rsvp_replacement_keeps_single_row(db, sql, run_payload):
    run = RunService(sql.runs, "America/New_York").create(run_payload)
    service = RSVPService(sql.runs, sql.rsvps)
    for status in ("yes", "no", "yes"):
        service.submit(
            run.id, {"firstName": "Amy", "lastName": "C", "username": "Amy", "status": status}, NOW
        )

    rows = db.execute(select(RSVPRow).where(RSVPRow.run_id == run.id)).scalars().all()
    assert len(rows) == 1
    assert rows[0].status == "yes"
    assert rows[0].username == "amy"


def test_increment_is_a_single_update(db, sql):
    store = LeaderboardStatsStore(sql.leaderboard)
    user = store.create({"firstName": "Kam", "lastName": "R", "totalMiles": 2.5})

    # a stale copy must not overwrite the increment
    stale = sql.leaderboard.get(user.id)
    store.adjust(user.id, {"deltaMiles": 1.5, "deltaRuns": 1})
    store.adjust(user.id, {"deltaMiles": 1.0})

    row = db.get(LeaderboardUserRow, user.id)
    db.refresh(row)
    assert row.total_miles == pytest.approx(5.0)
    assert row.total_runs == 1
    assert stale.total_miles == 2.5


def test_increment_unknown_user_returns_none(sql):
    assert sql.leaderboard.increment("nope", 1, 1.0, NOW) is None
