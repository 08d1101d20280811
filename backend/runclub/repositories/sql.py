"""SQLAlchemy-backed repositories.

Every public method commits (or rolls back) its own unit of work. Database
errors are re-raised as StorageError so the API can tell them apart from bad
input.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import case, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from runclub.core.errors import DuplicateUsername, NotFound, StorageError
from runclub.core.time_utils import ensure_utc, from_utc_instant, utcnow
from runclub.models.leaderboard_user import LeaderboardUser as LeaderboardUserRow
from runclub.models.rsvp import RSVP as RSVPRow
from runclub.models.run import Run
from runclub.schemas.leaderboard import LeaderboardUser
from runclub.schemas.rsvp import RSVP
from runclub.schemas.run import ScheduledRun

logger = logging.getLogger(__name__)


@contextmanager
def _unit_of_work(db: Session, action: str):
    try:
        yield
        db.commit()
    except (NotFound, DuplicateUsername):
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Storage failure while trying to %s", action)
        raise StorageError(f"Could not {action}") from exc


class SqlRunRepository:
    def __init__(self, db: Session, tz_name: str | None = None):
        self.db = db
        self.tz_name = tz_name

    def _to_schema(self, row: Run) -> ScheduledRun:
        instant = ensure_utc(row.instant)
        local = from_utc_instant(instant, self.tz_name)
        return ScheduledRun(
            id=row.id,
            local_date=f"{local.year:04d}-{local.month:02d}-{local.day:02d}",
            display_time=row.display_time,
            instant=instant,
            location=row.location,
            pace=row.pace,
            description=row.description or "",
        )

    def list(self) -> list[ScheduledRun]:
        try:
            rows = self.db.execute(select(Run).order_by(Run.instant)).scalars().all()
        except SQLAlchemyError as exc:
            logger.exception("Storage failure while listing runs")
            raise StorageError("Could not load runs") from exc
        return [self._to_schema(r) for r in rows]

    def get(self, run_id: str) -> Optional[ScheduledRun]:
        try:
            row = self.db.get(Run, run_id)
        except SQLAlchemyError as exc:
            logger.exception("Storage failure while loading run %s", run_id)
            raise StorageError("Could not load run") from exc
        return self._to_schema(row) if row else None

    def add(self, run: ScheduledRun) -> ScheduledRun:
        with _unit_of_work(self.db, "save run"):
            self.db.add(
                Run(
                    id=run.id,
                    instant=run.instant,
                    display_time=run.display_time,
                    location=run.location,
                    pace=run.pace,
                    description=run.description,
                )
            )
        return run

    def replace(self, run: ScheduledRun) -> ScheduledRun:
        with _unit_of_work(self.db, "update run"):
            row = self.db.get(Run, run.id)
            if row is None:
                raise NotFound("Run", run.id)
            row.instant = run.instant
            row.display_time = run.display_time
            row.location = run.location
            row.pace = run.pace
            row.description = run.description
        return run

    def delete(self, run_id: str) -> Optional[ScheduledRun]:
        removed = None
        with _unit_of_work(self.db, "delete run"):
            row = self.db.get(Run, run_id)
            if row is not None:
                removed = self._to_schema(row)
                # rsvps go with it (ON DELETE CASCADE)
                self.db.delete(row)
        return removed

    def count(self) -> int:
        try:
            return self.db.execute(select(func.count()).select_from(Run)).scalar_one()
        except SQLAlchemyError as exc:
            raise StorageError("Could not count runs") from exc


class SqlRSVPRepository:
    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def _to_schema(row: RSVPRow) -> RSVP:
        return RSVP(
            id=row.id,
            run_id=row.run_id,
            first_name=row.first_name,
            last_name=row.last_name,
            username=row.username,
            status=row.status,
            timestamp=ensure_utc(row.timestamp),
        )

    def list_for_run(self, run_id: str) -> list[RSVP]:
        try:
            rows = (
                self.db.execute(
                    select(RSVPRow).where(RSVPRow.run_id == run_id).order_by(RSVPRow.position)
                )
                .scalars()
                .all()
            )
        except SQLAlchemyError as exc:
            logger.exception("Storage failure while loading RSVPs for run %s", run_id)
            raise StorageError("Could not load RSVPs") from exc
        return [self._to_schema(r) for r in rows]

    def replace_for_run(self, run_id: str, rsvps: Sequence[RSVP]) -> list[RSVP]:
        wanted = {r.id: idx for idx, r in enumerate(rsvps)}
        with _unit_of_work(self.db, "save RSVPs"):
            if self.db.get(Run, run_id) is None:
                raise NotFound("Run", run_id)
            existing = {
                row.id: row
                for row in self.db.execute(
                    select(RSVPRow).where(RSVPRow.run_id == run_id)
                ).scalars()
            }
            for rsvp_id, row in existing.items():
                if rsvp_id not in wanted:
                    self.db.delete(row)
            # deletes must hit the unique (run_id, lower(username)) index first
            self.db.flush()
            for rsvp in rsvps:
                row = existing.get(rsvp.id)
                if row is None:
                    self.db.add(
                        RSVPRow(
                            id=rsvp.id,
                            run_id=run_id,
                            first_name=rsvp.first_name,
                            last_name=rsvp.last_name,
                            username=rsvp.username,
                            status=rsvp.status,
                            timestamp=rsvp.timestamp,
                            position=wanted[rsvp.id],
                        )
                    )
                else:
                    row.position = wanted[rsvp.id]
        return list(rsvps)


class SqlLeaderboardRepository:
    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def _to_schema(row: LeaderboardUserRow) -> LeaderboardUser:
        return LeaderboardUser(
            id=row.id,
            first_name=row.first_name,
            last_name=row.last_name,
            username=row.username,
            total_runs=row.total_runs,
            total_miles=float(row.total_miles),
            is_registered=bool(row.is_registered),
            last_updated=ensure_utc(row.last_updated),
        )

    def list(self) -> list[LeaderboardUser]:
        try:
            rows = (
                self.db.execute(
                    select(LeaderboardUserRow).order_by(LeaderboardUserRow.created_at)
                )
                .scalars()
                .all()
            )
        except SQLAlchemyError as exc:
            logger.exception("Storage failure while listing leaderboard users")
            raise StorageError("Could not load leaderboard") from exc
        return [self._to_schema(r) for r in rows]

    def get(self, user_id: str) -> Optional[LeaderboardUser]:
        try:
            row = self.db.get(LeaderboardUserRow, user_id)
        except SQLAlchemyError as exc:
            raise StorageError("Could not load user") from exc
        return self._to_schema(row) if row else None

    def find_by_username(self, username: str) -> Optional[LeaderboardUser]:
        try:
            row = self.db.execute(
                select(LeaderboardUserRow).where(
                    func.lower(LeaderboardUserRow.username) == username.lower()
                )
            ).scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise StorageError("Could not load user") from exc
        return self._to_schema(row) if row else None

    def add(self, user: LeaderboardUser) -> LeaderboardUser:
        row = LeaderboardUserRow(
            id=user.id,
            first_name=user.first_name,
            last_name=user.last_name,
            username=user.username,
            total_runs=user.total_runs,
            total_miles=user.total_miles,
            is_registered=user.is_registered,
            created_at=utcnow(),
            last_updated=user.last_updated,
        )
        try:
            self.db.add(row)
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            # the unique index on lower(username) is the only constraint a
            # fresh uuid row can trip
            if user.username:
                raise DuplicateUsername(user.username) from exc
            raise StorageError("Could not save user") from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Storage failure while saving user %s", user.id)
            raise StorageError("Could not save user") from exc
        return user

    def update(self, user: LeaderboardUser) -> LeaderboardUser:
        with _unit_of_work(self.db, "update user"):
            row = self.db.get(LeaderboardUserRow, user.id)
            if row is None:
                raise NotFound("User", user.id)
            row.first_name = user.first_name
            row.last_name = user.last_name
            row.total_runs = user.total_runs
            row.total_miles = user.total_miles
            row.is_registered = user.is_registered
            row.last_updated = user.last_updated
        return user

    def increment(
        self, user_id: str, delta_runs: int, delta_miles: float, now: datetime
    ) -> Optional[LeaderboardUser]:
        runs_expr = LeaderboardUserRow.total_runs + delta_runs
        miles_expr = LeaderboardUserRow.total_miles + delta_miles
        stmt = (
            update(LeaderboardUserRow)
            .where(LeaderboardUserRow.id == user_id)
            .values(
                total_runs=case((runs_expr < 0, 0), else_=runs_expr),
                total_miles=case((miles_expr < 0, 0.0), else_=miles_expr),
                last_updated=now,
            )
            .execution_options(synchronize_session=False)
        )
        with _unit_of_work(self.db, "adjust user stats"):
            result = self.db.execute(stmt)
        if result.rowcount == 0:
            return None
        self.db.expire_all()
        return self.get(user_id)

    def delete(self, user_id: str) -> Optional[LeaderboardUser]:
        removed = None
        with _unit_of_work(self.db, "delete user"):
            row = self.db.get(LeaderboardUserRow, user_id)
            if row is not None:
                removed = self._to_schema(row)
                self.db.delete(row)
        return removed
