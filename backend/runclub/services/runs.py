"""Scheduled run lifecycle on top of a RunRepository."""
from __future__ import annotations

import logging
import uuid
from datetime import date, timedelta
from typing import Any, Iterable, Mapping, Optional

from runclub.core.errors import NotFound
from runclub.repositories.base import RunRepository
from runclub.schemas.run import ImportResult, ScheduledRun
from runclub.services.normalizer import normalize_many, normalize_run

logger = logging.getLogger(__name__)

SAMPLE_RUNS = [
    # (days from today, time, location, pace, description)
    (1, "06:00", "Central Park", "8:30/mile", "Morning run around the reservoir"),
    (3, "17:30", "Brooklyn Bridge", "9:00/mile", "Sunset run across the bridge"),
    (7, "07:00", "Prospect Park", "7:30/mile", "Speed workout on the loop"),
]


class RunService:
    def __init__(self, repo: RunRepository, tz_name: Optional[str] = None):
        self.repo = repo
        self.tz_name = tz_name

    def list(self) -> list[ScheduledRun]:
        # Soonest first
        return sorted(self.repo.list(), key=lambda r: r.instant)

    def get(self, run_id: str) -> ScheduledRun:
        run = self.repo.get(run_id)
        if run is None:
            raise NotFound("Run", run_id)
        return run

    def create(self, payload: Mapping[str, Any]) -> ScheduledRun:
        canonical = normalize_run(payload, self.tz_name)
        run = self.repo.add(ScheduledRun.from_canonical(str(uuid.uuid4()), canonical))
        logger.info("Created run %s at %s (%s)", run.id, run.location, run.local_date)
        return run

    def update(self, run_id: str, payload: Mapping[str, Any]) -> ScheduledRun:
        if self.repo.get(run_id) is None:
            raise NotFound("Run", run_id)
        canonical = normalize_run(payload, self.tz_name)
        run = self.repo.replace(ScheduledRun.from_canonical(run_id, canonical))
        logger.info("Updated run %s", run_id)
        return run

    def delete(self, run_id: str) -> ScheduledRun:
        removed = self.repo.delete(run_id)
        if removed is None:
            raise NotFound("Run", run_id)
        logger.info("Deleted run %s and its RSVPs", run_id)
        return removed

    def import_many(self, payloads: Iterable[Any]) -> ImportResult:
        """Create every valid run; invalid entries are reported, not fatal."""
        good, errors = normalize_many(payloads, self.tz_name)
        created = [
            self.repo.add(ScheduledRun.from_canonical(str(uuid.uuid4()), canonical))
            for _, canonical in good
        ]
        logger.info("Imported %d runs, skipped %d", len(created), len(errors))
        return ImportResult(created=created, errors=errors)

    def seed_samples(self, today: Optional[date] = None) -> int:
        """Insert the three sample runs when the store is empty."""
        if self.repo.count():
            return 0
        today = today or date.today()
        payloads = [
            {
                "date": (today + timedelta(days=days)).isoformat(),
                "time": time,
                "location": location,
                "pace": pace,
                "description": description,
            }
            for days, time, location, pace, description in SAMPLE_RUNS
        ]
        return len(self.import_many(payloads).created)
