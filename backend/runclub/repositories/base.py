"""Storage interfaces the services are written against.

Each method is one atomic unit of work. Callers must not spread a
read-modify-write over two calls unless the repository offers an
operation for it (``replace_for_run``, ``increment``).
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from runclub.schemas.leaderboard import LeaderboardUser
from runclub.schemas.rsvp import RSVP
from runclub.schemas.run import ScheduledRun


class RunRepository(Protocol):
    def list(self) -> list[ScheduledRun]: ...

    def get(self, run_id: str) -> Optional[ScheduledRun]: ...

    def add(self, run: ScheduledRun) -> ScheduledRun: ...

    def replace(self, run: ScheduledRun) -> ScheduledRun:
        """Overwrite the run with the same id; raises NotFound if missing."""
        ...

    def delete(self, run_id: str) -> Optional[ScheduledRun]:
        """Remove the run and its RSVPs, returning what was removed."""
        ...

    def count(self) -> int: ...


class RSVPRepository(Protocol):
    def list_for_run(self, run_id: str) -> list[RSVP]: ...

    def replace_for_run(self, run_id: str, rsvps: Sequence[RSVP]) -> list[RSVP]:
        """Persist `rsvps` as the complete list for `run_id`."""
        ...


class LeaderboardRepository(Protocol):
    def list(self) -> list[LeaderboardUser]:
        """All users in insertion order."""
        ...

    def get(self, user_id: str) -> Optional[LeaderboardUser]: ...

    def find_by_username(self, username: str) -> Optional[LeaderboardUser]: ...

    def add(self, user: LeaderboardUser) -> LeaderboardUser:
        """Insert; raises DuplicateUsername when the lowercased handle exists."""
        ...

    def update(self, user: LeaderboardUser) -> LeaderboardUser: ...

    def increment(
        self, user_id: str, delta_runs: int, delta_miles: float, now: datetime
    ) -> Optional[LeaderboardUser]:
        """Atomically add deltas, clamping each total at zero."""
        ...

    def delete(self, user_id: str) -> Optional[LeaderboardUser]: ...
