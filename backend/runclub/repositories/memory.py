"""Dict-backed repositories for tests and the `memory` storage backend.

Dicts keep insertion order, so listing order is the order rows were added.
A single lock per store makes each method one atomic step.
"""
from __future__ import annotations

import threading
from datetime import datetime
from typing import Optional, Sequence

from runclub.core.errors import DuplicateUsername, NotFound
from runclub.schemas.leaderboard import LeaderboardUser
from runclub.schemas.rsvp import RSVP
from runclub.schemas.run import ScheduledRun


class MemoryStore:
    """Shared state behind the three in-memory repositories."""

    def __init__(self):
        self.lock = threading.RLock()
        self.runs: dict[str, ScheduledRun] = {}
        self.rsvps: dict[str, list[RSVP]] = {}
        self.users: dict[str, LeaderboardUser] = {}

    def clear(self) -> None:
        with self.lock:
            self.runs.clear()
            self.rsvps.clear()
            self.users.clear()


class MemoryRunRepository:
    def __init__(self, store: MemoryStore):
        self.store = store

    def list(self) -> list[ScheduledRun]:
        with self.store.lock:
            return list(self.store.runs.values())

    def get(self, run_id: str) -> Optional[ScheduledRun]:
        with self.store.lock:
            return self.store.runs.get(run_id)

    def add(self, run: ScheduledRun) -> ScheduledRun:
        with self.store.lock:
            self.store.runs[run.id] = run
            return run

    def replace(self, run: ScheduledRun) -> ScheduledRun:
        with self.store.lock:
            if run.id not in self.store.runs:
                raise NotFound("Run", run.id)
            self.store.runs[run.id] = run
            return run

    def delete(self, run_id: str) -> Optional[ScheduledRun]:
        with self.store.lock:
            removed = self.store.runs.pop(run_id, None)
            if removed is not None:
                self.store.rsvps.pop(run_id, None)
            return removed

    def count(self) -> int:
        with self.store.lock:
            return len(self.store.runs)


class MemoryRSVPRepository:
    def __init__(self, store: MemoryStore):
        self.store = store

    def list_for_run(self, run_id: str) -> list[RSVP]:
        with self.store.lock:
            return list(self.store.rsvps.get(run_id, []))

    def replace_for_run(self, run_id: str, rsvps: Sequence[RSVP]) -> list[RSVP]:
        with self.store.lock:
            if run_id not in self.store.runs:
                raise NotFound("Run", run_id)
            self.store.rsvps[run_id] = list(rsvps)
            return list(rsvps)


class MemoryLeaderboardRepository:
    def __init__(self, store: MemoryStore):
        self.store = store

    def list(self) -> list[LeaderboardUser]:
        with self.store.lock:
            return list(self.store.users.values())

    def get(self, user_id: str) -> Optional[LeaderboardUser]:
        with self.store.lock:
            return self.store.users.get(user_id)

    def find_by_username(self, username: str) -> Optional[LeaderboardUser]:
        key = username.lower()
        with self.store.lock:
            for user in self.store.users.values():
                if user.username and user.username.lower() == key:
                    return user
        return None

    def add(self, user: LeaderboardUser) -> LeaderboardUser:
        with self.store.lock:
            if user.username and self.find_by_username(user.username):
                raise DuplicateUsername(user.username)
            self.store.users[user.id] = user
            return user

    def update(self, user: LeaderboardUser) -> LeaderboardUser:
        with self.store.lock:
            if user.id not in self.store.users:
                raise NotFound("User", user.id)
            self.store.users[user.id] = user
            return user

    def increment(
        self, user_id: str, delta_runs: int, delta_miles: float, now: datetime
    ) -> Optional[LeaderboardUser]:
        with self.store.lock:
            user = self.store.users.get(user_id)
            if user is None:
                return None
            updated = user.model_copy(
                update={
                    "total_runs": max(user.total_runs + delta_runs, 0),
                    "total_miles": max(user.total_miles + delta_miles, 0.0),
                    "last_updated": now,
                }
            )
            self.store.users[user_id] = updated
            return updated

    def delete(self, user_id: str) -> Optional[LeaderboardUser]:
        with self.store.lock:
            return self.store.users.pop(user_id, None)
