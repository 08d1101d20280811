from dataclasses import dataclass
from typing import Iterator

from fastapi import Depends

from runclub.core.config import settings
from runclub.db import SessionLocal
from runclub.repositories.base import LeaderboardRepository, RSVPRepository, RunRepository
from runclub.repositories.memory import (
    MemoryLeaderboardRepository,
    MemoryRSVPRepository,
    MemoryRunRepository,
    MemoryStore,
)
from runclub.repositories.sql import (
    SqlLeaderboardRepository,
    SqlRSVPRepository,
    SqlRunRepository,
)
from runclub.services.leaderboard import LeaderboardStatsStore
from runclub.services.rsvp import RSVPService
from runclub.services.runs import RunService


@dataclass
class Repositories:
    runs: RunRepository
    rsvps: RSVPRepository
    leaderboard: LeaderboardRepository


# Process-wide state for the "memory" backend
memory_store = MemoryStore()


def memory_repositories(store: MemoryStore = memory_store) -> Repositories:
    return Repositories(
        runs=MemoryRunRepository(store),
        rsvps=MemoryRSVPRepository(store),
        leaderboard=MemoryLeaderboardRepository(store),
    )


def sql_repositories(db) -> Repositories:
    return Repositories(
        runs=SqlRunRepository(db, settings.reference_timezone),
        rsvps=SqlRSVPRepository(db),
        leaderboard=SqlLeaderboardRepository(db),
    )


# Dependency we will use in FastAPI routes
def get_repositories() -> Iterator[Repositories]:
    if settings.storage_backend == "memory":
        yield memory_repositories()
        return
    db = SessionLocal()
    try:
        yield sql_repositories(db)
    finally:
        db.close()


def get_run_service(repos: Repositories = Depends(get_repositories)) -> RunService:
    return RunService(repos.runs, settings.reference_timezone)


def get_rsvp_service(repos: Repositories = Depends(get_repositories)) -> RSVPService:
    return RSVPService(repos.runs, repos.rsvps)


def get_leaderboard(repos: Repositories = Depends(get_repositories)) -> LeaderboardStatsStore:
    return LeaderboardStatsStore(repos.leaderboard)
