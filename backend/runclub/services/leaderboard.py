"""Leaderboard stats: per-user run counts and mileage, ranked by miles."""
from __future__ import annotations

import logging
import math
import uuid
from datetime import datetime
from typing import Any, Mapping, Optional

from runclub.core.errors import NotFound, ValidationFailed
from runclub.core.time_utils import utcnow
from runclub.repositories.base import LeaderboardRepository
from runclub.schemas.leaderboard import LeaderboardUser, StatsAdjustment, StatsUpdate

logger = logging.getLogger(__name__)


def _name(body: Mapping[str, Any], key: str) -> str:
    value = body.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValidationFailed(f"Missing required field: {key}")
    return value.strip()


def _count(body: Mapping[str, Any], key: str, default: int = 0) -> int:
    value = body.get(key, default)
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValidationFailed(f"{key} must be a whole number")
    try:
        number = float(value)
    except ValueError as exc:
        raise ValidationFailed(f"{key} must be a whole number") from exc
    if not number.is_integer():
        raise ValidationFailed(f"{key} must be a whole number")
    return int(number)


def _miles(body: Mapping[str, Any], key: str, default: float = 0.0) -> float:
    value = body.get(key, default)
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValidationFailed(f"{key} must be a number")
    try:
        number = float(value)
    except ValueError as exc:
        raise ValidationFailed(f"{key} must be a number") from exc
    if not math.isfinite(number):
        raise ValidationFailed(f"{key} must be a number")
    return number


def _non_negative(key: str, value):
    if value < 0:
        raise ValidationFailed(f"{key} must be >= 0")
    return value


def parse_stats_update(body: Mapping[str, Any]) -> StatsUpdate:
    is_registered = body.get("isRegistered")
    if is_registered is not None and not isinstance(is_registered, bool):
        raise ValidationFailed("isRegistered must be true or false")
    return StatsUpdate(
        first_name=_name(body, "firstName"),
        last_name=_name(body, "lastName"),
        total_runs=_non_negative("totalRuns", _count(body, "totalRuns")),
        total_miles=_non_negative("totalMiles", _miles(body, "totalMiles")),
        is_registered=is_registered,
    )


def parse_adjustment(body: Mapping[str, Any]) -> StatsAdjustment:
    return StatsAdjustment(
        delta_runs=_count(body, "deltaRuns"),
        delta_miles=_miles(body, "deltaMiles"),
    )


def rank_users(users: list[LeaderboardUser]) -> list[LeaderboardUser]:
    """Sort by total miles (desc) and number the rows from 1.

    Python's sort is stable, so tied mileage keeps the order `users` came
    in. That is whatever the repository iterates in; do not treat tie order
    as meaningful.
    """
    ordered = sorted(users, key=lambda u: u.total_miles, reverse=True)
    return [u.model_copy(update={"rank": idx}) for idx, u in enumerate(ordered, start=1)]


class LeaderboardStatsStore:
    def __init__(self, repo: LeaderboardRepository):
        self.repo = repo

    def get(self, user_id: str) -> LeaderboardUser:
        user = self.repo.get(user_id)
        if user is None:
            raise NotFound("User", user_id)
        return user

    def create(self, body: Mapping[str, Any], now: Optional[datetime] = None) -> LeaderboardUser:
        """Add a user. Totals default to zero; usernames are unique ignoring case.

        `isRegistered` is true for app sign-ups and false (the default) for
        rows seeded from the admin panel.
        """
        if not isinstance(body, Mapping):
            raise ValidationFailed("User payload must be a JSON object")
        username = body.get("username")
        if username is not None and not isinstance(username, str):
            raise ValidationFailed("username must be a string")
        username = (username or "").strip().lower() or None
        is_registered = body.get("isRegistered", False)
        if not isinstance(is_registered, bool):
            raise ValidationFailed("isRegistered must be true or false")

        user = LeaderboardUser(
            id=str(uuid.uuid4()),
            first_name=_name(body, "firstName"),
            last_name=_name(body, "lastName"),
            username=username,
            total_runs=_non_negative("totalRuns", _count(body, "totalRuns")),
            total_miles=_non_negative("totalMiles", _miles(body, "totalMiles")),
            is_registered=is_registered,
            last_updated=now or utcnow(),
        )
        # DuplicateUsername comes from the repository so the check and the
        # insert are one step
        created = self.repo.add(user)
        logger.info("Created leaderboard user %s (%s)", created.id, created.full_name)
        return created

    def set_absolute(
        self, user_id: str, body: Mapping[str, Any], now: Optional[datetime] = None
    ) -> LeaderboardUser:
        """Replace names and totals outright. The username never changes."""
        if not isinstance(body, Mapping):
            raise ValidationFailed("User payload must be a JSON object")
        stats = parse_stats_update(body)
        current = self.get(user_id)
        updated = current.model_copy(
            update={
                "first_name": stats.first_name,
                "last_name": stats.last_name,
                "total_runs": stats.total_runs,
                "total_miles": stats.total_miles,
                "is_registered": (
                    current.is_registered if stats.is_registered is None else stats.is_registered
                ),
                "last_updated": now or utcnow(),
            }
        )
        return self.repo.update(updated)

    def adjust(
        self, user_id: str, body: Mapping[str, Any], now: Optional[datetime] = None
    ) -> LeaderboardUser:
        """Add `deltaRuns` / `deltaMiles` to the totals, never going below zero.

        The repository applies the deltas in one atomic step, so concurrent
        increments on the same user are not lost.
        """
        if not isinstance(body, Mapping):
            raise ValidationFailed("Adjustment payload must be a JSON object")
        delta = parse_adjustment(body)
        user = self.repo.increment(user_id, delta.delta_runs, delta.delta_miles, now or utcnow())
        if user is None:
            raise NotFound("User", user_id)
        logger.info(
            "Adjusted user %s by %+d runs, %+.2f miles", user_id, delta.delta_runs, delta.delta_miles
        )
        return user

    def list(self, include_unregistered: bool = False) -> list[LeaderboardUser]:
        users = self.repo.list()
        if not include_unregistered:
            users = [u for u in users if u.is_registered]
        return rank_users(users)

    def delete(self, user_id: str) -> LeaderboardUser:
        removed = self.repo.delete(user_id)
        if removed is None:
            raise NotFound("User", user_id)
        logger.info("Deleted leaderboard user %s", user_id)
        return removed
