from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query

from runclub.api.deps import get_leaderboard
from runclub.schemas.envelope import ok
from runclub.services.leaderboard import LeaderboardStatsStore

router = APIRouter(prefix="/api/leaderboard", tags=["leaderboard"])


def _dump(user) -> dict:
    data = user.model_dump(mode="json", by_alias=True)
    if data.get("rank") is None:
        data.pop("rank", None)
    return data


def _truthy(raw: Optional[str]) -> bool:
    return str(raw or "").strip().lower() in {"1", "true", "yes", "on"}


@router.get("")
def list_users(
    include_all: Optional[str] = Query(None, alias="includeAll"),
    store: LeaderboardStatsStore = Depends(get_leaderboard),
):
    """Ranked by total miles. Admin-seeded rows only with ?includeAll=1."""
    users = store.list(include_unregistered=_truthy(include_all))
    return ok([_dump(u) for u in users], "Leaderboard retrieved successfully")


@router.post("", status_code=201)
def create_user(body: Any = Body(...), store: LeaderboardStatsStore = Depends(get_leaderboard)):
    return ok(_dump(store.create(body)), "User created successfully")


@router.get("/{user_id}")
def get_user(user_id: str, store: LeaderboardStatsStore = Depends(get_leaderboard)):
    return ok(_dump(store.get(user_id)), "User retrieved successfully")


@router.put("/{user_id}")
def update_user(
    user_id: str,
    body: Any = Body(...),
    store: LeaderboardStatsStore = Depends(get_leaderboard),
):
    return ok(_dump(store.set_absolute(user_id, body)), "User updated successfully")


@router.post("/{user_id}/increment")
def increment_user(
    user_id: str,
    body: Any = Body(...),
    store: LeaderboardStatsStore = Depends(get_leaderboard),
):
    return ok(_dump(store.adjust(user_id, body)), "User stats adjusted")


@router.delete("/{user_id}")
def delete_user(user_id: str, store: LeaderboardStatsStore = Depends(get_leaderboard)):
    return ok(_dump(store.delete(user_id)), "User deleted successfully")
