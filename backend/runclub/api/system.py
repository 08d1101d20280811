import time

from fastapi import APIRouter

from runclub.core.constants import API_VERSION, SERVICE_NAME
from runclub.core.time_utils import format_instant, utcnow
from runclub.schemas.envelope import ok

router = APIRouter(tags=["system"])

_started = time.monotonic()


@router.get("/")
def root():
    return ok(
        {
            "name": SERVICE_NAME,
            "version": API_VERSION,
            "endpoints": {
                "runs": "/api/runs",
                "leaderboard": "/api/leaderboard",
                "health": "/api/health",
            },
        },
        f"Welcome to {SERVICE_NAME}",
    )


@router.get("/api/health")
def health():
    return ok(
        {
            "status": "healthy",
            "timestamp": format_instant(utcnow()),
            "uptime": round(time.monotonic() - _started, 3),
            "version": API_VERSION,
        },
        "Server is running",
    )
