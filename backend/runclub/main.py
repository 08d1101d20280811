import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from runclub.api.deps import get_repositories
from runclub.api.leaderboard import router as leaderboard_router
from runclub.api.runs import router as runs_router
from runclub.api.system import router as system_router
from runclub.core.config import settings
from runclub.core.constants import API_VERSION, SERVICE_NAME
from runclub.core.errors import RunClubError
from runclub.db import Base, engine
from runclub.models.leaderboard_user import LeaderboardUser  # noqa: F401  (import ensures table is registered)
from runclub.models.rsvp import RSVP  # noqa: F401
from runclub.models.run import Run  # noqa: F401
from runclub.schemas.envelope import failure
from runclub.services.runs import RunService

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def _seed_sample_runs() -> None:
    repos_iter = get_repositories()
    repos = next(repos_iter)
    try:
        seeded = RunService(repos.runs, settings.reference_timezone).seed_samples()
        if seeded:
            logger.info("Seeded %d sample runs", seeded)
    finally:
        repos_iter.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.seed_sample_runs:
        _seed_sample_runs()
    logger.info(
        "%s %s ready (storage=%s, timezone=%s)",
        SERVICE_NAME,
        API_VERSION,
        settings.storage_backend,
        settings.reference_timezone,
    )
    yield


# Create DB tables (runs, rsvps, leaderboard_users) on startup
if settings.storage_backend == "sql":
    Base.metadata.create_all(bind=engine)

app = FastAPI(title=SERVICE_NAME, version=API_VERSION, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RunClubError)
async def _handle_domain_error(request: Request, exc: RunClubError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=failure(exc.message))


@app.exception_handler(RequestValidationError)
async def _handle_request_validation(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return JSONResponse(status_code=400, content=failure(message))


@app.exception_handler(StarletteHTTPException)
async def _handle_http_error(request: Request, exc: StarletteHTTPException):
    message = "Endpoint not found" if exc.status_code == 404 else str(exc.detail)
    return JSONResponse(status_code=exc.status_code, content=failure(message))


@app.exception_handler(Exception)
async def _handle_unexpected(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=failure("Internal server error"))


app.include_router(system_router)
app.include_router(runs_router)
app.include_router(leaderboard_router)
