from typing import Any

from fastapi import APIRouter, Body, Depends

from runclub.api.deps import get_rsvp_service, get_run_service
from runclub.core.errors import ValidationFailed
from runclub.schemas.envelope import ok
from runclub.services.rsvp import RSVPService
from runclub.services.runs import RunService

router = APIRouter(prefix="/api/runs", tags=["runs"])


def _dump(model) -> dict:
    return model.model_dump(mode="json", by_alias=True)


@router.get("")
def list_runs(service: RunService = Depends(get_run_service)):
    """
    All scheduled runs, soonest first.

    The mobile calendar polls this:
      GET /api/runs
    """
    runs = service.list()
    return ok([_dump(r) for r in runs], "Runs retrieved successfully")


@router.post("", status_code=201)
def create_run(body: Any = Body(...), service: RunService = Depends(get_run_service)):
    run = service.create(body)
    return ok(_dump(run), "Run created successfully")


@router.post("/import", status_code=201)
def import_runs(body: Any = Body(...), service: RunService = Depends(get_run_service)):
    """Bulk create. Accepts a list of run payloads or {"runs": [...]}.

    Bad entries are skipped and reported by index; the rest are created.
    """
    payloads = body.get("runs") if isinstance(body, dict) else body
    if not isinstance(payloads, list):
        raise ValidationFailed("Expected a list of runs")
    result = service.import_many(payloads)
    message = f"Imported {len(result.created)} runs"
    if result.errors:
        message += f", skipped {len(result.errors)}"
    return ok(_dump(result), message, count=len(result.created))


@router.get("/{run_id}")
def get_run(run_id: str, service: RunService = Depends(get_run_service)):
    return ok(_dump(service.get(run_id)), "Run retrieved successfully")


@router.put("/{run_id}")
def update_run(
    run_id: str, body: Any = Body(...), service: RunService = Depends(get_run_service)
):
    # id always comes from the path, never from the body
    run = service.update(run_id, body)
    return ok(_dump(run), "Run updated successfully")


@router.delete("/{run_id}")
def delete_run(run_id: str, service: RunService = Depends(get_run_service)):
    removed = service.delete(run_id)
    return ok(_dump(removed), "Run deleted successfully")


@router.get("/{run_id}/rsvps")
def list_rsvps(run_id: str, service: RSVPService = Depends(get_rsvp_service)):
    rsvps = service.list(run_id)
    return ok([_dump(r) for r in rsvps], "RSVPs retrieved successfully")


@router.post("/{run_id}/rsvps")
def submit_rsvp(
    run_id: str, body: Any = Body(...), service: RSVPService = Depends(get_rsvp_service)
):
    rsvps = service.submit(run_id, body)
    return ok([_dump(r) for r in rsvps], "RSVP saved")
