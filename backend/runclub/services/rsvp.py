"""RSVP merging: one live answer per run and username."""
from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

from runclub.core.constants import REQUIRED_RSVP_FIELDS, RSVP_STATUSES
from runclub.core.errors import InvalidRSVP, NotFound
from runclub.core.time_utils import utcnow
from runclub.repositories.base import RSVPRepository, RunRepository
from runclub.schemas.rsvp import RSVP

logger = logging.getLogger(__name__)


def _text(payload: Mapping[str, Any], key: str) -> Optional[str]:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidRSVP(f"{key} must be a string")
    value = value.strip()
    return value or None


def build_rsvp(
    run_id: str, payload: Mapping[str, Any], now: Optional[datetime] = None
) -> RSVP:
    """Validate an incoming RSVP body and give it a fresh id and timestamp."""
    if not isinstance(payload, Mapping):
        raise InvalidRSVP("RSVP payload must be a JSON object")
    fields = {key: _text(payload, key) for key in REQUIRED_RSVP_FIELDS}
    for key, value in fields.items():
        if value is None:
            raise InvalidRSVP(f"Missing required field: {key}")

    status = fields["status"].lower()
    if status not in RSVP_STATUSES:
        raise InvalidRSVP("status must be 'yes' or 'no'")

    username = _text(payload, "username")
    return RSVP(
        id=str(uuid.uuid4()),
        run_id=run_id,
        first_name=fields["firstName"],
        last_name=fields["lastName"],
        username=username.lower() if username else None,
        status=status,
        timestamp=now or utcnow(),
    )


def upsert_rsvp(
    existing: Sequence[RSVP],
    incoming: Mapping[str, Any] | RSVP,
    run_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> list[RSVP]:
    """Merge `incoming` into `existing`, returning a new list.

    With a username, any earlier RSVP from that username (any case) is
    dropped and the new one appended. Anonymous RSVPs are always appended.
    `existing` is left untouched.
    """
    if isinstance(incoming, RSVP):
        rsvp = incoming
    else:
        if run_id is None:
            raise ValueError("run_id is required when incoming is a raw payload")
        rsvp = build_rsvp(run_id, incoming, now)

    key = rsvp.merge_key
    if key is None:
        return [*existing, rsvp]
    kept = [r for r in existing if r.merge_key != key]
    if len(kept) != len(existing):
        logger.info("Replacing RSVP for %s on run %s", key, rsvp.run_id)
    return [*kept, rsvp]


class RSVPService:
    """Loads a run's RSVPs, merges one in and writes the list back."""

    def __init__(self, runs: RunRepository, rsvps: RSVPRepository):
        self.runs = runs
        self.rsvps = rsvps

    def list(self, run_id: str) -> list[RSVP]:
        if self.runs.get(run_id) is None:
            raise NotFound("Run", run_id)
        return self.rsvps.list_for_run(run_id)

    def submit(
        self, run_id: str, payload: Mapping[str, Any], now: Optional[datetime] = None
    ) -> list[RSVP]:
        if self.runs.get(run_id) is None:
            raise NotFound("Run", run_id)
        incoming = build_rsvp(run_id, payload, now)
        # read-then-write: concurrent submits for the same username are last-write-wins
        merged = upsert_rsvp(self.rsvps.list_for_run(run_id), incoming)
        return self.rsvps.replace_for_run(run_id, merged)
