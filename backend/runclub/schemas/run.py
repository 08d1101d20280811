from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from runclub.core.time_utils import format_instant


class CanonicalRun(BaseModel):
    """Normalized run fields, before an id is attached."""

    # Zone-local calendar date 'YYYY-MM-DD' the organizer picked
    local_date: str = Field(serialization_alias="date")
    # 'HH:MM' 24h, kept verbatim for display
    display_time: str = Field(serialization_alias="time")
    instant: datetime
    location: str
    pace: str
    description: str = ""

    model_config = ConfigDict(populate_by_name=True)

    @field_serializer("instant", when_used="json")
    def _serialize_instant(self, value: datetime) -> str:
        return format_instant(value)

    def payload(self) -> dict[str, Any]:
        """Field names accepted by normalize_run (date/time/location/pace/...)."""
        return self.model_dump(by_alias=True, exclude={"instant"})


class ScheduledRun(CanonicalRun):
    """Schema returned to the clients when reading a run."""

    id: str

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    @classmethod
    def from_canonical(cls, run_id: str, canonical: CanonicalRun) -> "ScheduledRun":
        return cls(id=run_id, **canonical.model_dump())


class ImportEntryError(BaseModel):
    index: int
    error: str
    field: Optional[str] = None


class ImportResult(BaseModel):
    created: list[ScheduledRun] = []
    errors: list[ImportEntryError] = []
