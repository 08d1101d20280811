from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from runclub.core.time_utils import format_instant


class RSVP(BaseModel):
    """One response to a run. `username` is lowercased, None when anonymous."""

    id: str
    run_id: str = Field(serialization_alias="runId")
    first_name: str = Field(serialization_alias="firstName")
    last_name: str = Field(serialization_alias="lastName")
    username: Optional[str] = None
    status: Literal["yes", "no"]
    timestamp: datetime

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    @field_serializer("timestamp", when_used="json")
    def _serialize_timestamp(self, value: datetime) -> str:
        return format_instant(value)

    @property
    def merge_key(self) -> Optional[str]:
        return self.username.lower() if self.username else None
