from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from runclub.core.time_utils import format_instant


class LeaderboardUser(BaseModel):
    id: str
    first_name: str = Field(serialization_alias="firstName")
    last_name: str = Field(serialization_alias="lastName")
    username: Optional[str] = None
    total_runs: int = Field(0, serialization_alias="totalRuns")
    total_miles: float = Field(0.0, serialization_alias="totalMiles")
    is_registered: bool = Field(False, serialization_alias="isRegistered")
    last_updated: datetime = Field(serialization_alias="lastUpdated")
    # Only set on listed rows, never stored
    rank: Optional[int] = None

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    @field_serializer("last_updated", when_used="json")
    def _serialize_last_updated(self, value: datetime) -> str:
        return format_instant(value)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class StatsUpdate(BaseModel):
    """Absolute replacement of a user's names and totals."""

    first_name: str
    last_name: str
    total_runs: int
    total_miles: float
    is_registered: Optional[bool] = None


class StatsAdjustment(BaseModel):
    """Increments for the '+1 run' / '+N miles' actions."""

    delta_runs: int = 0
    delta_miles: float = 0.0
