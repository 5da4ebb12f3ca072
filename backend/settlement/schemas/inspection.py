"""Read-only inspection snapshot supplied by the inspection service."""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class InspectionStatus(str, Enum):
    SCHEDULED = "scheduled"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REJECTED = "rejected"


class InspectionType(str, Enum):
    ROUTINE = "routine"
    FIRE_SAFETY = "fire_safety"
    CHECK_IN = "check_in"
    CHECK_OUT = "check_out"


class Inspection(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: str = Field(min_length=1)
    agent_id: str = Field(min_length=1)
    clerk_id: str | None = None
    property_id: str | None = None
    inspection_type: InspectionType | None = None
    price: Decimal = Field(ge=0)
    status: InspectionStatus
    scheduled_date: datetime
    completed_date: datetime | None = None
    completed_at: datetime | None = None
