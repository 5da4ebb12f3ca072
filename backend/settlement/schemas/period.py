from datetime import datetime, timedelta

from pydantic import BaseModel, ConfigDict, Field


class BillingPeriod(BaseModel):
    """A fixed two-week billing window. Derived, never persisted."""

    model_config = ConfigDict(frozen=True)

    period_number: int = Field(ge=1)
    start: datetime
    end: datetime

    @property
    def next_start(self) -> datetime:
        """First instant of the following period."""
        return self.end + timedelta(seconds=1)


class TimeRemaining(BaseModel):
    days: int
    hours: int
    minutes: int
    seconds: int
    total_ms: int


class BillingPeriodResponse(BaseModel):
    period_number: int
    start: datetime
    end: datetime
    label: str


class CurrentPeriodResponse(BillingPeriodResponse):
    days_remaining: int
    time_remaining: TimeRemaining
