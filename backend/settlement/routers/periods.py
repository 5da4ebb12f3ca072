from fastapi import APIRouter, HTTPException, Query

from settlement.engine.periods import (
    current_period,
    days_remaining,
    format_period,
    period_by_number,
    periods_before,
    time_remaining,
)
from settlement.models.shared import utc_now
from settlement.schemas.period import BillingPeriod, BillingPeriodResponse, CurrentPeriodResponse

router = APIRouter()


def _period_response(period: BillingPeriod) -> BillingPeriodResponse:
    return BillingPeriodResponse(
        period_number=period.period_number,
        start=period.start,
        end=period.end,
        label=format_period(period),
    )


@router.get(
    "/current",
    response_model=CurrentPeriodResponse,
    summary="Get current billing period",
)
async def get_current_period() -> CurrentPeriodResponse:
    """Get the billing period in progress, with the time left in it."""
    now = utc_now()
    period = current_period(now)
    return CurrentPeriodResponse(
        **_period_response(period).model_dump(),
        days_remaining=days_remaining(period, now),
        time_remaining=time_remaining(period, now),
    )


@router.get(
    "/",
    response_model=list[BillingPeriodResponse],
    summary="List past billing periods",
)
async def list_past_periods(
    count: int = Query(default=12, ge=1, le=520),
) -> list[BillingPeriodResponse]:
    """List the periods before the current one, most recent first."""
    current = current_period(utc_now())
    return [_period_response(p) for p in periods_before(current, count)]


@router.get(
    "/{period_number}",
    response_model=BillingPeriodResponse,
    summary="Get billing period",
    responses={400: {"description": "Invalid period number"}},
)
async def get_period(period_number: int) -> BillingPeriodResponse:
    """Get a billing period by number."""
    try:
        return _period_response(period_by_number(period_number))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None
