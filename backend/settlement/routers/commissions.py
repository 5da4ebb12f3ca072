from fastapi import APIRouter

from settlement.engine.cashback import clerk_commission_breakdown
from settlement.engine.periods import current_period, period_by_number
from settlement.models.shared import utc_now
from settlement.schemas.cashback import ClerkCommissionBreakdown, ClerkCommissionRequest

router = APIRouter()


@router.post(
    "/clerks",
    response_model=list[ClerkCommissionBreakdown],
    summary="Clerk commission breakdown",
)
async def get_clerk_commissions(data: ClerkCommissionRequest) -> list[ClerkCommissionBreakdown]:
    """Commission owed to each clerk for a period (defaults to the current one)."""
    if data.period_number is None:
        period = current_period(utc_now())
    else:
        period = period_by_number(data.period_number)
    return clerk_commission_breakdown(period, data.inspections)
