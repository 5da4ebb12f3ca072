from decimal import Decimal
from enum import Enum

from pydantic import BaseModel


class SettlementOutcome(str, Enum):
    """Result category of a generation or processing request."""

    CREATED = "created"
    NOTHING_TO_SETTLE = "nothing_to_settle"
    ALREADY_SETTLED = "already_settled"


class RevenueSplit(BaseModel):
    total_amount: Decimal
    agent_cashback: Decimal
    clerk_commission: Decimal
    net_amount: Decimal
