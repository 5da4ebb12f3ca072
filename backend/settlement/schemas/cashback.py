"""Cashback ledger schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from settlement.schemas.inspection import Inspection
from settlement.schemas.period import BillingPeriod
from settlement.schemas.settlement import RevenueSplit, SettlementOutcome


class PeriodCashback(BaseModel):
    """Unprocessed cashback for one agent in one billing period."""

    period_number: int
    period: BillingPeriod
    inspections: list[Inspection]
    revenue: Decimal
    cashback: Decimal


class AgentCashbackStatus(BaseModel):
    agent_id: str
    unprocessed_cashback: Decimal
    unprocessed_revenue: Decimal
    unprocessed_inspections: list[Inspection]
    periods_with_cashback: list[PeriodCashback]


class PeriodSettlementSummary(BaseModel):
    """Revenue of one billing period, split, with the share whose cashback is unpaid.

    ``revenue`` covers every completed inspection in the period. ``unprocessed``
    covers only those not yet in the cashback ledger. Clerk commission is never
    processed, so it is always reported from ``revenue``.
    """

    period_number: int
    period: BillingPeriod
    inspection_ids: list[str]
    pending_inspection_ids: list[str]
    revenue: RevenueSplit
    unprocessed: RevenueSplit
    is_processed: bool


class UnprocessedTotals(BaseModel):
    total_revenue: Decimal
    total_cashback: Decimal
    total_commission: Decimal
    total_net_revenue: Decimal
    period_count: int


class ProcessedAgentCashbackCreate(BaseModel):
    """Ledger entry produced by the cashback ledger, ready to be persisted."""

    id: UUID
    agent_id: str
    period_number: int
    billing_period_start: datetime
    billing_period_end: datetime
    inspection_ids: list[str]
    total_revenue: Decimal
    cashback_amount: Decimal
    processed_at: datetime
    processed_by: str
    notes: str | None = None


class ProcessedAgentCashbackResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    agent_id: str
    period_number: int
    billing_period_start: datetime
    billing_period_end: datetime
    inspection_ids: list[str]
    total_revenue: Decimal
    cashback_amount: Decimal
    processed_at: datetime
    processed_by: str
    notes: str | None


class ValidationResult(BaseModel):
    is_valid: bool
    error: str | None = None


class AgentCashbackBreakdown(BaseModel):
    agent_id: str
    inspection_ids: list[str]
    total_revenue: Decimal
    cashback_amount: Decimal


class ClerkCommissionBreakdown(BaseModel):
    clerk_id: str
    inspection_ids: list[str]
    total_revenue: Decimal
    commission_amount: Decimal


class UnprocessedCashbackRequest(BaseModel):
    inspections: list[Inspection] = Field(default_factory=list)
    max_periods: int | None = Field(default=None, ge=1)


class ProcessCashbackRequest(BaseModel):
    processed_by: str = Field(min_length=1)
    notes: str | None = None
    inspections: list[Inspection] = Field(default_factory=list)


class ProcessCashbackResponse(BaseModel):
    outcome: SettlementOutcome
    entries: list[ProcessedAgentCashbackResponse]


class PeriodSummaryRequest(BaseModel):
    inspections: list[Inspection] = Field(default_factory=list)
    max_periods: int | None = Field(default=None, ge=1)


class InspectionSnapshotRequest(BaseModel):
    inspections: list[Inspection] = Field(default_factory=list)


class ClerkCommissionRequest(BaseModel):
    period_number: int | None = Field(default=None, ge=1)
    inspections: list[Inspection] = Field(default_factory=list)
