from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from settlement.models.invoice import EffectiveInvoiceStatus, InvoiceStatus
from settlement.models.shared import SettlementKind
from settlement.schemas.inspection import Inspection, InspectionType
from settlement.schemas.settlement import SettlementOutcome


class InvoiceCreate(BaseModel):
    """Invoice value produced by the generator, ready to be persisted."""

    id: UUID
    invoice_number: str
    agent_id: str
    settlement_kind: SettlementKind
    period_number: int
    billing_period_start: datetime
    billing_period_end: datetime
    inspection_ids: list[str]
    total_amount: Decimal
    agent_cashback: Decimal
    clerk_commission: Decimal
    net_amount: Decimal
    status: InvoiceStatus = InvoiceStatus.DRAFT
    generated_at: datetime
    due_date: datetime
    sent_at: datetime | None = None
    paid_at: datetime | None = None
    notes: str | None = None


class InvoiceLineItem(BaseModel):
    inspection_id: str
    inspection_type: InspectionType | None
    property_id: str | None
    settlement_date: datetime
    agent_id: str
    clerk_id: str | None
    amount: Decimal


class InvoiceSummary(BaseModel):
    total_invoices: int
    total_amount: Decimal
    total_paid: Decimal
    total_outstanding: Decimal
    total_overdue: Decimal
    average_invoice_amount: Decimal


class GenerateInvoiceRequest(BaseModel):
    period_number: int | None = Field(default=None, ge=1)
    inspections: list[Inspection] = Field(default_factory=list)


class InvoiceSnapshotRequest(BaseModel):
    """Inspection snapshot an existing invoice is rendered against."""

    inspections: list[Inspection] = Field(default_factory=list)


class InvoiceResponse(BaseModel):
    id: UUID
    invoice_number: str
    agent_id: str
    settlement_kind: str
    period_number: int
    status: str
    effective_status: EffectiveInvoiceStatus
    billing_period_start: datetime
    billing_period_end: datetime
    inspection_ids: list[str]
    total_amount: Decimal
    agent_cashback: Decimal
    clerk_commission: Decimal
    net_amount: Decimal
    notes: str | None
    generated_at: datetime
    due_date: datetime
    sent_at: datetime | None
    paid_at: datetime | None

    model_config = {"from_attributes": True}


class InvoiceGenerationResponse(BaseModel):
    outcome: SettlementOutcome
    invoices: list[InvoiceResponse]
