from enum import Enum

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)

from settlement.core.database import Base
from settlement.models.shared import UUIDType, generate_uuid


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    GENERATED = "generated"
    SENT = "sent"
    PAID = "paid"


class EffectiveInvoiceStatus(str, Enum):
    """Display status; ``overdue`` is only ever computed, never set by a transition."""

    DRAFT = "draft"
    GENERATED = "generated"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"


class Invoice(Base):
    __tablename__ = "invoices"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    invoice_number = Column(String(50), unique=True, index=True, nullable=False)
    agent_id = Column(String(255), nullable=False, index=True)
    settlement_kind = Column(String(30), nullable=False)
    period_number = Column(Integer, nullable=False, index=True)
    status = Column(String(20), nullable=False, default=InvoiceStatus.DRAFT.value)
    # Last status written by the scheduled reconciliation job (may be "overdue")
    reconciled_status = Column(String(20), nullable=True)

    # Billing period
    billing_period_start = Column(DateTime(timezone=True), nullable=False)
    billing_period_end = Column(DateTime(timezone=True), nullable=False)

    inspection_ids = Column(JSON, nullable=False, default=list)

    # Revenue split
    total_amount = Column(Numeric(12, 4), nullable=False, default=0)
    agent_cashback = Column(Numeric(12, 4), nullable=False, default=0)
    clerk_commission = Column(Numeric(12, 4), nullable=False, default=0)
    net_amount = Column(Numeric(12, 4), nullable=False, default=0)

    notes = Column(Text, nullable=True)

    # Dates
    generated_at = Column(DateTime(timezone=True), nullable=False)
    due_date = Column(DateTime(timezone=True), nullable=False)
    sent_at = Column(DateTime(timezone=True), nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint(
            "agent_id",
            "period_number",
            "settlement_kind",
            name="uq_invoices_agent_period_kind",
        ),
    )
