"""ProcessedAgentCashback model - one row per agent and billing period slice paid out."""

from sqlalchemy import JSON, Column, DateTime, Index, Integer, Numeric, String, Text, func

from settlement.core.database import Base
from settlement.models.shared import UUIDType, generate_uuid


class ProcessedAgentCashback(Base):
    __tablename__ = "processed_agent_cashbacks"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    agent_id = Column(String(255), nullable=False, index=True)
    period_number = Column(Integer, nullable=False)
    billing_period_start = Column(DateTime(timezone=True), nullable=False)
    billing_period_end = Column(DateTime(timezone=True), nullable=False)
    inspection_ids = Column(JSON, nullable=False, default=list)
    total_revenue = Column(Numeric(12, 4), nullable=False, default=0)
    cashback_amount = Column(Numeric(12, 4), nullable=False, default=0)
    processed_at = Column(DateTime(timezone=True), nullable=False)
    processed_by = Column(String(255), nullable=False)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("ix_processed_agent_cashbacks_agent_period", "agent_id", "period_number"),
    )
