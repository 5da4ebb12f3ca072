"""SettledInspection model - the at-most-once ledger.

Each row records that an inspection has been settled for one settlement kind
by a given invoice or cashback entry. The unique constraint on
``(inspection_id, settlement_kind)`` rejects a second settlement of the same
inspection under the same kind, even from concurrent requests.
"""

from sqlalchemy import Column, DateTime, String, UniqueConstraint, func

from settlement.core.database import Base
from settlement.models.shared import UUIDType, generate_uuid


class SettledInspection(Base):
    __tablename__ = "settled_inspections"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    inspection_id = Column(String(255), nullable=False, index=True)
    settlement_kind = Column(String(30), nullable=False)
    source_id = Column(UUIDType, nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint(
            "inspection_id",
            "settlement_kind",
            name="uq_settled_inspections_inspection_kind",
        ),
    )
