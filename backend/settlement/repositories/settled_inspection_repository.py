"""Settled-inspection ledger repository for data access."""

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy.orm import Session

from settlement.models.settled_inspection import SettledInspection
from settlement.models.shared import SettlementKind


class SettledInspectionRepository:
    """Repository for SettledInspection model."""

    def __init__(self, db: Session):
        self.db = db

    def add_all(self, inspection_ids: Iterable[str], kind: SettlementKind, source_id: UUID) -> None:
        """Stage ledger rows in the current transaction without committing."""
        for inspection_id in inspection_ids:
            self.db.add(
                SettledInspection(
                    inspection_id=inspection_id,
                    settlement_kind=kind.value,
                    source_id=source_id,
                )
            )

    def get_settled_ids(self, kind: SettlementKind) -> set[str]:
        """Get every inspection id already settled for a kind."""
        rows = (
            self.db.query(SettledInspection.inspection_id)
            .filter(SettledInspection.settlement_kind == kind.value)
            .all()
        )
        return {row[0] for row in rows}

    def get_by_source_id(self, source_id: UUID) -> list[SettledInspection]:
        return (
            self.db.query(SettledInspection)
            .filter(SettledInspection.source_id == source_id)
            .order_by(SettledInspection.inspection_id.asc())
            .all()
        )
