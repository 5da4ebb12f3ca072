"""Processed agent cashback repository for data access."""

from uuid import UUID

from sqlalchemy.orm import Session

from settlement.models.processed_cashback import ProcessedAgentCashback
from settlement.models.shared import SettlementKind
from settlement.repositories.settled_inspection_repository import SettledInspectionRepository
from settlement.schemas.cashback import ProcessedAgentCashbackCreate


class ProcessedCashbackRepository:
    """Repository for ProcessedAgentCashback model."""

    def __init__(self, db: Session):
        self.db = db
        self.ledger_repo = SettledInspectionRepository(db)

    def get_all(
        self,
        skip: int = 0,
        limit: int = 100,
        agent_id: str | None = None,
    ) -> list[ProcessedAgentCashback]:
        query = self.db.query(ProcessedAgentCashback)
        if agent_id:
            query = query.filter(ProcessedAgentCashback.agent_id == agent_id)
        return (
            query.order_by(
                ProcessedAgentCashback.processed_at.desc(),
                ProcessedAgentCashback.period_number.desc(),
            )
            .offset(skip)
            .limit(limit)
            .all()
        )

    def get_by_id(self, entry_id: UUID) -> ProcessedAgentCashback | None:
        return (
            self.db.query(ProcessedAgentCashback)
            .filter(ProcessedAgentCashback.id == entry_id)
            .first()
        )

    def get_by_agent(self, agent_id: str) -> list[ProcessedAgentCashback]:
        return (
            self.db.query(ProcessedAgentCashback)
            .filter(ProcessedAgentCashback.agent_id == agent_id)
            .order_by(ProcessedAgentCashback.period_number.asc())
            .all()
        )

    def get_every_entry(self) -> list[ProcessedAgentCashback]:
        return (
            self.db.query(ProcessedAgentCashback)
            .order_by(ProcessedAgentCashback.period_number.asc())
            .all()
        )

    def create_many(
        self, entries: list[ProcessedAgentCashbackCreate]
    ) -> list[ProcessedAgentCashback]:
        """Persist ledger entries and their settled-inspection rows atomically.

        Raises:
            sqlalchemy.exc.IntegrityError: If any inspection was already settled
                for cashback. The transaction is rolled back.
        """
        created = []
        try:
            for data in entries:
                entry = ProcessedAgentCashback(
                    id=data.id,
                    agent_id=data.agent_id,
                    period_number=data.period_number,
                    billing_period_start=data.billing_period_start,
                    billing_period_end=data.billing_period_end,
                    inspection_ids=list(data.inspection_ids),
                    total_revenue=data.total_revenue,
                    cashback_amount=data.cashback_amount,
                    processed_at=data.processed_at,
                    processed_by=data.processed_by,
                    notes=data.notes,
                )
                self.db.add(entry)
                self.ledger_repo.add_all(data.inspection_ids, SettlementKind.CASHBACK, data.id)
                created.append(entry)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        for entry in created:
            self.db.refresh(entry)
        return created
