from datetime import datetime
from uuid import UUID

from sqlalchemy.orm import Session

from settlement.models.invoice import EffectiveInvoiceStatus, Invoice, InvoiceStatus
from settlement.models.shared import SettlementKind
from settlement.repositories.settled_inspection_repository import SettledInspectionRepository
from settlement.schemas.invoice import InvoiceCreate


class InvoiceRepository:
    def __init__(self, db: Session):
        self.db = db
        self.ledger_repo = SettledInspectionRepository(db)

    def get_all(
        self,
        skip: int = 0,
        limit: int | None = 100,
        agent_id: str | None = None,
        period_number: int | None = None,
        settlement_kind: SettlementKind | None = None,
        status: InvoiceStatus | None = None,
    ) -> list[Invoice]:
        query = self.db.query(Invoice)

        if agent_id:
            query = query.filter(Invoice.agent_id == agent_id)
        if period_number is not None:
            query = query.filter(Invoice.period_number == period_number)
        if settlement_kind:
            query = query.filter(Invoice.settlement_kind == settlement_kind.value)
        if status:
            query = query.filter(Invoice.status == status.value)

        return (
            query.order_by(Invoice.period_number.desc(), Invoice.agent_id.asc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def count(self) -> int:
        return self.db.query(Invoice).count()

    def get_by_id(self, invoice_id: UUID) -> Invoice | None:
        return self.db.query(Invoice).filter(Invoice.id == invoice_id).first()

    def get_by_kind(self, settlement_kind: SettlementKind) -> list[Invoice]:
        """Get every invoice of a settlement kind, the prior-invoice set for generation."""
        return (
            self.db.query(Invoice)
            .filter(Invoice.settlement_kind == settlement_kind.value)
            .order_by(Invoice.period_number.asc(), Invoice.agent_id.asc())
            .all()
        )

    def get_unpaid(self) -> list[Invoice]:
        return (
            self.db.query(Invoice)
            .filter(Invoice.paid_at.is_(None), Invoice.status != InvoiceStatus.PAID.value)
            .all()
        )

    def create_many(self, invoices: list[InvoiceCreate]) -> list[Invoice]:
        """Persist invoices and their ledger rows in a single transaction.

        Raises:
            sqlalchemy.exc.IntegrityError: If an invoice scope or an inspection
                was settled concurrently. The transaction is rolled back.
        """
        created = []
        try:
            for data in invoices:
                invoice = Invoice(
                    id=data.id,
                    invoice_number=data.invoice_number,
                    agent_id=data.agent_id,
                    settlement_kind=data.settlement_kind.value,
                    period_number=data.period_number,
                    status=data.status.value,
                    billing_period_start=data.billing_period_start,
                    billing_period_end=data.billing_period_end,
                    inspection_ids=list(data.inspection_ids),
                    total_amount=data.total_amount,
                    agent_cashback=data.agent_cashback,
                    clerk_commission=data.clerk_commission,
                    net_amount=data.net_amount,
                    notes=data.notes,
                    generated_at=data.generated_at,
                    due_date=data.due_date,
                )
                self.db.add(invoice)
                self.ledger_repo.add_all(data.inspection_ids, data.settlement_kind, data.id)
                created.append(invoice)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        for invoice in created:
            self.db.refresh(invoice)
        return created

    def finalize(self, invoice_id: UUID) -> Invoice | None:
        """Move a draft invoice to generated."""
        invoice = self.get_by_id(invoice_id)
        if not invoice:
            return None
        if invoice.status != InvoiceStatus.DRAFT.value:
            raise ValueError("Only draft invoices can be finalized")

        invoice.status = InvoiceStatus.GENERATED.value  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(invoice)
        return invoice

    def mark_sent(self, invoice_id: UUID, sent_at: datetime) -> Invoice | None:
        """Mark a generated invoice as sent."""
        invoice = self.get_by_id(invoice_id)
        if not invoice:
            return None
        if invoice.status != InvoiceStatus.GENERATED.value:
            raise ValueError("Only generated invoices can be sent")

        invoice.status = InvoiceStatus.SENT.value  # type: ignore[assignment]
        invoice.sent_at = sent_at  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(invoice)
        return invoice

    def mark_paid(self, invoice_id: UUID, paid_at: datetime) -> Invoice | None:
        """Mark an invoice as paid."""
        invoice = self.get_by_id(invoice_id)
        if not invoice:
            return None
        if invoice.status not in [InvoiceStatus.GENERATED.value, InvoiceStatus.SENT.value]:
            raise ValueError("Only generated or sent invoices can be marked as paid")

        invoice.status = InvoiceStatus.PAID.value  # type: ignore[assignment]
        invoice.paid_at = paid_at  # type: ignore[assignment]
        # get_unpaid() excludes this invoice from now on
        invoice.reconciled_status = EffectiveInvoiceStatus.PAID.value  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(invoice)
        return invoice

    def set_reconciled_status(self, invoice: Invoice, reconciled_status: str) -> None:
        """Stage a reconciled status write; the caller commits."""
        invoice.reconciled_status = reconciled_status  # type: ignore[assignment]
