"""Service for generating and persisting period invoices."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from settlement.core.config import DEFAULT_CONFIG, SettlementConfig
from settlement.engine.invoices import (
    generate_agent_invoice,
    generate_all_agent_invoices,
    generate_combined_invoice,
    invoice_exists,
    verify_invoice,
)
from settlement.engine.status import reconciliation_update
from settlement.models.invoice import Invoice
from settlement.models.shared import COMBINED_AGENT_ID, SettlementKind
from settlement.repositories.invoice_repository import InvoiceRepository
from settlement.schemas.inspection import Inspection
from settlement.schemas.invoice import InvoiceCreate
from settlement.schemas.period import BillingPeriod
from settlement.schemas.settlement import SettlementOutcome

logger = logging.getLogger(__name__)


@dataclass
class InvoiceGenerationResult:
    """Result of an invoice generation request."""

    outcome: SettlementOutcome
    invoices: list[Invoice] = field(default_factory=list)


class InvoiceSettlementService:
    """Service for generating invoices at most once per scope and period."""

    def __init__(self, db: Session, config: SettlementConfig = DEFAULT_CONFIG):
        self.db = db
        self.config = config
        self.invoice_repo = InvoiceRepository(db)

    def generate_combined(
        self,
        period: BillingPeriod,
        inspections: Sequence[Inspection],
        now: datetime,
    ) -> InvoiceGenerationResult:
        """Generate the combined invoice for a period."""
        kind = SettlementKind.COMBINED_INVOICE
        prior = self.invoice_repo.get_by_kind(kind)
        if invoice_exists(COMBINED_AGENT_ID, period.period_number, kind, prior):
            logger.info("Combined invoice for period %d already generated", period.period_number)
            return InvoiceGenerationResult(outcome=SettlementOutcome.ALREADY_SETTLED)

        invoice = generate_combined_invoice(period, inspections, prior, now, self.config)
        return self._persist([invoice] if invoice else [], inspections, period)

    def generate_for_agent(
        self,
        period: BillingPeriod,
        agent_id: str,
        inspections: Sequence[Inspection],
        now: datetime,
    ) -> InvoiceGenerationResult:
        """Generate one agent's invoice for a period."""
        kind = SettlementKind.AGENT_INVOICE
        prior = self.invoice_repo.get_by_kind(kind)
        if invoice_exists(agent_id, period.period_number, kind, prior):
            logger.info(
                "Invoice for agent %s in period %d already generated",
                agent_id,
                period.period_number,
            )
            return InvoiceGenerationResult(outcome=SettlementOutcome.ALREADY_SETTLED)

        invoice = generate_agent_invoice(period, agent_id, inspections, prior, now, self.config)
        return self._persist([invoice] if invoice else [], inspections, period)

    def generate_for_all_agents(
        self,
        period: BillingPeriod,
        inspections: Sequence[Inspection],
        now: datetime,
    ) -> InvoiceGenerationResult:
        """Generate an invoice for every agent with eligible inspections in a period."""
        prior = self.invoice_repo.get_by_kind(SettlementKind.AGENT_INVOICE)
        invoices = generate_all_agent_invoices(period, inspections, prior, now, self.config)
        if not invoices and any(i.period_number == period.period_number for i in prior):
            return InvoiceGenerationResult(outcome=SettlementOutcome.ALREADY_SETTLED)
        return self._persist(invoices, inspections, period)

    def _persist(
        self,
        invoices: list[InvoiceCreate],
        inspections: Sequence[Inspection],
        period: BillingPeriod,
    ) -> InvoiceGenerationResult:
        if not invoices:
            logger.info("No eligible inspections to invoice in period %d", period.period_number)
            return InvoiceGenerationResult(outcome=SettlementOutcome.NOTHING_TO_SETTLE)

        for invoice in invoices:
            verify_invoice(invoice, inspections)

        try:
            created = self.invoice_repo.create_many(invoices)
        except IntegrityError:
            logger.info(
                "Concurrent settlement detected for period %d, skipping %d invoice(s)",
                period.period_number,
                len(invoices),
            )
            return InvoiceGenerationResult(outcome=SettlementOutcome.ALREADY_SETTLED)

        for invoice in created:
            logger.info(
                "Generated invoice %s for %s in period %d: total %s",
                invoice.invoice_number,
                invoice.agent_id,
                invoice.period_number,
                invoice.total_amount,
            )
        return InvoiceGenerationResult(outcome=SettlementOutcome.CREATED, invoices=created)

    def reconcile_statuses(self, now: datetime) -> int:
        """Write each unpaid invoice's effective status to ``reconciled_status``.

        Returns:
            Number of invoices whose reconciled status changed.
        """
        count = 0
        for invoice in self.invoice_repo.get_unpaid():
            update = reconciliation_update(invoice, now)
            if update is None:
                continue
            self.invoice_repo.set_reconciled_status(invoice, update)
            count += 1

        if count:
            self.db.commit()
        return count
