"""Invoice generation for billing periods.

Invoices are generated at most once per scope and period: a combined invoice
covers every agent (``agent_id == "COMBINED"``), an agent invoice covers one
agent. Combined and per-agent invoicing are separate settlement kinds, so an
inspection can appear on one invoice of each kind but never on two invoices of
the same kind.
"""

import logging
import uuid
from collections.abc import Iterable, Sequence
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from settlement.core.config import DEFAULT_CONFIG, SettlementConfig
from settlement.core.exceptions import InvariantViolationError
from settlement.engine.periods import format_period
from settlement.engine.selector import (
    completed_in_period,
    group_by_agent,
    select_eligible,
    settled_ids,
    settlement_date,
)
from settlement.engine.status import effective_status
from settlement.models.invoice import EffectiveInvoiceStatus
from settlement.models.shared import COMBINED_AGENT_ID, SettlementKind, ensure_utc
from settlement.schemas.inspection import Inspection
from settlement.schemas.invoice import InvoiceCreate, InvoiceLineItem, InvoiceSummary
from settlement.schemas.period import BillingPeriod
from settlement.schemas.settlement import RevenueSplit

logger = logging.getLogger(__name__)

_CENT = Decimal("0.01")


def round2(amount: Decimal) -> Decimal:
    """Round a monetary amount to whole cents, half up."""
    return amount.quantize(_CENT, rounding=ROUND_HALF_UP)


def compute_split(total: Decimal, config: SettlementConfig = DEFAULT_CONFIG) -> RevenueSplit:
    """Split revenue into agent cashback, clerk commission and net amount.

    The net amount is computed by subtraction so the three parts always add
    up to ``total`` exactly.
    """
    agent_cashback = round2(total * config.agent_cashback_rate)
    clerk_commission = round2(total * config.clerk_commission_rate)
    net_amount = total - agent_cashback - clerk_commission
    split = RevenueSplit(
        total_amount=total,
        agent_cashback=agent_cashback,
        clerk_commission=clerk_commission,
        net_amount=net_amount,
    )
    _check_split(split)
    return split


def _check_split(split: Any) -> None:
    parts = split.agent_cashback + split.clerk_commission + split.net_amount
    if parts != split.total_amount:
        raise InvariantViolationError(
            f"Revenue split {parts} does not add up to total {split.total_amount}"
        )


def format_invoice_number(period_number: int, invoice_id: uuid.UUID) -> str:
    """Format an invoice number, e.g. ``AB-002-1F3A9C...``.

    Carries the whole invoice id, so the number is unique whenever the id is.
    """
    return f"AB-{period_number:03d}-{invoice_id.hex.upper()}"


def invoice_exists(
    agent_id: str,
    period_number: int,
    kind: SettlementKind,
    prior_invoices: Iterable[Any],
) -> bool:
    """Check whether an invoice already covers this scope and period."""
    return any(
        invoice.agent_id == agent_id
        and invoice.period_number == period_number
        and invoice.settlement_kind == kind.value
        for invoice in prior_invoices
    )


def _build_invoice(
    period: BillingPeriod,
    agent_id: str,
    kind: SettlementKind,
    inspections: Sequence[Inspection],
    now: datetime,
    notes: str,
    config: SettlementConfig,
) -> InvoiceCreate:
    split = compute_split(sum((i.price for i in inspections), Decimal(0)), config)
    invoice_id = uuid.uuid4()
    generated_at = ensure_utc(now)
    return InvoiceCreate(
        id=invoice_id,
        invoice_number=format_invoice_number(period.period_number, invoice_id),
        agent_id=agent_id,
        settlement_kind=kind,
        period_number=period.period_number,
        billing_period_start=period.start,
        billing_period_end=period.end,
        inspection_ids=[i.id for i in inspections],
        total_amount=split.total_amount,
        agent_cashback=split.agent_cashback,
        clerk_commission=split.clerk_commission,
        net_amount=split.net_amount,
        generated_at=generated_at,
        due_date=generated_at + timedelta(days=config.payment_term_days),
        notes=notes,
    )


def generate_combined_invoice(
    period: BillingPeriod,
    inspections: Iterable[Inspection],
    prior_invoices: Sequence[Any],
    now: datetime,
    config: SettlementConfig = DEFAULT_CONFIG,
) -> InvoiceCreate | None:
    """Generate the combined invoice covering all agents for a period.

    Returns:
        The new draft invoice, or None if a combined invoice already exists for
        the period or no inspection is eligible.
    """
    kind = SettlementKind.COMBINED_INVOICE
    if invoice_exists(COMBINED_AGENT_ID, period.period_number, kind, prior_invoices):
        logger.debug("Combined invoice for period %d already exists", period.period_number)
        return None

    eligible = select_eligible(
        inspections, period, already_settled=settled_ids(prior_invoices, kind)
    )
    if not eligible:
        return None

    return _build_invoice(
        period,
        COMBINED_AGENT_ID,
        kind,
        eligible,
        now,
        f"Combined invoice for billing period: {format_period(period)}",
        config,
    )


def generate_agent_invoice(
    period: BillingPeriod,
    agent_id: str,
    inspections: Iterable[Inspection],
    prior_invoices: Sequence[Any],
    now: datetime,
    config: SettlementConfig = DEFAULT_CONFIG,
) -> InvoiceCreate | None:
    """Generate one agent's invoice for a period.

    Returns:
        The new draft invoice, or None if the agent already has an invoice for
        the period or no inspection is eligible.
    """
    kind = SettlementKind.AGENT_INVOICE
    if invoice_exists(agent_id, period.period_number, kind, prior_invoices):
        logger.debug(
            "Invoice for agent %s in period %d already exists", agent_id, period.period_number
        )
        return None

    eligible = select_eligible(
        inspections,
        period,
        agent_id=agent_id,
        already_settled=settled_ids(prior_invoices, kind),
    )
    if not eligible:
        return None

    return _build_invoice(
        period,
        agent_id,
        kind,
        eligible,
        now,
        f"Invoice for agent {agent_id} - Period: {format_period(period)}",
        config,
    )


def generate_all_agent_invoices(
    period: BillingPeriod,
    inspections: Iterable[Inspection],
    prior_invoices: Sequence[Any],
    now: datetime,
    config: SettlementConfig = DEFAULT_CONFIG,
) -> list[InvoiceCreate]:
    """Generate an invoice for every agent with eligible inspections in a period."""
    snapshot = list(inspections)
    invoices = []
    for agent_id in group_by_agent(completed_in_period(snapshot, period)):
        invoice = generate_agent_invoice(period, agent_id, snapshot, prior_invoices, now, config)
        if invoice:
            invoices.append(invoice)
    return invoices


def _index_snapshot(invoice: Any, inspections: Iterable[Inspection]) -> list[Inspection]:
    by_id = {inspection.id: inspection for inspection in inspections}
    missing = [i for i in invoice.inspection_ids if i not in by_id]
    if missing:
        raise InvariantViolationError(
            f"Invoice {invoice.invoice_number} references unknown inspections: "
            f"{', '.join(sorted(missing))}"
        )
    return [by_id[i] for i in invoice.inspection_ids]


def verify_invoice(invoice: Any, inspections: Iterable[Inspection]) -> None:
    """Check an invoice against the snapshot it was generated from.

    Raises:
        InvariantViolationError: If the invoice references an inspection not in
            the snapshot, its total differs from the inspection prices, or its
            revenue components do not add up to the total.
    """
    covered = _index_snapshot(invoice, inspections)
    expected_total = sum((i.price for i in covered), Decimal(0))
    if expected_total != invoice.total_amount:
        raise InvariantViolationError(
            f"Invoice {invoice.invoice_number} total {invoice.total_amount} "
            f"does not match inspection prices {expected_total}"
        )
    _check_split(invoice)


def invoice_line_items(invoice: Any, inspections: Iterable[Inspection]) -> list[InvoiceLineItem]:
    """Build one line item per inspection on the invoice."""
    return [
        InvoiceLineItem(
            inspection_id=inspection.id,
            inspection_type=inspection.inspection_type,
            property_id=inspection.property_id,
            settlement_date=settlement_date(inspection),
            agent_id=inspection.agent_id,
            clerk_id=inspection.clerk_id,
            amount=inspection.price,
        )
        for inspection in _index_snapshot(invoice, inspections)
    ]


_OUTSTANDING = {
    EffectiveInvoiceStatus.GENERATED,
    EffectiveInvoiceStatus.SENT,
    EffectiveInvoiceStatus.OVERDUE,
}


def summarize_invoices(invoices: Iterable[Any], now: datetime) -> InvoiceSummary:
    """Aggregate invoice totals by effective status."""
    total_invoices = 0
    total_amount = total_paid = total_outstanding = total_overdue = Decimal(0)
    for invoice in invoices:
        amount = Decimal(str(invoice.total_amount))
        status = effective_status(invoice, now)
        total_invoices += 1
        total_amount += amount
        if status == EffectiveInvoiceStatus.PAID:
            total_paid += amount
        if status in _OUTSTANDING:
            total_outstanding += amount
        if status == EffectiveInvoiceStatus.OVERDUE:
            total_overdue += amount

    average = round2(total_amount / total_invoices) if total_invoices else Decimal(0)
    return InvoiceSummary(
        total_invoices=total_invoices,
        total_amount=total_amount,
        total_paid=total_paid,
        total_outstanding=total_outstanding,
        total_overdue=total_overdue,
        average_invoice_amount=average,
    )


def summarize_agent_invoices(
    agent_id: str, invoices: Iterable[Any], now: datetime
) -> InvoiceSummary:
    """Aggregate one agent's invoice totals."""
    return summarize_invoices((i for i in invoices if i.agent_id == agent_id), now)
