from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from settlement.core.database import get_db
from settlement.core.exceptions import InvariantViolationError
from settlement.engine.invoices import (
    invoice_line_items,
    summarize_agent_invoices,
    summarize_invoices,
    verify_invoice,
)
from settlement.engine.periods import current_period, period_by_number
from settlement.engine.status import effective_status
from settlement.models.invoice import Invoice, InvoiceStatus
from settlement.models.shared import SettlementKind, utc_now
from settlement.repositories.invoice_repository import InvoiceRepository
from settlement.schemas.invoice import (
    GenerateInvoiceRequest,
    InvoiceGenerationResponse,
    InvoiceLineItem,
    InvoiceResponse,
    InvoiceSnapshotRequest,
    InvoiceSummary,
)
from settlement.schemas.period import BillingPeriod
from settlement.services.invoice_settlement_service import (
    InvoiceGenerationResult,
    InvoiceSettlementService,
)

router = APIRouter()


def _invoice_response(invoice: Invoice, now: datetime) -> InvoiceResponse:
    fields = {
        name: getattr(invoice, name)
        for name in InvoiceResponse.model_fields
        if name != "effective_status"
    }
    return InvoiceResponse(**fields, effective_status=effective_status(invoice, now))


def _generation_response(
    result: InvoiceGenerationResult, now: datetime
) -> InvoiceGenerationResponse:
    return InvoiceGenerationResponse(
        outcome=result.outcome,
        invoices=[_invoice_response(invoice, now) for invoice in result.invoices],
    )


def _resolve_period(period_number: int | None, now: datetime) -> BillingPeriod:
    if period_number is None:
        return current_period(now)
    return period_by_number(period_number)


@router.post(
    "/combined",
    response_model=InvoiceGenerationResponse,
    summary="Generate combined invoice",
)
async def generate_combined_invoice(
    data: GenerateInvoiceRequest,
    db: Session = Depends(get_db),
) -> InvoiceGenerationResponse:
    """Generate the combined invoice covering every agent for a period.

    Safe to repeat: a second request for the same period reports
    ``already_settled`` instead of creating another invoice.
    """
    now = utc_now()
    service = InvoiceSettlementService(db)
    result = service.generate_combined(
        _resolve_period(data.period_number, now), data.inspections, now
    )
    return _generation_response(result, now)


@router.post(
    "/agents",
    response_model=InvoiceGenerationResponse,
    summary="Generate invoices for all agents",
)
async def generate_all_agent_invoices(
    data: GenerateInvoiceRequest,
    db: Session = Depends(get_db),
) -> InvoiceGenerationResponse:
    """Generate one invoice per agent with eligible inspections in a period."""
    now = utc_now()
    service = InvoiceSettlementService(db)
    result = service.generate_for_all_agents(
        _resolve_period(data.period_number, now), data.inspections, now
    )
    return _generation_response(result, now)


@router.post(
    "/agents/{agent_id}",
    response_model=InvoiceGenerationResponse,
    summary="Generate agent invoice",
)
async def generate_agent_invoice(
    agent_id: str,
    data: GenerateInvoiceRequest,
    db: Session = Depends(get_db),
) -> InvoiceGenerationResponse:
    """Generate one agent's invoice for a period."""
    now = utc_now()
    service = InvoiceSettlementService(db)
    result = service.generate_for_agent(
        _resolve_period(data.period_number, now), agent_id, data.inspections, now
    )
    return _generation_response(result, now)


@router.get(
    "/",
    response_model=list[InvoiceResponse],
    summary="List invoices",
)
async def list_invoices(
    response: Response,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    agent_id: str | None = None,
    period_number: int | None = None,
    settlement_kind: SettlementKind | None = None,
    status: InvoiceStatus | None = None,
    db: Session = Depends(get_db),
) -> list[InvoiceResponse]:
    """List invoices with optional filters and their effective status."""
    repo = InvoiceRepository(db)
    response.headers["X-Total-Count"] = str(repo.count())
    now = utc_now()
    invoices = repo.get_all(
        skip=skip,
        limit=limit,
        agent_id=agent_id,
        period_number=period_number,
        settlement_kind=settlement_kind,
        status=status,
    )
    return [_invoice_response(invoice, now) for invoice in invoices]


@router.get(
    "/summary",
    response_model=InvoiceSummary,
    summary="Summarize invoices",
)
async def get_invoice_summary(
    agent_id: str | None = None,
    settlement_kind: SettlementKind | None = None,
    db: Session = Depends(get_db),
) -> InvoiceSummary:
    """Totals by effective status, optionally for one agent."""
    now = utc_now()
    invoices = InvoiceRepository(db).get_all(limit=None, settlement_kind=settlement_kind)
    if agent_id:
        return summarize_agent_invoices(agent_id, invoices, now)
    return summarize_invoices(invoices, now)


@router.get(
    "/{invoice_id}",
    response_model=InvoiceResponse,
    summary="Get invoice",
    responses={404: {"description": "Invoice not found"}},
)
async def get_invoice(
    invoice_id: UUID,
    db: Session = Depends(get_db),
) -> InvoiceResponse:
    """Get an invoice by ID."""
    invoice = InvoiceRepository(db).get_by_id(invoice_id)
    if not invoice:
        raise HTTPException(status_code=404, detail="Invoice not found")
    return _invoice_response(invoice, utc_now())


@router.post(
    "/{invoice_id}/finalize",
    response_model=InvoiceResponse,
    summary="Finalize invoice",
    responses={
        400: {"description": "Invoice is not in draft status"},
        404: {"description": "Invoice not found"},
    },
)
async def finalize_invoice(
    invoice_id: UUID,
    db: Session = Depends(get_db),
) -> InvoiceResponse:
    """Move a draft invoice to generated."""
    repo = InvoiceRepository(db)
    try:
        invoice = repo.finalize(invoice_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None
    if not invoice:
        raise HTTPException(status_code=404, detail="Invoice not found")
    return _invoice_response(invoice, utc_now())


@router.post(
    "/{invoice_id}/send",
    response_model=InvoiceResponse,
    summary="Send invoice",
    responses={
        400: {"description": "Invoice is not in generated status"},
        404: {"description": "Invoice not found"},
    },
)
async def send_invoice(
    invoice_id: UUID,
    db: Session = Depends(get_db),
) -> InvoiceResponse:
    """Mark a generated invoice as sent."""
    now = utc_now()
    repo = InvoiceRepository(db)
    try:
        invoice = repo.mark_sent(invoice_id, now)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None
    if not invoice:
        raise HTTPException(status_code=404, detail="Invoice not found")
    return _invoice_response(invoice, now)


@router.post(
    "/{invoice_id}/pay",
    response_model=InvoiceResponse,
    summary="Mark invoice as paid",
    responses={
        400: {"description": "Invoice cannot be marked as paid"},
        404: {"description": "Invoice not found"},
    },
)
async def pay_invoice(
    invoice_id: UUID,
    db: Session = Depends(get_db),
) -> InvoiceResponse:
    """Mark a generated or sent invoice as paid."""
    now = utc_now()
    repo = InvoiceRepository(db)
    try:
        invoice = repo.mark_paid(invoice_id, now)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None
    if not invoice:
        raise HTTPException(status_code=404, detail="Invoice not found")
    return _invoice_response(invoice, now)


@router.post(
    "/{invoice_id}/lines",
    response_model=list[InvoiceLineItem],
    summary="Get invoice line items",
    responses={
        400: {"description": "Snapshot does not match the invoice"},
        404: {"description": "Invoice not found"},
    },
)
async def get_invoice_line_items(
    invoice_id: UUID,
    data: InvoiceSnapshotRequest,
    db: Session = Depends(get_db),
) -> list[InvoiceLineItem]:
    """One line per inspection on the invoice, taken from the given snapshot.

    The snapshot must contain every inspection on the invoice at the prices it
    was generated with.
    """
    invoice = InvoiceRepository(db).get_by_id(invoice_id)
    if not invoice:
        raise HTTPException(status_code=404, detail="Invoice not found")
    try:
        verify_invoice(invoice, data.inspections)
    except InvariantViolationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None
    return invoice_line_items(invoice, data.inspections)
