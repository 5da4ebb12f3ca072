from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from settlement.core.database import get_db
from settlement.engine.periods import period_by_number
from settlement.models.processed_cashback import ProcessedAgentCashback
from settlement.models.shared import utc_now
from settlement.repositories.processed_cashback_repository import ProcessedCashbackRepository
from settlement.schemas.cashback import (
    AgentCashbackBreakdown,
    AgentCashbackStatus,
    InspectionSnapshotRequest,
    PeriodSettlementSummary,
    PeriodSummaryRequest,
    ProcessCashbackRequest,
    ProcessCashbackResponse,
    ProcessedAgentCashbackResponse,
    UnprocessedCashbackRequest,
    UnprocessedTotals,
)
from settlement.services.cashback_service import CashbackService

router = APIRouter()


@router.post(
    "/unprocessed",
    response_model=list[AgentCashbackStatus],
    summary="List unprocessed cashback by agent",
)
async def list_unprocessed_cashback(
    data: UnprocessedCashbackRequest,
    db: Session = Depends(get_db),
) -> list[AgentCashbackStatus]:
    """Aggregate each agent's cashback not yet processed, by billing period."""
    service = CashbackService(db)
    return service.unprocessed(data.inspections, utc_now(), max_periods=data.max_periods)


@router.post(
    "/periods",
    response_model=list[PeriodSettlementSummary],
    summary="List periods with unprocessed cashback",
)
async def list_unprocessed_periods(
    data: PeriodSummaryRequest,
    db: Session = Depends(get_db),
) -> list[PeriodSettlementSummary]:
    """Recent periods whose revenue still has unpaid cashback, most recent first.

    Looks back 12 periods unless ``max_periods`` is given.
    """
    service = CashbackService(db)
    return service.unprocessed_periods(data.inspections, utc_now(), max_periods=data.max_periods)


@router.post(
    "/periods/{period_number}",
    response_model=PeriodSettlementSummary,
    summary="Summarize a billing period",
    responses={400: {"description": "Invalid period number"}},
)
async def get_period_summary(
    period_number: int,
    data: InspectionSnapshotRequest,
    db: Session = Depends(get_db),
) -> PeriodSettlementSummary:
    """Revenue split of one period and the part whose cashback is unpaid."""
    try:
        period = period_by_number(period_number)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None
    return CashbackService(db).summarize_period(period, data.inspections)


@router.post(
    "/periods/{period_number}/agents",
    response_model=list[AgentCashbackBreakdown],
    summary="Agent cashback breakdown for a period",
    responses={400: {"description": "Invalid period number"}},
)
async def get_period_agent_breakdown(
    period_number: int,
    data: InspectionSnapshotRequest,
    db: Session = Depends(get_db),
) -> list[AgentCashbackBreakdown]:
    """Unpaid cashback per agent for one period, largest first."""
    try:
        period = period_by_number(period_number)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None
    return CashbackService(db).agent_breakdown(period, data.inspections)


@router.post(
    "/totals",
    response_model=UnprocessedTotals,
    summary="Total unprocessed amounts",
)
async def get_unprocessed_totals(
    data: PeriodSummaryRequest,
    db: Session = Depends(get_db),
) -> UnprocessedTotals:
    """Overview totals across recent periods.

    Commission is counted for every period, whether or not cashback was paid.
    """
    service = CashbackService(db)
    return service.unprocessed_totals(data.inspections, utc_now(), max_periods=data.max_periods)


@router.post(
    "/agents/{agent_id}/process",
    response_model=ProcessCashbackResponse,
    summary="Process agent cashback",
    responses={409: {"description": "Cashback for this agent is already being processed"}},
)
async def process_agent_cashback(
    agent_id: str,
    data: ProcessCashbackRequest,
    db: Session = Depends(get_db),
) -> ProcessCashbackResponse:
    """Record an agent's unprocessed cashback as paid, one entry per billing period."""
    service = CashbackService(db)
    result = service.process_agent(
        agent_id, data.inspections, data.processed_by, utc_now(), notes=data.notes
    )
    if result.error:
        raise HTTPException(status_code=409, detail=result.error)
    return ProcessCashbackResponse(
        outcome=result.outcome,
        entries=[ProcessedAgentCashbackResponse.model_validate(e) for e in result.entries],
    )


@router.get(
    "/",
    response_model=list[ProcessedAgentCashbackResponse],
    summary="List processed cashback entries",
)
async def list_processed_cashback(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    agent_id: str | None = None,
    db: Session = Depends(get_db),
) -> list[ProcessedAgentCashback]:
    """List ledger entries, newest first."""
    repo = ProcessedCashbackRepository(db)
    return repo.get_all(skip=skip, limit=limit, agent_id=agent_id)
