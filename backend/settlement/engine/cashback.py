"""Agent cashback ledger.

Tracks which completed inspections have had their agent cashback paid out.
Processing an agent emits one ProcessedAgentCashback entry per billing period
so the audit trail lines up with billing periods, even when one action settles
many historical periods. Clerk commission is reported here but never processed.
"""

import uuid
from collections.abc import Iterable
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any

from settlement.core.config import DEFAULT_CONFIG, SettlementConfig
from settlement.core.exceptions import InvariantViolationError
from settlement.engine.invoices import compute_split, round2
from settlement.engine.periods import (
    current_period,
    period_by_number,
    period_number_for_date,
    periods_before,
)
from settlement.engine.selector import (
    completed_in_period,
    group_by_agent,
    group_by_clerk,
    settled_ids,
    settlement_date,
)
from settlement.models.shared import ensure_utc
from settlement.schemas.cashback import (
    AgentCashbackBreakdown,
    AgentCashbackStatus,
    ClerkCommissionBreakdown,
    PeriodCashback,
    PeriodSettlementSummary,
    ProcessedAgentCashbackCreate,
    UnprocessedTotals,
    ValidationResult,
)
from settlement.schemas.inspection import Inspection, InspectionStatus
from settlement.schemas.period import BillingPeriod


def _revenue(inspections: Iterable[Inspection]) -> Decimal:
    return sum((i.price for i in inspections), Decimal(0))


def unprocessed_cashback_by_agent(
    inspections: Iterable[Inspection],
    processed_entries: Iterable[Any],
    now: datetime,
    max_periods: int | None = None,
    config: SettlementConfig = DEFAULT_CONFIG,
) -> list[AgentCashbackStatus]:
    """Aggregate each agent's unprocessed cashback by billing period.

    An inspection counts when it is completed, falls in the current period or
    earlier, and is not in any processed entry. Cashback is paid at most once
    per inspection, so an entry recorded under a previous agent still excludes it.

    Args:
        inspections: Inspection snapshot.
        processed_entries: Existing ProcessedAgentCashback records.
        now: Reference instant for the current period.
        max_periods: Only look back this many periods, current one included.
        config: Settlement constants.

    Returns:
        One status per agent with unprocessed cashback, largest amount first.
        Periods inside each status are ordered most recent first.
    """
    current_number = current_period(now, config).period_number
    oldest_number = 1 if max_periods is None else max(1, current_number - max_periods + 1)
    processed = settled_ids(processed_entries)

    by_agent_period: dict[str, dict[int, list[Inspection]]] = {}
    for inspection in inspections:
        if inspection.status != InspectionStatus.COMPLETED:
            continue
        if inspection.id in processed:
            continue
        period_number = period_number_for_date(settlement_date(inspection), config)
        if not oldest_number <= period_number <= current_number:
            continue
        by_agent_period.setdefault(inspection.agent_id, {}).setdefault(
            period_number, []
        ).append(inspection)

    statuses = []
    for agent_id, periods in by_agent_period.items():
        periods_with_cashback = []
        for period_number in sorted(periods, reverse=True):
            period_inspections = sorted(
                periods[period_number], key=lambda i: (settlement_date(i), i.id)
            )
            revenue = _revenue(period_inspections)
            periods_with_cashback.append(
                PeriodCashback(
                    period_number=period_number,
                    period=period_by_number(period_number, config),
                    inspections=period_inspections,
                    revenue=revenue,
                    cashback=round2(revenue * config.agent_cashback_rate),
                )
            )

        unprocessed_cashback = sum((p.cashback for p in periods_with_cashback), Decimal(0))
        if unprocessed_cashback <= 0:
            continue
        statuses.append(
            AgentCashbackStatus(
                agent_id=agent_id,
                unprocessed_cashback=unprocessed_cashback,
                unprocessed_revenue=sum((p.revenue for p in periods_with_cashback), Decimal(0)),
                unprocessed_inspections=[
                    inspection for p in periods_with_cashback for inspection in p.inspections
                ],
                periods_with_cashback=periods_with_cashback,
            )
        )

    return sorted(statuses, key=lambda s: (-s.unprocessed_cashback, s.agent_id))


def validate_processing(
    agent_id: str,
    processed_entries: Iterable[Any],
    now: datetime,
    config: SettlementConfig = DEFAULT_CONFIG,
) -> ValidationResult:
    """Check that cashback processing may start for an agent.

    Rejects a missing agent id, and a submission arriving while a previous one
    for the same agent is still within the resubmission window.
    """
    if not agent_id:
        return ValidationResult(
            is_valid=False, error="Agent ID is required for cashback processing."
        )

    now = ensure_utc(now)
    window_start = now - timedelta(seconds=config.cashback_resubmit_window_seconds)
    for entry in processed_entries:
        if entry.agent_id != agent_id:
            continue
        if window_start <= ensure_utc(entry.processed_at) <= now:
            return ValidationResult(
                is_valid=False,
                error=f"Cashback for agent {agent_id} is already being processed.",
            )

    return ValidationResult(is_valid=True)


def create_processed_cashback(
    agent_status: AgentCashbackStatus,
    processed_by: str,
    now: datetime,
    notes: str | None = None,
) -> list[ProcessedAgentCashbackCreate]:
    """Emit one ledger entry per billing period in ``agent_status``.

    Raises:
        InvariantViolationError: If an inspection appears in more than one
            period of the status.
    """
    seen: set[str] = set()
    for period_cashback in agent_status.periods_with_cashback:
        ids = {i.id for i in period_cashback.inspections}
        if seen & ids:
            raise InvariantViolationError(
                f"Inspections {sorted(seen & ids)} appear in more than one period "
                f"for agent {agent_status.agent_id}"
            )
        seen |= ids

    processed_at = ensure_utc(now)
    return [
        ProcessedAgentCashbackCreate(
            id=uuid.uuid4(),
            agent_id=agent_status.agent_id,
            period_number=period_cashback.period_number,
            billing_period_start=period_cashback.period.start,
            billing_period_end=period_cashback.period.end,
            inspection_ids=[i.id for i in period_cashback.inspections],
            total_revenue=period_cashback.revenue,
            cashback_amount=period_cashback.cashback,
            processed_at=processed_at,
            processed_by=processed_by,
            notes=notes or f"Cashback processed for agent {agent_status.agent_id}",
        )
        for period_cashback in agent_status.periods_with_cashback
    ]


def agent_cashback_breakdown(
    period: BillingPeriod,
    inspections: Iterable[Inspection],
    processed_entries: Iterable[Any],
    config: SettlementConfig = DEFAULT_CONFIG,
) -> list[AgentCashbackBreakdown]:
    """Unprocessed cashback per agent for one period, largest first."""
    processed = settled_ids(processed_entries)
    breakdown = []
    for agent_id, agent_inspections in group_by_agent(
        completed_in_period(inspections, period)
    ).items():
        pending = [i for i in agent_inspections if i.id not in processed]
        if not pending:
            continue
        revenue = _revenue(pending)
        breakdown.append(
            AgentCashbackBreakdown(
                agent_id=agent_id,
                inspection_ids=[i.id for i in pending],
                total_revenue=revenue,
                cashback_amount=round2(revenue * config.agent_cashback_rate),
            )
        )
    return sorted(breakdown, key=lambda b: (-b.cashback_amount, b.agent_id))


def period_summary(
    period: BillingPeriod,
    inspections: Iterable[Inspection],
    processed_entries: Iterable[Any],
    config: SettlementConfig = DEFAULT_CONFIG,
) -> PeriodSettlementSummary:
    """Split a period's completed revenue, and the part with unpaid cashback."""
    processed = settled_ids(processed_entries)
    completed = completed_in_period(inspections, period)
    pending = [i for i in completed if i.id not in processed]
    return PeriodSettlementSummary(
        period_number=period.period_number,
        period=period,
        inspection_ids=[i.id for i in completed],
        pending_inspection_ids=[i.id for i in pending],
        revenue=compute_split(_revenue(completed), config),
        unprocessed=compute_split(_revenue(pending), config),
        is_processed=bool(completed) and not pending,
    )


def _window_summaries(
    inspections: Iterable[Inspection],
    processed_entries: Iterable[Any],
    now: datetime,
    max_periods: int | None,
    config: SettlementConfig,
) -> list[PeriodSettlementSummary]:
    current = current_period(now, config)
    if max_periods is None:
        max_periods = config.summary_lookback_periods
    snapshot = list(inspections)
    entries = list(processed_entries)
    return [
        period_summary(period, snapshot, entries, config)
        for period in [current, *periods_before(current, max_periods - 1, config)]
    ]


def unprocessed_period_summaries(
    inspections: Iterable[Inspection],
    processed_entries: Iterable[Any],
    now: datetime,
    max_periods: int | None = None,
    config: SettlementConfig = DEFAULT_CONFIG,
) -> list[PeriodSettlementSummary]:
    """Summaries of recent periods that still have revenue with unpaid cashback.

    Looks back ``max_periods`` periods (``summary_lookback_periods`` by
    default), current one included, and returns them most recent first.
    """
    summaries = _window_summaries(inspections, processed_entries, now, max_periods, config)
    return [s for s in summaries if s.unprocessed.total_amount > 0]


def total_unprocessed_amounts(
    inspections: Iterable[Inspection],
    processed_entries: Iterable[Any],
    now: datetime,
    max_periods: int | None = None,
    config: SettlementConfig = DEFAULT_CONFIG,
) -> UnprocessedTotals:
    """Totals over the lookback window.

    Revenue, cashback and net revenue cover only inspections whose cashback is
    unpaid. Commission is never processed, so it covers every period in the
    window.
    """
    summaries = _window_summaries(inspections, processed_entries, now, max_periods, config)
    pending = [s for s in summaries if s.unprocessed.total_amount > 0]
    return UnprocessedTotals(
        total_revenue=sum((s.unprocessed.total_amount for s in pending), Decimal(0)),
        total_cashback=sum((s.unprocessed.agent_cashback for s in pending), Decimal(0)),
        total_commission=sum((s.revenue.clerk_commission for s in summaries), Decimal(0)),
        total_net_revenue=sum((s.unprocessed.net_amount for s in pending), Decimal(0)),
        period_count=len(pending),
    )


def clerk_commission_breakdown(
    period: BillingPeriod,
    inspections: Iterable[Inspection],
    config: SettlementConfig = DEFAULT_CONFIG,
) -> list[ClerkCommissionBreakdown]:
    """Commission per clerk for one period, largest first."""
    breakdown = []
    for clerk_id, clerk_inspections in group_by_clerk(
        completed_in_period(inspections, period)
    ).items():
        revenue = _revenue(clerk_inspections)
        breakdown.append(
            ClerkCommissionBreakdown(
                clerk_id=clerk_id,
                inspection_ids=[i.id for i in clerk_inspections],
                total_revenue=revenue,
                commission_amount=round2(revenue * config.clerk_commission_rate),
            )
        )
    return sorted(breakdown, key=lambda b: (-b.commission_amount, b.clerk_id))
