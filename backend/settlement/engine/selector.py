"""Eligibility selection for settlement operations."""

from collections.abc import Collection, Iterable
from datetime import datetime
from typing import Any

from settlement.engine.periods import is_date_in_period
from settlement.models.shared import SettlementKind, ensure_utc
from settlement.schemas.inspection import Inspection, InspectionStatus
from settlement.schemas.period import BillingPeriod


def settlement_date(inspection: Inspection) -> datetime:
    """Date used to bucket an inspection into a billing period.

    Falls back from ``completed_date`` to ``completed_at`` to ``scheduled_date``.
    """
    date = inspection.completed_date or inspection.completed_at or inspection.scheduled_date
    return ensure_utc(date)


def _sort_key(inspection: Inspection) -> tuple[datetime, str]:
    return settlement_date(inspection), inspection.id


def completed_in_period(
    inspections: Iterable[Inspection], period: BillingPeriod
) -> list[Inspection]:
    """Completed inspections whose settlement date falls in ``period``, oldest first."""
    selected = [
        inspection
        for inspection in inspections
        if inspection.status == InspectionStatus.COMPLETED
        and is_date_in_period(settlement_date(inspection), period)
    ]
    return sorted(selected, key=_sort_key)


def select_eligible(
    inspections: Iterable[Inspection],
    period: BillingPeriod,
    agent_id: str | None = None,
    already_settled: Collection[str] = frozenset(),
) -> list[Inspection]:
    """Select inspections eligible for a new settlement operation.

    Args:
        inspections: Inspection snapshot to select from.
        period: Billing period the operation covers.
        agent_id: Restrict to one agent's inspections when given.
        already_settled: Inspection ids already settled for the operation's kind.

    Returns:
        Eligible inspections sorted by settlement date, then id. An empty list
        means there is nothing to settle.
    """
    return [
        inspection
        for inspection in completed_in_period(inspections, period)
        if (agent_id is None or inspection.agent_id == agent_id)
        and inspection.id not in already_settled
    ]


def settled_ids(records: Iterable[Any], kind: SettlementKind | None = None) -> set[str]:
    """Collect the inspection ids already settled by ``records``.

    Records are invoices or cashback entries (persisted rows or value objects).
    When ``kind`` is given, records carrying a different ``settlement_kind``
    are ignored, so one kind's ledger never affects another's eligibility.
    """
    settled: set[str] = set()
    for record in records:
        record_kind = getattr(record, "settlement_kind", None)
        if kind is not None and record_kind is not None and record_kind != kind.value:
            continue
        settled.update(str(inspection_id) for inspection_id in record.inspection_ids)
    return settled


def group_by_agent(inspections: Iterable[Inspection]) -> dict[str, list[Inspection]]:
    """Group inspections by agent, keeping first-seen agent order."""
    groups: dict[str, list[Inspection]] = {}
    for inspection in inspections:
        groups.setdefault(inspection.agent_id, []).append(inspection)
    return groups


def group_by_clerk(inspections: Iterable[Inspection]) -> dict[str, list[Inspection]]:
    """Group inspections by assigned clerk; unassigned inspections are skipped."""
    groups: dict[str, list[Inspection]] = {}
    for inspection in inspections:
        if inspection.clerk_id:
            groups.setdefault(inspection.clerk_id, []).append(inspection)
    return groups
