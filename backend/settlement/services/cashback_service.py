"""Service for processing agent cashback against the ledger."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from settlement.core.config import DEFAULT_CONFIG, SettlementConfig
from settlement.engine.cashback import (
    agent_cashback_breakdown,
    create_processed_cashback,
    period_summary,
    total_unprocessed_amounts,
    unprocessed_cashback_by_agent,
    unprocessed_period_summaries,
    validate_processing,
)
from settlement.models.processed_cashback import ProcessedAgentCashback
from settlement.repositories.processed_cashback_repository import ProcessedCashbackRepository
from settlement.schemas.cashback import (
    AgentCashbackBreakdown,
    AgentCashbackStatus,
    PeriodSettlementSummary,
    UnprocessedTotals,
)
from settlement.schemas.inspection import Inspection
from settlement.schemas.period import BillingPeriod
from settlement.schemas.settlement import SettlementOutcome

logger = logging.getLogger(__name__)


@dataclass
class CashbackProcessingResult:
    """Result of a cashback processing request."""

    outcome: SettlementOutcome
    entries: list[ProcessedAgentCashback] = field(default_factory=list)
    error: str | None = None


class CashbackService:
    """Service for computing and recording agent cashback payouts."""

    def __init__(self, db: Session, config: SettlementConfig = DEFAULT_CONFIG):
        self.db = db
        self.config = config
        self.cashback_repo = ProcessedCashbackRepository(db)

    def unprocessed(
        self,
        inspections: Sequence[Inspection],
        now: datetime,
        max_periods: int | None = None,
    ) -> list[AgentCashbackStatus]:
        """Get every agent's unprocessed cashback."""
        return unprocessed_cashback_by_agent(
            inspections,
            self.cashback_repo.get_every_entry(),
            now,
            max_periods=max_periods,
            config=self.config,
        )

    def summarize_period(
        self, period: BillingPeriod, inspections: Sequence[Inspection]
    ) -> PeriodSettlementSummary:
        return period_summary(
            period, inspections, self.cashback_repo.get_every_entry(), self.config
        )

    def agent_breakdown(
        self, period: BillingPeriod, inspections: Sequence[Inspection]
    ) -> list[AgentCashbackBreakdown]:
        """Get each agent's unpaid cashback for one period."""
        return agent_cashback_breakdown(
            period, inspections, self.cashback_repo.get_every_entry(), self.config
        )

    def unprocessed_periods(
        self,
        inspections: Sequence[Inspection],
        now: datetime,
        max_periods: int | None = None,
    ) -> list[PeriodSettlementSummary]:
        """Get recent periods with revenue whose cashback is not yet processed."""
        return unprocessed_period_summaries(
            inspections,
            self.cashback_repo.get_every_entry(),
            now,
            max_periods=max_periods,
            config=self.config,
        )

    def unprocessed_totals(
        self,
        inspections: Sequence[Inspection],
        now: datetime,
        max_periods: int | None = None,
    ) -> UnprocessedTotals:
        """Get revenue overview totals across recent periods."""
        return total_unprocessed_amounts(
            inspections,
            self.cashback_repo.get_every_entry(),
            now,
            max_periods=max_periods,
            config=self.config,
        )

    def process_agent(
        self,
        agent_id: str,
        inspections: Sequence[Inspection],
        processed_by: str,
        now: datetime,
        notes: str | None = None,
    ) -> CashbackProcessingResult:
        """Record an agent's unprocessed cashback as paid, one entry per period.

        Args:
            agent_id: The agent to process.
            inspections: Inspection snapshot.
            processed_by: Id of the admin performing the action.
            now: Processing time.
            notes: Optional notes stored on every entry.

        Returns:
            The outcome and the created ledger entries. A rejected double
            submission carries the validation error.
        """
        agent_entries = self.cashback_repo.get_by_agent(agent_id)
        validation = validate_processing(agent_id, agent_entries, now, self.config)
        if not validation.is_valid:
            logger.info("Rejected cashback processing for agent %s: %s", agent_id, validation.error)
            return CashbackProcessingResult(
                outcome=SettlementOutcome.ALREADY_SETTLED, error=validation.error
            )

        agent_inspections = [i for i in inspections if i.agent_id == agent_id]
        statuses = unprocessed_cashback_by_agent(
            agent_inspections, self.cashback_repo.get_every_entry(), now, config=self.config
        )
        if not statuses:
            logger.info("No unprocessed cashback for agent %s", agent_id)
            return CashbackProcessingResult(outcome=SettlementOutcome.NOTHING_TO_SETTLE)

        entries = create_processed_cashback(statuses[0], processed_by, now, notes)
        try:
            created = self.cashback_repo.create_many(entries)
        except IntegrityError:
            logger.info("Cashback for agent %s was processed concurrently, skipping", agent_id)
            return CashbackProcessingResult(outcome=SettlementOutcome.ALREADY_SETTLED)

        logger.info(
            "Processed cashback for agent %s: %d period(s), total %s",
            agent_id,
            len(created),
            statuses[0].unprocessed_cashback,
        )
        return CashbackProcessingResult(outcome=SettlementOutcome.CREATED, entries=created)
