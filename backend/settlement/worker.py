import logging
from typing import Any

from arq import cron

from settlement.core.database import session_scope
from settlement.models.shared import utc_now
from settlement.services.invoice_settlement_service import InvoiceSettlementService
from settlement.tasks import redis_settings

logger = logging.getLogger(__name__)


async def reconcile_invoice_statuses_task(ctx: dict[str, Any]) -> int:
    """Background task: persist each unpaid invoice's effective status.

    Writes ``reconciled_status`` (which may be ``overdue``) for invoices whose
    stored value is stale. Read paths never write statuses; this is the only
    place an overdue transition is persisted.

    Runs hourly.
    """
    with session_scope() as db:
        count = InvoiceSettlementService(db).reconcile_statuses(utc_now())

    if count > 0:
        logger.info("Reconciled status of %d invoices", count)
    return count


class WorkerSettings:
    functions = [
        reconcile_invoice_statuses_task,
    ]
    cron_jobs = [
        cron(reconcile_invoice_statuses_task, minute={0}),  # hourly
    ]
    redis_settings = redis_settings
