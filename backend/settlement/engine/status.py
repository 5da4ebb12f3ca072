"""Effective invoice status, derived at read time.

``overdue`` is never produced by a status transition. It is computed from the
persisted status, ``paid_at`` and ``due_date`` against an explicit ``now``.
"""

from datetime import datetime
from typing import Any

from settlement.models.invoice import EffectiveInvoiceStatus, InvoiceStatus
from settlement.models.shared import ensure_utc


def effective_status(invoice: Any, now: datetime) -> EffectiveInvoiceStatus:
    """Resolve the status an invoice should be displayed with.

    Args:
        invoice: Any invoice-shaped object with ``status``, ``paid_at`` and
            ``due_date`` attributes.
        now: The instant to resolve against.

    Returns:
        ``paid`` when ``paid_at`` is set, ``overdue`` when a sent invoice is past
        its due date, otherwise the persisted status.
    """
    if invoice.paid_at is not None:
        return EffectiveInvoiceStatus.PAID

    status = InvoiceStatus(invoice.status)
    if status == InvoiceStatus.SENT and ensure_utc(now) > ensure_utc(invoice.due_date):
        return EffectiveInvoiceStatus.OVERDUE

    return EffectiveInvoiceStatus(status.value)


def reconciliation_update(invoice: Any, now: datetime) -> str | None:
    """Value to write to ``reconciled_status``, or None if already current."""
    resolved = effective_status(invoice, now).value
    if invoice.reconciled_status == resolved:
        return None
    return resolved
