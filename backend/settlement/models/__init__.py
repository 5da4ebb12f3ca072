from settlement.models.invoice import EffectiveInvoiceStatus, Invoice, InvoiceStatus
from settlement.models.processed_cashback import ProcessedAgentCashback
from settlement.models.settled_inspection import SettledInspection
from settlement.models.shared import COMBINED_AGENT_ID, SettlementKind

__all__ = [
    "COMBINED_AGENT_ID",
    "EffectiveInvoiceStatus",
    "Invoice",
    "InvoiceStatus",
    "ProcessedAgentCashback",
    "SettledInspection",
    "SettlementKind",
]
