from settlement.schemas.cashback import (
    AgentCashbackBreakdown,
    AgentCashbackStatus,
    ClerkCommissionBreakdown,
    PeriodCashback,
    PeriodSettlementSummary,
    ProcessedAgentCashbackCreate,
    ProcessedAgentCashbackResponse,
    UnprocessedTotals,
    ValidationResult,
)
from settlement.schemas.inspection import Inspection, InspectionStatus, InspectionType
from settlement.schemas.invoice import (
    InvoiceCreate,
    InvoiceLineItem,
    InvoiceResponse,
    InvoiceSummary,
)
from settlement.schemas.period import BillingPeriod
from settlement.schemas.settlement import RevenueSplit, SettlementOutcome

__all__ = [
    "AgentCashbackBreakdown",
    "AgentCashbackStatus",
    "BillingPeriod",
    "ClerkCommissionBreakdown",
    "Inspection",
    "InspectionStatus",
    "InspectionType",
    "InvoiceCreate",
    "InvoiceLineItem",
    "InvoiceResponse",
    "InvoiceSummary",
    "PeriodCashback",
    "PeriodSettlementSummary",
    "ProcessedAgentCashbackCreate",
    "ProcessedAgentCashbackResponse",
    "RevenueSplit",
    "SettlementOutcome",
    "UnprocessedTotals",
    "ValidationResult",
]
