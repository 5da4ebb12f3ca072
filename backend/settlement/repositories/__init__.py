from settlement.repositories.invoice_repository import InvoiceRepository
from settlement.repositories.processed_cashback_repository import ProcessedCashbackRepository
from settlement.repositories.settled_inspection_repository import SettledInspectionRepository

__all__ = [
    "InvoiceRepository",
    "ProcessedCashbackRepository",
    "SettledInspectionRepository",
]
