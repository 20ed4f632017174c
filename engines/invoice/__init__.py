"""
TechShop Invoice Engine
=========================
Sales documents: issue, quotation conversion, payment and cancellation.
"""

from engines.invoice.models import (
    INVOICE_WORKFLOW,
    Invoice,
    InvoiceItem,
    InvoiceStatus,
    PaymentMode,
)
from engines.invoice.services import InvoiceEngine
from engines.invoice.store import InvoiceStore

__all__ = [
    "INVOICE_WORKFLOW",
    "Invoice",
    "InvoiceEngine",
    "InvoiceItem",
    "InvoiceStatus",
    "InvoiceStore",
    "PaymentMode",
]
