"""
TechShop Quotation Engine
===========================
Priced client offers and their draft → sent → accepted | rejected
lifecycle.
"""

from engines.quotation.models import (
    QUOTATION_WORKFLOW,
    Quotation,
    QuotationItem,
    QuotationStatus,
)
from engines.quotation.services import QuotationEngine
from engines.quotation.store import QuotationStore

__all__ = [
    "QUOTATION_WORKFLOW",
    "Quotation",
    "QuotationEngine",
    "QuotationItem",
    "QuotationStatus",
    "QuotationStore",
]
