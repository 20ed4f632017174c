"""
TechShop Numbering — Public API
=================================
Human-readable identifiers: document numbers, product codes, barcodes.
"""

from core.numbering.codes import (
    BarcodeGenerator,
    ProductCodeGenerator,
    category_abbreviation,
    ean13_check_digit,
    is_valid_ean13,
)
from core.numbering.models import NumberingPolicy
from core.numbering.sequences import DocumentNumberer, SequenceState

__all__ = [
    "BarcodeGenerator",
    "DocumentNumberer",
    "NumberingPolicy",
    "ProductCodeGenerator",
    "SequenceState",
    "category_abbreviation",
    "ean13_check_digit",
    "is_valid_ean13",
]
