"""
TechShop Pricing Calculator
=============================
Pure, stateless line and document arithmetic shared by quotations and
invoices.

Line algorithm (order matters for floating-point parity):
    raw_subtotal    = quantity * unit_price
    discount_amount = raw_subtotal * (discount_percent / 100)
    taxable_amount  = raw_subtotal - discount_amount
    tax_amount      = taxable_amount * (tax_percent / 100)
    total           = taxable_amount + tax_amount

Document totals are always re-summed from the items; nothing is cached
or updated incrementally. Amounts are plain floats with no rounding.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Protocol


class PricedLine(Protocol):
    quantity: int
    unit_price: float
    tax_percent: float
    discount_percent: float


# ══════════════════════════════════════════════════════════════
# LINE BREAKDOWN
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class LineBreakdown:
    raw_subtotal: float
    discount_amount: float
    taxable_amount: float
    tax_amount: float
    total: float


def compute_line_breakdown(
    quantity: float,
    unit_price: float,
    tax_percent: float,
    discount_percent: float,
) -> LineBreakdown:
    raw_subtotal = quantity * unit_price
    discount_amount = raw_subtotal * (discount_percent / 100)
    taxable_amount = raw_subtotal - discount_amount
    tax_amount = taxable_amount * (tax_percent / 100)
    return LineBreakdown(
        raw_subtotal=raw_subtotal,
        discount_amount=discount_amount,
        taxable_amount=taxable_amount,
        tax_amount=tax_amount,
        total=taxable_amount + tax_amount,
    )


def compute_line_total(
    quantity: float,
    unit_price: float,
    tax_percent: float,
    discount_percent: float,
) -> float:
    return compute_line_breakdown(
        quantity, unit_price, tax_percent, discount_percent,
    ).total


# ══════════════════════════════════════════════════════════════
# DOCUMENT TOTALS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class DocumentTotals:
    """Aggregate totals of a quotation or invoice."""
    subtotal: float = 0.0
    total_discount: float = 0.0
    total_tax: float = 0.0
    grand_total: float = 0.0

    def to_dict(self) -> dict:
        return {
            "subtotal": self.subtotal,
            "total_discount": self.total_discount,
            "total_tax": self.total_tax,
            "grand_total": self.grand_total,
        }


def compute_document_totals(lines: Iterable[PricedLine]) -> DocumentTotals:
    """
    subtotal       = Σ quantity × unit_price
    total_discount = Σ item_subtotal × discount / 100
    total_tax      = Σ taxable_amount × tax / 100
    grand_total    = subtotal − total_discount + total_tax
    """
    subtotal = 0.0
    total_discount = 0.0
    total_tax = 0.0
    for line in lines:
        breakdown = compute_line_breakdown(
            line.quantity, line.unit_price, line.tax_percent, line.discount_percent,
        )
        subtotal += breakdown.raw_subtotal
        total_discount += breakdown.discount_amount
        total_tax += breakdown.tax_amount
    return DocumentTotals(
        subtotal=subtotal,
        total_discount=total_discount,
        total_tax=total_tax,
        grand_total=subtotal - total_discount + total_tax,
    )
