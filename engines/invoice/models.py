"""
TechShop Invoice Engine — Models
==================================
An Invoice is a sale. Its items carry the product's cost price as it
was at the time of sale, so profit figures never drift when a product's
cost changes later.

Status lifecycle:
    pending → paid | cancelled
    paid → cancelled            (a return after payment)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

from core.party import ClientInfo
from core.pricing import DocumentTotals, compute_line_total
from core.workflow import WorkflowDefinition


class PaymentMode(Enum):
    CASH = "cash"
    ONLINE = "online"
    BANK = "bank"


class InvoiceStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    CANCELLED = "cancelled"


INVOICE_WORKFLOW = WorkflowDefinition(
    name="Invoice",
    initial_state=InvoiceStatus.PENDING.value,
    terminal_states=frozenset({InvoiceStatus.CANCELLED.value}),
    transitions={
        "pending": frozenset({"paid", "cancelled"}),
        "paid": frozenset({"cancelled"}),
        "cancelled": frozenset(),
    },
)

STOCK_ACTOR_NAME = "System"


@dataclass(frozen=True)
class InvoiceItem:
    id: str
    product_id: str
    product_code: str
    product_name: str
    quantity: int
    unit_price: float
    tax_percent: float
    discount_percent: float = 0.0
    cost_price: float = 0.0

    @property
    def line_total(self) -> float:
        return compute_line_total(
            self.quantity, self.unit_price, self.tax_percent, self.discount_percent,
        )

    @property
    def profit(self) -> float:
        return (self.unit_price - self.cost_price) * self.quantity

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product_code": self.product_code,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "cost_price": self.cost_price,
            "tax_percent": self.tax_percent,
            "discount_percent": self.discount_percent,
            "line_total": self.line_total,
        }


@dataclass(frozen=True)
class Invoice:
    """
    Fields:
        quotation_id: Source quotation when created by conversion.
        client:       Independent snapshot, never a live reference.
        totals:       Summed from items, or copied verbatim from the
                      source quotation on conversion.
    """
    id: str
    invoice_number: str
    client: ClientInfo
    items: Tuple[InvoiceItem, ...]
    totals: DocumentTotals
    payment_mode: PaymentMode
    status: InvoiceStatus
    created_by: str
    created_at: datetime
    quotation_id: Optional[str] = None
    paid_at: Optional[datetime] = None

    @property
    def subtotal(self) -> float:
        return self.totals.subtotal

    @property
    def total_discount(self) -> float:
        return self.totals.total_discount

    @property
    def total_tax(self) -> float:
        return self.totals.total_tax

    @property
    def grand_total(self) -> float:
        return self.totals.grand_total

    @property
    def is_cancelled(self) -> bool:
        return self.status == InvoiceStatus.CANCELLED

    def profit(self) -> float:
        """Σ (unit_price − cost_price) × quantity over the items."""
        return sum(item.profit for item in self.items)

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "invoice_number": self.invoice_number,
            "quotation_id": self.quotation_id,
            "client": self.client.to_dict(),
            "items": [item.to_dict() for item in self.items],
            "payment_mode": self.payment_mode.value,
            "status": self.status.value,
            "created_by": self.created_by,
            "created_at": self.created_at.isoformat(),
            "paid_at": self.paid_at.isoformat() if self.paid_at else None,
        }
        data.update(self.totals.to_dict())
        return data
