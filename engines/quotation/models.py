"""
TechShop Quotation Engine — Models
====================================
A Quotation is a priced offer to a client. Its four aggregates are
always re-summed from its items; an edit to any item produces a new
snapshot with freshly computed totals.

Status lifecycle:
    draft → sent → accepted | rejected
    sent | accepted → converted   (invoice conversion only)
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

from core.party import ClientInfo
from core.pricing import DocumentTotals, compute_document_totals, compute_line_total
from core.workflow import WorkflowDefinition


class QuotationStatus(Enum):
    DRAFT = "draft"
    SENT = "sent"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    CONVERTED = "converted"


QUOTATION_WORKFLOW = WorkflowDefinition(
    name="Quotation",
    initial_state=QuotationStatus.DRAFT.value,
    terminal_states=frozenset({
        QuotationStatus.REJECTED.value,
        QuotationStatus.CONVERTED.value,
    }),
    transitions={
        "draft": frozenset({"sent"}),
        "sent": frozenset({"accepted", "rejected", "converted"}),
        "accepted": frozenset({"converted"}),
        "rejected": frozenset(),
        "converted": frozenset(),
    },
)

# Statuses in which client fields, notes and items may still change.
EDITABLE_STATUSES = frozenset({
    QuotationStatus.DRAFT,
    QuotationStatus.SENT,
    QuotationStatus.ACCEPTED,
})


@dataclass(frozen=True)
class QuotationItem:
    id: str
    product_id: str
    product_code: str
    product_name: str
    quantity: int
    unit_price: float
    tax_percent: float
    discount_percent: float = 0.0

    @property
    def line_total(self) -> float:
        return compute_line_total(
            self.quantity, self.unit_price, self.tax_percent, self.discount_percent,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product_code": self.product_code,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "tax_percent": self.tax_percent,
            "discount_percent": self.discount_percent,
            "line_total": self.line_total,
        }


@dataclass(frozen=True)
class Quotation:
    id: str
    quotation_number: str
    client: ClientInfo
    items: Tuple[QuotationItem, ...]
    totals: DocumentTotals
    status: QuotationStatus
    valid_until: datetime
    created_by: str
    created_at: datetime
    updated_at: datetime
    notes: Optional[str] = None

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
    def is_editable(self) -> bool:
        return self.status in EDITABLE_STATUSES

    def is_expired(self, now: datetime) -> bool:
        return now > self.valid_until

    def find_item(self, item_id: str) -> Optional[QuotationItem]:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def with_items(self, items: Tuple[QuotationItem, ...], at: datetime) -> Quotation:
        """New snapshot whose aggregates are re-summed from items."""
        return dataclasses.replace(
            self,
            items=tuple(items),
            totals=compute_document_totals(items),
            updated_at=at,
        )

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "quotation_number": self.quotation_number,
            "client": self.client.to_dict(),
            "items": [item.to_dict() for item in self.items],
            "status": self.status.value,
            "valid_until": self.valid_until.isoformat(),
            "notes": self.notes,
            "created_by": self.created_by,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }
        data.update(self.totals.to_dict())
        return data
