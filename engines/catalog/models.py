"""
TechShop Catalog Engine — Models
==================================
Products are a tagged union over two variants:

    HardwareProduct  tracks physical stock (stock_quantity)
    SoftwareProduct  tracks seats (license_quantity)

Callers never branch on the variant to reach the tracked quantity:
`quantity_of(product)` and `adjust_quantity(product, delta)` are
implemented once per variant.

Products are frozen snapshots. Every edit produces a new snapshot that
replaces the previous one in the ProductStore. InventoryLog entries are
immutable and append-only.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import ClassVar, Optional, Union


# ══════════════════════════════════════════════════════════════
# ENUMS
# ══════════════════════════════════════════════════════════════

class ProductType(Enum):
    HARDWARE = "hardware"
    SOFTWARE = "software"


class ProductStatus(Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"     # archived, never hard-deleted


class LicenseType(Enum):
    SINGLE = "single"
    MULTI_USER = "multi-user"


class StockReason(Enum):
    """Why a tracked quantity changed — recorded on every InventoryLog."""
    SALE = "sale"
    RETURN = "return"
    MANUAL = "manual"
    ADJUSTMENT = "adjustment"
    PURCHASE = "purchase"


class StockStatus(Enum):
    IN_STOCK = "in_stock"
    LOW_STOCK = "low_stock"
    OUT_OF_STOCK = "out_of_stock"


PRODUCT_CATEGORIES = (
    "Laptops",
    "Desktops",
    "Monitors",
    "Keyboards",
    "Mice",
    "Storage",
    "RAM",
    "Graphics Cards",
    "Networking",
    "Software Licenses",
    "Antivirus",
    "Office Suite",
    "Operating Systems",
    "Accessories",
    "Cables",
    "Peripherals",
)


# ══════════════════════════════════════════════════════════════
# PRODUCT VARIANTS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class _ProductBase:
    """Attributes shared by every product variant."""
    id: str
    product_code: str
    barcode: str
    name: str
    category: str
    cost_price: float
    selling_price: float
    tax_percent: float
    created_at: datetime
    updated_at: datetime
    status: ProductStatus = ProductStatus.ACTIVE
    description: str = ""

    product_type: ClassVar[ProductType]
    quantity_field: ClassVar[str]

    # Fields that identify the product and never change after creation.
    IMMUTABLE_FIELDS: ClassVar[frozenset] = frozenset({
        "id", "product_code", "barcode", "created_at", "updated_at",
    })

    @property
    def quantity(self) -> int:
        return getattr(self, self.quantity_field)

    @property
    def is_active(self) -> bool:
        return self.status == ProductStatus.ACTIVE

    def with_quantity_delta(self, delta: int, at: datetime):
        return dataclasses.replace(
            self, **{self.quantity_field: self.quantity + delta, "updated_at": at},
        )

    @classmethod
    def editable_fields(cls) -> frozenset:
        return frozenset(
            f.name for f in dataclasses.fields(cls)
        ) - cls.IMMUTABLE_FIELDS - {cls.quantity_field}

    def _base_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.product_type.value,
            "product_code": self.product_code,
            "barcode": self.barcode,
            "name": self.name,
            "category": self.category,
            "cost_price": self.cost_price,
            "selling_price": self.selling_price,
            "tax_percent": self.tax_percent,
            "status": self.status.value,
            "description": self.description,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


@dataclass(frozen=True)
class HardwareProduct(_ProductBase):
    stock_quantity: int = 0
    supplier: str = ""
    warranty_months: int = 0

    product_type: ClassVar[ProductType] = ProductType.HARDWARE
    quantity_field: ClassVar[str] = "stock_quantity"

    def to_dict(self) -> dict:
        data = self._base_dict()
        data.update({
            "stock_quantity": self.stock_quantity,
            "supplier": self.supplier,
            "warranty_months": self.warranty_months,
        })
        return data


@dataclass(frozen=True)
class SoftwareProduct(_ProductBase):
    license_type: LicenseType = LicenseType.SINGLE
    license_quantity: int = 0
    expiry_date: Optional[date] = None

    product_type: ClassVar[ProductType] = ProductType.SOFTWARE
    quantity_field: ClassVar[str] = "license_quantity"

    def to_dict(self) -> dict:
        data = self._base_dict()
        data.update({
            "license_type": self.license_type.value,
            "license_quantity": self.license_quantity,
            "expiry_date": self.expiry_date.isoformat() if self.expiry_date else None,
        })
        return data


Product = Union[HardwareProduct, SoftwareProduct]

PRODUCT_CLASSES = {
    ProductType.HARDWARE: HardwareProduct,
    ProductType.SOFTWARE: SoftwareProduct,
}


def quantity_of(product: Product) -> int:
    """Tracked quantity of either variant (stock or licences)."""
    return product.quantity


def adjust_quantity(product: Product, delta: int, at: datetime) -> Product:
    """New snapshot with the tracked quantity moved by delta."""
    return product.with_quantity_delta(delta, at)


def stock_status_of(product: Product, low_stock_threshold: int) -> StockStatus:
    quantity = product.quantity
    if quantity <= 0:
        return StockStatus.OUT_OF_STOCK
    if quantity <= low_stock_threshold:
        return StockStatus.LOW_STOCK
    return StockStatus.IN_STOCK


# ══════════════════════════════════════════════════════════════
# INVENTORY LOG
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class InventoryLog:
    """
    One immutable stock-ledger entry, paired with exactly one product
    quantity change.

    Fields:
        change:     Signed delta applied to the tracked quantity.
        quantity_after: Tracked quantity once the change was applied.
        reason:     sale | return | manual | adjustment | purchase
        user_id / user_name: Actor asserted by the caller.
    """
    id: str
    product_id: str
    product_code: str
    product_name: str
    change: int
    reason: StockReason
    user_id: str
    user_name: str
    timestamp: datetime
    quantity_after: int
    notes: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product_code": self.product_code,
            "product_name": self.product_name,
            "change": self.change,
            "reason": self.reason.value,
            "user_id": self.user_id,
            "user_name": self.user_name,
            "timestamp": self.timestamp.isoformat(),
            "quantity_after": self.quantity_after,
            "notes": self.notes,
        }
