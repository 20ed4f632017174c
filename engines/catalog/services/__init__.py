"""
TechShop Catalog Engine — Application Service
===============================================
Product lifecycle: add → edit → archive. Products are never deleted.
Quantity changes are delegated to the StockLedger.
"""

from __future__ import annotations

import dataclasses
import logging
import uuid
from datetime import date
from typing import Any, Dict, List, Mapping, Optional

from core.config import ShopSettings
from core.errors import NotFound, raise_first_rejection
from core.numbering import BarcodeGenerator, ProductCodeGenerator
from core.time import Clock
from engines.catalog.ledger import StockLedger
from engines.catalog.models import (
    PRODUCT_CLASSES,
    InventoryLog,
    LicenseType,
    Product,
    ProductStatus,
    ProductType,
    StockReason,
    StockStatus,
    stock_status_of,
)
from engines.catalog.policies import (
    expiry_date_must_be_iso_policy,
    opening_quantity_must_be_valid_policy,
    prices_must_be_non_negative_policy,
    product_fields_must_be_known_policy,
    product_required_fields_policy,
    product_type_must_be_valid_policy,
    tax_percent_must_be_in_range_policy,
    update_fields_must_be_editable_policy,
)
from engines.catalog.store import InventoryLogStore, ProductStore

logger = logging.getLogger("techshop.catalog")


_ENUM_FIELDS = {
    "status": ProductStatus,
    "license_type": LicenseType,
}


def _normalise(changes: Mapping[str, Any]) -> Dict[str, Any]:
    normalised = dict(changes)
    for field_name, enum_cls in _ENUM_FIELDS.items():
        if field_name in normalised and normalised[field_name] is not None:
            normalised[field_name] = enum_cls(getattr(normalised[field_name], "value", normalised[field_name]))
    expiry = normalised.get("expiry_date")
    if isinstance(expiry, str):
        normalised["expiry_date"] = date.fromisoformat(expiry)
    for price_field in ("cost_price", "selling_price", "tax_percent"):
        if normalised.get(price_field) is not None:
            normalised[price_field] = float(normalised[price_field])
    return normalised


class ProductCatalog:
    """
    Product Catalog engine.

    Owns the ProductStore. Lookups return None for unknown keys; every
    operation acting on an id raises NotFound.
    """

    def __init__(
        self,
        *,
        products: ProductStore,
        ledger: StockLedger,
        clock: Clock,
        settings: ShopSettings,
        code_generator: ProductCodeGenerator | None = None,
        barcode_generator: BarcodeGenerator | None = None,
    ):
        self._products = products
        self._ledger = ledger
        self._clock = clock
        self._settings = settings
        self._code_generator = code_generator or ProductCodeGenerator()
        self._barcode_generator = barcode_generator or BarcodeGenerator(settings.barcode_prefix)

    # ══════════════════════════════════════════════════════════
    # MUTATIONS
    # ══════════════════════════════════════════════════════════

    def add_product(self, data: Mapping[str, Any]) -> Product:
        """
        Create a product from a field mapping.

        `type` selects the variant ("hardware" or "software"). The id,
        product code, barcode and timestamps are assigned here; a
        missing tax_percent falls back to the shop default.

        An opening stock_quantity or license_quantity is stored as given
        without an InventoryLog entry. Record opening stock through
        adjust_stock (reason=purchase) when it needs an audit trail.
        """
        raise_first_rejection(
            product_required_fields_policy(data),
            product_type_must_be_valid_policy(data),
            prices_must_be_non_negative_policy(data),
            tax_percent_must_be_in_range_policy(data),
            opening_quantity_must_be_valid_policy(data),
            expiry_date_must_be_iso_policy(data),
        )
        product_type = ProductType(getattr(data["type"], "value", data["type"]))
        product_cls = PRODUCT_CLASSES[product_type]

        fields = _normalise(data)
        fields.pop("type", None)
        if fields.get("tax_percent") is None:
            fields["tax_percent"] = float(self._settings.default_tax_percent)
        raise_first_rejection(product_fields_must_be_known_policy(
            fields, product_cls.editable_fields() | {product_cls.quantity_field},
        ))

        now = self._clock.now()
        with self._products.lock:
            product = product_cls(
                id=str(uuid.uuid4()),
                product_code=self._code_generator.generate(
                    product_type.value, fields["category"], self._products.has_code,
                ),
                barcode=self._barcode_generator.generate(self._products.has_barcode),
                created_at=now,
                updated_at=now,
                **fields,
            )
            self._products.add(product)

        logger.info(f"Product added: {product.product_code} ({product.name})")
        return product

    def update_product(self, product_id: str, **changes: Any) -> Product:
        """Merge field changes into the product and stamp updated_at."""
        with self._products.lock:
            product = self._require(product_id)
            raise_first_rejection(
                update_fields_must_be_editable_policy(
                    changes, type(product).editable_fields(), product.quantity_field,
                ),
                product_type_must_be_valid_policy(
                    {**changes, "type": product.product_type.value}
                ),
                prices_must_be_non_negative_policy(changes),
                tax_percent_must_be_in_range_policy(changes),
                opening_quantity_must_be_valid_policy(
                    {k: v for k, v in changes.items() if k == "warranty_months"}
                ),
                expiry_date_must_be_iso_policy(changes),
            )
            for required in ("name", "category"):
                if required in changes:
                    raise_first_rejection(product_required_fields_policy(
                        {**product.to_dict(), required: changes[required]},
                    ))
            updated = dataclasses.replace(
                product, **_normalise(changes), updated_at=self._clock.now(),
            )
            self._products.replace(updated)

        logger.info(f"Product updated: {updated.product_code} {sorted(changes)}")
        return updated

    def archive_product(self, product_id: str) -> Product:
        """Set status to inactive. Quantities are left untouched."""
        product = self.update_product(product_id, status=ProductStatus.INACTIVE)
        logger.info(f"Product archived: {product.product_code}")
        return product

    def adjust_stock(
        self,
        product_id: str,
        change: int,
        reason: StockReason | str,
        actor_id: str,
        actor_name: str,
        notes: Optional[str] = None,
    ) -> InventoryLog:
        return self._ledger.adjust_stock(
            product_id, change, reason, actor_id, actor_name, notes,
        )

    # ══════════════════════════════════════════════════════════
    # LOOKUPS
    # ══════════════════════════════════════════════════════════

    def get_product(self, product_id: str) -> Optional[Product]:
        return self._products.get(product_id)

    def get_by_code(self, product_code: str) -> Optional[Product]:
        return self._products.get_by_code(product_code)

    def get_by_barcode(self, barcode: str) -> Optional[Product]:
        return self._products.get_by_barcode(barcode)

    def require_product(self, product_id: str) -> Product:
        return self._require(product_id)

    def list_products(self) -> List[Product]:
        return self._products.all()

    def active_products(self) -> List[Product]:
        return [p for p in self._products.all() if p.is_active]

    def stock_status(self, product_id: str) -> StockStatus:
        return stock_status_of(self._require(product_id), self._settings.low_stock_threshold)

    def low_stock_products(self) -> List[Product]:
        threshold = self._settings.low_stock_threshold
        return [
            p for p in self.active_products()
            if stock_status_of(p, threshold) == StockStatus.LOW_STOCK
        ]

    def out_of_stock_products(self) -> List[Product]:
        threshold = self._settings.low_stock_threshold
        return [
            p for p in self.active_products()
            if stock_status_of(p, threshold) == StockStatus.OUT_OF_STOCK
        ]

    def inventory_logs(self, product_id: Optional[str] = None) -> List[InventoryLog]:
        """Stock ledger entries, newest first."""
        logs: InventoryLogStore = self._ledger.logs
        if product_id is None:
            return logs.newest_first()
        return logs.for_product(product_id)

    @property
    def ledger(self) -> StockLedger:
        return self._ledger

    def _require(self, product_id: str) -> Product:
        product = self._products.get(product_id)
        if product is None:
            raise NotFound("Product", product_id)
        return product
