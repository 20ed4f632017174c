"""
TechShop Catalog Engine
=========================
Product catalog (hardware and software variants) and the stock ledger.
"""

from engines.catalog.ledger import BatchResult, StockAdjustment, StockBatch, StockLedger
from engines.catalog.lines import LineRequest, ResolvedLine, resolve_lines
from engines.catalog.models import (
    PRODUCT_CATEGORIES,
    HardwareProduct,
    InventoryLog,
    LicenseType,
    Product,
    ProductStatus,
    ProductType,
    SoftwareProduct,
    StockReason,
    StockStatus,
    adjust_quantity,
    quantity_of,
    stock_status_of,
)
from engines.catalog.services import ProductCatalog
from engines.catalog.store import InventoryLogStore, ProductStore

__all__ = [
    "PRODUCT_CATEGORIES",
    "BatchResult",
    "HardwareProduct",
    "InventoryLog",
    "InventoryLogStore",
    "LicenseType",
    "LineRequest",
    "Product",
    "ProductCatalog",
    "ProductStatus",
    "ProductStore",
    "ProductType",
    "ResolvedLine",
    "SoftwareProduct",
    "StockAdjustment",
    "StockBatch",
    "StockLedger",
    "StockReason",
    "StockStatus",
    "adjust_quantity",
    "quantity_of",
    "resolve_lines",
    "stock_status_of",
]
