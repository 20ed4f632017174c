"""
TechShop Bootstrap — Shop Wiring
==================================
Constructs the stores and engines once, by explicit handle. There is no
module-level state: every Shop owns its own collections.

    products, logs ─► StockLedger ─► ProductCatalog
    quotations ─────► QuotationEngine
    deliveries ─────► DeliveryTracker
    invoices ───────► InvoiceEngine (ledger + quotations + deliveries)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from core.bootstrap.fixtures import (
    DEMO_PRODUCTS,
    FIXTURE_ACTOR_ID,
    FIXTURE_ACTOR_NAME,
    OPENING_STOCK_NOTE,
)
from core.config import ShopSettings, load_settings
from core.time import Clock, SystemClock
from engines.catalog.ledger import StockLedger
from engines.catalog.models import Product, StockReason
from engines.catalog.services import ProductCatalog
from engines.catalog.store import InventoryLogStore, ProductStore
from engines.delivery.services import DeliveryTracker
from engines.delivery.store import DeliveryStore
from engines.invoice.services import InvoiceEngine
from engines.invoice.store import InvoiceStore
from engines.quotation.services import QuotationEngine
from engines.quotation.store import QuotationStore

logger = logging.getLogger("techshop.bootstrap")

LOG_FORMAT = "[%(levelname)s] %(name)s: %(message)s"


@dataclass(frozen=True)
class Shop:
    settings: ShopSettings
    clock: Clock
    catalog: ProductCatalog
    ledger: StockLedger
    quotations: QuotationEngine
    invoices: InvoiceEngine
    deliveries: DeliveryTracker


def configure_logging(settings: Optional[ShopSettings] = None) -> None:
    """Apply a basic root handler for scripts. The engines never call this."""
    settings = settings or load_settings()
    logging.basicConfig(level=settings.log_level.upper(), format=LOG_FORMAT)


def build_shop(
    settings: Optional[ShopSettings] = None,
    clock: Optional[Clock] = None,
    *,
    seed: bool = False,
) -> Shop:
    settings = settings or load_settings()
    clock = clock or SystemClock()

    products = ProductStore()
    logs = InventoryLogStore()
    ledger = StockLedger(products=products, logs=logs, clock=clock, settings=settings)
    catalog = ProductCatalog(products=products, ledger=ledger, clock=clock, settings=settings)
    quotations = QuotationEngine(
        quotations=QuotationStore(), products=products, clock=clock, settings=settings,
    )
    deliveries = DeliveryTracker(deliveries=DeliveryStore(), clock=clock, settings=settings)
    invoices = InvoiceEngine(
        invoices=InvoiceStore(),
        ledger=ledger,
        quotations=quotations,
        deliveries=deliveries,
        clock=clock,
        settings=settings,
    )

    shop = Shop(
        settings=settings,
        clock=clock,
        catalog=catalog,
        ledger=ledger,
        quotations=quotations,
        invoices=invoices,
        deliveries=deliveries,
    )
    if seed:
        seeded = seed_demo_catalog(catalog)
        logger.info(f"Shop seeded with {len(seeded)} demo products")
    return shop


def seed_demo_catalog(catalog: ProductCatalog) -> List[Product]:
    seeded: List[Product] = []
    for entry in DEMO_PRODUCTS:
        data = dict(entry)
        opening = data.pop("opening_quantity", 0)
        product = catalog.add_product(data)
        if opening:
            catalog.adjust_stock(
                product.id,
                opening,
                StockReason.PURCHASE,
                FIXTURE_ACTOR_ID,
                FIXTURE_ACTOR_NAME,
                OPENING_STOCK_NOTE,
            )
            product = catalog.require_product(product.id)
        seeded.append(product)
    return seeded
