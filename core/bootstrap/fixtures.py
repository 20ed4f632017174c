"""
TechShop Bootstrap — Demo Catalog
===================================
Products loaded by build_shop(seed=True). Each entry goes through
ProductCatalog.add_product with zero quantity; the opening quantity is
then recorded as a `purchase` ledger entry so the demo stock has an
audit trail. A quantity passed straight to add_product is taken as-is
and writes no ledger entry.
"""

from __future__ import annotations

FIXTURE_ACTOR_ID = "system"
FIXTURE_ACTOR_NAME = "System"
OPENING_STOCK_NOTE = "Opening stock"

DEMO_PRODUCTS = (
    {
        "type": "hardware",
        "name": "Dell Latitude 5440",
        "category": "Laptops",
        "cost_price": 850.0,
        "selling_price": 1099.0,
        "tax_percent": 18.0,
        "supplier": "Dell Distribution",
        "warranty_months": 24,
        "opening_quantity": 12,
    },
    {
        "type": "hardware",
        "name": "Logitech M185 Wireless Mouse",
        "category": "Mice",
        "cost_price": 9.5,
        "selling_price": 17.0,
        "tax_percent": 18.0,
        "supplier": "Logitech",
        "warranty_months": 12,
        "opening_quantity": 60,
    },
    {
        "type": "hardware",
        "name": "Samsung 870 EVO 1TB SSD",
        "category": "Storage",
        "cost_price": 62.0,
        "selling_price": 89.0,
        "tax_percent": 18.0,
        "supplier": "Samsung",
        "warranty_months": 60,
        "opening_quantity": 4,
    },
    {
        "type": "hardware",
        "name": "LG 27UL500 27\" Monitor",
        "category": "Monitors",
        "cost_price": 210.0,
        "selling_price": 279.0,
        "tax_percent": 18.0,
        "supplier": "LG Electronics",
        "warranty_months": 36,
        "opening_quantity": 0,
    },
    {
        "type": "software",
        "name": "Microsoft 365 Business Standard",
        "category": "Office Suite",
        "cost_price": 95.0,
        "selling_price": 150.0,
        "tax_percent": 18.0,
        "license_type": "multi-user",
        "opening_quantity": 25,
    },
    {
        "type": "software",
        "name": "ESET Internet Security",
        "category": "Antivirus",
        "cost_price": 22.0,
        "selling_price": 39.0,
        "tax_percent": 18.0,
        "license_type": "single",
        "expiry_date": "2027-12-31",
        "opening_quantity": 3,
    },
)
