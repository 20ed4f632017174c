"""
TechShop Bootstrap
====================
Wires stores and engines into a Shop, optionally seeded with a demo
catalog.
"""

from core.bootstrap.shop import Shop, build_shop, configure_logging, seed_demo_catalog

__all__ = [
    "Shop",
    "build_shop",
    "configure_logging",
    "seed_demo_catalog",
]
