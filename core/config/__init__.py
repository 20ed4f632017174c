"""
TechShop Core Config — Public API
===================================
"""

from core.config.settings import ENV_PREFIX, ShopSettings, load_settings

__all__ = [
    "ENV_PREFIX",
    "ShopSettings",
    "load_settings",
]
