"""
TechShop Catalog Engine — In-Memory Stores
============================================
ProductStore      products by id, with exact-match code/barcode indexes.
InventoryLogStore append-only stock ledger entries.

Each store owns an RLock. Services hold it across read-modify-write
sequences; multi-store operations lock products before inventory logs.
"""

from __future__ import annotations

import threading
from typing import Dict, Iterable, List, Optional

from engines.catalog.models import InventoryLog, Product


class ProductStore:
    """Products keyed by id. Lookups by code and barcode are O(1)."""

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self._products: Dict[str, Product] = {}
        self._by_code: Dict[str, str] = {}
        self._by_barcode: Dict[str, str] = {}

    def add(self, product: Product) -> None:
        with self.lock:
            if product.id in self._products:
                raise ValueError(f"Product id '{product.id}' already stored.")
            if product.product_code in self._by_code:
                raise ValueError(f"Product code '{product.product_code}' already stored.")
            if product.barcode in self._by_barcode:
                raise ValueError(f"Barcode '{product.barcode}' already stored.")
            self._products[product.id] = product
            self._by_code[product.product_code] = product.id
            self._by_barcode[product.barcode] = product.id

    def replace(self, product: Product) -> None:
        """Swap in a new snapshot. Code and barcode never change."""
        with self.lock:
            current = self._products.get(product.id)
            if current is None:
                raise KeyError(product.id)
            if (current.product_code, current.barcode) != (product.product_code, product.barcode):
                raise ValueError("product_code and barcode are immutable.")
            self._products[product.id] = product

    def get(self, product_id: str) -> Optional[Product]:
        return self._products.get(product_id)

    def get_by_code(self, product_code: str) -> Optional[Product]:
        product_id = self._by_code.get(product_code)
        return self._products.get(product_id) if product_id else None

    def get_by_barcode(self, barcode: str) -> Optional[Product]:
        product_id = self._by_barcode.get(barcode)
        return self._products.get(product_id) if product_id else None

    def has_code(self, product_code: str) -> bool:
        return product_code in self._by_code

    def has_barcode(self, barcode: str) -> bool:
        return barcode in self._by_barcode

    def all(self) -> List[Product]:
        with self.lock:
            return list(self._products.values())

    def __len__(self) -> int:
        return len(self._products)


class InventoryLogStore:
    """
    Append-only stock ledger.

    No update or delete is exposed. Listings are newest-first.
    """

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self._entries: List[InventoryLog] = []

    def append(self, entry: InventoryLog) -> None:
        with self.lock:
            self._entries.append(entry)

    def extend(self, entries: Iterable[InventoryLog]) -> None:
        with self.lock:
            self._entries.extend(entries)

    def newest_first(self) -> List[InventoryLog]:
        with self.lock:
            return list(reversed(self._entries))

    def for_product(self, product_id: str) -> List[InventoryLog]:
        return [e for e in self.newest_first() if e.product_id == product_id]

    def __len__(self) -> int:
        return len(self._entries)
