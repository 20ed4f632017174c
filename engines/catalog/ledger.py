"""
TechShop Catalog Engine — Stock Ledger
========================================
The single gateway for every change to a tracked quantity.

Each adjustment writes one new product snapshot and appends one
InventoryLog with the same signed change, reason and actor. The two
writes are always paired.

Multi-line changes (an invoice's sale lines, a cancellation's return
lines) go through apply_batch(): every adjustment is validated against
the current catalog first, including the net effect of repeated
products, and only then are all of them written. A rejected batch
leaves products and the log untouched.
"""

from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from core.config import ShopSettings
from core.errors import InsufficientStock, NotFound, ShopError, raise_first_rejection
from core.time import Clock
from engines.catalog.models import InventoryLog, Product, StockReason, adjust_quantity
from engines.catalog.policies import (
    actor_must_be_identified_policy,
    stock_change_must_be_nonzero_integer_policy,
    stock_reason_must_be_valid_policy,
)
from engines.catalog.store import InventoryLogStore, ProductStore

logger = logging.getLogger("techshop.stock")


# ══════════════════════════════════════════════════════════════
# BATCH MODEL
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class StockAdjustment:
    """One intended quantity change, not yet applied."""
    product_id: str
    change: int
    reason: StockReason
    actor_id: str
    actor_name: str
    notes: Optional[str] = None


@dataclass(frozen=True)
class StockBatch:
    adjustments: Tuple[StockAdjustment, ...] = ()

    def __len__(self) -> int:
        return len(self.adjustments)

    def reversed_as(self, reason: StockReason, *, actor_id: str, actor_name: str,
                    notes: Optional[str] = None) -> "StockBatch":
        """Batch that undoes this one, line by line."""
        return StockBatch(tuple(
            StockAdjustment(
                product_id=a.product_id,
                change=-a.change,
                reason=reason,
                actor_id=actor_id,
                actor_name=actor_name,
                notes=notes,
            )
            for a in self.adjustments
        ))


@dataclass(frozen=True)
class BatchResult:
    """
    Either fully applied (applied=True, one entry per adjustment) or
    rejected with nothing applied (applied=False, error set).
    """
    applied: bool
    entries: Tuple[InventoryLog, ...] = ()
    error: Optional[ShopError] = field(default=None, compare=False)

    @property
    def rejection(self):
        return getattr(self.error, "rejection", None)

    def raise_if_rejected(self) -> "BatchResult":
        if not self.applied and self.error is not None:
            raise self.error
        return self


# ══════════════════════════════════════════════════════════════
# LEDGER SERVICE
# ══════════════════════════════════════════════════════════════

class StockLedger:
    """Pairs every product quantity mutation with an InventoryLog append."""

    def __init__(
        self,
        *,
        products: ProductStore,
        logs: InventoryLogStore,
        clock: Clock,
        settings: ShopSettings,
    ):
        self._products = products
        self._logs = logs
        self._clock = clock
        self._settings = settings

    @property
    def logs(self) -> InventoryLogStore:
        return self._logs

    @property
    def products(self) -> ProductStore:
        return self._products

    @contextmanager
    def locked(self) -> Iterator[None]:
        """
        Hold the product and log locks across a wider operation.

        Both are re-entrant, so apply_batch() may run inside the block.
        """
        with self._products.lock, self._logs.lock:
            yield

    def adjust_stock(
        self,
        product_id: str,
        change: int,
        reason: StockReason | str,
        actor_id: str,
        actor_name: str,
        notes: Optional[str] = None,
    ) -> InventoryLog:
        adjustment = self.build_adjustment(
            product_id, change, reason, actor_id, actor_name, notes,
        )
        result = self.apply_batch(StockBatch((adjustment,)))
        result.raise_if_rejected()
        return result.entries[0]

    def apply_batch(self, batch: StockBatch) -> BatchResult:
        if not batch.adjustments:
            return BatchResult(applied=True)

        with self._products.lock, self._logs.lock:
            try:
                snapshots = self._plan(batch)
            except ShopError as exc:
                logger.warning(f"Stock batch rejected, nothing applied: {exc}")
                return BatchResult(applied=False, error=exc)

            now = self._clock.now()
            entries: List[InventoryLog] = []
            for adjustment in batch.adjustments:
                product = adjust_quantity(snapshots[adjustment.product_id], adjustment.change, now)
                snapshots[adjustment.product_id] = product
                self._products.replace(product)
                entries.append(InventoryLog(
                    id=str(uuid.uuid4()),
                    product_id=product.id,
                    product_code=product.product_code,
                    product_name=product.name,
                    change=adjustment.change,
                    reason=adjustment.reason,
                    user_id=adjustment.actor_id,
                    user_name=adjustment.actor_name,
                    timestamp=now,
                    quantity_after=product.quantity,
                    notes=adjustment.notes,
                ))
            self._logs.extend(entries)

        for entry in entries:
            logger.info(
                f"Stock {entry.product_code} {entry.change:+d} "
                f"({entry.reason.value}) → {entry.quantity_after} by {entry.user_name}"
            )
        return BatchResult(applied=True, entries=tuple(entries))

    def check_batch(self, batch: StockBatch) -> None:
        """
        Raise the error apply_batch() would reject with, applying nothing.

        Callers holding locked() can rely on a following apply_batch()
        succeeding.
        """
        with self._products.lock, self._logs.lock:
            self._plan(batch)

    def build_adjustment(
        self,
        product_id: str,
        change: int,
        reason: StockReason | str,
        actor_id: str,
        actor_name: str,
        notes: Optional[str] = None,
    ) -> StockAdjustment:
        """Validate and normalise one adjustment without applying it."""
        raise_first_rejection(
            stock_change_must_be_nonzero_integer_policy(change),
            stock_reason_must_be_valid_policy(reason),
            actor_must_be_identified_policy(actor_id, actor_name),
        )
        return StockAdjustment(
            product_id=product_id,
            change=change,
            reason=StockReason(getattr(reason, "value", reason)),
            actor_id=actor_id,
            actor_name=actor_name,
            notes=notes,
        )

    def _plan(self, batch: StockBatch) -> Dict[str, Product]:
        """
        Resolve every product and check the net resulting quantities.
        Returns the current snapshot per product id.
        """
        snapshots: Dict[str, Product] = {}
        net: Dict[str, int] = {}
        for adjustment in batch.adjustments:
            if not isinstance(adjustment, StockAdjustment):
                raise TypeError("StockBatch entries must be StockAdjustment.")
            product = snapshots.get(adjustment.product_id) or self._products.get(adjustment.product_id)
            if product is None:
                raise NotFound("Product", adjustment.product_id)
            snapshots[product.id] = product
            net[product.id] = net.get(product.id, 0) + adjustment.change

        if not self._settings.allow_negative_stock:
            for product_id, delta in net.items():
                available = snapshots[product_id].quantity
                if delta < 0 and available + delta < 0:
                    raise InsufficientStock(product_id, available, -delta)
        return snapshots


__all__ = [
    "BatchResult",
    "StockAdjustment",
    "StockBatch",
    "StockLedger",
]
