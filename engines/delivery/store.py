"""TechShop Delivery Engine - in-memory store."""

from __future__ import annotations

import threading
from typing import Dict, Iterable, List, Optional

from engines.delivery.models import Delivery, DeliveryStatus


class DeliveryStore:
    def __init__(self) -> None:
        self.lock = threading.RLock()
        self._deliveries: Dict[str, Delivery] = {}

    def add(self, delivery: Delivery) -> None:
        with self.lock:
            if delivery.id in self._deliveries:
                raise ValueError(f"Delivery id '{delivery.id}' already stored.")
            self._deliveries[delivery.id] = delivery

    def add_many(self, deliveries: Iterable[Delivery]) -> None:
        with self.lock:
            for delivery in deliveries:
                self.add(delivery)

    def replace(self, delivery: Delivery) -> None:
        with self.lock:
            current = self._deliveries.get(delivery.id)
            if current is None:
                raise KeyError(delivery.id)
            if len(delivery.tracking_history) < len(current.tracking_history):
                raise ValueError("tracking_history is append-only.")
            self._deliveries[delivery.id] = delivery

    def get(self, delivery_id: str) -> Optional[Delivery]:
        return self._deliveries.get(delivery_id)

    def all(self) -> List[Delivery]:
        with self.lock:
            return list(self._deliveries.values())

    def for_invoice(self, invoice_id: str) -> List[Delivery]:
        return [d for d in self.all() if d.invoice_id == invoice_id]

    def by_status(self, status: DeliveryStatus) -> List[Delivery]:
        return [d for d in self.all() if d.status == status]

    def __len__(self) -> int:
        return len(self._deliveries)
