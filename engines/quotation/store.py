"""TechShop Quotation Engine - in-memory store."""

from __future__ import annotations

import threading
from typing import Dict, List, Optional

from engines.quotation.models import Quotation, QuotationStatus


class QuotationStore:
    """Quotations keyed by id, with a quotation-number index."""

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self._quotations: Dict[str, Quotation] = {}
        self._by_number: Dict[str, str] = {}

    def add(self, quotation: Quotation) -> None:
        with self.lock:
            if quotation.id in self._quotations:
                raise ValueError(f"Quotation id '{quotation.id}' already stored.")
            if quotation.quotation_number in self._by_number:
                raise ValueError(
                    f"Quotation number '{quotation.quotation_number}' already stored."
                )
            self._quotations[quotation.id] = quotation
            self._by_number[quotation.quotation_number] = quotation.id

    def replace(self, quotation: Quotation) -> None:
        with self.lock:
            current = self._quotations.get(quotation.id)
            if current is None:
                raise KeyError(quotation.id)
            if current.quotation_number != quotation.quotation_number:
                raise ValueError("quotation_number is immutable.")
            self._quotations[quotation.id] = quotation

    def get(self, quotation_id: str) -> Optional[Quotation]:
        return self._quotations.get(quotation_id)

    def get_by_number(self, quotation_number: str) -> Optional[Quotation]:
        quotation_id = self._by_number.get(quotation_number)
        return self._quotations.get(quotation_id) if quotation_id else None

    def numbers(self) -> List[str]:
        with self.lock:
            return list(self._by_number)

    def all(self) -> List[Quotation]:
        with self.lock:
            return list(self._quotations.values())

    def by_status(self, status: QuotationStatus) -> List[Quotation]:
        return [q for q in self.all() if q.status == status]

    def __len__(self) -> int:
        return len(self._quotations)
