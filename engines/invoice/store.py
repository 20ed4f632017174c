"""TechShop Invoice Engine - in-memory store."""

from __future__ import annotations

import threading
from typing import Dict, List, Optional

from engines.invoice.models import Invoice, InvoiceStatus


class InvoiceStore:
    """Invoices keyed by id, with an invoice-number index."""

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self._invoices: Dict[str, Invoice] = {}
        self._by_number: Dict[str, str] = {}

    def add(self, invoice: Invoice) -> None:
        with self.lock:
            if invoice.id in self._invoices:
                raise ValueError(f"Invoice id '{invoice.id}' already stored.")
            if invoice.invoice_number in self._by_number:
                raise ValueError(f"Invoice number '{invoice.invoice_number}' already stored.")
            self._invoices[invoice.id] = invoice
            self._by_number[invoice.invoice_number] = invoice.id

    def replace(self, invoice: Invoice) -> None:
        with self.lock:
            current = self._invoices.get(invoice.id)
            if current is None:
                raise KeyError(invoice.id)
            if current.invoice_number != invoice.invoice_number:
                raise ValueError("invoice_number is immutable.")
            self._invoices[invoice.id] = invoice

    def get(self, invoice_id: str) -> Optional[Invoice]:
        return self._invoices.get(invoice_id)

    def get_by_number(self, invoice_number: str) -> Optional[Invoice]:
        invoice_id = self._by_number.get(invoice_number)
        return self._invoices.get(invoice_id) if invoice_id else None

    def numbers(self) -> List[str]:
        with self.lock:
            return list(self._by_number)

    def all(self) -> List[Invoice]:
        with self.lock:
            return list(self._invoices.values())

    def by_status(self, status: InvoiceStatus) -> List[Invoice]:
        return [i for i in self.all() if i.status == status]

    def __len__(self) -> int:
        return len(self._invoices)
