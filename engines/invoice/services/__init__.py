"""
TechShop Invoice Engine — Application Service
===============================================
Issuing an invoice (directly or by converting a quotation) is one
all-or-nothing operation:

    1. validate client, payment mode and lines
    2. check the full sale batch against current stock
    3. allocate the invoice number
    4. debit stock (reason=sale, one ledger entry per line)
    5. store the invoice
    6. spawn one pending Delivery per line

Steps 2-6 run while holding the product, log, quotation and invoice
locks, so a failed check leaves no number, stock change or delivery
behind.

Cancellation credits every line back exactly once. A second cancel is
a logged no-op.
"""

from __future__ import annotations

import dataclasses
import logging
import uuid
from datetime import datetime
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Union

from core.config import ShopSettings
from core.errors import InvalidTransition, NotFound, ShopError, raise_first_rejection
from core.numbering import DocumentNumberer, NumberingPolicy
from core.party import ClientInfo
from core.pricing import DocumentTotals, compute_document_totals
from core.time import Clock
from engines.catalog.ledger import StockBatch, StockLedger
from engines.catalog.lines import LineRequest, resolve_lines
from engines.catalog.models import StockReason
from engines.delivery.services import DeliveryTracker
from engines.invoice.models import (
    INVOICE_WORKFLOW,
    STOCK_ACTOR_NAME,
    Invoice,
    InvoiceItem,
    InvoiceStatus,
    PaymentMode,
)
from engines.invoice.policies import (
    invoice_creator_required_policy,
    issue_status_must_be_open_policy,
    paid_at_requires_paid_status_policy,
    payment_mode_must_be_valid_policy,
)
from engines.invoice.store import InvoiceStore
from engines.quotation.policies import (
    client_fields_must_be_text_policy,
    client_name_required_policy,
)
from engines.quotation.services import QuotationEngine

logger = logging.getLogger("techshop.invoice")


class InvoiceEngine:
    """
    Owns the InvoiceStore.

    Writes stock only through the StockLedger and deliveries only
    through the DeliveryTracker.
    """

    def __init__(
        self,
        *,
        invoices: InvoiceStore,
        ledger: StockLedger,
        quotations: QuotationEngine,
        deliveries: DeliveryTracker,
        clock: Clock,
        settings: ShopSettings,
        numberer: DocumentNumberer | None = None,
    ):
        self._invoices = invoices
        self._ledger = ledger
        self._quotations = quotations
        self._deliveries = deliveries
        self._clock = clock
        self._settings = settings
        self._numberer = numberer or DocumentNumberer(NumberingPolicy(
            name="invoice",
            prefix=settings.invoice_prefix,
            padding=settings.document_number_padding,
        ))
        self._numberer.reserve(invoices.numbers())

    @property
    def store(self) -> InvoiceStore:
        return self._invoices

    # ══════════════════════════════════════════════════════════
    # ISSUE
    # ══════════════════════════════════════════════════════════

    def create_invoice(
        self,
        client: Union[ClientInfo, Mapping[str, Any]],
        items: Sequence[Union[LineRequest, Mapping[str, Any]]],
        payment_mode: Union[PaymentMode, str],
        *,
        creator_id: str,
        status: Union[InvoiceStatus, str] = InvoiceStatus.PENDING,
        paid_at: Optional[datetime] = None,
    ) -> Invoice:
        """
        Price the lines, debit stock and spawn deliveries.

        A paid invoice without paid_at is stamped with the current time.
        """
        with self._ledger.locked():
            try:
                raise_first_rejection(client_fields_must_be_text_policy(client))
                client = ClientInfo.coerce(client)
                raise_first_rejection(
                    client_name_required_policy(client),
                    payment_mode_must_be_valid_policy(payment_mode),
                    issue_status_must_be_open_policy(status),
                    paid_at_requires_paid_status_policy(status, paid_at),
                    invoice_creator_required_policy(creator_id),
                )
                lines = resolve_lines(self._ledger.products, items)
            except ShopError as exc:
                logger.warning(f"Invoice rejected: {exc}")
                raise

            invoice_items = tuple(
                InvoiceItem(
                    id=str(uuid.uuid4()),
                    product_id=line.product_id,
                    product_code=line.product_code,
                    product_name=line.product_name,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    tax_percent=line.tax_percent,
                    discount_percent=line.discount_percent,
                    cost_price=line.cost_price,
                )
                for line in lines
            )
            issue_status = InvoiceStatus(getattr(status, "value", status))
            if issue_status == InvoiceStatus.PAID and paid_at is None:
                paid_at = self._clock.now()

            return self._issue(
                client=client,
                items=invoice_items,
                totals=compute_document_totals(invoice_items),
                payment_mode=PaymentMode(getattr(payment_mode, "value", payment_mode)),
                status=issue_status,
                created_by=creator_id,
                paid_at=paid_at,
            )

    def convert_quotation(
        self,
        quotation_id: str,
        payment_mode: Union[PaymentMode, str],
    ) -> Invoice:
        """
        Issue a pending invoice from a sent or accepted quotation.

        Client fields and totals are copied verbatim. Each line takes
        the product's current cost price (0.0 for an unknown product).
        The quotation becomes converted in the same step.
        """
        raise_first_rejection(payment_mode_must_be_valid_policy(payment_mode))
        with self._ledger.locked(), self._quotations.store.lock:
            try:
                quotation = self._quotations.ensure_convertible(quotation_id)
            except ShopError as exc:
                logger.warning(f"Conversion refused: {exc}")
                raise

            products = self._ledger.products
            invoice_items = tuple(
                InvoiceItem(
                    id=str(uuid.uuid4()),
                    product_id=item.product_id,
                    product_code=item.product_code,
                    product_name=item.product_name,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    tax_percent=item.tax_percent,
                    discount_percent=item.discount_percent,
                    cost_price=_cost_snapshot(products.get(item.product_id)),
                )
                for item in quotation.items
            )
            invoice = self._issue(
                client=quotation.client,
                items=invoice_items,
                totals=quotation.totals,
                payment_mode=PaymentMode(getattr(payment_mode, "value", payment_mode)),
                status=InvoiceStatus.PENDING,
                created_by=quotation.created_by,
                quotation_id=quotation.id,
            )
            self._quotations.mark_converted(quotation.id)

        logger.info(
            f"Quotation {quotation.quotation_number} converted to {invoice.invoice_number}"
        )
        return invoice

    # ══════════════════════════════════════════════════════════
    # STATUS
    # ══════════════════════════════════════════════════════════

    def mark_paid(self, invoice_id: str, paid_at: Optional[datetime] = None) -> Invoice:
        raise_first_rejection(paid_at_requires_paid_status_policy(InvoiceStatus.PAID, paid_at))
        with self._invoices.lock:
            invoice = self._require(invoice_id)
            self._require_transition(invoice, InvoiceStatus.PAID)
            updated = dataclasses.replace(
                invoice,
                status=InvoiceStatus.PAID,
                paid_at=paid_at or self._clock.now(),
            )
            self._invoices.replace(updated)

        logger.info(f"Invoice paid: {updated.invoice_number} ({updated.payment_mode.value})")
        return updated

    def cancel_invoice(self, invoice_id: str) -> Invoice:
        """
        Credit every line back to stock (reason=return) and mark the
        invoice cancelled. Deliveries are left as they are.
        """
        with self._ledger.locked(), self._invoices.lock:
            invoice = self._require(invoice_id)
            if invoice.is_cancelled:
                logger.warning(
                    f"Invoice {invoice.invoice_number} already cancelled; no stock change"
                )
                return invoice
            self._require_transition(invoice, InvoiceStatus.CANCELLED)

            batch = self._stock_batch(
                invoice.items,
                sign=+1,
                reason=StockReason.RETURN,
                actor_id=invoice.created_by,
                notes=f"Invoice {invoice.invoice_number} cancelled",
            )
            self._ledger.apply_batch(batch).raise_if_rejected()
            updated = dataclasses.replace(invoice, status=InvoiceStatus.CANCELLED)
            self._invoices.replace(updated)

        logger.info(
            f"Invoice cancelled: {updated.invoice_number}, "
            f"{len(batch)} lines returned to stock"
        )
        return updated

    # ══════════════════════════════════════════════════════════
    # LOOKUPS
    # ══════════════════════════════════════════════════════════

    def get_invoice(self, invoice_id: str) -> Optional[Invoice]:
        return self._invoices.get(invoice_id)

    def get_by_number(self, invoice_number: str) -> Optional[Invoice]:
        return self._invoices.get_by_number(invoice_number)

    def require_invoice(self, invoice_id: str) -> Invoice:
        return self._require(invoice_id)

    def list_invoices(self) -> List[Invoice]:
        return self._invoices.all()

    def invoices_by_status(self, status: Union[InvoiceStatus, str]) -> List[Invoice]:
        return self._invoices.by_status(InvoiceStatus(getattr(status, "value", status)))

    # ══════════════════════════════════════════════════════════
    # INTERNALS
    # ══════════════════════════════════════════════════════════

    def _issue(
        self,
        *,
        client: ClientInfo,
        items: tuple,
        totals: DocumentTotals,
        payment_mode: PaymentMode,
        status: InvoiceStatus,
        created_by: str,
        quotation_id: Optional[str] = None,
        paid_at: Optional[datetime] = None,
    ) -> Invoice:
        """Steps 2-6 of issuing. Caller holds ledger.locked()."""
        with self._invoices.lock:
            sale = self._stock_batch(
                items, sign=-1, reason=StockReason.SALE, actor_id=created_by,
            )
            try:
                self._ledger.check_batch(sale)
            except ShopError as exc:
                logger.warning(f"Invoice rejected, nothing applied: {exc}")
                raise

            invoice = Invoice(
                id=str(uuid.uuid4()),
                invoice_number=self._numberer.next_number(),
                client=client,
                items=items,
                totals=totals,
                payment_mode=payment_mode,
                status=status,
                created_by=created_by,
                created_at=self._clock.now(),
                quotation_id=quotation_id,
                paid_at=paid_at,
            )
            self._ledger.apply_batch(self._stock_batch(
                items,
                sign=-1,
                reason=StockReason.SALE,
                actor_id=created_by,
                notes=f"Invoice {invoice.invoice_number}",
            )).raise_if_rejected()
            self._invoices.add(invoice)
            self._deliveries.create_for_invoice(invoice)

        logger.info(
            f"Invoice created: {invoice.invoice_number} for {client.name} "
            f"({len(items)} items, total {invoice.grand_total:.2f}, {status.value})"
        )
        return invoice

    def _stock_batch(
        self,
        items: Iterable[InvoiceItem],
        *,
        sign: int,
        reason: StockReason,
        actor_id: str,
        notes: Optional[str] = None,
    ) -> StockBatch:
        return StockBatch(tuple(
            self._ledger.build_adjustment(
                item.product_id,
                sign * item.quantity,
                reason,
                actor_id,
                STOCK_ACTOR_NAME,
                notes,
            )
            for item in items
        ))

    def _require(self, invoice_id: str) -> Invoice:
        invoice = self._invoices.get(invoice_id)
        if invoice is None:
            raise NotFound("Invoice", invoice_id)
        return invoice

    def _require_transition(self, invoice: Invoice, target: InvoiceStatus) -> None:
        try:
            INVOICE_WORKFLOW.require_transition(invoice.status.value, target.value)
        except InvalidTransition as exc:
            logger.warning(f"Invoice {invoice.invoice_number}: {exc}")
            raise


def _cost_snapshot(product: Any) -> float:
    if product is None:
        return 0.0
    return float(product.cost_price)
