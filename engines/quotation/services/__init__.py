"""
TechShop Quotation Engine — Application Service
=================================================
create → edit → send → accept | reject. Conversion to an invoice is
driven by the invoice engine through mark_converted().

Every edit that touches items recomputes the line totals and all four
aggregates from scratch. Converted and rejected quotations are frozen.
"""

from __future__ import annotations

import dataclasses
import logging
import uuid
from datetime import datetime, timedelta
from typing import Any, List, Mapping, Optional, Sequence, Union

from core.config import ShopSettings
from core.errors import InvalidTransition, NotFound, ShopError, raise_first_rejection
from core.numbering import DocumentNumberer, NumberingPolicy
from core.party import ClientInfo
from core.pricing import compute_document_totals
from core.time import Clock
from engines.catalog.lines import LineRequest, resolve_lines, validate_line_values
from engines.catalog.policies import line_items_required_policy
from engines.catalog.store import ProductStore
from engines.quotation.models import (
    QUOTATION_WORKFLOW,
    Quotation,
    QuotationItem,
    QuotationStatus,
)
from engines.quotation.policies import (
    client_email_required_policy,
    client_fields_must_be_text_policy,
    client_name_required_policy,
    quotation_creator_required_policy,
    quotation_fields_must_be_editable_policy,
    valid_until_must_be_aware_policy,
    validity_days_must_be_positive_policy,
)
from engines.quotation.store import QuotationStore

logger = logging.getLogger("techshop.quotation")

LineInput = Union[LineRequest, Mapping[str, Any]]


def _build_items(products: ProductStore, requests: Sequence[LineInput]) -> tuple:
    return tuple(
        QuotationItem(
            id=str(uuid.uuid4()),
            product_id=line.product_id,
            product_code=line.product_code,
            product_name=line.product_name,
            quantity=line.quantity,
            unit_price=line.unit_price,
            tax_percent=line.tax_percent,
            discount_percent=line.discount_percent,
        )
        for line in resolve_lines(products, requests)
    )


class QuotationEngine:
    """Owns the QuotationStore. Reads products, never writes them."""

    def __init__(
        self,
        *,
        quotations: QuotationStore,
        products: ProductStore,
        clock: Clock,
        settings: ShopSettings,
        numberer: DocumentNumberer | None = None,
    ):
        self._quotations = quotations
        self._products = products
        self._clock = clock
        self._settings = settings
        self._numberer = numberer or DocumentNumberer(NumberingPolicy(
            name="quotation",
            prefix=settings.quotation_prefix,
            padding=settings.document_number_padding,
        ))
        self._numberer.reserve(quotations.numbers())

    @property
    def store(self) -> QuotationStore:
        return self._quotations

    # ══════════════════════════════════════════════════════════
    # CREATE / EDIT
    # ══════════════════════════════════════════════════════════

    def create_quotation(
        self,
        client: Union[ClientInfo, Mapping[str, Any]],
        items: Sequence[LineInput],
        *,
        creator_id: str,
        validity_days: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> Quotation:
        """
        Price the items and store a new draft.

        valid_until = now + validity_days (shop default when omitted).
        """
        if validity_days is None:
            validity_days = self._settings.quotation_validity_days
        try:
            raise_first_rejection(client_fields_must_be_text_policy(client))
            client = ClientInfo.coerce(client)
            raise_first_rejection(
                client_name_required_policy(client),
                client_email_required_policy(client),
                quotation_creator_required_policy(creator_id),
                validity_days_must_be_positive_policy(validity_days),
            )
            quotation_items = _build_items(self._products, items)
        except ShopError as exc:
            logger.warning(f"Quotation rejected: {exc}")
            raise

        now = self._clock.now()
        with self._quotations.lock:
            quotation = Quotation(
                id=str(uuid.uuid4()),
                quotation_number=self._numberer.next_number(),
                client=client,
                items=quotation_items,
                totals=compute_document_totals(quotation_items),
                status=QuotationStatus.DRAFT,
                valid_until=now + timedelta(days=validity_days),
                created_by=creator_id,
                created_at=now,
                updated_at=now,
                notes=notes,
            )
            self._quotations.add(quotation)

        logger.info(
            f"Quotation created: {quotation.quotation_number} for {client.name} "
            f"({len(quotation_items)} items, total {quotation.grand_total:.2f})"
        )
        return quotation

    def update_quotation(self, quotation_id: str, **changes: Any) -> Quotation:
        """
        Merge client, notes, valid_until or items.

        When items are supplied they replace the current lines and the
        aggregates are recomputed.
        """
        raise_first_rejection(quotation_fields_must_be_editable_policy(changes))
        with self._quotations.lock:
            quotation = self._require_editable(quotation_id)
            now = self._clock.now()
            fields: dict = {}
            if "client" in changes:
                raise_first_rejection(client_fields_must_be_text_policy(changes["client"]))
                client = ClientInfo.coerce(changes["client"])
                raise_first_rejection(
                    client_name_required_policy(client),
                    client_email_required_policy(client),
                )
                fields["client"] = client
            if "notes" in changes:
                fields["notes"] = changes["notes"]
            if "valid_until" in changes:
                raise_first_rejection(valid_until_must_be_aware_policy(changes["valid_until"]))
                fields["valid_until"] = changes["valid_until"]

            updated = dataclasses.replace(quotation, **fields, updated_at=now)
            if "items" in changes:
                updated = updated.with_items(_build_items(self._products, changes["items"]), now)
            self._quotations.replace(updated)

        logger.info(f"Quotation updated: {updated.quotation_number} {sorted(changes)}")
        return updated

    def update_item(
        self,
        quotation_id: str,
        item_id: str,
        *,
        quantity: Optional[int] = None,
        discount_percent: Optional[float] = None,
    ) -> Quotation:
        with self._quotations.lock:
            quotation = self._require_editable(quotation_id)
            item = self._require_item(quotation, item_id)
            new_quantity = item.quantity if quantity is None else quantity
            new_discount = item.discount_percent if discount_percent is None else discount_percent
            validate_line_values(new_quantity, new_discount)

            edited = dataclasses.replace(
                item, quantity=new_quantity, discount_percent=float(new_discount),
            )
            updated = quotation.with_items(
                tuple(edited if i.id == item_id else i for i in quotation.items),
                self._clock.now(),
            )
            self._quotations.replace(updated)

        logger.info(
            f"Quotation {updated.quotation_number}: item {item.product_code} "
            f"qty={new_quantity} discount={new_discount}"
        )
        return updated

    def remove_item(self, quotation_id: str, item_id: str) -> Quotation:
        with self._quotations.lock:
            quotation = self._require_editable(quotation_id)
            item = self._require_item(quotation, item_id)
            remaining = tuple(i for i in quotation.items if i.id != item_id)
            raise_first_rejection(line_items_required_policy(remaining))
            updated = quotation.with_items(remaining, self._clock.now())
            self._quotations.replace(updated)

        logger.info(f"Quotation {updated.quotation_number}: removed {item.product_code}")
        return updated

    # ══════════════════════════════════════════════════════════
    # STATUS
    # ══════════════════════════════════════════════════════════

    def transition_status(
        self,
        quotation_id: str,
        new_status: Union[QuotationStatus, str],
    ) -> Quotation:
        """Move along draft → sent → accepted | rejected."""
        target = QuotationStatus(getattr(new_status, "value", new_status))
        with self._quotations.lock:
            quotation = self._require(quotation_id)
            if target == QuotationStatus.CONVERTED:
                logger.warning(
                    f"Quotation {quotation.quotation_number}: direct conversion refused"
                )
                raise InvalidTransition(
                    QUOTATION_WORKFLOW.name, quotation.status.value, target.value,
                    "Use the invoice engine to convert a quotation.",
                )
            updated = self._transition(quotation, target)

        return updated

    def send(self, quotation_id: str) -> Quotation:
        return self.transition_status(quotation_id, QuotationStatus.SENT)

    def accept(self, quotation_id: str) -> Quotation:
        return self.transition_status(quotation_id, QuotationStatus.ACCEPTED)

    def reject(self, quotation_id: str) -> Quotation:
        return self.transition_status(quotation_id, QuotationStatus.REJECTED)

    def mark_converted(self, quotation_id: str) -> Quotation:
        """Terminal step, called by the invoice engine inside a conversion."""
        with self._quotations.lock:
            return self._transition(self._require(quotation_id), QuotationStatus.CONVERTED)

    def ensure_convertible(self, quotation_id: str) -> Quotation:
        quotation = self._require(quotation_id)
        QUOTATION_WORKFLOW.require_transition(
            quotation.status.value, QuotationStatus.CONVERTED.value,
        )
        return quotation

    # ══════════════════════════════════════════════════════════
    # LOOKUPS
    # ══════════════════════════════════════════════════════════

    def get_quotation(self, quotation_id: str) -> Optional[Quotation]:
        return self._quotations.get(quotation_id)

    def get_by_number(self, quotation_number: str) -> Optional[Quotation]:
        return self._quotations.get_by_number(quotation_number)

    def require_quotation(self, quotation_id: str) -> Quotation:
        return self._require(quotation_id)

    def list_quotations(self) -> List[Quotation]:
        return self._quotations.all()

    def quotations_by_status(self, status: Union[QuotationStatus, str]) -> List[Quotation]:
        return self._quotations.by_status(QuotationStatus(getattr(status, "value", status)))

    def expired_quotations(self, now: Optional[datetime] = None) -> List[Quotation]:
        """Open quotations past their validity deadline."""
        now = now or self._clock.now()
        return [
            q for q in self._quotations.all()
            if q.status in (QuotationStatus.DRAFT, QuotationStatus.SENT) and q.is_expired(now)
        ]

    # ══════════════════════════════════════════════════════════
    # INTERNALS
    # ══════════════════════════════════════════════════════════

    def _transition(self, quotation: Quotation, target: QuotationStatus) -> Quotation:
        try:
            QUOTATION_WORKFLOW.require_transition(quotation.status.value, target.value)
        except InvalidTransition as exc:
            logger.warning(f"Quotation {quotation.quotation_number}: {exc}")
            raise
        updated = dataclasses.replace(quotation, status=target, updated_at=self._clock.now())
        self._quotations.replace(updated)
        logger.info(
            f"Quotation {quotation.quotation_number}: "
            f"{quotation.status.value} → {target.value}"
        )
        return updated

    def _require(self, quotation_id: str) -> Quotation:
        quotation = self._quotations.get(quotation_id)
        if quotation is None:
            raise NotFound("Quotation", quotation_id)
        return quotation

    def _require_editable(self, quotation_id: str) -> Quotation:
        quotation = self._require(quotation_id)
        if not quotation.is_editable:
            logger.warning(
                f"Quotation {quotation.quotation_number} is {quotation.status.value}; edit refused"
            )
            raise InvalidTransition(
                QUOTATION_WORKFLOW.name, quotation.status.value, quotation.status.value,
                f"A {quotation.status.value} quotation can no longer be edited.",
            )
        return quotation

    @staticmethod
    def _require_item(quotation: Quotation, item_id: str) -> QuotationItem:
        item = quotation.find_item(item_id)
        if item is None:
            raise NotFound("QuotationItem", item_id)
        return item
